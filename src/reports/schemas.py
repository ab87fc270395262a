"""
Report Schemas - Pydantic models for the dashboard and the reports page.
"""
from typing import List, Optional
from pydantic import BaseModel
from datetime import datetime
from ..referrals.models import ReferralStatus

class StatusCount(BaseModel):
    """
    One status bucket

    Fields:
    - status: Referral status
    - label: Display label
    - count: Referrals with this status
    - percent: Share of the total, rounded half up; 0 when there are none
    """
    status: ReferralStatus
    label: str
    count: int
    percent: int

class MonthlyCount(BaseModel):
    label: str
    month_start: datetime
    count: int

class TopReferrer(BaseModel):
    id: int
    name: str
    count: int

class RecentReferral(BaseModel):
    id: int
    patient_first_name: str
    patient_last_name: str
    referring_practice_name: Optional[str] = None
    status: ReferralStatus
    status_label: str
    referral_date: datetime
    created_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True

class DashboardResponse(BaseModel):
    """
    Dashboard - all-time total, all-time status distribution and the most
    recently entered referrals
    """
    total: int
    status_distribution: List[StatusCount]
    recent: List[RecentReferral]

class ReportResponse(BaseModel):
    """
    Reports page

    Fields:
    - total: All-time referral count
    - this_month / last_month: Referrals dated in the current / previous calendar month
    - month_over_month: Percent change, None when last month had none
    - pending: Referrals still NEW or CONTACTED
    - monthly: Trailing monthly counts, oldest first
    - status_breakdown: Status distribution over the monthly window
    - top_practices / top_providers: Most frequent referrers
    """
    total: int
    this_month: int
    last_month: int
    month_over_month: Optional[int] = None
    pending: int
    monthly: List[MonthlyCount]
    status_breakdown: List[StatusCount]
    top_practices: List[TopReferrer]
    top_providers: List[TopReferrer]
