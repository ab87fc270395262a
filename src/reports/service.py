"""
Report Service - Loads referral data and feeds it through the metric functions.
"""
from typing import Optional
from datetime import datetime
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..config import settings
from ..directory.models import ReferringDoctor, ReferringPractice
from ..referrals.models import PENDING_STATUSES, Referral
from ..referrals.schemas import utcnow
from .aggregation import (
    as_naive_utc,
    month_over_month,
    month_start,
    monthly_series,
    status_distribution,
    top_referrers,
)
from .schemas import DashboardResponse, RecentReferral, ReportResponse

logger = logging.getLogger(__name__)

def get_dashboard(db: Session) -> DashboardResponse:
    """
    Dashboard figures: total, all-time status distribution and the most
    recently entered referrals with their practice.
    """
    total = db.query(func.count(Referral.id)).scalar() or 0
    statuses = [status for (status,) in db.query(Referral.status).all()]
    recent = (
        db.query(Referral)
        .options(joinedload(Referral.referring_practice))
        .order_by(Referral.created_at.desc(), Referral.id.desc())
        .limit(settings.dashboard_recent)
        .all()
    )
    return DashboardResponse(
        total=total,
        status_distribution=status_distribution(statuses),
        recent=[RecentReferral.model_validate(referral) for referral in recent],
    )

def get_report(db: Session, now: Optional[datetime] = None) -> ReportResponse:
    """
    Reports page figures relative to ``now`` (defaults to the current UTC time).

    Args:
        db: Database session
        now: Reference time for the month boundaries

    Returns:
        ReportResponse: Totals, monthly series, status breakdown and top referrers
    """
    now = as_naive_utc(now) if now else utcnow()
    this_month_start = month_start(now)
    last_month_start = month_start(now, -1)
    window_start = month_start(now, -(settings.report_months - 1))

    count = db.query(func.count(Referral.id))
    total = count.scalar() or 0
    this_month = count.filter(Referral.referral_date >= this_month_start).scalar() or 0
    last_month = count.filter(
        Referral.referral_date >= last_month_start,
        Referral.referral_date < this_month_start,
    ).scalar() or 0
    pending = count.filter(Referral.status.in_(PENDING_STATUSES)).scalar() or 0

    window = db.query(Referral.referral_date, Referral.status).filter(
        Referral.referral_date >= window_start
    ).all()

    practices = [(practice.id, practice.name) for practice in db.query(ReferringPractice).all()]
    providers = [(doctor.id, doctor.display_name) for doctor in db.query(ReferringDoctor).all()]
    practice_keys = [key for (key,) in db.query(Referral.referring_practice_id).all()]
    provider_keys = [key for (key,) in db.query(Referral.referring_doctor_id).all()]

    logger.debug(f"Report at {now.isoformat()}: {total} referral(s), {len(window)} in window")
    return ReportResponse(
        total=total,
        this_month=this_month,
        last_month=last_month,
        month_over_month=month_over_month(this_month, last_month),
        pending=pending,
        monthly=monthly_series([row.referral_date for row in window], now, settings.report_months),
        status_breakdown=status_distribution([row.status for row in window]),
        top_practices=top_referrers(practices, practice_keys, settings.report_top_n),
        top_providers=top_referrers(providers, provider_keys, settings.report_top_n),
    )
