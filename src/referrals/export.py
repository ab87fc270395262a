"""
CSV export of the referral list.

The export honours the status and referral-date filters only; search and
practice filters apply to the on-screen list, not to the download.
"""
import csv
import io
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from .filters import apply_referral_filters
from .models import Referral
from .schemas import ReferralFilter

EXPORT_HEADERS = [
    "Patient First Name",
    "Patient Last Name",
    "Patient Phone",
    "Patient Email",
    "Date of Birth",
    "Referring Practice",
    "Referring Doctor",
    "Status",
    "Referral Date",
    "Appointment Date",
    "Insurance Provider",
    "Insurance Member ID",
    "Insurance Group",
    "Auth Status",
    "Notes",
    "Created By",
    "Created At",
]

def _iso_date(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()

def export_row(referral: Referral) -> List[str]:
    creator = referral.created_by
    return [
        referral.patient_first_name,
        referral.patient_last_name,
        referral.patient_phone or "",
        referral.patient_email or "",
        _iso_date(referral.patient_dob),
        referral.referring_practice_name or "",
        referral.referring_doctor_display or "",
        referral.status_label,
        _iso_date(referral.referral_date),
        _iso_date(referral.appointment_date),
        referral.insurance_provider or "",
        referral.insurance_member_id or "",
        referral.insurance_group or "",
        referral.auth_status or "",
        referral.notes or "",
        creator.display_name if creator else "",
        _iso_date(referral.created_at),
    ]

def referrals_to_csv(referrals: Iterable[Referral]) -> str:
    """
    Render referrals as CSV text with the fixed header row.

    Fields holding a comma, a quote or a line break are quoted, with embedded
    quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for referral in referrals:
        writer.writerow(export_row(referral))
    return buffer.getvalue()

def export_referrals(db: Session, filters: ReferralFilter) -> str:
    """
    CSV of every referral matching the status and date filters, newest
    referral date first.
    """
    export_filters = ReferralFilter(
        status=filters.status,
        date_from=filters.date_from,
        date_to=filters.date_to,
    )
    query = db.query(Referral).options(
        joinedload(Referral.referring_practice),
        joinedload(Referral.referring_doctor),
        joinedload(Referral.created_by),
    )
    query = apply_referral_filters(query, export_filters)
    referrals = query.order_by(Referral.referral_date.desc(), Referral.id.desc()).all()
    return referrals_to_csv(referrals)

def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"referrals-{today.isoformat()}.csv"
