"""
Referral list queries.

Filters narrow the referral list by free-text search, status, referring
practice and referral-date range. Every given criterion is ANDed. Bad filter
values (an unknown status, an unreadable date) are dropped rather than
rejected, so a stale bookmark still lists something.
"""
from typing import Optional
from datetime import datetime, timedelta
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload

from ..core.pagination import PageParams, PageResponse, paginate
from .models import Referral, ReferralStatus
from .schemas import ReferralFilter, ReferralListItem, parse_datetime

logger = logging.getLogger(__name__)

def parse_status(value: Optional[str]) -> Optional[ReferralStatus]:
    """Return the matching status, or None for blank or unknown values"""
    if not value:
        return None
    try:
        return ReferralStatus(value.strip().upper())
    except ValueError:
        logger.debug(f"Ignoring unknown status filter {value!r}")
        return None

def escape_like(text: str) -> str:
    """Escape LIKE wildcards so the text matches itself (escape character is a backslash)"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def _day_start(value: Optional[str]) -> Optional[datetime]:
    parsed = parse_datetime(value)
    if parsed is None:
        if value:
            logger.debug(f"Ignoring unreadable date filter {value!r}")
        return None
    return parsed.replace(hour=0, minute=0, second=0, microsecond=0)

def apply_referral_filters(query: Query, filters: ReferralFilter) -> Query:
    """
    Narrow a referral query.

    - search: case-insensitive match on first name, last name or free-text doctor name
    - status: exact status
    - practice_id: referring practice
    - date_from: referral date on or after the start of that day
    - date_to: referral date on or before the end of that day

    Args:
        query: Query over Referral
        filters: Filter values

    Returns:
        Query: The narrowed query
    """
    if filters.search:
        # % and _ are matched literally
        pattern = f"%{escape_like(filters.search)}%"
        query = query.filter(or_(
            Referral.patient_first_name.ilike(pattern, escape="\\"),
            Referral.patient_last_name.ilike(pattern, escape="\\"),
            Referral.referring_doctor_name.ilike(pattern, escape="\\"),
        ))

    status = parse_status(filters.status)
    if status is not None:
        query = query.filter(Referral.status == status)

    if filters.practice_id is not None:
        query = query.filter(Referral.referring_practice_id == filters.practice_id)

    date_from = _day_start(filters.date_from)
    if date_from is not None:
        query = query.filter(Referral.referral_date >= date_from)

    date_to = _day_start(filters.date_to)
    if date_to is not None:
        query = query.filter(Referral.referral_date < date_to + timedelta(days=1))

    return query

def build_referral_query(db: Session, filters: ReferralFilter) -> Query:
    """
    Filtered referral query, newest referral date first with id breaking ties.
    """
    query = db.query(Referral).options(
        joinedload(Referral.referring_practice),
        joinedload(Referral.referring_doctor),
    )
    query = apply_referral_filters(query, filters)
    return query.order_by(Referral.referral_date.desc(), Referral.id.desc())

def list_referrals(db: Session, filters: ReferralFilter, page_params: PageParams) -> PageResponse[ReferralListItem]:
    """
    One page of the filtered referral list.

    Args:
        db: Database session
        filters: Filter values
        page_params: Page number; the size comes from configuration

    Returns:
        PageResponse: The page with totals
    """
    return paginate(build_referral_query(db, filters), page_params, ReferralListItem)
