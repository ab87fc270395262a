"""
Referral metrics.

Pure functions over plain values: statuses, referral dates and entity ids.
Nothing here touches the database, so every metric can be checked with
hand-built inputs and a fixed ``now``.

Timestamps are compared as naive UTC; aware inputs are converted first.
"""
import math
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from ..referrals.models import PENDING_STATUSES, ReferralStatus
from .schemas import MonthlyCount, StatusCount, TopReferrer

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)"""
    return int(math.floor(value + 0.5))

def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def month_start(value: datetime, offset: int = 0) -> datetime:
    """
    First instant of the month ``offset`` months away from ``value``'s month.
    """
    index = value.year * 12 + (value.month - 1) + offset
    return datetime(index // 12, index % 12 + 1, 1)

def status_distribution(statuses: Iterable[ReferralStatus]) -> List[StatusCount]:
    """
    Count per status, every status present, in workflow order.

    Args:
        statuses: One status per referral

    Returns:
        List[StatusCount]: Counts and whole-number percentages of the total
    """
    counts = Counter(ReferralStatus(status) for status in statuses)
    total = sum(counts.values())
    return [
        StatusCount(
            status=status,
            label=status.label,
            count=counts.get(status, 0),
            percent=round_half_up(counts.get(status, 0) / total * 100) if total else 0,
        )
        for status in ReferralStatus
    ]

def monthly_series(dates: Iterable[datetime], now: datetime, months: int = 6) -> List[MonthlyCount]:
    """
    Referral counts for the trailing ``months`` calendar months, oldest first.

    The current month is the last bucket. Each bucket covers
    ``[month start, next month start)``; dates outside the window are not counted.
    """
    now = as_naive_utc(now)
    starts = [month_start(now, -offset) for offset in range(months - 1, -1, -1)]
    ends = starts[1:] + [month_start(now, 1)]
    counts = [0] * months

    for value in dates:
        value = as_naive_utc(value)
        for index, (start, end) in enumerate(zip(starts, ends)):
            if start <= value < end:
                counts[index] += 1
                break

    return [
        MonthlyCount(label=start.strftime("%b %y"), month_start=start, count=count)
        for start, count in zip(starts, counts)
    ]

def month_over_month(this_month: int, last_month: int) -> Optional[int]:
    """
    Percent change from last month to this month; None when last month is 0.
    """
    if last_month == 0:
        return None
    return round_half_up((this_month - last_month) / last_month * 100)

def pending_count(statuses: Iterable[ReferralStatus]) -> int:
    """Referrals still waiting on follow-up (NEW or CONTACTED)"""
    return sum(1 for status in statuses if ReferralStatus(status) in PENDING_STATUSES)

def top_referrers(
    entities: Sequence[Tuple[int, str]],
    referral_keys: Iterable[Optional[int]],
    limit: int = 5
) -> List[TopReferrer]:
    """
    Entities ranked by how many referrals point at them.

    Args:
        entities: (id, display name) of every candidate
        referral_keys: The referencing id of each referral; None is skipped
        limit: Maximum entries returned

    Returns:
        List[TopReferrer]: Highest count first, ties by ascending id. Entities
        with no referrals fill the list when fewer than ``limit`` have any.
    """
    counts = Counter(key for key in referral_keys if key is not None)
    ranked = sorted(entities, key=lambda entity: (-counts.get(entity[0], 0), entity[0]))
    return [
        TopReferrer(id=entity_id, name=name, count=counts.get(entity_id, 0))
        for entity_id, name in ranked[:limit]
    ]
