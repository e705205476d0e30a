"""Six-month window helpers shared by repository and week filtering."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Iterable, List

from .config import SIX_MONTHS
from .models import ActivityWeek, RepositoryRecord

Clock = Callable[[], dt.datetime]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def six_months_before(now: dt.datetime) -> dt.datetime:
    """Return ``now`` minus six calendar months (day clamped to month end)."""
    return now - SIX_MONTHS


def filter_recent_repos(records: Iterable[RepositoryRecord],
                        now: dt.datetime) -> List[RepositoryRecord]:
    """Keep records pushed strictly after the six-month cutoff, preserving order."""
    cutoff = six_months_before(now)
    return [record for record in records if record.pushed_at > cutoff]


def sum_recent_weeks(weeks: Iterable[ActivityWeek], now: dt.datetime) -> int:
    cutoff = six_months_before(now)
    return sum(week.commit_total for week in weeks if week.timestamp > cutoff)


__all__ = [
    "Clock",
    "utc_now",
    "six_months_before",
    "filter_recent_repos",
    "sum_recent_weeks",
]
