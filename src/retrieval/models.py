"""Immutable records passed between the listing, polling, and ranking stages."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import DecodeError


# Stand-in for repositories nobody has pushed to; never inside any recency window.
NEVER_PUSHED = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def _parse_github_timestamp(raw: Any) -> dt.datetime:
    if raw is None:
        return NEVER_PUSHED
    if not isinstance(raw, str) or not raw:
        raise DecodeError(f"expected an RFC3339 timestamp, got {raw!r}")
    try:
        value = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise DecodeError(f"invalid timestamp {raw!r}: {exc}") from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


@dataclass(frozen=True)
class RepositoryRecord:
    """One listed repository; placeholders carry only ``fetch_error``."""

    full_name: Optional[str]
    pushed_at: Optional[dt.datetime]
    fetch_error: Optional[Exception] = None

    @classmethod
    def from_api(cls, entry: Dict[str, Any]) -> "RepositoryRecord":
        if not isinstance(entry, dict):
            raise DecodeError(f"expected a repository object, got {type(entry).__name__}")
        full_name = entry.get("full_name")
        if not isinstance(full_name, str) or not full_name:
            raise DecodeError("repository entry is missing full_name")
        return cls(full_name=full_name, pushed_at=_parse_github_timestamp(entry.get("pushed_at")))

    @classmethod
    def failed(cls, error: Exception) -> "RepositoryRecord":
        return cls(full_name=None, pushed_at=None, fetch_error=error)


@dataclass(frozen=True)
class ActivityWeek:
    timestamp: dt.datetime
    commit_total: int

    @classmethod
    def from_api(cls, entry: Dict[str, Any]) -> "ActivityWeek":
        if not isinstance(entry, dict):
            raise DecodeError(f"expected a week object, got {type(entry).__name__}")
        total = entry.get("total")
        week = entry.get("week")
        # bool is an int subclass; reject it explicitly.
        if not isinstance(total, int) or isinstance(total, bool) or total < 0:
            raise DecodeError(f"invalid week total {total!r}")
        if not isinstance(week, int) or isinstance(week, bool):
            raise DecodeError(f"invalid week timestamp {week!r}")
        return cls(
            timestamp=dt.datetime.fromtimestamp(week, tz=dt.timezone.utc),
            commit_total=total,
        )


@dataclass(frozen=True)
class ActivityReport:
    """Six-month commit summary for one repository, or the reason it is missing."""

    source_url: str
    commit_summary: int = 0
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


__all__ = ["NEVER_PUSHED", "RepositoryRecord", "ActivityWeek", "ActivityReport"]
