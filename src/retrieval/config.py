"""Central configuration constants for the commit-activity retrieval workflow."""

from __future__ import annotations

import os

from dateutil.relativedelta import relativedelta

USER_AGENT = "org-commit-activity/1.0"
BASE_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")
PER_PAGE = 100
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))

# Statistics polling: delay(n) = BACKOFF_BASE_SEC * 2**n, bounded by STATS_TIMEOUT_SEC.
BACKOFF_BASE_SEC = 1
STATS_TIMEOUT_SEC = 120
STATS_WORKERS = 50

SIX_MONTHS = relativedelta(months=6)

__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "PER_PAGE",
    "REQUEST_TIMEOUT",
    "BACKOFF_BASE_SEC",
    "STATS_TIMEOUT_SEC",
    "STATS_WORKERS",
    "SIX_MONTHS",
]
