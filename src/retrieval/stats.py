"""Polling of the commit-activity statistics endpoint.

GitHub computes repository statistics in a background job; until that job has
finished the endpoint answers ``202 Accepted`` with no usable body. The poller
below retries with exponential backoff until the data is ready, the repository
is confirmed empty or forbidden, or a fixed deadline elapses.

See https://docs.github.com/en/rest/metrics/statistics#a-word-about-caching
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Callable, Optional

import requests

from . import http_client
from .config import BACKOFF_BASE_SEC, STATS_TIMEOUT_SEC
from .errors import DecodeError, StatsTimeoutError, TransportError
from .models import ActivityReport, ActivityWeek
from .window import Clock, sum_recent_weeks, utc_now

logger = logging.getLogger(__name__)


class PollState(enum.Enum):
    REQUESTING = "requesting"
    READY = "ready"
    EMPTY = "empty"
    FORBIDDEN = "forbidden"
    PENDING = "pending"
    TRANSPORT_FAILURE = "transport_failure"
    DECODE_FAILURE = "decode_failure"
    TIMED_OUT = "timed_out"


def classify_status(status_code: int) -> PollState:
    """Map a statistics response status onto the next poller state."""
    if status_code == 200:
        return PollState.READY
    if status_code == 204:
        return PollState.EMPTY
    if status_code == 403:
        return PollState.FORBIDDEN
    return PollState.PENDING


def backoff_delay(tries: int) -> float:
    """Nominal sleep before retry number ``tries``: 1, 2, 4, 8, ... seconds."""
    return BACKOFF_BASE_SEC * (2 ** tries)


class StatsPoller:
    """Retry state machine for one repository's commit-activity statistics."""

    def __init__(self,
                 url: str,
                 session: Optional[requests.Session] = None,
                 *,
                 clock: Clock = utc_now,
                 sleep: Callable[[float], None] = time.sleep,
                 monotonic: Callable[[], float] = time.monotonic,
                 timeout: float = STATS_TIMEOUT_SEC) -> None:
        self.url = url
        self.session = session
        self.timeout = timeout
        self.state = PollState.REQUESTING
        self.tries = 0
        self._clock = clock
        self._sleep = sleep
        self._monotonic = monotonic

    def poll(self) -> ActivityReport:
        deadline = self._monotonic() + self.timeout
        while True:
            self.state = PollState.REQUESTING
            try:
                resp = http_client.get(self.url, self.session)
            except TransportError as exc:
                self.state = PollState.TRANSPORT_FAILURE
                return ActivityReport(self.url, error=exc)

            self.state = classify_status(resp.status_code)

            if self.state is PollState.READY:
                try:
                    summary = self._summarize(resp)
                except DecodeError as exc:
                    self.state = PollState.DECODE_FAILURE
                    return ActivityReport(self.url, error=exc)
                return ActivityReport(self.url, summary)

            if self.state in (PollState.EMPTY, PollState.FORBIDDEN):
                logger.debug("[info] %s for %s; reporting no activity", self.state.value, self.url)
                return ActivityReport(self.url, 0)

            logger.info("[retry %d] (http %s) %s; retrying request...",
                        self.tries + 1, resp.status_code, self.url)
            remaining = deadline - self._monotonic()
            if remaining <= 0:
                self.state = PollState.TIMED_OUT
                return ActivityReport(
                    self.url,
                    error=StatsTimeoutError(
                        f"server ({self.url}) failed to respond after {self.timeout:g}s"
                    ),
                )
            # The final sleep is clipped so the last attempt lands on the deadline.
            self._sleep(min(backoff_delay(self.tries), remaining))
            self.tries += 1

    def _summarize(self, resp: requests.Response) -> int:
        payload = http_client.decode_json(resp, self.url)
        if not isinstance(payload, list):
            raise DecodeError(
                f"unmarshaling stats failed: expected a list, got {type(payload).__name__} for {self.url}"
            )
        weeks = [ActivityWeek.from_api(entry) for entry in payload]
        return sum_recent_weeks(weeks, self._clock())


def poll_commit_activity(url: str,
                         session: Optional[requests.Session] = None,
                         **kwargs) -> ActivityReport:
    """Run a fresh ``StatsPoller`` for ``url`` and return its report."""
    return StatsPoller(url, session, **kwargs).poll()


__all__ = [
    "PollState",
    "classify_status",
    "backoff_delay",
    "StatsPoller",
    "poll_commit_activity",
]
