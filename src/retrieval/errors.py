"""Error taxonomy shared by the listing, polling, and reporting stages."""

from __future__ import annotations

from typing import Optional


class ActivityError(Exception):
    """Base class for every failure raised or captured by the pipeline."""


class TransportError(ActivityError):
    """The request never produced a response (DNS, connection, timeout...)."""


class HTTPStatusError(ActivityError):
    """A response arrived with a status other than the one required."""

    def __init__(self, status_code: int, url: str, reason: Optional[str] = None) -> None:
        self.status_code = status_code
        self.url = url
        self.reason = reason or ""
        label = f"{status_code} {self.reason}".strip()
        super().__init__(f"HTTP {label} for {url}")


class DecodeError(ActivityError):
    """The response body could not be parsed into the expected shape."""


class StatsTimeoutError(ActivityError, TimeoutError):
    """Statistics were still being computed when the polling deadline passed."""


class PartialFetchError(ActivityError):
    """One page or one repository failed while the rest of the batch succeeded."""


class ListingError(ActivityError):
    """The first page of an organization's repository listing could not be fetched."""


class CredentialsError(ActivityError):
    """GitHub credentials were not found in the environment or local secrets."""


__all__ = [
    "ActivityError",
    "TransportError",
    "HTTPStatusError",
    "DecodeError",
    "StatsTimeoutError",
    "PartialFetchError",
    "ListingError",
    "CredentialsError",
]
