"""Shared HTTP session and response helpers for the retrieval workflow."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import REQUEST_TIMEOUT, STATS_WORKERS, USER_AGENT
from .errors import DecodeError, TransportError

logger = logging.getLogger(__name__)

SESSION = requests.Session()
SESSION.headers.update(
    {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": USER_AGENT,
    }
)
# One pooled connection per stats worker.
_ADAPTER = HTTPAdapter(pool_connections=STATS_WORKERS, pool_maxsize=STATS_WORKERS)
SESSION.mount("https://", _ADAPTER)
SESSION.mount("http://", _ADAPTER)


def configure_auth(username: str, token: str, session: Optional[requests.Session] = None) -> None:
    """Attach Basic-Auth credentials to the shared (or given) session."""
    (session or SESSION).auth = (username, token)


def log_http_error(resp: requests.Response, url: str) -> None:
    """Log a short, human-readable message when GitHub returns an error."""
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        body = {"text": str(body)[:300]}
    msg = body.get("message") or body.get("error") or body.get("text")
    logger.warning("[error] HTTP %s for %s\n  -> %s", resp.status_code, url, msg)


def get(url: str, session: Optional[requests.Session] = None) -> requests.Response:
    """Issue a GET, turning connection-level failures into ``TransportError``."""
    try:
        return (session or SESSION).get(url, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        raise TransportError(f"GET {url} failed: {exc}") from exc


def decode_json(resp: requests.Response, url: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise DecodeError(f"unmarshaling response failed: {exc} for {url}") from exc


__all__ = [
    "SESSION",
    "configure_auth",
    "log_http_error",
    "get",
    "decode_json",
]
