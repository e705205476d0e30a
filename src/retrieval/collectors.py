"""Concurrent collection of an organization's repositories and their commit activity."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Iterable, List, Optional
from urllib.parse import parse_qs, quote, urlparse

import requests

from . import http_client
from .config import BASE_URL, PER_PAGE, STATS_WORKERS
from .errors import (
    ActivityError,
    DecodeError,
    HTTPStatusError,
    ListingError,
    PartialFetchError,
    TransportError,
)
from .models import ActivityReport, RepositoryRecord
from .stats import poll_commit_activity
from .window import Clock, utc_now

logger = logging.getLogger(__name__)


def org_repos_url(org: str) -> str:
    return f"{BASE_URL}/orgs/{quote(org, safe='')}/repos?sort=pushed&per_page={PER_PAGE}"


def stats_url(full_name: str) -> str:
    return f"{BASE_URL}/repos/{full_name}/stats/commit_activity"


def _get_page(url: str, session: Optional[requests.Session]) -> requests.Response:
    resp = http_client.get(url, session)
    if resp.status_code != 200:
        http_client.log_http_error(resp, url)
        raise HTTPStatusError(resp.status_code, url, resp.reason)
    return resp


def parse_repo_page(payload: Any, url: str) -> List[RepositoryRecord]:
    """Decode one listing page, keeping the server's order."""
    if not isinstance(payload, list):
        raise DecodeError(
            f"unmarshaling repos failed: expected a list, got {type(payload).__name__} for {url}"
        )
    return [RepositoryRecord.from_api(entry) for entry in payload]


def last_page_from_links(resp: requests.Response) -> int:
    """Return the page number of the ``rel="last"`` link, or 1 when absent."""
    last = (resp.links or {}).get("last") or {}
    last_url = last.get("url")
    if not last_url:
        return 1
    pages = parse_qs(urlparse(last_url).query).get("page") or []
    try:
        return max(1, int(pages[0]))
    except (IndexError, ValueError):
        logger.warning("[warn] unreadable last-page link %s; assuming one page", last_url)
        return 1


def fetch_repo_page(url: str, session: Optional[requests.Session] = None) -> List[RepositoryRecord]:
    """Fetch a later listing page; failures come back as one placeholder record."""
    try:
        resp = _get_page(url, session)
        return parse_repo_page(http_client.decode_json(resp, url), url)
    except ActivityError as exc:
        return [RepositoryRecord.failed(PartialFetchError(f"fetching repos failed: {exc}"))]


def list_org_repos(org: str, session: Optional[requests.Session] = None) -> List[RepositoryRecord]:
    """Return every repository record of ``org`` across all listing pages.

    Page 1 is fetched synchronously to learn the page count; pages 2..last are
    fetched by a pool with one worker per page and appended as they complete,
    so only the order within a page is meaningful.
    """
    repos_url = org_repos_url(org)
    try:
        resp = _get_page(repos_url, session)
    except (TransportError, HTTPStatusError) as exc:
        raise ListingError(f"getting index failed: {exc}") from exc

    records = parse_repo_page(http_client.decode_json(resp, repos_url), repos_url)
    total = last_page_from_links(resp)
    if total <= 1:
        return records

    logger.info("[info] %s has %d pages of repos; fetching the remaining %d", org, total, total - 1)
    page_urls = [f"{repos_url}&page={page}" for page in range(2, total + 1)]
    with ThreadPoolExecutor(max_workers=len(page_urls)) as ex:
        futs = [ex.submit(fetch_repo_page, url, session) for url in page_urls]
        for fut in as_completed(futs):
            records.extend(fut.result())
    return records


def _poll_one(url: str, session: Optional[requests.Session], clock: Clock, **poller_kwargs) -> ActivityReport:
    try:
        return poll_commit_activity(url, session, clock=clock, **poller_kwargs)
    except Exception as exc:
        logger.error("[error] polling %s crashed: %s", url, exc)
        logger.debug("traceback for %s", url, exc_info=True)
        return ActivityReport(url, error=PartialFetchError(f"polling {url} failed: {exc}"))


def collect_commit_activity(full_names: Iterable[str],
                            session: Optional[requests.Session] = None,
                            *,
                            workers: int = STATS_WORKERS,
                            clock: Clock = utc_now,
                            **poller_kwargs) -> List[ActivityReport]:
    """Poll statistics for every repository on a fixed-width pool.

    Returns exactly one report per name, in completion order.
    """
    urls = [stats_url(name) for name in full_names]
    if not urls:
        return []

    reports: List[ActivityReport] = []
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futs = [ex.submit(_poll_one, url, session, clock, **poller_kwargs) for url in urls]
        for i, fut in enumerate(as_completed(futs), start=1):
            reports.append(fut.result())
            if i % 50 == 0:
                logger.info("    collected statistics for %d/%d repos...", i, len(urls))
    return reports


__all__ = [
    "org_repos_url",
    "stats_url",
    "parse_repo_page",
    "last_page_from_links",
    "fetch_repo_page",
    "list_org_repos",
    "collect_commit_activity",
]
