"""Tests for src.retrieval.collectors covering paging fan-out and stats fan-in.

Run with coverage to exercise the data collection logic:
    pytest tests/test_collectors.py --maxfail=1 -v --cov=src.retrieval.collectors --cov-report=term-missing
"""

import datetime as dt
import logging
import re
import threading
import time
from typing import Any, Dict
from unittest.mock import MagicMock, patch

import pytest
import requests

from src.retrieval import collectors
from src.retrieval.errors import (
    DecodeError,
    HTTPStatusError,
    ListingError,
    PartialFetchError,
    StatsTimeoutError,
    TransportError,
)
from src.retrieval.models import NEVER_PUSHED, ActivityReport

BASE = collectors.BASE_URL
REPOS_URL = f"{BASE}/orgs/acme/repos?sort=pushed&per_page={collectors.PER_PAGE}"


def _repos(*names):
    return [{"full_name": f"acme/{n}", "pushed_at": "2024-09-01T00:00:00Z"} for n in names]


def _make_resp(status: int = 200, payload: Any = None, links: Dict[str, Dict[str, str]] | None = None):
    resp = MagicMock()
    resp.status_code = status
    resp.reason = "OK" if status == 200 else "Error"
    resp.json.return_value = [] if payload is None else payload
    resp.text = str(payload)
    resp.links = links or {}
    return resp


def _last(page):
    return {"last": {"url": f"{REPOS_URL}&page={page}", "rel": "last"}}


def test_urls():
    assert collectors.org_repos_url("acme") == REPOS_URL
    assert collectors.stats_url("acme/rocket") == f"{BASE}/repos/acme/rocket/stats/commit_activity"


def test_last_page_from_links():
    assert collectors.last_page_from_links(_make_resp(links=_last(7))) == 7
    assert collectors.last_page_from_links(_make_resp()) == 1
    bad = _make_resp(links={"last": {"url": f"{BASE}/orgs/acme/repos?page=abc"}})
    assert collectors.last_page_from_links(bad) == 1


def test_parse_repo_page_rejects_non_list():
    with pytest.raises(DecodeError):
        collectors.parse_repo_page({"message": "Not Found"}, REPOS_URL)


def test_single_page_listing_makes_one_request():
    session = MagicMock()
    session.get.return_value = _make_resp(200, _repos("a", "b"))
    records = collectors.list_org_repos("acme", session)
    assert [r.full_name for r in records] == ["acme/a", "acme/b"]
    session.get.assert_called_once_with(REPOS_URL, timeout=collectors.http_client.REQUEST_TIMEOUT)


def test_three_pages_merge_regardless_of_completion_order():
    pages = {
        REPOS_URL: _make_resp(200, _repos("p1a", "p1b"), links=_last(3)),
        f"{REPOS_URL}&page=2": _make_resp(200, _repos("p2a", "p2b", "p2c")),
        f"{REPOS_URL}&page=3": _make_resp(200, _repos("p3a")),
    }
    page2_started = threading.Event()

    def respond(url, timeout):
        if url.endswith("page=2"):
            page2_started.set()
            time.sleep(0.05)
        return pages[url]

    session = MagicMock()
    session.get.side_effect = respond
    records = collectors.list_org_repos("acme", session)
    names = [r.full_name for r in records]
    assert len(records) == 6
    assert names[:2] == ["acme/p1a", "acme/p1b"]
    assert sorted(names[2:]) == ["acme/p2a", "acme/p2b", "acme/p2c", "acme/p3a"]
    # Within a page the server's order survives.
    p2 = [n for n in names if "p2" in n]
    assert p2 == ["acme/p2a", "acme/p2b", "acme/p2c"]
    assert page2_started.is_set()


def test_never_pushed_repo_does_not_abort_listing():
    session = MagicMock()
    session.get.return_value = _make_resp(200, [
        {"full_name": "acme/active", "pushed_at": "2024-09-01T00:00:00Z"},
        {"full_name": "acme/empty-new-repo", "pushed_at": None},
    ])
    records = collectors.list_org_repos("acme", session)
    assert [r.full_name for r in records] == ["acme/active", "acme/empty-new-repo"]
    assert records[1].pushed_at == NEVER_PUSHED
    assert all(r.fetch_error is None for r in records)


def test_later_page_failure_becomes_placeholder_record():
    pages = {
        REPOS_URL: _make_resp(200, _repos("a"), links=_last(3)),
        f"{REPOS_URL}&page=2": _make_resp(500, {"message": "boom"}),
        f"{REPOS_URL}&page=3": _make_resp(200, _repos("c")),
    }
    session = MagicMock()
    session.get.side_effect = lambda url, timeout: pages[url]
    records = collectors.list_org_repos("acme", session)
    assert len(records) == 3
    failed = [r for r in records if r.fetch_error is not None]
    assert len(failed) == 1
    assert isinstance(failed[0].fetch_error, PartialFetchError)
    assert failed[0].pushed_at is None


def test_fetch_repo_page_captures_transport_and_decode_errors():
    session = MagicMock()
    session.get.side_effect = requests.Timeout("slow")
    [record] = collectors.fetch_repo_page("u", session)
    assert isinstance(record.fetch_error, PartialFetchError)

    session = MagicMock()
    session.get.return_value = _make_resp(200, {"not": "a list"})
    [record] = collectors.fetch_repo_page("u", session)
    assert "expected a list" in str(record.fetch_error)


def test_first_page_status_failure_is_listing_error():
    session = MagicMock()
    session.get.return_value = _make_resp(404, {"message": "Not Found"})
    with pytest.raises(ListingError) as excinfo:
        collectors.list_org_repos("acme", session)
    assert isinstance(excinfo.value.__cause__, HTTPStatusError)
    assert excinfo.value.__cause__.status_code == 404


def test_first_page_transport_failure_is_listing_error():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("down")
    with pytest.raises(ListingError) as excinfo:
        collectors.list_org_repos("acme", session)
    assert isinstance(excinfo.value.__cause__, TransportError)


def test_first_page_bad_body_is_decode_error():
    session = MagicMock()
    session.get.return_value = _make_resp(200, [{"pushed_at": "2024-01-01T00:00:00Z"}])
    with pytest.raises(DecodeError):
        collectors.list_org_repos("acme", session)


def test_collect_commit_activity_returns_one_report_per_repo():
    names = [f"acme/r{i}" for i in range(12)]

    def fake_poll(url, session, clock, **kwargs):
        index = int(re.search(r"/r(\d+)/stats", url).group(1))
        if index % 3 == 0:
            return ActivityReport(url, error=StatsTimeoutError("slow"))
        if index % 4 == 0:
            raise RuntimeError("poller bug")
        return ActivityReport(url, index)

    with patch.object(collectors, "poll_commit_activity", side_effect=fake_poll):
        reports = collectors.collect_commit_activity(names, MagicMock(), workers=3)

    assert len(reports) == len(names)
    urls = sorted(r.source_url for r in reports)
    assert urls == sorted(collectors.stats_url(n) for n in names)
    crashed = [r for r in reports if isinstance(r.error, PartialFetchError)]
    assert len(crashed) == 2  # r4 and r8
    assert all(r.commit_summary >= 0 for r in reports)


def test_collect_commit_activity_passes_clock_and_poller_options():
    clock = lambda: dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)  # noqa: E731
    with patch.object(collectors, "poll_commit_activity",
                      return_value=ActivityReport("u", 1)) as mock_poll:
        collectors.collect_commit_activity(["acme/a"], None, clock=clock, sleep=print)
    kwargs = mock_poll.call_args.kwargs
    assert kwargs["clock"] is clock and kwargs["sleep"] is print


def test_collect_commit_activity_handles_empty_input():
    assert collectors.collect_commit_activity([]) == []


def test_crashed_poll_is_logged_without_traceback(caplog):
    caplog.set_level(logging.INFO)
    with patch.object(collectors, "poll_commit_activity", side_effect=RuntimeError("poller bug")):
        [report] = collectors.collect_commit_activity(["acme/a"], MagicMock())
    assert isinstance(report.error, PartialFetchError)
    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert len(errors) == 1
    assert "poller bug" in errors[0].getMessage()
    assert errors[0].exc_info is None
    assert "Traceback" not in caplog.text
