"""Entry point ranking each organization's repositories by six-month commit activity."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import requests

from src.retrieval.collectors import collect_commit_activity, list_org_repos
from src.retrieval.errors import ActivityError
from src.retrieval.http_client import configure_auth
from src.retrieval.models import ActivityReport, RepositoryRecord
from src.retrieval.window import Clock, filter_recent_repos, utc_now
from src.secrets import load_credentials

from .ranker import print_summary, rank_reports

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Send diagnostics to stderr as bare messages; the report owns stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rank an organization's repositories by commits over the last six months.",
    )
    parser.add_argument("orgs", nargs="+", help="organization login(s) to report on")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug diagnostics")
    return parser


def _warn_failed_records(records: List[RepositoryRecord]) -> None:
    for record in records:
        logger.warning("[warn] repository page skipped: %s", record.fetch_error)


def _warn_failed_reports(reports: List[ActivityReport]) -> None:
    for report in reports:
        if report.failed:
            logger.warning("[warn] no statistics for %s: %s", report.source_url, report.error)


def collect_org_activity(org: str,
                         session: Optional[requests.Session] = None,
                         clock: Clock = utc_now,
                         **poller_kwargs) -> List[ActivityReport]:
    """List, filter, and poll ``org``; returns one report per recent repository."""
    logger.info("Grabbing list of all repos for %s", org)
    records = list_org_repos(org, session)

    failed = [record for record in records if record.fetch_error is not None]
    _warn_failed_records(failed)
    listed = [record for record in records if record.fetch_error is None]

    logger.info("Filtering list within six months of commit activity")
    recent = filter_recent_repos(listed, clock())

    logger.info("Getting statistics for %d repos from list", len(recent))
    reports = collect_commit_activity(
        [record.full_name for record in recent], session, clock=clock, **poller_kwargs
    )
    _warn_failed_reports(reports)
    return reports


def report_org(org: str,
               session: Optional[requests.Session] = None,
               clock: Clock = utc_now,
               **poller_kwargs) -> None:
    reports = collect_org_activity(org, session, clock, **poller_kwargs)
    print_summary(rank_reports(org, reports))


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; one failing organization does not stop the others."""
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        username, token = load_credentials()
    except ActivityError as exc:
        logger.error("[error] %s", exc)
        sys.exit(1)
    configure_auth(username, token)

    for org in args.orgs:
        try:
            report_org(org.strip())
        except Exception as exc:
            logger.error("Something went wrong: %s", exc)


if __name__ == "__main__":
    main()
