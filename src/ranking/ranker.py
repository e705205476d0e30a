"""Ordering and rendering of per-repository commit-activity reports."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, TextIO

from src.retrieval.models import ActivityReport


@dataclass(frozen=True)
class RankedRepo:
    name: str
    commit_summary: int


def repo_name_pattern(org: str) -> Pattern[str]:
    return re.compile(r"/repos/" + re.escape(org) + r"/(\.?[a-zA-Z0-9][^/]*)/stats", re.IGNORECASE)


def repo_name_from_url(url: str, pattern: Pattern[str]) -> str:
    """Extract the short repository name from a stats URL, else return the URL."""
    match = pattern.search(url)
    return match.group(1) if match else url


def rank_reports(org: str, reports: Iterable[ActivityReport]) -> List[RankedRepo]:
    """Most active repositories first; reports without positive activity are dropped."""
    pattern = repo_name_pattern(org)
    ordered = sorted(reports, key=lambda report: report.commit_summary)
    ranked: List[RankedRepo] = []
    for report in reversed(ordered):
        if report.commit_summary <= 0:
            continue
        ranked.append(RankedRepo(repo_name_from_url(report.source_url, pattern), report.commit_summary))
    return ranked


def format_summary(entries: Iterable[RankedRepo]) -> str:
    lines = ["", "Summary", "-------"]
    lines.extend(f"{entry.name}: {entry.commit_summary}" for entry in entries)
    return "\n".join(lines) + "\n"


def print_summary(entries: Iterable[RankedRepo], stream: Optional[TextIO] = None) -> None:
    (stream or sys.stdout).write(format_summary(entries))


__all__ = [
    "RankedRepo",
    "repo_name_pattern",
    "repo_name_from_url",
    "rank_reports",
    "format_summary",
    "print_summary",
]
