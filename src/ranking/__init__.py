"""Ranking and reporting of organization commit activity."""

from .runner import main, report_org

__all__ = ["main", "report_org"]
