"""Convenience shim to print the six-month commit-activity ranking."""

from __future__ import annotations

from src.ranking.runner import main


if __name__ == "__main__":
    main()
