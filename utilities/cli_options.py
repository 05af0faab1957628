"""CLI parsing helpers for the holdings sync job."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import List, Optional, Sequence

from utilities.main_helpers import parse_fund_tokens


@dataclass
class CLIOptions:
    """Raw options captured from the command line."""

    database_url: Optional[str]
    funds: List[str]
    dry_run: bool
    create_schema: bool
    log_level: Optional[str]
    log_file: Optional[str]


def parse_arguments(argv: Optional[Sequence[str]] = None) -> CLIOptions:
    """Parse command line arguments into a :class:`CLIOptions` payload."""

    parser = argparse.ArgumentParser(
        description="Refresh portfolios that track funds with newly published holdings",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy connection string (default honours DB_CONNECTION_STRING)",
    )
    parser.add_argument(
        "--fund",
        action="append",
        default=[],
        help="Fund ISIN to process (repeatable, supports comma-separated lists, default: all)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Select stale portfolios without refreshing them",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables before running",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default honours LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-file",
        help="Also write log output to this file (default honours LOG_FILE)",
    )

    raw_args = parser.parse_args(argv)

    return CLIOptions(
        database_url=raw_args.database_url,
        funds=parse_fund_tokens(raw_args.fund),
        dry_run=raw_args.dry_run,
        create_schema=raw_args.create_schema,
        log_level=raw_args.log_level,
        log_file=raw_args.log_file,
    )
