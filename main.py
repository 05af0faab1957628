"""
Entry point for the fund holdings sync job.

The scheduler invokes this once per run. It refreshes every portfolio that
tracks a fund whose published holdings are newer than the portfolio's last
applied update.
"""
from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from config.database import init_session, initialize_database
from config.settings import Settings
from processing.run_executor import RunExecutor
from utilities.cli_options import parse_arguments
from utilities.logger import LOG_FORMAT, setup_logger


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Program entry point used by ``python main.py`` or the scheduler."""

    options = parse_arguments(argv)
    logger = logging.getLogger("fund_holdings.main")

    try:
        settings = Settings.from_env().with_overrides(
            database_url=options.database_url,
            log_level=options.log_level,
            log_file=options.log_file,
        )
        setup_logger(log_file=settings.log_file, level=settings.log_level)
    except Exception as exc:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.exception("Configuration setup failed: %s", exc)
        return 1

    try:
        session_factory = initialize_database(
            settings.database_url, create_tables=options.create_schema
        )
        session = init_session(session_factory)
    except Exception as exc:
        logger.exception("Database setup failed: %s", exc)
        return 1

    try:
        executor = RunExecutor.from_settings(session, settings, dry_run=options.dry_run)
        executor.run(options.funds or None)
    except Exception as exc:
        logger.exception("Processing failed: %s", exc)
        return 1
    finally:
        session.close()

    logger.info("Run completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
