"""Progress reporting hooks for holdings sync runs."""
from __future__ import annotations

import logging
from typing import Optional

from utilities.main_helpers import log_processing_summary


class RunObserver:
    """No-op base; subclasses override the hooks they care about."""

    def run_started(self, fund_count: int) -> None:
        pass

    def fund_started(self, fund_type: str, isin: str) -> None:
        pass

    def fund_failed(self, fund_type: str, isin: str, error: BaseException) -> None:
        pass

    def stale_portfolios_found(self, isin: str, as_of_date: str, count: int) -> None:
        pass

    def portfolio_started(self, portfolio_id: int) -> None:
        pass

    def portfolio_refreshed(self, portfolio_id: int) -> None:
        pass

    def portfolio_failed(self, portfolio_id: int, error: BaseException) -> None:
        pass

    def run_finished(self, summary) -> None:
        pass


class LoggingRunObserver(RunObserver):
    """Writes human-readable progress and errors to a standard logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("fund_holdings.run")

    def run_started(self, fund_count):
        self.logger.info("Refreshing %d funds", fund_count)

    def fund_started(self, fund_type, isin):
        self.logger.info("Refreshing %s %s", fund_type, isin)

    def fund_failed(self, fund_type, isin, error):
        self.logger.error("Error refreshing %s %s: %s", fund_type, isin, error)

    def stale_portfolios_found(self, isin, as_of_date, count):
        self.logger.info("Found %d portfolios updated prior to %s", count, as_of_date)

    def portfolio_started(self, portfolio_id):
        self.logger.info("Refreshing portfolio %s", portfolio_id)

    def portfolio_refreshed(self, portfolio_id):
        self.logger.info("Successfully refreshed portfolio %s", portfolio_id)

    def portfolio_failed(self, portfolio_id, error):
        self.logger.error("Error refreshing portfolio %s: %s", portfolio_id, error)

    def run_finished(self, summary):
        log_processing_summary(self.logger, "holdings-sync", summary.as_dict())
