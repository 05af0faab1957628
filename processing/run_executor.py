"""Job-level wrapper that wires and runs one holdings sync batch."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from config.settings import Settings
from data.data_access import PortfolioDataAccess
from processing.fund_manager import BatchSummary, FundHoldingsManager
from processing.run_observer import LoggingRunObserver, RunObserver
from providers.base import CachedHoldingsProvider, HoldingsProvider
from providers.finnhub import FinnhubHoldingsProvider
from services.base import PortfolioRefresher
from services.portfolio_refresher import DryRunRefresher, HoldingsSliceRefresher


class RunExecutor:
    """Builds the collaborators for a run and executes the batch."""

    def __init__(
        self,
        session,
        provider: HoldingsProvider,
        *,
        refresher: Optional[PortfolioRefresher] = None,
        dry_run: bool = False,
        observer: Optional[RunObserver] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.session = session
        self.logger = logger or logging.getLogger(__name__)
        # One fetch per fund per run, shared by the manager and the refresher
        self.provider = CachedHoldingsProvider(provider)
        if refresher is None:
            refresher = DryRunRefresher() if dry_run else HoldingsSliceRefresher(session, self.provider)
        self.manager = FundHoldingsManager(
            PortfolioDataAccess(session),
            self.provider,
            refresher,
            observer=observer or LoggingRunObserver(),
        )

    @classmethod
    def from_settings(cls, session, settings: Settings, *, dry_run: bool = False, **kwargs) -> "RunExecutor":
        provider = FinnhubHoldingsProvider(
            settings.finnhub_api_key,
            base_url=settings.finnhub_base_url,
            timeout=settings.request_timeout,
        )
        return cls(session, provider, dry_run=dry_run, **kwargs)

    def run(self, funds: Optional[Sequence[str]] = None) -> BatchSummary:
        self.logger.info("Starting to refresh all funds")
        self.provider.clear()
        try:
            summary = self.manager.run_batch(funds)
        finally:
            self.provider.clear()
        self.logger.info("Finished refreshing all funds")
        return summary
