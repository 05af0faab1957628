# processing/fund_manager.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from config.constants import HOLDINGS_UPDATE_REASON
from data.data_access import PortfolioDataAccess
from domain.fund_types import provider_category
from processing.run_observer import LoggingRunObserver, RunObserver
from providers.base import HoldingsProvider
from services.base import PortfolioRefresher

logger = logging.getLogger(__name__)


class FundStatus(Enum):
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass
class PortfolioResult:
    """Outcome of one portfolio refresh attempt"""
    portfolio_id: int
    succeeded: bool
    error: Optional[str] = None


@dataclass
class FundResult:
    """Results from processing a single fund"""
    isin: str
    fund_type: str
    category: str
    status: FundStatus = FundStatus.PROCESSED
    as_of_date: Optional[str] = None
    error: Optional[str] = None
    portfolio_results: List[PortfolioResult] = field(default_factory=list)

    @property
    def refreshed(self) -> List[int]:
        return [r.portfolio_id for r in self.portfolio_results if r.succeeded]

    @property
    def failed(self) -> List[int]:
        return [r.portfolio_id for r in self.portfolio_results if not r.succeeded]


@dataclass
class BatchSummary:
    """Container for the outcome of one batch run."""
    fund_results: List[FundResult] = field(default_factory=list)

    @property
    def failed_funds(self) -> List[FundResult]:
        return [r for r in self.fund_results if r.status is FundStatus.FAILED]

    @property
    def selected_portfolios(self) -> List[int]:
        return [p.portfolio_id for r in self.fund_results for p in r.portfolio_results]

    def as_dict(self) -> Dict[str, Any]:
        refreshed = sum(len(r.refreshed) for r in self.fund_results)
        failed = sum(len(r.failed) for r in self.fund_results)
        return {
            "funds": len(self.fund_results),
            "funds_with_errors": len(self.failed_funds),
            "portfolios_selected": refreshed + failed,
            "portfolios_refreshed": refreshed,
            "portfolios_with_errors": failed,
        }


class FundHoldingsManager:
    """Reconciles every tracking portfolio against its fund's latest holdings.

    Funds are processed one at a time, and each fund's stale portfolios one at
    a time. A failure while fetching or selecting for a fund skips that fund
    only; a failure refreshing a portfolio skips that portfolio only.
    """

    def __init__(
        self,
        data_access: PortfolioDataAccess,
        provider: HoldingsProvider,
        refresher: PortfolioRefresher,
        observer: Optional[RunObserver] = None,
    ):
        self.data_access = data_access
        self.provider = provider
        self.refresher = refresher
        self.observer = observer or LoggingRunObserver()

    def run_batch(self, funds: Optional[Sequence[str]] = None) -> BatchSummary:
        """Run one pass over every fund with eligible subscribers."""
        summary = BatchSummary()
        # Plain values only: a refresher commit or failure expires every loaded instance
        targets = [(fund.isin, fund.type) for fund in self.data_access.find_funds_with_subscribers(funds)]
        self._notify("run_started", len(targets))

        for isin, fund_type in targets:
            summary.fund_results.append(self._process_fund(isin, fund_type))

        self._notify("run_finished", summary)
        return summary

    def _process_fund(self, isin: str, fund_type: str) -> FundResult:
        result = FundResult(isin=isin, fund_type=fund_type, category=provider_category(fund_type))

        try:
            self._notify("fund_started", fund_type, isin)
            snapshot = self.provider.get_fund_holdings(result.category, isin)
            result.as_of_date = snapshot.as_of_date

            portfolios = [
                (portfolio.id, portfolio)
                for portfolio in self.data_access.find_stale_portfolios(isin, snapshot.as_of)
            ]
        except Exception as e:
            self.data_access.reset()
            result.status = FundStatus.FAILED
            result.error = str(e)
            self._notify("fund_failed", fund_type, isin, e)
            return result

        self._notify("stale_portfolios_found", isin, snapshot.as_of_date, len(portfolios))
        for portfolio_id, portfolio in portfolios:
            result.portfolio_results.append(
                self._refresh_portfolio(portfolio_id, portfolio, result.as_of_date)
            )

        return result

    def _refresh_portfolio(self, portfolio_id: int, portfolio, as_of_date: str) -> PortfolioResult:
        self._notify("portfolio_started", portfolio_id)
        try:
            self.refresher.refresh(portfolio, HOLDINGS_UPDATE_REASON, as_of_date)
        except Exception as e:
            # The refresher may leave a failed flush behind
            self.data_access.reset()
            self._notify("portfolio_failed", portfolio_id, e)
            return PortfolioResult(portfolio_id=portfolio_id, succeeded=False, error=str(e))

        self._notify("portfolio_refreshed", portfolio_id)
        return PortfolioResult(portfolio_id=portfolio_id, succeeded=True)

    def _notify(self, hook: str, *args) -> None:
        try:
            getattr(self.observer, hook)(*args)
        except Exception:
            logger.exception("Run observer hook %s failed", hook)
