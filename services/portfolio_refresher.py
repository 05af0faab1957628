"""Portfolio refresh services driven by fund holdings snapshots."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

import pandas as pd

from domain.fund_types import provider_category
from domain.models import Portfolio, PortfolioSlice
from providers.base import HoldingsProvider, parse_as_of_date
from services.base import PortfolioRefresher, RefreshError


def apply_allow_deny_lists(
    holdings: pd.DataFrame,
    whitelist: Iterable[str],
    blacklist: Iterable[str],
) -> pd.DataFrame:
    """Filter ``holdings`` by a user's lists and renormalize weights to 1.

    Blacklisted ISINs are always dropped. A non-empty whitelist restricts the
    result to the listed ISINs.
    """
    if not isinstance(holdings, pd.DataFrame) or holdings.empty:
        return pd.DataFrame(columns=["isin", "symbol", "name", "weight"])

    df = holdings.dropna(subset=["isin"]).copy()
    df["weight"] = pd.to_numeric(df["weight"], errors="coerce").fillna(0.0)

    denied = set(blacklist)
    if denied:
        df = df[~df["isin"].isin(denied)]

    allowed = set(whitelist)
    if allowed:
        df = df[df["isin"].isin(allowed)]

    df = df[df["weight"] > 0]
    total = df["weight"].sum()
    if df.empty or total <= 0:
        return df.iloc[0:0]

    df["weight"] = df["weight"] / total
    # Missing symbol or name becomes NULL rather than NaN
    labels = df[["symbol", "name"]].astype(object)
    df[["symbol", "name"]] = labels.where(pd.notna(labels), None)
    return df.reset_index(drop=True)


class HoldingsSliceRefresher(PortfolioRefresher):
    """Rebuilds a portfolio's slices from its fund's latest holdings."""

    def __init__(self, session, provider: HoldingsProvider, logger: Optional[logging.Logger] = None):
        self.session = session
        self.provider = provider
        self.logger = logger or logging.getLogger(__name__)

    def refresh(self, portfolio: Portfolio, reason: str, as_of_date: str) -> None:
        fund = portfolio.fund
        if fund is None:
            raise RefreshError(f"Portfolio {portfolio.id} does not track a fund")

        as_of = parse_as_of_date(as_of_date)
        snapshot = self.provider.get_fund_holdings(provider_category(fund.type), fund.isin)
        if snapshot.as_of_date != as_of_date:
            raise RefreshError(
                f"Snapshot for {fund.isin} is dated {snapshot.as_of_date}, expected {as_of_date}"
            )

        user = portfolio.user
        composition = apply_allow_deny_lists(
            snapshot.holdings,
            whitelist=[entry.isin for entry in user.whitelist],
            blacklist=[entry.isin for entry in user.blacklist],
        )
        if composition.empty:
            raise RefreshError(f"No holdings left for portfolio {portfolio.id} after filtering")

        try:
            portfolio.slices = [
                PortfolioSlice(
                    position=position,
                    isin=row.isin,
                    symbol=row.symbol,
                    name=row.name,
                    weight=float(row.weight),
                )
                for position, row in enumerate(composition.itertuples(index=False))
            ]
            portfolio.latest_change_seen = as_of
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.logger.debug(
            "Applied %s to portfolio %s: %d slices as of %s",
            reason, portfolio.id, len(composition), as_of_date,
        )


class DryRunRefresher(PortfolioRefresher):
    """Logs the refresh that would happen without touching the store."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.requests = []

    def refresh(self, portfolio: Portfolio, reason: str, as_of_date: str) -> None:
        self.requests.append((portfolio.id, reason, as_of_date))
        self.logger.info("[dry-run] would apply %s to portfolio %s as of %s", reason, portfolio.id, as_of_date)
