# tests/conftest.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config.database import create_schema
from domain.models import BlacklistEntry, Fund, Portfolio, PortfolioSlice, User, WhitelistEntry
from providers.base import HOLDINGS_COLUMNS, HoldingsProvider, HoldingsSnapshot, ProviderError
from services.base import PortfolioRefresher


@pytest.fixture
def session():
    engine = create_engine("sqlite://")
    create_schema(engine)
    db = sessionmaker(bind=engine)()
    yield db
    db.close()
    engine.dispose()


class StoreBuilder:
    """Small factory for seeding the in-memory store."""

    def __init__(self, session):
        self.session = session
        self._user_seq = 0

    def fund(self, isin: str, fund_type: str = "etf") -> Fund:
        fund = Fund(isin=isin, type=fund_type, name=f"{isin} fund")
        self.session.add(fund)
        self.session.flush()
        return fund

    def user(self, is_active: bool = True, whitelist=(), blacklist=()) -> User:
        self._user_seq += 1
        user = User(email=f"user{self._user_seq}@example.com", is_active=is_active)
        user.whitelist = [WhitelistEntry(isin=isin) for isin in whitelist]
        user.blacklist = [BlacklistEntry(isin=isin) for isin in blacklist]
        self.session.add(user)
        self.session.flush()
        return user

    def portfolio(
        self,
        fund: Optional[Fund],
        user: Optional[User] = None,
        *,
        latest_change_seen: Optional[datetime] = None,
        track_changes: bool = True,
        deleted: bool = False,
        slices=(),
    ) -> Portfolio:
        portfolio = Portfolio(
            user=user or self.user(),
            fund=fund,
            track_changes=track_changes,
            deleted=deleted,
            latest_change_seen=latest_change_seen,
        )
        portfolio.slices = [
            PortfolioSlice(position=i, isin=isin, weight=weight)
            for i, (isin, weight) in enumerate(slices)
        ]
        self.session.add(portfolio)
        self.session.flush()
        return portfolio

    def commit(self) -> None:
        self.session.commit()


@pytest.fixture
def store(session) -> StoreBuilder:
    return StoreBuilder(session)


def make_snapshot(isin: str, as_of_date: str, rows=None, category: str = "etf") -> HoldingsSnapshot:
    holdings = pd.DataFrame(rows or [], columns=HOLDINGS_COLUMNS)
    return HoldingsSnapshot(category=category, isin=isin, holdings=holdings, as_of_date=as_of_date)


class StubProvider(HoldingsProvider):
    """Returns canned snapshots per ISIN, or raises a canned error."""

    def __init__(self, responses: Optional[Dict[str, object]] = None):
        self.responses = dict(responses or {})
        self.calls: List[Tuple[str, str]] = []

    def get_fund_holdings(self, category, isin):
        self.calls.append((category, isin))
        response = self.responses.get(isin)
        if response is None:
            raise ProviderError(f"no holdings for {isin}")
        if isinstance(response, Exception):
            raise response
        return response


class RecordingRefresher(PortfolioRefresher):
    """Records every refresh call; raises for portfolio ids listed in ``fail_ids``."""

    def __init__(self, fail_ids=()):
        self.fail_ids = set(fail_ids)
        self.calls: List[Tuple[int, str, str]] = []

    def refresh(self, portfolio, reason, as_of_date):
        self.calls.append((portfolio.id, reason, as_of_date))
        if portfolio.id in self.fail_ids:
            raise RuntimeError(f"boom {portfolio.id}")

    @property
    def refreshed_ids(self) -> List[int]:
        return [call[0] for call in self.calls]
