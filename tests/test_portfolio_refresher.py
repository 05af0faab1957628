from datetime import datetime

import pandas as pd
import pytest

from conftest import StubProvider, make_snapshot
from services.base import RefreshError
from services.portfolio_refresher import DryRunRefresher, HoldingsSliceRefresher, apply_allow_deny_lists

ROWS = [
    {"isin": "US0000000001", "symbol": "AAA", "name": "Alpha", "weight": 0.5},
    {"isin": "US0000000002", "symbol": "BBB", "name": "Beta", "weight": 0.3},
    {"isin": "US0000000003", "symbol": "CCC", "name": "Gamma", "weight": 0.2},
]


def holdings_frame(rows=ROWS):
    return pd.DataFrame(rows, columns=["isin", "symbol", "name", "weight"])


class TestApplyAllowDenyLists:
    def test_no_lists_keeps_everything(self):
        result = apply_allow_deny_lists(holdings_frame(), [], [])

        assert result["isin"].tolist() == ["US0000000001", "US0000000002", "US0000000003"]
        assert result["weight"].sum() == pytest.approx(1.0)

    def test_blacklist_drops_and_renormalizes(self):
        result = apply_allow_deny_lists(holdings_frame(), [], ["US0000000001"])

        assert result["isin"].tolist() == ["US0000000002", "US0000000003"]
        assert result["weight"].tolist() == pytest.approx([0.6, 0.4])

    def test_whitelist_restricts(self):
        result = apply_allow_deny_lists(holdings_frame(), ["US0000000003", "US9999999999"], [])

        assert result["isin"].tolist() == ["US0000000003"]
        assert result["weight"].tolist() == pytest.approx([1.0])

    def test_blacklist_wins_over_whitelist(self):
        result = apply_allow_deny_lists(holdings_frame(), ["US0000000001"], ["US0000000001"])

        assert result.empty

    def test_empty_input(self):
        assert apply_allow_deny_lists(pd.DataFrame(), [], []).empty


class TestHoldingsSliceRefresher:
    def test_rebuilds_slices_and_marks_as_of(self, session, store):
        fund = store.fund("ETF1")
        user = store.user(blacklist=["US0000000002"])
        portfolio = store.portfolio(fund, user, slices=[("US0000000009", 1.0)])
        store.commit()
        provider = StubProvider({"ETF1": make_snapshot("ETF1", "2024-03-01", ROWS)})

        HoldingsSliceRefresher(session, provider).refresh(portfolio, "holdings-update", "2024-03-01")

        session.expire_all()
        assert portfolio.latest_change_seen == datetime(2024, 3, 1)
        assert [(s.position, s.isin, s.symbol) for s in portfolio.slices] == [
            (0, "US0000000001", "AAA"),
            (1, "US0000000003", "CCC"),
        ]
        assert sum(s.weight for s in portfolio.slices) == pytest.approx(1.0)

    def test_missing_symbol_and_name_are_stored_as_null(self, session, store):
        portfolio = store.portfolio(store.fund("ETF1"))
        store.commit()
        rows = [{"isin": "US0000000001", "symbol": float("nan"), "name": None, "weight": 1.0}]
        provider = StubProvider({"ETF1": make_snapshot("ETF1", "2024-03-01", rows)})

        HoldingsSliceRefresher(session, provider).refresh(portfolio, "holdings-update", "2024-03-01")

        session.expire_all()
        [stored] = portfolio.slices
        assert stored.isin == "US0000000001"
        assert stored.symbol is None
        assert stored.name is None

    def test_uses_mutual_fund_category_for_non_etf(self, session, store):
        portfolio = store.portfolio(store.fund("MF1", "index-fund"))
        store.commit()
        provider = StubProvider({"MF1": make_snapshot("MF1", "2024-03-01", ROWS)})

        HoldingsSliceRefresher(session, provider).refresh(portfolio, "holdings-update", "2024-03-01")

        assert provider.calls == [("mutual-fund", "MF1")]

    def test_empty_composition_fails_without_writing(self, session, store):
        user = store.user(whitelist=["US9999999999"])
        portfolio = store.portfolio(store.fund("ETF1"), user, slices=[("US0000000009", 1.0)])
        store.commit()
        provider = StubProvider({"ETF1": make_snapshot("ETF1", "2024-03-01", ROWS)})

        with pytest.raises(RefreshError):
            HoldingsSliceRefresher(session, provider).refresh(portfolio, "holdings-update", "2024-03-01")

        session.expire_all()
        assert portfolio.latest_change_seen is None
        assert [s.isin for s in portfolio.slices] == ["US0000000009"]

    def test_mismatched_snapshot_date_fails(self, session, store):
        portfolio = store.portfolio(store.fund("ETF1"))
        store.commit()
        provider = StubProvider({"ETF1": make_snapshot("ETF1", "2024-03-08", ROWS)})

        with pytest.raises(RefreshError):
            HoldingsSliceRefresher(session, provider).refresh(portfolio, "holdings-update", "2024-03-01")

    def test_portfolio_without_fund_fails(self, session, store):
        portfolio = store.portfolio(None)
        store.commit()

        with pytest.raises(RefreshError):
            HoldingsSliceRefresher(session, StubProvider()).refresh(portfolio, "holdings-update", "2024-03-01")


def test_dry_run_records_without_writing(session, store):
    portfolio = store.portfolio(store.fund("ETF1"))
    store.commit()
    refresher = DryRunRefresher()

    refresher.refresh(portfolio, "holdings-update", "2024-03-01")

    assert refresher.requests == [(portfolio.id, "holdings-update", "2024-03-01")]
    assert portfolio.latest_change_seen is None
