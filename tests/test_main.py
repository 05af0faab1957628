from datetime import datetime

import pytest

import main as entry
from conftest import StubProvider, make_snapshot
from config.database import initialize_database
from domain.models import Fund, Portfolio, User
from processing.run_executor import RunExecutor


def seed(session_factory):
    session = session_factory()
    user = User(email="owner@example.com", is_active=True)
    session.add(Fund(isin="ETF1", type="etf"))
    session.add(Portfolio(user=user, fund_isin="ETF1", track_changes=True, deleted=False))
    session.commit()
    session.close()


def test_main_runs_batch_against_file_database(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path / 'funds.db'}"
    seed(initialize_database(db_url, create_tables=True))
    provider = StubProvider({
        "ETF1": make_snapshot("ETF1", "2024-03-01", [
            {"isin": "US0000000001", "symbol": "AAA", "name": "Alpha", "weight": 1.0},
        ]),
    })

    def fake_from_settings(session, settings, *, dry_run=False, **kwargs):
        return RunExecutor(session, provider, dry_run=dry_run, **kwargs)

    monkeypatch.setattr(RunExecutor, "from_settings", staticmethod(fake_from_settings))

    assert entry.main(["--database-url", db_url]) == 0

    session = initialize_database(db_url)()
    portfolio = session.query(Portfolio).one()
    assert portfolio.latest_change_seen == datetime(2024, 3, 1)
    session.close()


def test_main_fails_without_api_key(tmp_path, monkeypatch):
    monkeypatch.delenv("FINNHUB_API_KEY", raising=False)
    db_url = f"sqlite:///{tmp_path / 'funds.db'}"

    assert entry.main(["--database-url", db_url, "--create-schema"]) == 1


@pytest.mark.parametrize(
    "variable, value",
    [("FINNHUB_TIMEOUT", "soon"), ("LOG_LEVEL", "VERBOSE")],
)
def test_main_fails_on_bad_configuration(tmp_path, monkeypatch, caplog, variable, value):
    monkeypatch.setenv(variable, value)
    db_url = f"sqlite:///{tmp_path / 'funds.db'}"

    assert entry.main(["--database-url", db_url]) == 1
    assert any("Configuration setup failed" in r.getMessage() for r in caplog.records)
