"""Finnhub fund holdings provider.

Endpoints used:
- /etf/holdings          -> ETF constituents by ISIN
- /mutual-fund/holdings  -> mutual fund constituents by ISIN

Both return ``{"atDate": "YYYY-MM-DD", "holdings": [...]}`` where each holding
carries ``isin``, ``symbol``, ``name`` and ``percent`` (0-100).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import pandas as pd
import requests

from config.constants import CATEGORY_ETF, CATEGORY_MUTUAL_FUND, FINNHUB_BASE_URL, FINNHUB_TIMEOUT_SECONDS
from providers.base import HOLDINGS_COLUMNS, HoldingsProvider, HoldingsSnapshot, ProviderError, parse_as_of_date

logger = logging.getLogger(__name__)

_ENDPOINTS = {
    CATEGORY_ETF: "/etf/holdings",
    CATEGORY_MUTUAL_FUND: "/mutual-fund/holdings",
}


class FinnhubHoldingsProvider(HoldingsProvider):
    """Fetches fund holdings from Finnhub, one request per call."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = FINNHUB_BASE_URL,
        timeout: float = FINNHUB_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not api_key:
            raise ValueError("Finnhub API key required. Set FINNHUB_API_KEY")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"X-Finnhub-Token": api_key})

    def get_fund_holdings(self, category: str, isin: str) -> HoldingsSnapshot:
        endpoint = _ENDPOINTS.get(category)
        if endpoint is None:
            raise ProviderError(f"Unsupported holdings category: {category!r}")

        payload = self._get(endpoint, params={"isin": isin})
        as_of_date = payload.get("atDate")
        # Validate up front so a bad date is a fetch failure, not a refresh failure
        parse_as_of_date(as_of_date)

        holdings = self._holdings_frame(payload.get("holdings"))
        logger.debug("Fetched %d holdings for %s %s at %s", len(holdings), category, isin, as_of_date)
        return HoldingsSnapshot(
            category=category,
            isin=isin,
            holdings=holdings,
            as_of_date=as_of_date.strip(),
        )

    def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise ProviderError(f"Request to {endpoint} failed: {exc}") from exc

        if response.status_code == 429:
            raise ProviderError("Rate limited by Finnhub", status_code=429)
        if not response.ok:
            raise ProviderError(
                f"Finnhub returned an error for {endpoint}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(f"Non-JSON response from {endpoint}") from exc

        if not isinstance(payload, dict):
            raise ProviderError(f"Unexpected response shape from {endpoint}: {type(payload).__name__}")
        return payload

    @staticmethod
    def _holdings_frame(rows) -> pd.DataFrame:
        if not rows:
            return pd.DataFrame(columns=HOLDINGS_COLUMNS)
        if not isinstance(rows, list):
            raise ProviderError("Holdings payload is not a list")

        df = pd.DataFrame(rows)
        for column in ("isin", "symbol", "name"):
            if column not in df.columns:
                df[column] = None
        percent = df["percent"] if "percent" in df.columns else pd.Series(0.0, index=df.index)
        df["weight"] = pd.to_numeric(percent, errors="coerce").fillna(0.0) / 100.0
        return df[HOLDINGS_COLUMNS].reset_index(drop=True)
