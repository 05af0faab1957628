# providers/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Tuple

import pandas as pd

from config.constants import HOLDINGS_DATE_FORMAT

HOLDINGS_COLUMNS = ["isin", "symbol", "name", "weight"]


class ProviderError(Exception):
    """Raised when a holdings snapshot cannot be obtained from a provider."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"[HTTP {self.status_code}] {super().__str__()}"
        return super().__str__()


def parse_as_of_date(value) -> datetime:
    """Parse a provider as-of date string, raising ``ProviderError`` when malformed."""
    if not isinstance(value, str):
        raise ProviderError(f"Missing or non-string as-of date: {value!r}")
    try:
        return datetime.strptime(value.strip(), HOLDINGS_DATE_FORMAT)
    except ValueError as exc:
        raise ProviderError(f"Unparseable as-of date: {value!r}") from exc


@dataclass
class HoldingsSnapshot:
    """A fund's published composition and the date it was published for."""
    category: str
    isin: str
    holdings: pd.DataFrame
    as_of_date: str

    @property
    def as_of(self) -> datetime:
        return parse_as_of_date(self.as_of_date)


class HoldingsProvider(ABC):
    """Base interface for fund holdings sources"""

    @abstractmethod
    def get_fund_holdings(self, category: str, isin: str) -> HoldingsSnapshot:
        """Return the latest holdings snapshot for ``isin``.

        Implementations raise ``ProviderError`` for any network, status or
        parse failure.
        """
        pass


class CachedHoldingsProvider(HoldingsProvider):
    """Memoizes successful snapshots so each fund is fetched once per run."""

    def __init__(self, provider: HoldingsProvider):
        self.provider = provider
        self._cache: Dict[Tuple[str, str], HoldingsSnapshot] = {}

    def get_fund_holdings(self, category: str, isin: str) -> HoldingsSnapshot:
        key = (category, isin)
        if key not in self._cache:
            self._cache[key] = self.provider.get_fund_holdings(category, isin)
        return self._cache[key]

    def clear(self) -> None:
        self._cache.clear()
