# services/base.py
from abc import ABC, abstractmethod


class RefreshError(Exception):
    """Raised when a portfolio cannot be recomputed from a holdings snapshot."""


class PortfolioRefresher(ABC):
    """Base class for services that apply a holdings update to one portfolio"""

    @abstractmethod
    def refresh(self, portfolio, reason: str, as_of_date: str) -> None:
        """Recompute ``portfolio`` for the snapshot published on ``as_of_date``.

        A successful refresh advances ``portfolio.latest_change_seen``.
        """
        pass
