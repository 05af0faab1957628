# data/data_access.py
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from domain.models import Fund, Portfolio, User

# Related records the refresher reads from each selected portfolio
REFRESH_LOAD_OPTIONS = (
    selectinload(Portfolio.slices),
    selectinload(Portfolio.fund),
    selectinload(Portfolio.user).selectinload(User.whitelist),
    selectinload(Portfolio.user).selectinload(User.blacklist),
)


class PortfolioDataAccess:
    """Read queries backing the holdings sync run."""

    def __init__(self, session):
        self.session = session
        self.logger = logging.getLogger(__name__)

    def find_funds_with_subscribers(self, isins: Optional[Sequence[str]] = None) -> List[Fund]:
        """Funds with at least one tracking, non-deleted portfolio owned by an active user."""
        subscriber = and_(
            Portfolio.track_changes.is_(True),
            Portfolio.deleted.is_(False),
            Portfolio.user.has(User.is_active.is_(True)),
        )
        query = self.session.query(Fund).filter(Fund.portfolios.any(subscriber))
        if isins:
            query = query.filter(Fund.isin.in_(list(isins)))
        return self._run(query.order_by(Fund.isin))

    def find_stale_portfolios(self, isin: str, as_of: datetime) -> List[Portfolio]:
        """
        Portfolios tracking ``isin`` whose last applied holdings predate ``as_of``.

        Returned portfolios have ``slices``, ``fund``, ``user``,
        ``user.whitelist`` and ``user.blacklist`` loaded. Owner activity is
        checked after the query.
        """
        query = (
            self.session.query(Portfolio)
            .options(*REFRESH_LOAD_OPTIONS)
            .filter(
                Portfolio.track_changes.is_(True),
                Portfolio.deleted.is_(False),
                Portfolio.fund_isin == isin,
                or_(
                    Portfolio.latest_change_seen < as_of,
                    Portfolio.latest_change_seen.is_(None),
                ),
            )
            .order_by(Portfolio.id)
        )
        portfolios = self._run(query)

        # Only return portfolios belonging to active users
        return [portfolio for portfolio in portfolios if portfolio.user.is_active]

    def reset(self) -> None:
        """Roll back a transaction left unusable by a failed flush."""
        if not self.session.is_active:
            self.logger.warning("Rolling back failed transaction")
            self.session.rollback()

    def _run(self, query):
        try:
            return query.all()
        except SQLAlchemyError:
            self.session.rollback()
            raise
