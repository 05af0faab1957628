"""ORM models for funds, users and the portfolios that track them."""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Fund(Base):
    """Reference data for a fund whose holdings are published externally."""

    __tablename__ = "funds"

    isin = Column(String(32), primary_key=True)
    type = Column(String(32), nullable=False)
    name = Column(String(255))

    portfolios = relationship("Portfolio", back_populates="fund")

    def __repr__(self) -> str:
        return f"Fund(isin={self.isin!r}, type={self.type!r})"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)

    portfolios = relationship("Portfolio", back_populates="user")
    whitelist = relationship(
        "WhitelistEntry", back_populates="user", cascade="all, delete-orphan"
    )
    blacklist = relationship(
        "BlacklistEntry", back_populates="user", cascade="all, delete-orphan"
    )


class WhitelistEntry(Base):
    __tablename__ = "user_whitelist"
    __table_args__ = (UniqueConstraint("user_id", "isin"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    isin = Column(String(32), nullable=False)

    user = relationship("User", back_populates="whitelist")


class BlacklistEntry(Base):
    __tablename__ = "user_blacklist"
    __table_args__ = (UniqueConstraint("user_id", "isin"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    isin = Column(String(32), nullable=False)

    user = relationship("User", back_populates="blacklist")


class Portfolio(Base):
    """A user's portfolio, optionally tracking a fund's published holdings.

    ``latest_change_seen`` is the as-of date of the last holdings update that
    was applied. It is ``None`` until the first successful refresh.
    """

    __tablename__ = "portfolios"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    fund_isin = Column(String(32), ForeignKey("funds.isin"), nullable=True, index=True)
    track_changes = Column(Boolean, nullable=False, default=False)
    deleted = Column(Boolean, nullable=False, default=False)
    latest_change_seen = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="portfolios")
    fund = relationship("Fund", back_populates="portfolios")
    slices = relationship(
        "PortfolioSlice",
        back_populates="portfolio",
        order_by="PortfolioSlice.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"Portfolio(id={self.id!r}, fund_isin={self.fund_isin!r})"


class PortfolioSlice(Base):
    """One line of a portfolio's current composition."""

    __tablename__ = "portfolio_slices"

    id = Column(Integer, primary_key=True)
    portfolio_id = Column(Integer, ForeignKey("portfolios.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    isin = Column(String(32), nullable=False)
    symbol = Column(String(32))
    name = Column(String(255))
    weight = Column(Float, nullable=False, default=0.0)

    portfolio = relationship("Portfolio", back_populates="slices")
