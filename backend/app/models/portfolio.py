"""Portfolio, account, transaction and stored position tables."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from folio.models import AccountCategory, TransactionType

ACCOUNT_CATEGORIES = tuple(category.value for category in AccountCategory)
TRANSACTION_TYPES = tuple(tx_type.value for tx_type in TransactionType)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Portfolio(Base):
    __tablename__ = "portfolio"

    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    base_currency: Mapped[str] = mapped_column(String(3), default="EUR")

    accounts: Mapped[list["PortfolioAccount"]] = relationship(
        back_populates="portfolio", cascade="all, delete-orphan"
    )
    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="portfolio", cascade="all, delete-orphan"
    )
    positions: Mapped[list["StockPosition"]] = relationship(
        back_populates="portfolio", cascade="all, delete-orphan"
    )


class PortfolioAccount(Base):
    __tablename__ = "portfolio_account"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "name", name="uq_portfolio_account_name"),
        Index("ix_portfolio_account_portfolio", "portfolio_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolio.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(64))
    category: Mapped[str] = mapped_column(Enum(*ACCOUNT_CATEGORIES, name="account_category"))
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    balance: Mapped[float] = mapped_column(Numeric(18, 2), default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    portfolio: Mapped[Portfolio] = relationship(back_populates="accounts")
    transactions: Mapped[list["Transaction"]] = relationship(
        back_populates="account", cascade="all, delete-orphan"
    )


class Transaction(Base):
    __tablename__ = "portfolio_transaction"
    __table_args__ = (
        Index("ix_portfolio_transaction_account_date", "account_id", "trade_date"),
        Index("ix_portfolio_transaction_symbol", "symbol"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolio.id", ondelete="CASCADE"))
    account_id: Mapped[int] = mapped_column(ForeignKey("portfolio_account.id", ondelete="CASCADE"))
    type: Mapped[str] = mapped_column(Enum(*TRANSACTION_TYPES, name="transaction_type"))
    amount: Mapped[float] = mapped_column(Numeric(18, 2))
    trade_date: Mapped[date] = mapped_column(Date, index=True)
    symbol: Mapped[str | None] = mapped_column(String(20), nullable=True)
    quantity: Mapped[float | None] = mapped_column(Numeric(18, 6), nullable=True)
    price_per_unit: Mapped[float | None] = mapped_column(Numeric(18, 6), nullable=True)
    description: Mapped[str] = mapped_column(String(255), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    portfolio: Mapped[Portfolio] = relationship(back_populates="transactions")
    account: Mapped[PortfolioAccount] = relationship(back_populates="transactions")


class StockPosition(Base):
    __tablename__ = "stock_position"
    __table_args__ = (
        UniqueConstraint("account_id", "symbol", name="uq_stock_position_account_symbol"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolio.id", ondelete="CASCADE"))
    account_id: Mapped[int] = mapped_column(ForeignKey("portfolio_account.id", ondelete="CASCADE"))
    symbol: Mapped[str] = mapped_column(String(20))
    name: Mapped[str] = mapped_column(String(128), default="")
    quantity: Mapped[float] = mapped_column(Numeric(18, 6))
    average_price: Mapped[float] = mapped_column(Numeric(18, 6))
    current_price: Mapped[float] = mapped_column(Numeric(18, 6))
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    sector: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    portfolio: Mapped[Portfolio] = relationship(back_populates="positions")


__all__ = [
    "Portfolio",
    "PortfolioAccount",
    "Transaction",
    "StockPosition",
    "ACCOUNT_CATEGORIES",
    "TRANSACTION_TYPES",
]
