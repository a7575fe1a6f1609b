"""Database model exports."""

from .portfolio import (
    ACCOUNT_CATEGORIES,
    TRANSACTION_TYPES,
    Portfolio,
    PortfolioAccount,
    StockPosition,
    Transaction,
)

__all__ = [
    "Portfolio",
    "PortfolioAccount",
    "Transaction",
    "StockPosition",
    "ACCOUNT_CATEGORIES",
    "TRANSACTION_TYPES",
]
