"""Domain models used by the folio portfolio engine."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Optional


class AccountCategory(str, enum.Enum):
    BROKERAGE_TAXED = "BROKERAGE_TAXED"
    BROKERAGE_TAX_ADVANTAGED = "BROKERAGE_TAX_ADVANTAGED"
    REGULAR_SAVINGS = "REGULAR_SAVINGS"
    OTHER_SAVINGS = "OTHER_SAVINGS"
    INSURANCE_WRAPPER = "INSURANCE_WRAPPER"
    HOUSING_SAVINGS = "HOUSING_SAVINGS"
    OTHER = "OTHER"

    @property
    def is_investment(self) -> bool:
        """Brokerage accounts are always revalued from transactions and prices."""

        return self in INVESTMENT_CATEGORIES


INVESTMENT_CATEGORIES = frozenset(
    {AccountCategory.BROKERAGE_TAXED, AccountCategory.BROKERAGE_TAX_ADVANTAGED}
)


class TransactionType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    INTEREST = "INTEREST"
    FEE = "FEE"

    @property
    def cash_sign(self) -> int:
        """Direction of the cash movement implied by the transaction type."""

        return _CASH_SIGNS[self]


_CASH_SIGNS = {
    TransactionType.DEPOSIT: 1,
    TransactionType.DIVIDEND: 1,
    TransactionType.INTEREST: 1,
    TransactionType.SELL: 1,
    TransactionType.WITHDRAWAL: -1,
    TransactionType.FEE: -1,
    TransactionType.BUY: -1,
}

TRADE_TYPES = frozenset({TransactionType.BUY, TransactionType.SELL})


class Granularity(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ValuationSource(str, enum.Enum):
    COMPUTED = "COMPUTED"
    STORED_FALLBACK = "STORED_FALLBACK"


@dataclass(frozen=True)
class Account:
    """A brokerage or savings account owned by the user."""

    id: str
    name: str
    category: AccountCategory
    currency: str = "EUR"
    balance: float = 0.0

    @property
    def is_investment(self) -> bool:
        return self.category.is_investment


@dataclass(frozen=True)
class Transaction:
    """An immutable cash or trade event recorded against one account."""

    id: str
    account_id: str
    type: TransactionType
    amount: float
    date: date
    symbol: Optional[str] = None
    quantity: Optional[float] = None
    price_per_unit: Optional[float] = None
    description: str = ""

    def normalized_symbol(self) -> Optional[str]:
        """Return the upper-cased symbol, or None when the event has none."""

        if not self.symbol:
            return None
        return self.symbol.strip().upper() or None


@dataclass(frozen=True)
class Position:
    """Holding derived by replaying BUY/SELL transactions."""

    symbol: str
    quantity: float
    average_cost: float

    @property
    def total_cost(self) -> float:
        return self.quantity * self.average_cost


@dataclass(frozen=True)
class AccountPosition(Position):
    """A derived holding scoped to a single account."""

    account_id: str = ""


@dataclass(frozen=True)
class OversoldSell:
    """A SELL that referenced more shares than the replay held at that point."""

    transaction_id: str
    account_id: str
    symbol: str
    date: date
    requested_quantity: float
    available_quantity: float

    @property
    def shortfall(self) -> float:
        return self.requested_quantity - self.available_quantity


@dataclass(frozen=True)
class PositionReplay:
    positions: dict[str, Position]
    oversold: tuple[OversoldSell, ...] = ()


@dataclass(frozen=True)
class StoredPosition:
    """Position row as persisted by the write path, including its last known price."""

    account_id: str
    symbol: str
    quantity: float
    average_price: float
    current_price: float
    name: str = ""
    currency: str = "EUR"
    sector: Optional[str] = None


@dataclass(frozen=True)
class ReconciledPosition:
    """Stored position whose quantity and average price were replaced by the replay."""

    account_id: str
    symbol: str
    name: str
    quantity: float
    average_price: float
    total_invested: float
    current_price: float
    source: ValuationSource


@dataclass(frozen=True)
class PriceBar:
    """Daily (or weekly/monthly) OHLC record for one symbol."""

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    adjusted_close: Optional[float] = None


@dataclass(frozen=True)
class LiveQuote:
    """Latest market quote for a symbol."""

    symbol: str
    price: float
    name: str = ""
    change: float = 0.0
    change_percent: float = 0.0
    previous_close: Optional[float] = None
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: float = 0.0
    currency: str = "EUR"


@dataclass(frozen=True)
class SymbolMatch:
    symbol: str
    name: str
    exchange: str = ""


@dataclass(frozen=True)
class AccountValuation:
    account_id: str
    cash: float
    stocks_value: float
    total_value: float
    source: ValuationSource = ValuationSource.COMPUTED
    fallback_symbols: tuple[str, ...] = ()


@dataclass(frozen=True)
class PortfolioSummary:
    total_value: float = 0.0
    total_invested: float = 0.0
    total_gain: float = 0.0
    total_gain_percent: float = 0.0
    day_change: float = 0.0
    day_change_percent: float = 0.0


@dataclass(frozen=True)
class PricedHolding:
    symbol: str
    quantity: float
    price: float
    value: float
    used_fallback_price: bool = False


@dataclass(frozen=True)
class HistoryPoint:
    """Portfolio valuation on one generated calendar date."""

    date: date
    total_value: float
    stocks_value: float
    savings_value: float
    positions: tuple[PricedHolding, ...] = ()


@dataclass(frozen=True)
class YearlyPerformance:
    year: int
    start_value: float
    end_value: float
    deposits: float
    withdrawals: float
    net_flows: float
    dividends: float
    gain_loss: float
    gain_loss_percent: float
    total_return: float
    total_return_percent: float


@dataclass(frozen=True)
class PerformanceReport:
    current_value: float = 0.0
    total_deposits: float = 0.0
    total_withdrawals: float = 0.0
    net_deposits: float = 0.0
    absolute_gain: float = 0.0
    absolute_gain_percent: float = 0.0
    total_dividends: float = 0.0
    total_return: float = 0.0
    total_return_percent: float = 0.0
    yearly: tuple[YearlyPerformance, ...] = field(default_factory=tuple)
    current_year: Optional[YearlyPerformance] = None


@dataclass(frozen=True)
class DividendSummary:
    """Dividends received for one symbol over the selected period."""

    symbol: str
    name: str
    total: float
    count: int
    last_date: Optional[date] = None
    last_amount: float = 0.0
    avg_dividend_per_share: Optional[float] = None
    avg_yield_on_cost: Optional[float] = None


@dataclass(frozen=True)
class DividendReport:
    total: float = 0.0
    year: Optional[int] = None
    by_symbol: tuple[DividendSummary, ...] = ()
    by_year: tuple[tuple[int, float], ...] = ()
