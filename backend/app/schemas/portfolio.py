"""Pydantic schemas for accounts, transactions, positions and analytics."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from folio.models import AccountCategory, Granularity, TransactionType, ValuationSource


class AccountCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64, examples=["PEA Boursorama"])
    category: AccountCategory = Field(..., examples=["BROKERAGE_TAX_ADVANTAGED"])
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    balance: float = Field(default=0.0, description="Opening balance, used only until transactions exist")


class AccountSchema(BaseModel):
    id: int
    name: str
    category: AccountCategory
    currency: str
    balance: float
    is_investment: bool
    created_at: datetime


class TransactionCreateRequest(BaseModel):
    account_id: int
    type: TransactionType
    amount: float | None = Field(
        default=None,
        ge=0,
        description="Magnitude of the cash movement; derived from quantity * price for trades when omitted",
    )
    date: date
    symbol: str | None = Field(default=None, max_length=20, examples=["CW8.PA"])
    quantity: float | None = Field(default=None, gt=0)
    price_per_unit: float | None = Field(default=None, ge=0)
    description: str = Field(default="", max_length=255)

    @model_validator(mode="after")
    def _require_amount_for_cash_events(self) -> "TransactionCreateRequest":
        if self.amount is None and self.type not in (TransactionType.BUY, TransactionType.SELL):
            raise ValueError("amount is required for non-trade transactions")
        return self


class TransactionSchema(BaseModel):
    id: int
    account_id: int
    type: TransactionType
    amount: float
    date: date
    symbol: str | None = None
    quantity: float | None = None
    price_per_unit: float | None = None
    description: str = ""
    created_at: datetime


class PositionUpsertRequest(BaseModel):
    account_id: int
    symbol: str = Field(..., min_length=1, max_length=20)
    name: str = ""
    quantity: float = Field(..., ge=0)
    average_price: float = Field(..., ge=0)
    current_price: float = Field(..., ge=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    sector: str | None = None


class PositionSchema(BaseModel):
    account_id: str
    symbol: str
    name: str
    quantity: float
    average_price: float
    total_invested: float
    current_price: float
    source: ValuationSource


class OversoldSellSchema(BaseModel):
    transaction_id: str
    account_id: str
    symbol: str
    date: date
    requested_quantity: float
    available_quantity: float


class PortfolioSummarySchema(BaseModel):
    total_value: float
    total_invested: float
    total_gain: float
    total_gain_percent: float
    day_change: float
    day_change_percent: float


class PositionsResponse(BaseModel):
    positions: list[PositionSchema]
    summary: PortfolioSummarySchema
    oversold: list[OversoldSellSchema] = Field(default_factory=list)


class AccountValuationSchema(BaseModel):
    account_id: str
    cash: float
    stocks_value: float
    total_value: float
    source: ValuationSource
    fallback_symbols: list[str] = Field(default_factory=list)


class PricedHoldingSchema(BaseModel):
    symbol: str
    quantity: float
    price: float
    value: float
    used_fallback_price: bool = False


class HistoryPointSchema(BaseModel):
    date: date
    total_value: float
    stocks_value: float
    savings_value: float
    positions: list[PricedHoldingSchema] = Field(default_factory=list)


class HistoryResponse(BaseModel):
    start: date
    end: date
    granularity: Granularity
    points: list[HistoryPointSchema]


class YearlyPerformanceSchema(BaseModel):
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


class PerformanceSchema(BaseModel):
    current_value: float
    total_deposits: float
    total_withdrawals: float
    net_deposits: float
    absolute_gain: float
    absolute_gain_percent: float
    total_dividends: float
    total_return: float
    total_return_percent: float
    yearly: list[YearlyPerformanceSchema]
    current_year: YearlyPerformanceSchema | None = None


class DividendSummarySchema(BaseModel):
    symbol: str
    name: str
    total: float
    count: int
    last_date: date | None = None
    last_amount: float = 0.0
    avg_dividend_per_share: float | None = None
    avg_yield_on_cost: float | None = None


class DividendYearSchema(BaseModel):
    year: int
    total: float


class DividendsResponse(BaseModel):
    total: float
    year: int | None = None
    by_symbol: list[DividendSummarySchema]
    by_year: list[DividendYearSchema]


__all__ = [
    "AccountCreateRequest",
    "AccountSchema",
    "TransactionCreateRequest",
    "TransactionSchema",
    "PositionUpsertRequest",
    "PositionSchema",
    "OversoldSellSchema",
    "PortfolioSummarySchema",
    "PositionsResponse",
    "AccountValuationSchema",
    "PricedHoldingSchema",
    "HistoryPointSchema",
    "HistoryResponse",
    "YearlyPerformanceSchema",
    "PerformanceSchema",
    "DividendSummarySchema",
    "DividendYearSchema",
    "DividendsResponse",
]
