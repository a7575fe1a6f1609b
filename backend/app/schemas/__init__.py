"""Pydantic schema exports."""

from .portfolio import (
    AccountCreateRequest,
    AccountSchema,
    AccountValuationSchema,
    DividendsResponse,
    DividendSummarySchema,
    DividendYearSchema,
    HistoryPointSchema,
    HistoryResponse,
    OversoldSellSchema,
    PerformanceSchema,
    PortfolioSummarySchema,
    PositionSchema,
    PositionsResponse,
    PositionUpsertRequest,
    PricedHoldingSchema,
    TransactionCreateRequest,
    TransactionSchema,
    YearlyPerformanceSchema,
)
from .stocks import (
    LiveQuoteSchema,
    PriceBarSchema,
    QuotesResponse,
    SearchResponse,
    SymbolMatchSchema,
)

__all__ = [
    "AccountCreateRequest",
    "AccountSchema",
    "AccountValuationSchema",
    "DividendsResponse",
    "DividendSummarySchema",
    "DividendYearSchema",
    "HistoryPointSchema",
    "HistoryResponse",
    "OversoldSellSchema",
    "PerformanceSchema",
    "PortfolioSummarySchema",
    "PositionSchema",
    "PositionsResponse",
    "PositionUpsertRequest",
    "PricedHoldingSchema",
    "TransactionCreateRequest",
    "TransactionSchema",
    "YearlyPerformanceSchema",
    "LiveQuoteSchema",
    "PriceBarSchema",
    "QuotesResponse",
    "SearchResponse",
    "SymbolMatchSchema",
]
