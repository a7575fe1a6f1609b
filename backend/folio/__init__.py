"""Pure portfolio reconstruction and performance engine."""

from .dividends import dividends_by_symbol
from .history import build_history, date_range, full_history_window, history_window
from .ledger import cash_as_of, flows_by_type
from .models import (
    Account,
    AccountCategory,
    AccountPosition,
    AccountValuation,
    DividendReport,
    DividendSummary,
    Granularity,
    HistoryPoint,
    LiveQuote,
    OversoldSell,
    PerformanceReport,
    PortfolioSummary,
    Position,
    PositionReplay,
    PriceBar,
    PricedHolding,
    ReconciledPosition,
    StoredPosition,
    SymbolMatch,
    Transaction,
    TransactionType,
    ValuationSource,
    YearlyPerformance,
)
from .performance import attribute_performance
from .positions import (
    aggregate_by_symbol,
    first_transaction_date,
    positions_as_of,
    positions_by_account_as_of,
    replay_positions,
    symbols_in,
    traded_symbols,
)
from .quotes import closest_quote
from .valuation import (
    open_positions,
    reconcile_positions,
    summarize_positions,
    value_account,
    value_any_account,
)

__all__ = [
    "Account",
    "AccountCategory",
    "AccountPosition",
    "AccountValuation",
    "DividendReport",
    "DividendSummary",
    "Granularity",
    "HistoryPoint",
    "LiveQuote",
    "OversoldSell",
    "PerformanceReport",
    "PortfolioSummary",
    "Position",
    "PositionReplay",
    "PriceBar",
    "PricedHolding",
    "ReconciledPosition",
    "StoredPosition",
    "SymbolMatch",
    "Transaction",
    "TransactionType",
    "ValuationSource",
    "YearlyPerformance",
    "aggregate_by_symbol",
    "attribute_performance",
    "build_history",
    "cash_as_of",
    "closest_quote",
    "date_range",
    "dividends_by_symbol",
    "first_transaction_date",
    "flows_by_type",
    "full_history_window",
    "history_window",
    "open_positions",
    "positions_as_of",
    "positions_by_account_as_of",
    "reconcile_positions",
    "replay_positions",
    "summarize_positions",
    "symbols_in",
    "traded_symbols",
    "value_account",
    "value_any_account",
]
