"""Current-state valuation of accounts and open positions."""
from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Set

from .ledger import cash_as_of
from .models import (
    Account,
    AccountValuation,
    LiveQuote,
    PortfolioSummary,
    Position,
    ReconciledPosition,
    StoredPosition,
    Transaction,
    ValuationSource,
)
from .positions import positions_as_of, positions_by_account_as_of, traded_symbols


class HeldPosition(Protocol):
    symbol: str
    quantity: float
    current_price: float


def _live_price(quotes: Mapping[str, LiveQuote], symbol: str) -> Optional[float]:
    quote = quotes.get(symbol) or quotes.get(symbol.upper())
    if quote is None or not quote.price:
        return None
    return quote.price


def value_account(
    transactions: Sequence[Transaction],
    account_id: str,
    open_positions: Iterable[HeldPosition],
    live_quotes: Mapping[str, LiveQuote],
) -> AccountValuation:
    """Value an investment account as ledger cash plus marked-to-market positions.

    A symbol without a live quote is priced at the position's last known
    ``current_price`` and listed in ``fallback_symbols``.
    """

    cash = cash_as_of(transactions, account_id)
    stocks_value = 0.0
    fallbacks: List[str] = []
    for pos in open_positions:
        price = _live_price(live_quotes, pos.symbol)
        if price is None:
            price = pos.current_price
            fallbacks.append(pos.symbol)
        stocks_value += pos.quantity * price
    return AccountValuation(
        account_id=account_id,
        cash=cash,
        stocks_value=stocks_value,
        total_value=cash + stocks_value,
        fallback_symbols=tuple(fallbacks),
    )


def value_any_account(
    account: Account,
    transactions: Sequence[Transaction],
    open_positions: Iterable[HeldPosition],
    live_quotes: Mapping[str, LiveQuote],
) -> AccountValuation:
    """Dispatch on the account category, seeding from the stored balance only without history."""

    if not any(tx.account_id == account.id for tx in transactions):
        return AccountValuation(
            account_id=account.id,
            cash=account.balance,
            stocks_value=0.0,
            total_value=account.balance,
            source=ValuationSource.STORED_FALLBACK,
        )
    if account.is_investment:
        held = [pos for pos in open_positions if getattr(pos, "account_id", account.id) == account.id]
        return value_account(transactions, account.id, held, live_quotes)
    cash = cash_as_of(transactions, account.id)
    return AccountValuation(account_id=account.id, cash=cash, stocks_value=0.0, total_value=cash)


def summarize_positions(
    positions: Iterable[StoredPosition | ReconciledPosition],
    live_quotes: Mapping[str, LiveQuote],
) -> PortfolioSummary:
    """Aggregate market value, invested capital and day change across positions."""

    total_value = 0.0
    total_invested = 0.0
    day_change = 0.0
    for pos in positions:
        quote = live_quotes.get(pos.symbol)
        current = _live_price(live_quotes, pos.symbol) or pos.current_price
        previous = quote.previous_close if quote and quote.previous_close else current
        total_value += pos.quantity * current
        total_invested += pos.quantity * pos.average_price
        day_change += pos.quantity * (current - previous)

    total_gain = total_value - total_invested
    opening = total_value - day_change
    return PortfolioSummary(
        total_value=total_value,
        total_invested=total_invested,
        total_gain=total_gain,
        total_gain_percent=(total_gain / total_invested) * 100 if total_invested > 0 else 0.0,
        day_change=day_change,
        day_change_percent=(day_change / opening) * 100 if opening > 0 else 0.0,
    )


def reconcile_positions(
    stored_positions: Iterable[StoredPosition],
    transactions: Sequence[Transaction],
    as_of: date,
) -> List[ReconciledPosition]:
    """Replace stored quantity/average price with the per-account replay.

    A stored row is kept as-is only when its account never traded the symbol
    up to ``as_of``. A row whose symbol was traded but is flat in the replay
    (fully sold) is dropped.
    """

    replays: Dict[str, Dict[str, Position]] = {}
    traded: Dict[str, Set[str]] = {}
    reconciled: List[ReconciledPosition] = []
    for stored in stored_positions:
        account_id = stored.account_id
        if account_id not in replays:
            replays[account_id] = positions_as_of(transactions, as_of, account_id)
            traded[account_id] = traded_symbols(transactions, as_of, account_id)
        symbol = stored.symbol.strip().upper()
        computed = replays[account_id].get(symbol)
        if computed is not None:
            reconciled.append(
                ReconciledPosition(
                    account_id=account_id,
                    symbol=symbol,
                    name=stored.name,
                    quantity=computed.quantity,
                    average_price=computed.average_cost,
                    total_invested=computed.total_cost,
                    current_price=stored.current_price,
                    source=ValuationSource.COMPUTED,
                )
            )
        elif symbol not in traded[account_id]:
            reconciled.append(
                ReconciledPosition(
                    account_id=account_id,
                    symbol=symbol,
                    name=stored.name,
                    quantity=stored.quantity,
                    average_price=stored.average_price,
                    total_invested=stored.quantity * stored.average_price,
                    current_price=stored.current_price,
                    source=ValuationSource.STORED_FALLBACK,
                )
            )
    return reconciled


def open_positions(
    stored_positions: Iterable[StoredPosition],
    transactions: Sequence[Transaction],
    as_of: date,
) -> List[ReconciledPosition]:
    """Every holding on ``as_of``: reconciled stored rows plus trade-only holdings.

    Holdings without a stored row have no last known price, so their average
    cost stands in for ``current_price`` until a live quote is available.
    """

    held = [pos for pos in reconcile_positions(stored_positions, transactions, as_of) if pos.quantity > 0]
    seen = {(pos.account_id, pos.symbol) for pos in held}
    for (account_id, symbol), pos in sorted(positions_by_account_as_of(transactions, as_of).items()):
        if (account_id, symbol) in seen or pos.quantity <= 0:
            continue
        held.append(
            ReconciledPosition(
                account_id=account_id,
                symbol=symbol,
                name=symbol,
                quantity=pos.quantity,
                average_price=pos.average_cost,
                total_invested=pos.total_cost,
                current_price=pos.average_cost,
                source=ValuationSource.COMPUTED,
            )
        )
    return held


__all__ = [
    "HeldPosition",
    "value_account",
    "value_any_account",
    "summarize_positions",
    "reconcile_positions",
    "open_positions",
]
