"""Rebuild stock positions by replaying BUY/SELL transactions."""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .models import (
    AccountPosition,
    OversoldSell,
    Position,
    PositionReplay,
    Transaction,
    TransactionType,
    TRADE_TYPES,
)

logger = logging.getLogger(__name__)


def _trades_until(
    transactions: Iterable[Transaction],
    as_of: date,
    account_id: Optional[str] = None,
) -> List[Tuple[str, Transaction]]:
    relevant: List[Tuple[str, Transaction]] = []
    for tx in transactions:
        if tx.type not in TRADE_TYPES or tx.date > as_of:
            continue
        if account_id is not None and tx.account_id != account_id:
            continue
        symbol = tx.normalized_symbol()
        if symbol:
            relevant.append((symbol, tx))
    # sorted() is stable, so same-day trades keep their input order
    return sorted(relevant, key=lambda item: item[1].date)


def _apply_trade(
    held: Optional[Position],
    tx: Transaction,
    symbol: str,
) -> Tuple[Optional[Position], Optional[OversoldSell]]:
    qty = tx.quantity or 0.0
    price = tx.price_per_unit or 0.0

    if tx.type == TransactionType.BUY:
        if held is None:
            return Position(symbol=symbol, quantity=qty, average_cost=price), None
        new_quantity = held.quantity + qty
        new_total = held.total_cost + qty * price
        average = new_total / new_quantity if new_quantity > 0 else 0.0
        return Position(symbol=symbol, quantity=new_quantity, average_cost=average), None

    available = held.quantity if held is not None else 0.0
    oversold = None
    if qty > available:
        oversold = OversoldSell(
            transaction_id=tx.id,
            account_id=tx.account_id,
            symbol=symbol,
            date=tx.date,
            requested_quantity=qty,
            available_quantity=available,
        )
    if held is None:
        return None, oversold
    remaining = held.quantity - qty
    if remaining <= 0:
        return None, oversold
    return Position(symbol=symbol, quantity=remaining, average_cost=held.average_cost), oversold


def replay_positions(
    transactions: Iterable[Transaction],
    as_of: date,
    account_id: Optional[str] = None,
) -> PositionReplay:
    """Fold trades up to ``as_of`` into positions, recording every oversold SELL.

    A SELL with no holding leaves the book untouched; a SELL larger than the
    holding closes it. Both are reported in ``oversold`` so callers can decide
    whether to reject, clamp, or flag the underlying data.
    """

    positions: Dict[str, Position] = {}
    oversold: List[OversoldSell] = []
    for symbol, tx in _trades_until(transactions, as_of, account_id):
        updated, flagged = _apply_trade(positions.get(symbol), tx, symbol)
        if flagged is not None:
            logger.debug(
                "Oversold %s on %s: requested %s, held %s",
                symbol,
                tx.date,
                flagged.requested_quantity,
                flagged.available_quantity,
            )
            oversold.append(flagged)
        if updated is None:
            positions.pop(symbol, None)
        else:
            positions[symbol] = updated
    return PositionReplay(positions=positions, oversold=tuple(oversold))


def positions_as_of(
    transactions: Iterable[Transaction],
    as_of: date,
    account_id: Optional[str] = None,
) -> Dict[str, Position]:
    """Return open positions keyed by symbol on ``as_of`` (inclusive)."""

    return replay_positions(transactions, as_of, account_id).positions


def positions_by_account_as_of(
    transactions: Iterable[Transaction],
    as_of: date,
) -> Dict[Tuple[str, str], AccountPosition]:
    """Return open positions keyed by ``(account_id, symbol)``."""

    book: Dict[Tuple[str, str], Position] = {}
    for symbol, tx in _trades_until(transactions, as_of):
        key = (tx.account_id, symbol)
        updated, _ = _apply_trade(book.get(key), tx, symbol)
        if updated is None:
            book.pop(key, None)
        else:
            book[key] = updated
    return {
        key: AccountPosition(
            symbol=pos.symbol,
            quantity=pos.quantity,
            average_cost=pos.average_cost,
            account_id=key[0],
        )
        for key, pos in book.items()
    }


def aggregate_by_symbol(positions: Mapping[Tuple[str, str], Position] | Sequence[Position]) -> Dict[str, Position]:
    """Merge per-account holdings into per-symbol totals with a re-weighted cost."""

    items = positions.values() if isinstance(positions, Mapping) else positions
    merged: Dict[str, Position] = {}
    for pos in items:
        existing = merged.get(pos.symbol)
        if existing is None:
            merged[pos.symbol] = Position(pos.symbol, pos.quantity, pos.average_cost)
            continue
        quantity = existing.quantity + pos.quantity
        total = existing.total_cost + pos.total_cost
        merged[pos.symbol] = Position(
            symbol=pos.symbol,
            quantity=quantity,
            average_cost=total / quantity if quantity > 0 else 0.0,
        )
    return merged


def first_transaction_date(transactions: Iterable[Transaction]) -> Optional[date]:
    dates = [tx.date for tx in transactions]
    return min(dates) if dates else None


def symbols_in(transactions: Iterable[Transaction]) -> List[str]:
    """Sorted unique upper-case symbols referenced by any transaction."""

    return sorted({s for s in (tx.normalized_symbol() for tx in transactions) if s})


def traded_symbols(
    transactions: Iterable[Transaction],
    as_of: date,
    account_id: Optional[str] = None,
) -> Set[str]:
    """Symbols with at least one BUY/SELL on or before ``as_of``."""

    return {symbol for symbol, _ in _trades_until(transactions, as_of, account_id)}


__all__ = [
    "replay_positions",
    "positions_as_of",
    "positions_by_account_as_of",
    "aggregate_by_symbol",
    "first_transaction_date",
    "symbols_in",
    "traded_symbols",
]
