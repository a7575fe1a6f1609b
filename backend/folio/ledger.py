"""Cash balances implied purely by the transaction log."""
from __future__ import annotations

from collections.abc import Collection
from datetime import date
from typing import Dict, Iterable, Optional

from .models import Transaction, TransactionType


def cash_as_of(
    transactions: Iterable[Transaction],
    account_id: str,
    as_of: Optional[date] = None,
) -> float:
    """Sum signed transaction amounts for ``account_id`` up to ``as_of``.

    ``as_of=None`` means no cutoff. The stored account balance is never read;
    for BUY/SELL the recorded ``amount`` is trusted as ``quantity * price``.
    """

    cash = 0.0
    for tx in transactions:
        if tx.account_id != account_id:
            continue
        if as_of is not None and tx.date > as_of:
            continue
        cash += TransactionType(tx.type).cash_sign * tx.amount
    return cash


def flows_by_type(
    transactions: Iterable[Transaction],
    account_ids: Optional[Collection[str]] = None,
) -> Dict[TransactionType, float]:
    """Gross amount per transaction type, optionally restricted to some accounts."""

    totals = {tx_type: 0.0 for tx_type in TransactionType}
    for tx in transactions:
        if account_ids is not None and tx.account_id not in account_ids:
            continue
        totals[TransactionType(tx.type)] += tx.amount
    return totals


__all__ = ["cash_as_of", "flows_by_type"]
