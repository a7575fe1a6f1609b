"""Dividend breakdown per symbol and per year."""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Sequence

from .models import DividendReport, DividendSummary, Transaction, TransactionType
from .positions import positions_as_of

UNATTRIBUTED = "UNATTRIBUTED"


def dividends_by_symbol(
    transactions: Sequence[Transaction],
    year: Optional[int] = None,
    names: Optional[Mapping[str, str]] = None,
) -> DividendReport:
    """Summarise DIVIDEND events, optionally restricted to one calendar year.

    Per-share amount and yield on cost are averaged over the dividends paid
    while the symbol was held, using the replayed position on each payment
    date. ``by_year`` always covers every year, most recent first.
    """

    names = {symbol.upper(): name for symbol, name in (names or {}).items()}
    dividends = [tx for tx in transactions if tx.type == TransactionType.DIVIDEND]

    per_year: Dict[int, float] = defaultdict(float)
    for tx in dividends:
        per_year[tx.date.year] += tx.amount

    selected = [tx for tx in dividends if year is None or tx.date.year == year]
    grouped: Dict[str, List[Transaction]] = defaultdict(list)
    for tx in selected:
        grouped[tx.normalized_symbol() or UNATTRIBUTED].append(tx)

    summaries: List[DividendSummary] = []
    for symbol, events in grouped.items():
        last = max(events, key=lambda tx: tx.date)
        per_share: List[float] = []
        yields: List[float] = []
        if symbol != UNATTRIBUTED:
            for tx in events:
                held = positions_as_of(transactions, tx.date).get(symbol)
                if held is None or held.quantity <= 0:
                    continue
                per_share.append(tx.amount / held.quantity)
                if held.total_cost > 0:
                    yields.append(tx.amount / held.total_cost * 100)
        summaries.append(
            DividendSummary(
                symbol=symbol,
                name=names.get(symbol, symbol),
                total=sum(tx.amount for tx in events),
                count=len(events),
                last_date=last.date,
                last_amount=last.amount,
                avg_dividend_per_share=sum(per_share) / len(per_share) if per_share else None,
                # averaged over every held payment, like the per-share figure
                avg_yield_on_cost=sum(yields) / len(per_share) if per_share else None,
            )
        )
    summaries.sort(key=lambda summary: summary.total, reverse=True)

    return DividendReport(
        total=sum(tx.amount for tx in selected),
        year=year,
        by_symbol=tuple(summaries),
        by_year=tuple(sorted(per_year.items(), reverse=True)),
    )


__all__ = ["dividends_by_symbol", "UNATTRIBUTED"]
