"""Historical portfolio value series rebuilt from the transaction log."""
from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Dict, List, Mapping, Sequence, Tuple

from .ledger import cash_as_of
from .models import Account, Granularity, HistoryPoint, PriceBar, PricedHolding, Transaction
from .positions import first_transaction_date, positions_as_of
from .quotes import closest_quote

WEEKLY_THRESHOLD_DAYS = 90


def _add_months(anchor: date, months: int) -> date:
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def date_range(start: date, end: date, granularity: Granularity = Granularity.DAILY) -> List[date]:
    """Dates from ``start`` to ``end`` inclusive, stepping by day, week or calendar month.

    Monthly steps keep the day of month of ``start``, clamped to shorter months.
    """

    granularity = Granularity(granularity)
    dates: List[date] = []
    step = 0
    current = start
    while current <= end:
        dates.append(current)
        step += 1
        if granularity == Granularity.MONTHLY:
            current = _add_months(start, step)
        elif granularity == Granularity.WEEKLY:
            current = start + timedelta(days=7 * step)
        else:
            current = start + timedelta(days=step)
    return dates


def _value_holdings(
    transactions: Sequence[Transaction],
    quotes_by_symbol: Mapping[str, Sequence[PriceBar]],
    on: date,
) -> Tuple[float, Tuple[PricedHolding, ...]]:
    total = 0.0
    holdings: List[PricedHolding] = []
    for symbol, pos in positions_as_of(transactions, on).items():
        series = quotes_by_symbol.get(symbol)
        bar = closest_quote(series, on) if series else None
        if bar is not None and bar.close:
            price, fallback = bar.close, False
        else:
            price, fallback = pos.average_cost, True
        value = pos.quantity * price
        total += value
        holdings.append(
            PricedHolding(
                symbol=symbol,
                quantity=pos.quantity,
                price=price,
                value=value,
                used_fallback_price=fallback,
            )
        )
    return total, tuple(holdings)


def build_history(
    transactions: Sequence[Transaction],
    accounts: Sequence[Account],
    quotes_by_symbol: Mapping[str, Sequence[PriceBar]],
    start: date,
    end: date,
    granularity: Granularity = Granularity.DAILY,
) -> List[HistoryPoint]:
    """Value the whole portfolio on every generated date between ``start`` and ``end``.

    Investment-account cash is reported inside ``stocks_value`` next to the
    equity it can buy; the other accounts make up ``savings_value``. Symbols
    without any series are priced at their average cost.
    """

    series_by_symbol: Dict[str, Sequence[PriceBar]] = {
        symbol.upper(): bars for symbol, bars in quotes_by_symbol.items()
    }
    investment_ids = [acc.id for acc in accounts if acc.is_investment]
    savings_ids = [acc.id for acc in accounts if not acc.is_investment]

    history: List[HistoryPoint] = []
    for on in date_range(start, end, granularity):
        equity, holdings = _value_holdings(transactions, series_by_symbol, on)
        investment_cash = sum(cash_as_of(transactions, acc_id, on) for acc_id in investment_ids)
        savings = sum(cash_as_of(transactions, acc_id, on) for acc_id in savings_ids)
        stocks_value = equity + investment_cash
        history.append(
            HistoryPoint(
                date=on,
                total_value=stocks_value + savings,
                stocks_value=stocks_value,
                savings_value=savings,
                positions=holdings,
            )
        )
    return history


def history_window(
    transactions: Sequence[Transaction],
    today: date,
    period_days: int,
) -> Tuple[date, date, Granularity]:
    """Window for a trailing chart: never starts before the first transaction."""

    start = today - timedelta(days=period_days)
    first = first_transaction_date(transactions)
    if first is not None and first > start:
        start = first
    granularity = Granularity.WEEKLY if period_days > WEEKLY_THRESHOLD_DAYS else Granularity.DAILY
    return start, today, granularity


def full_history_window(transactions: Sequence[Transaction], today: date) -> Tuple[date, date, Granularity]:
    """Daily window from January 1st of the first transaction's year through ``today``."""

    first = first_transaction_date(transactions)
    year = first.year if first is not None else today.year
    return date(year, 1, 1), today, Granularity.DAILY


__all__ = [
    "date_range",
    "build_history",
    "history_window",
    "full_history_window",
]
