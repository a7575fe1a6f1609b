"""Lifetime and per-year performance of the investment accounts.

Yearly returns use the Modified Dietz method: each deposit or withdrawal is
weighted by the fraction of the period it remained invested, so the return
can be approximated without daily valuations. Dividends are reported but
never treated as a flow: they already sit as cash inside the valuation.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence

from .ledger import flows_by_type
from .models import (
    Account,
    HistoryPoint,
    PerformanceReport,
    Transaction,
    TransactionType,
    YearlyPerformance,
)


def _percent(gain: float, base: float) -> float:
    return (gain / base) * 100 if base > 0 else 0.0


def _yearly_performance(
    history: Sequence[HistoryPoint],
    transactions: Sequence[Transaction],
) -> List[YearlyPerformance]:
    by_year: Dict[int, List[HistoryPoint]] = defaultdict(list)
    for point in history:
        by_year[point.date.year].append(point)
    years = sorted(by_year)

    results: List[YearlyPerformance] = []
    for index, year in enumerate(years):
        points = sorted(by_year[year], key=lambda p: p.date)
        first_year = index == 0

        if first_year:
            # Flows up to the first point are the initial capital, already in start_value
            start_value = points[0].stocks_value
            period_start = points[0].date
        else:
            previous = sorted(by_year[years[index - 1]], key=lambda p: p.date)
            start_value = previous[-1].stocks_value
            period_start = date(year, 1, 1)

        end_value = points[-1].stocks_value
        period_end = points[-1].date
        effective_days = max(1, (period_end - period_start).days)

        deposits = 0.0
        withdrawals = 0.0
        dividends = 0.0
        weighted_flows = 0.0
        for tx in transactions:
            if first_year:
                if not (period_start < tx.date <= period_end):
                    continue
            elif tx.date.year != year or tx.date > period_end:
                continue
            days_from_start = (tx.date - period_start).days
            weight = max(0.0, (effective_days - days_from_start) / effective_days)
            if tx.type == TransactionType.DEPOSIT:
                deposits += tx.amount
                weighted_flows += tx.amount * weight
            elif tx.type == TransactionType.WITHDRAWAL:
                withdrawals += tx.amount
                weighted_flows -= tx.amount * weight
            elif tx.type == TransactionType.DIVIDEND:
                dividends += tx.amount

        net_flows = deposits - withdrawals
        gain_loss = end_value - start_value - net_flows
        gain_loss_percent = _percent(gain_loss, start_value + weighted_flows)
        results.append(
            YearlyPerformance(
                year=year,
                start_value=start_value,
                end_value=end_value,
                deposits=deposits,
                withdrawals=withdrawals,
                net_flows=net_flows,
                dividends=dividends,
                gain_loss=gain_loss,
                gain_loss_percent=gain_loss_percent,
                total_return=gain_loss,
                total_return_percent=gain_loss_percent,
            )
        )
    return results


def attribute_performance(
    transactions: Sequence[Transaction],
    history: Sequence[HistoryPoint],
    accounts: Sequence[Account],
    reference_year: Optional[int] = None,
) -> PerformanceReport:
    """Compute lifetime totals and per-year Modified Dietz returns.

    Only investment-account transactions are considered. ``current_year`` is
    the yearly entry matching ``reference_year`` when one is supplied.
    """

    if not history:
        return PerformanceReport()

    investment_ids = {acc.id for acc in accounts if acc.is_investment}
    invested = [tx for tx in transactions if tx.account_id in investment_ids]

    flows = flows_by_type(invested)
    total_deposits = flows[TransactionType.DEPOSIT]
    total_withdrawals = flows[TransactionType.WITHDRAWAL]
    total_dividends = flows[TransactionType.DIVIDEND]

    net_deposits = total_deposits - total_withdrawals
    current_value = history[-1].stocks_value
    absolute_gain = current_value - net_deposits
    absolute_gain_percent = _percent(absolute_gain, net_deposits)

    yearly = _yearly_performance(history, invested)
    current_year = None
    if reference_year is not None:
        current_year = next((entry for entry in yearly if entry.year == reference_year), None)

    return PerformanceReport(
        current_value=current_value,
        total_deposits=total_deposits,
        total_withdrawals=total_withdrawals,
        net_deposits=net_deposits,
        absolute_gain=absolute_gain,
        absolute_gain_percent=absolute_gain_percent,
        total_dividends=total_dividends,
        total_return=absolute_gain,
        total_return_percent=absolute_gain_percent,
        yearly=tuple(yearly),
        current_year=current_year,
    )


__all__ = ["attribute_performance"]
