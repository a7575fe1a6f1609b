from __future__ import annotations

from datetime import date

import pytest

from folio import (
    Account,
    AccountCategory,
    HistoryPoint,
    LiveQuote,
    PerformanceReport,
    PriceBar,
    StoredPosition,
    Transaction,
    TransactionType,
    attribute_performance,
    build_history,
    cash_as_of,
    positions_as_of,
    value_account,
)

PEA = Account(id="pea", name="PEA-1", category=AccountCategory.BROKERAGE_TAX_ADVANTAGED)
LIVRET = Account(id="livret", name="Livret A", category=AccountCategory.REGULAR_SAVINGS)


def event(tx_id, tx_type, amount, on, account="pea", **extra):
    return Transaction(id=tx_id, account_id=account, type=tx_type, amount=amount, date=on, **extra)


def point(on: date, stocks_value: float, savings_value: float = 0.0) -> HistoryPoint:
    return HistoryPoint(
        date=on,
        total_value=stocks_value + savings_value,
        stocks_value=stocks_value,
        savings_value=savings_value,
    )


PEA_SCENARIO = [
    event("1", TransactionType.DEPOSIT, 1000, date(2024, 1, 1)),
    event("2", TransactionType.BUY, 500, date(2024, 1, 5), symbol="XYZ", quantity=5, price_per_unit=100),
    event("3", TransactionType.DIVIDEND, 10, date(2024, 6, 1), symbol="XYZ"),
]
XYZ_SERIES = {"XYZ": [PriceBar(date=date(2024, 12, 31), open=118, high=121, low=117, close=120)]}


def test_empty_history_yields_empty_report():
    assert attribute_performance(PEA_SCENARIO, [], [PEA]) == PerformanceReport()


def test_dividends_are_not_counted_twice():
    transactions = [
        event("1", TransactionType.DEPOSIT, 200, date(2024, 1, 1)),
        event("2", TransactionType.DIVIDEND, 50, date(2024, 7, 1)),
    ]
    history = [
        point(date(2023, 12, 31), 1000),
        point(date(2024, 1, 1), 1200),
        point(date(2024, 12, 31), 1300),
    ]
    report = attribute_performance(transactions, history, [PEA], reference_year=2024)
    year = report.current_year
    assert year is not None
    assert year.start_value == 1000
    assert year.end_value == 1300
    assert year.net_flows == 200
    assert year.gain_loss == pytest.approx(100)
    assert year.dividends == 50
    assert year.gain_loss_percent == pytest.approx(100 / 1200 * 100)
    assert year.total_return == year.gain_loss


def test_end_to_end_pea_scenario():
    as_of = date(2024, 12, 31)
    positions = positions_as_of(PEA_SCENARIO, as_of)
    assert positions["XYZ"].quantity == 5
    assert positions["XYZ"].average_cost == 100
    assert cash_as_of(PEA_SCENARIO, "pea", as_of) == 510

    held = [StoredPosition(account_id="pea", symbol="XYZ", quantity=5, average_price=100, current_price=100)]
    valuation = value_account(PEA_SCENARIO, "pea", held, {"XYZ": LiveQuote(symbol="XYZ", price=120)})
    assert valuation.stocks_value == 600
    assert valuation.total_value == 1110

    history = build_history(PEA_SCENARIO, [PEA], XYZ_SERIES, date(2023, 12, 31), as_of)
    report = attribute_performance(PEA_SCENARIO, history, [PEA], reference_year=2024)

    year = report.current_year
    assert year is not None
    assert year.start_value == 0
    assert year.end_value == pytest.approx(1110)
    assert year.net_flows == 1000
    assert year.gain_loss == pytest.approx(110)
    assert year.dividends == 10

    assert report.current_value == pytest.approx(1110)
    assert report.net_deposits == 1000
    assert report.absolute_gain == pytest.approx(110)
    assert report.absolute_gain_percent == pytest.approx(11)
    assert report.total_dividends == 10
    assert [entry.year for entry in report.yearly] == [2023, 2024]


def test_first_year_excludes_flows_already_in_start_value():
    history = build_history(PEA_SCENARIO, [PEA], XYZ_SERIES, date(2024, 1, 1), date(2024, 12, 31))
    year = attribute_performance(PEA_SCENARIO, history, [PEA]).yearly[0]
    assert year.start_value == 1000
    assert year.deposits == 0
    assert year.gain_loss == pytest.approx(110)
    assert year.gain_loss_percent == pytest.approx(11)


def test_mid_year_flow_weighted_by_calendar_days():
    transactions = [event("1", TransactionType.DEPOSIT, 100, date(2024, 7, 2))]
    history = [point(date(2023, 12, 31), 1000), point(date(2024, 12, 31), 1210)]
    year = attribute_performance(transactions, history, [PEA]).yearly[1]

    period_days = (date(2024, 12, 31) - date(2024, 1, 1)).days
    weight = (period_days - (date(2024, 7, 2) - date(2024, 1, 1)).days) / period_days
    assert year.gain_loss == pytest.approx(110)
    assert year.gain_loss_percent == pytest.approx(110 / (1000 + 100 * weight) * 100)


def test_savings_accounts_are_excluded():
    transactions = PEA_SCENARIO + [event("9", TransactionType.DEPOSIT, 5000, date(2024, 3, 1), account="livret")]
    history = build_history(transactions, [PEA, LIVRET], XYZ_SERIES, date(2023, 12, 31), date(2024, 12, 31))
    report = attribute_performance(transactions, history, [PEA, LIVRET], reference_year=2024)
    assert report.total_deposits == 1000
    assert report.current_value == pytest.approx(1110)
    assert report.current_year.gain_loss == pytest.approx(110)


def test_non_positive_base_reports_zero_percent():
    transactions = [event("1", TransactionType.WITHDRAWAL, 100, date(2024, 1, 1))]
    history = [point(date(2023, 12, 31), 0), point(date(2024, 12, 31), 0)]
    report = attribute_performance(transactions, history, [PEA])
    assert report.absolute_gain_percent == 0
    assert report.yearly[1].gain_loss_percent == 0
    assert report.current_year is None
