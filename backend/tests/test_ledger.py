from __future__ import annotations

from datetime import date

from folio import Transaction, TransactionType, cash_as_of, flows_by_type


def event(tx_id, tx_type, amount, on, account="livret"):
    return Transaction(id=tx_id, account_id=account, type=tx_type, amount=amount, date=on)


def test_cash_round_trip():
    txs = [
        event("1", TransactionType.DEPOSIT, 1000, date(2024, 1, 1)),
        event("2", TransactionType.WITHDRAWAL, 300, date(2024, 2, 1)),
        event("3", TransactionType.INTEREST, 100, date(2024, 12, 31)),
    ]
    assert cash_as_of(txs, "livret", date(2024, 12, 31)) == 800


def test_cutoff_and_account_filter():
    txs = [
        event("1", TransactionType.DEPOSIT, 1000, date(2024, 1, 1)),
        event("2", TransactionType.FEE, 10, date(2024, 6, 1)),
        event("3", TransactionType.DEPOSIT, 500, date(2024, 1, 1), account="other"),
    ]
    assert cash_as_of(txs, "livret", date(2024, 5, 31)) == 1000
    assert cash_as_of(txs, "livret", date(2024, 6, 1)) == 990
    assert cash_as_of(txs, "livret") == 990
    assert cash_as_of(txs, "missing") == 0


def test_trades_move_cash_by_recorded_amount():
    txs = [
        event("1", TransactionType.DEPOSIT, 1000, date(2024, 1, 1), account="pea"),
        Transaction(
            id="2",
            account_id="pea",
            type=TransactionType.BUY,
            amount=500,
            date=date(2024, 1, 5),
            symbol="XYZ",
            quantity=5,
            price_per_unit=100,
        ),
        Transaction(
            id="3",
            account_id="pea",
            type=TransactionType.SELL,
            amount=240,
            date=date(2024, 3, 5),
            symbol="XYZ",
            quantity=2,
            price_per_unit=120,
        ),
        event("4", TransactionType.DIVIDEND, 10, date(2024, 6, 1), account="pea"),
    ]
    assert cash_as_of(txs, "pea") == 750


def test_flows_by_type_totals():
    txs = [
        event("1", TransactionType.DEPOSIT, 1000, date(2024, 1, 1)),
        event("2", TransactionType.DEPOSIT, 200, date(2024, 2, 1)),
        event("3", TransactionType.DIVIDEND, 15, date(2024, 3, 1), account="pea"),
    ]
    totals = flows_by_type(txs)
    assert totals[TransactionType.DEPOSIT] == 1200
    assert totals[TransactionType.DIVIDEND] == 15
    assert totals[TransactionType.FEE] == 0
    assert flows_by_type(txs, {"pea"})[TransactionType.DEPOSIT] == 0
