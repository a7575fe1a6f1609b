from __future__ import annotations

import random
from datetime import date

from folio import (
    Transaction,
    TransactionType,
    aggregate_by_symbol,
    first_transaction_date,
    positions_as_of,
    positions_by_account_as_of,
    replay_positions,
    symbols_in,
    traded_symbols,
)


def trade(tx_id, tx_type, symbol, qty, price, on, account="pea"):
    return Transaction(
        id=tx_id,
        account_id=account,
        type=tx_type,
        amount=qty * price,
        date=on,
        symbol=symbol,
        quantity=qty,
        price_per_unit=price,
    )


def buy(tx_id, symbol, qty, price, on, account="pea"):
    return trade(tx_id, TransactionType.BUY, symbol, qty, price, on, account)


def sell(tx_id, symbol, qty, price, on, account="pea"):
    return trade(tx_id, TransactionType.SELL, symbol, qty, price, on, account)


def test_buy_updates_weighted_average_cost():
    txs = [
        buy("1", "CW8.PA", 10, 100, date(2024, 1, 2)),
        buy("2", "CW8.PA", 10, 120, date(2024, 2, 1)),
    ]
    positions = positions_as_of(txs, date(2024, 12, 31))
    assert positions["CW8.PA"].quantity == 20
    assert positions["CW8.PA"].average_cost == 110
    assert positions["CW8.PA"].total_cost == 2200


def test_replay_is_idempotent():
    txs = [
        buy("1", "MC.PA", 3, 700, date(2024, 1, 2)),
        sell("2", "MC.PA", 1, 750, date(2024, 3, 1)),
        buy("3", "AI.PA", 4, 160, date(2024, 4, 1)),
    ]
    first = positions_as_of(txs, date(2024, 6, 30))
    second = positions_as_of(txs, date(2024, 6, 30))
    assert first == second


def test_same_day_buys_commute():
    on = date(2024, 5, 6)
    buys = [buy(str(i), "XYZ", qty, price, on) for i, (qty, price) in enumerate([(2, 10), (3, 20), (5, 7.5)])]
    baseline = positions_as_of(buys, on)["XYZ"]
    shuffled = list(buys)
    random.Random(7).shuffle(shuffled)
    result = positions_as_of(shuffled, on)["XYZ"]
    assert result.quantity == baseline.quantity
    assert abs(result.average_cost - baseline.average_cost) < 1e-9


def test_sell_keeps_average_cost():
    txs = [
        buy("1", "XYZ", 10, 50, date(2024, 1, 2)),
        sell("2", "XYZ", 4, 80, date(2024, 1, 3)),
    ]
    position = positions_as_of(txs, date(2024, 1, 3))["XYZ"]
    assert position.quantity == 6
    assert position.average_cost == 50


def test_full_liquidation_removes_symbol():
    txs = [
        buy("1", "XYZ", 10, 50, date(2024, 1, 2)),
        sell("2", "XYZ", 10, 55, date(2024, 1, 3)),
    ]
    assert "XYZ" not in positions_as_of(txs, date(2024, 1, 3))
    assert positions_as_of(txs, date(2024, 1, 2))["XYZ"].quantity == 10


def test_rebuy_after_liquidation_starts_fresh_cost():
    txs = [
        buy("1", "XYZ", 10, 50, date(2024, 1, 2)),
        sell("2", "XYZ", 10, 55, date(2024, 1, 3)),
        buy("3", "XYZ", 2, 70, date(2024, 1, 4)),
    ]
    position = positions_as_of(txs, date(2024, 1, 4))["XYZ"]
    assert position.quantity == 2
    assert position.average_cost == 70


def test_oversold_sells_are_reported():
    txs = [
        sell("1", "ABC", 5, 10, date(2024, 1, 2)),
        buy("2", "XYZ", 3, 10, date(2024, 1, 3)),
        sell("3", "XYZ", 4, 12, date(2024, 1, 4)),
    ]
    replay = replay_positions(txs, date(2024, 12, 31))
    assert replay.positions == {}
    assert [(o.transaction_id, o.symbol) for o in replay.oversold] == [("1", "ABC"), ("3", "XYZ")]
    assert replay.oversold[0].available_quantity == 0
    assert replay.oversold[1].shortfall == 1


def test_symbols_are_case_insensitive_and_cutoff_inclusive():
    txs = [
        buy("1", "cw8.pa", 1, 100, date(2024, 1, 2)),
        buy("2", "CW8.PA ", 1, 200, date(2024, 1, 3)),
        buy("3", "CW8.PA", 1, 300, date(2024, 1, 4)),
    ]
    positions = positions_as_of(txs, date(2024, 1, 3))
    assert list(positions) == ["CW8.PA"]
    assert positions["CW8.PA"].quantity == 2
    assert positions["CW8.PA"].average_cost == 150


def test_missing_price_defaults_to_zero_cost():
    tx = Transaction(
        id="1", account_id="pea", type=TransactionType.BUY, amount=0, date=date(2024, 1, 2), symbol="XYZ", quantity=2
    )
    position = positions_as_of([tx], date(2024, 1, 2))["XYZ"]
    assert position.quantity == 2
    assert position.average_cost == 0


def test_account_filter_and_per_account_book():
    txs = [
        buy("1", "XYZ", 10, 10, date(2024, 1, 2), account="pea"),
        buy("2", "XYZ", 10, 20, date(2024, 1, 2), account="cto"),
        sell("3", "XYZ", 5, 30, date(2024, 1, 5), account="cto"),
    ]
    assert positions_as_of(txs, date(2024, 2, 1), account_id="pea")["XYZ"].quantity == 10

    book = positions_by_account_as_of(txs, date(2024, 2, 1))
    assert book[("cto", "XYZ")].quantity == 5
    assert book[("cto", "XYZ")].account_id == "cto"

    merged = aggregate_by_symbol(book)
    assert merged["XYZ"].quantity == 15
    assert abs(merged["XYZ"].average_cost - (100 + 100) / 15) < 1e-9


def test_non_trade_events_are_ignored():
    deposit = Transaction(id="d", account_id="pea", type=TransactionType.DEPOSIT, amount=1000, date=date(2024, 1, 1))
    dividend = Transaction(
        id="v", account_id="pea", type=TransactionType.DIVIDEND, amount=5, date=date(2024, 2, 1), symbol="XYZ"
    )
    assert positions_as_of([deposit, dividend], date(2024, 12, 31)) == {}
    assert symbols_in([deposit, dividend]) == ["XYZ"]
    assert first_transaction_date([dividend, deposit]) == date(2024, 1, 1)
    assert first_transaction_date([]) is None


def test_traded_symbols_remember_flat_positions():
    txs = [
        buy("1", "abc", 2, 10, date(2024, 1, 1)),
        sell("2", "ABC", 2, 12, date(2024, 2, 1)),
        buy("3", "XYZ", 1, 50, date(2024, 3, 1), account="cto"),
    ]
    assert positions_as_of(txs, date(2024, 12, 31), "pea") == {}
    assert traded_symbols(txs, date(2024, 12, 31), "pea") == {"ABC"}
    assert traded_symbols(txs, date(2024, 12, 31)) == {"ABC", "XYZ"}
    assert traded_symbols(txs, date(2023, 12, 31)) == set()
