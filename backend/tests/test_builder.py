import random
from datetime import date
from decimal import Decimal

from position_engine import DEFAULT_STOCK_SPLITS, SplitTable, build_positions, recompute


def _by_symbol(positions):
    return {position.symbol: position for position in positions}


def test_round_trip_closes_with_realized_gain(make_tx):
    log = [
        make_tx(1, date(2023, 1, 3), "Buy", "AAPL", 10, 150, -1500),
        make_tx(2, date(2023, 2, 1), "Sell", "AAPL", 10, 160, 1600),
    ]

    result = recompute(1, log)

    assert len(result.positions) == 1
    position = result.positions[0]
    assert position.quantity == 0
    assert position.opened is False
    assert position.cost_basis == 0
    assert position.gain_loss == Decimal("100")
    assert position.open_date == date(2023, 1, 3)
    assert position.close_date == date(2023, 2, 1)
    assert position.transaction_ids == [1, 2]


def test_multiple_buys_then_full_close(make_tx):
    log = [
        make_tx(1, date(2023, 1, 3), "Buy", "GOOG", 5, 200, -1000),
        make_tx(2, date(2023, 1, 10), "Buy", "GOOG", 5, 210, 1050),
        make_tx(3, date(2023, 2, 1), "Sell", "GOOG", 10, 220, 2200),
    ]

    result = recompute(1, log)

    (position,) = result.positions
    assert position.opened is False
    assert position.quantity == 0
    assert position.gain_loss == Decimal("150")


def test_stock_split_adds_shares_at_zero_price(make_tx):
    log = [
        make_tx(1, date(2020, 7, 31), "Buy", "TSLA", 200, 300, -60000),
        make_tx(2, date(2020, 8, 31), "Stock Split", "TSLA", 400, 200, 0),
    ]

    (position,) = recompute(1, log).positions

    assert position.opened is True
    assert position.quantity == Decimal("600")
    assert position.cost_basis == Decimal("100")
    assert position.gain_loss == 0


def test_options_forward_split_merges_into_post_split_contract(make_tx):
    log = [
        make_tx(1, date(2021, 6, 1), "Sell to Open", "TSLA 01/20/2023 1000.00 C", 1, "283.93", "28392.21"),
        make_tx(2, date(2022, 8, 25), "Options Frwd Split", "TSLA 01/20/2023 333.33 C", -2),
    ]

    result = recompute(1, log, SplitTable(DEFAULT_STOCK_SPLITS))

    assert result.errors == []
    (position,) = result.positions
    assert position.symbol == "TSLA 01/20/2023 333.33 C"
    assert position.underlying_symbol == "TSLA"
    assert position.quantity == Decimal("-3")
    assert position.short is True
    assert position.opened is True
    assert abs(position.cost_basis - Decimal("94.64")) < Decimal("0.01")


def test_reverse_split_closes_old_ticker_and_opens_new_one(make_tx):
    log = [
        make_tx(1, date(2021, 3, 1), "Buy", "ACB", 2000, 10, -20000, description="AURORA CANNABIS INC"),
        make_tx(
            2, date(2022, 5, 24), "Reverse Split", "ACB", -2000,
            description="AURORA CANNABIS INC XXXREVERSE SPLIT EFF: 05/24/22",
        ),
        make_tx(3, date(2022, 5, 24), "Reverse Split", "ACBNEW", 200, description="AURORA CANNABIS INC NEW"),
    ]

    positions = _by_symbol(recompute(1, log).positions)

    assert set(positions) == {"ACB", "ACBNEW"}
    assert positions["ACB"].opened is False
    assert positions["ACB"].quantity == 0
    assert positions["ACB"].gain_loss == Decimal("-20000")
    assert positions["ACBNEW"].opened is True
    assert positions["ACBNEW"].quantity == Decimal("200")
    assert positions["ACBNEW"].cost_basis == 0


def test_orphan_close_creates_no_position(make_tx):
    log = [make_tx(1, date(2023, 1, 3), "Sell", "AAPL", -10, 160, 1600)]

    result = recompute(1, log)

    assert result.positions == []
    assert [tx.id for tx in result.build.orphans] == [1]


def test_reopen_after_close_starts_new_lot(make_tx):
    log = [
        make_tx(1, date(2023, 1, 3), "Buy", "AAPL", 10, 150, -1500),
        make_tx(2, date(2023, 2, 1), "Sell", "AAPL", -10, 160, 1600),
        make_tx(3, date(2023, 3, 1), "Buy", "AAPL", 5, 140, -700),
        make_tx(4, date(2023, 3, 2), "Buy", "AAPL", 5, 120, -600),
    ]

    result = build_positions(1, log)

    assert len(result.positions) == 2
    closed, reopened = result.positions
    assert closed.opened is False and closed.gain_loss == Decimal("100")
    assert reopened.opened is True
    assert reopened.open_date == date(2023, 3, 1)
    assert reopened.quantity == Decimal("10")
    assert reopened.cost_basis == Decimal("130")
    assert reopened.transaction_ids == [3, 4]
    assert result.open_positions == [reopened]
    assert result.closed_positions == [closed]


def test_short_sale_round_trip(make_tx):
    log = [
        make_tx(1, date(2023, 1, 3), "Sell Short", "GME", -10, 20, 200),
        make_tx(2, date(2023, 1, 20), "Buy to Close", "GME", 10, 15, -150),
    ]

    (position,) = build_positions(1, log).positions

    assert position.short is True
    assert position.opened is False
    assert position.gain_loss == Decimal("50")


def test_same_day_rows_are_ordered_by_id(make_tx):
    day = date(2023, 1, 3)
    sell_first = [
        make_tx(1, day, "Sell", "AAPL", -10, 160, 1600),
        make_tx(2, day, "Buy", "AAPL", 10, 150, -1500),
    ]
    buy_first = [
        make_tx(2, day, "Sell", "AAPL", -10, 160, 1600),
        make_tx(1, day, "Buy", "AAPL", 10, 150, -1500),
    ]

    orphaned = build_positions(1, sell_first)
    closed = build_positions(1, buy_first)

    assert [tx.id for tx in orphaned.orphans] == [1]
    assert orphaned.positions[0].opened is True
    assert closed.orphans == []
    assert closed.positions[0].opened is False


def test_input_order_does_not_change_output(make_tx):
    def build_log():
        return [
            make_tx(1, date(2023, 1, 3), "Buy", "AAPL", 10, 150, -1500),
            make_tx(2, date(2023, 1, 3), "Buy", "MSFT", 4, 250, -1000),
            make_tx(3, date(2023, 1, 9), "Sell", "AAPL", -4, 155, 620),
            make_tx(4, date(2023, 2, 1), "Sell", "MSFT", -4, 260, 1040),
            make_tx(5, date(2023, 2, 1), "Buy", "MSFT", 1, 255, -255),
        ]

    def snapshot(log):
        return [
            (p.symbol, p.open_date, p.quantity, p.cost_basis, p.gain_loss, p.transaction_ids)
            for p in build_positions(1, log).positions
        ]

    expected = snapshot(build_log())
    shuffled = build_log()
    random.Random(7).shuffle(shuffled)

    assert snapshot(shuffled) == expected


def test_position_invariants_hold(make_tx):
    log = [
        make_tx(1, date(2023, 1, 3), "Buy", "AAPL", 10, 150, -1500),
        make_tx(2, date(2023, 1, 4), "Sell", "AAPL", -4, 155, 620),
        make_tx(3, date(2023, 1, 5), "Buy", "MSFT", 2, 250, -500),
        make_tx(4, date(2023, 1, 6), "Sell", "MSFT", -2, 240, 480),
        make_tx(5, date(2023, 1, 7), "Sell to Open", "SPY 06/16/2023 400 P", -1, 7, 700),
    ]

    result = build_positions(1, log)

    for position in result.positions:
        assert position.quantity == sum(tx.quantity for tx in position.transactions)
        assert position.opened == (position.quantity != 0)
        assert position.underlying_symbol == position.symbol.split()[0]
        if position.opened:
            assert position.cost_basis == position.total_cost() / position.quantity
            assert position.gain_loss == 0
            assert position.close_date is None
        else:
            assert position.cost_basis == 0
            assert position.gain_loss == sum(tx.amount for tx in position.transactions)
        assert all(tx.symbol == position.symbol for tx in position.transactions)


def test_rows_with_bad_numbers_are_skipped(make_tx):
    log = [
        make_tx(1, date(2023, 1, 3), "Buy", "AAPL", 10, 150, -1500),
        make_tx(2, date(2023, 1, 4), "Sell", "AAPL", -10, None, 1600),
    ]

    result = build_positions(1, log)

    assert [tx.id for tx in result.skipped] == [2]
    assert result.positions[0].opened is True


def test_other_accounts_are_ignored(make_tx):
    log = [
        make_tx(1, date(2023, 1, 3), "Buy", "AAPL", 10, 150, -1500),
        make_tx(2, date(2023, 1, 4), "Buy", "AAPL", 10, 150, -1500, account_id=2),
    ]

    (position,) = build_positions(1, log).positions

    assert position.transaction_ids == [1]
