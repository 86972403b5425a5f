"""Tests for trade reconstruction from fills."""

from datetime import datetime, timedelta, timezone

import pytest

from risk_core.contracts import FillStatus, Side
from risk_core.trade_reconstructor import open_positions, realized_pnl, reconstruct
from conftest import _ts, make_fill


class TestRoundTrip:
    def test_long_round_trip(self, round_trip_fills) -> None:
        trades = reconstruct(round_trip_fills)
        assert len(trades) == 1
        t = trades[0]
        assert t.side == Side.BUY
        assert t.entry_price == 1.1000
        assert t.exit_price == 1.1015
        assert t.quantity == 1.0
        assert t.pnl == pytest.approx(150.0)
        assert t.hold_time.total_seconds() == 3600

    def test_short_round_trip(self) -> None:
        fills = [
            make_fill("f1", Side.SELL, 2.0, 1.2500, _ts(2024, 1, 2, 9)),
            make_fill("f2", Side.BUY, 2.0, 1.2480, _ts(2024, 1, 2, 12)),
        ]
        trades = reconstruct(fills)
        assert len(trades) == 1
        assert trades[0].side == Side.SELL
        assert trades[0].pnl == pytest.approx(400.0)

    def test_losing_trade_negative_pnl(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9)),
            make_fill("f2", Side.SELL, 1.0, 1.0990, _ts(2024, 1, 2, 10)),
        ]
        assert reconstruct(fills)[0].pnl == pytest.approx(-100.0)

    def test_custom_contract_multiplier(self, round_trip_fills) -> None:
        trades = reconstruct(round_trip_fills, contract_multiplier=1.0)
        assert trades[0].pnl == pytest.approx(0.0015)

    def test_commission_summed_over_fills(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9), commission=3.5),
            make_fill("f2", Side.SELL, 1.0, 1.1015, _ts(2024, 1, 2, 10), commission=3.5),
        ]
        assert reconstruct(fills)[0].commission == pytest.approx(7.0)


class TestNetting:
    def test_scale_in_keeps_original_entry_price(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9)),
            make_fill("f2", Side.BUY, 1.0, 1.1010, _ts(2024, 1, 2, 10)),
            make_fill("f3", Side.SELL, 2.0, 1.1020, _ts(2024, 1, 2, 11)),
        ]
        trades = reconstruct(fills)
        assert len(trades) == 1
        assert trades[0].entry_price == 1.1000
        assert trades[0].quantity == 2.0
        assert trades[0].pnl == pytest.approx(400.0)

    def test_partial_reduce_then_close(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 2.0, 1.1000, _ts(2024, 1, 2, 9)),
            make_fill("f2", Side.SELL, 1.0, 1.1010, _ts(2024, 1, 2, 10)),
            make_fill("f3", Side.SELL, 1.0, 1.1020, _ts(2024, 1, 2, 11)),
        ]
        trades = reconstruct(fills)
        assert len(trades) == 1
        assert trades[0].quantity == 1.0
        assert trades[0].exit_time == _ts(2024, 1, 2, 11)

    def test_flip_keeps_entry_price_and_switches_side(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9)),
            make_fill("f2", Side.SELL, 3.0, 1.1010, _ts(2024, 1, 2, 10)),
        ]
        assert reconstruct(fills) == []
        [pos] = open_positions(fills)
        assert pos.side == Side.SELL
        assert pos.quantity == pytest.approx(2.0)
        assert pos.entry_price == 1.1000

    def test_close_within_epsilon(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9)),
            make_fill("f2", Side.SELL, 0.9995, 1.1010, _ts(2024, 1, 2, 10)),
        ]
        assert len(reconstruct(fills)) == 1

    def test_keys_by_symbol_and_strategy(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9), strategy_id="a"),
            make_fill("f2", Side.SELL, 1.0, 1.1010, _ts(2024, 1, 2, 10), strategy_id="b"),
        ]
        assert reconstruct(fills) == []
        assert len(open_positions(fills)) == 2


class TestInputHandling:
    def test_empty(self) -> None:
        assert reconstruct([]) == []
        assert realized_pnl([]) == 0.0

    def test_open_at_end_not_realized(self) -> None:
        fills = [make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9))]
        assert reconstruct(fills) == []
        assert len(open_positions(fills)) == 1

    def test_non_filled_fills_skipped(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9)),
            make_fill("f2", Side.SELL, 1.0, 1.2000, _ts(2024, 1, 2, 10), status=FillStatus.CANCELLED),
            make_fill("f3", Side.SELL, 1.0, 1.1015, _ts(2024, 1, 2, 11)),
        ]
        trades = reconstruct(fills)
        assert len(trades) == 1
        assert trades[0].exit_price == 1.1015

    def test_unsorted_input_sorted_by_timestamp(self, round_trip_fills) -> None:
        trades = reconstruct(list(reversed(round_trip_fills)))
        assert len(trades) == 1
        assert trades[0].side == Side.BUY
        assert trades[0].pnl == pytest.approx(150.0)

    def test_realized_pnl_sums_trades(self, round_trip_fills) -> None:
        more = [
            make_fill("f3", Side.SELL, 1.0, 1.1020, _ts(2024, 1, 3, 9)),
            make_fill("f4", Side.BUY, 1.0, 1.1030, _ts(2024, 1, 3, 10)),
        ]
        assert realized_pnl(round_trip_fills + more) == pytest.approx(50.0)


def test_one_lot_eurusd_fifteen_pips() -> None:
    fills = [
        make_fill("f1", Side.BUY, 1.0, 1.0850, _ts(2024, 1, 2, 9)),
        make_fill("f2", Side.SELL, 1.0, 1.0865, _ts(2024, 1, 2, 10)),
    ]
    [trade] = reconstruct(fills)
    assert trade.side == Side.BUY
    assert round(trade.pnl, 2) == 150.00


class TestTimestamps:
    def test_mixed_naive_and_aware_fills(self) -> None:
        fills = [
            make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9).replace(tzinfo=None)),
            make_fill("f2", Side.SELL, 1.0, 1.1015, _ts(2024, 1, 2, 10)),
        ]
        [trade] = reconstruct(fills)
        assert trade.entry_time == _ts(2024, 1, 2, 9)
        assert trade.entry_time.tzinfo is not None
        assert trade.hold_time.total_seconds() == 3600

    def test_naive_fill_ordered_as_utc(self) -> None:
        est = timezone(timedelta(hours=-5))
        fills = [
            # 09:00 EST is 14:00 UTC, after the naive 10:00 (UTC) fill
            make_fill("f2", Side.SELL, 1.0, 1.1015, datetime(2024, 1, 2, 9, 0, tzinfo=est)),
            make_fill("f1", Side.BUY, 1.0, 1.1000, datetime(2024, 1, 2, 10, 0)),
        ]
        [trade] = reconstruct(fills)
        assert trade.side == Side.BUY
        assert trade.exit_time == _ts(2024, 1, 2, 14)
