"""Pytest fixtures: fills, accounts and positions for deterministic tests."""

from datetime import datetime, timezone

import pytest

from risk_core.contracts import (
    AccountSnapshot,
    Fill,
    FillStatus,
    PositionSnapshot,
    Side,
    StrategyContext,
)


def _ts(year: int, month: int, day: int, hour: int = 9, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, 0, tzinfo=timezone.utc)


def make_fill(
    fid: str,
    side: Side,
    qty: float,
    price: float,
    ts: datetime,
    *,
    symbol: str = "EURUSD",
    strategy_id: str | None = "s1",
    account_id: str = "acc-1",
    status: FillStatus = FillStatus.FILLED,
    commission: float = 0.0,
) -> Fill:
    return Fill(
        id=fid,
        account_id=account_id,
        strategy_id=strategy_id,
        symbol=symbol,
        side=side,
        quantity=qty,
        avg_fill_price=price,
        timestamp=ts,
        status=status,
        commission=commission,
    )


def make_position(pid: str, qty: float, price: float, *, symbol: str = "EURUSD", current: float | None = None) -> PositionSnapshot:
    return PositionSnapshot(
        id=pid,
        account_id="acc-1",
        strategy_id="s1",
        symbol=symbol,
        side=Side.BUY,
        quantity=qty,
        avg_price=price,
        current_price=current,
    )


@pytest.fixture
def strategy() -> StrategyContext:
    return StrategyContext(id="s1", name="London Breakout")


@pytest.fixture
def account() -> AccountSnapshot:
    """Healthy account: no drawdown, no positions, no fills."""
    return AccountSnapshot(id="acc-1", balance=100_000.0, equity=100_000.0)


@pytest.fixture
def round_trip_fills() -> list[Fill]:
    """BUY 1 lot EURUSD @ 1.1000, SELL 1 lot @ 1.1015 one hour later."""
    return [
        make_fill("f1", Side.BUY, 1.0, 1.1000, _ts(2024, 1, 2, 9)),
        make_fill("f2", Side.SELL, 1.0, 1.1015, _ts(2024, 1, 2, 10)),
    ]
