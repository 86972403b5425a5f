"""
Trade Reconstructor: time-ordered fills -> closed Trade records.

Nets fill quantities per (symbol, strategy) key. A Trade is emitted exactly
once, when a position's net quantity returns to within epsilon of zero.
Positions still open at the end of the input are not realized.

Known behavior kept on purpose:
    - Adding to a position on the same side keeps the original entry price
      (no weighted average).
    - When a reducing fill flips the position, the entry price is kept too.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from risk_core.contracts import (
    CLOSE_EPSILON,
    CONTRACT_MULTIPLIER,
    Fill,
    FillStatus,
    OpenPosition,
    Side,
    Trade,
    as_utc,
)

logger = logging.getLogger("fxrisk.reconstructor")

PositionKey = tuple[str, "str | None"]


def _pnl(position: OpenPosition, exit_price: float, contract_multiplier: float) -> float:
    if position.side is Side.BUY:
        delta = exit_price - position.entry_price
    else:
        delta = position.entry_price - exit_price
    return delta * position.quantity * contract_multiplier


def _close(position: OpenPosition, fill: Fill, contract_multiplier: float) -> Trade:
    fills = position.fills + [fill]
    return Trade(
        symbol=position.symbol,
        strategy_id=position.strategy_id,
        account_id=position.account_id,
        side=position.side,
        entry_price=position.entry_price,
        exit_price=fill.avg_fill_price,
        entry_time=position.entry_time,
        exit_time=fill.timestamp,
        quantity=position.quantity,
        pnl=_pnl(position, fill.avg_fill_price, contract_multiplier),
        commission=sum(f.commission for f in fills),
    )


def _scan(
    fills: Iterable[Fill],
    contract_multiplier: float,
    epsilon: float,
) -> tuple[list[Trade], dict[PositionKey, OpenPosition]]:
    trades: list[Trade] = []
    positions: dict[PositionKey, OpenPosition] = {}

    # Naive timestamps are UTC.
    filled = [
        replace(f, timestamp=as_utc(f.timestamp))
        for f in fills
        if f.status == FillStatus.FILLED
    ]
    # sorted() is stable: fills sharing a timestamp keep their input order.
    for fill in sorted(filled, key=lambda f: f.timestamp):
        key = (fill.symbol, fill.strategy_id)
        position = positions.get(key)

        if position is None:
            positions[key] = OpenPosition(
                symbol=fill.symbol,
                strategy_id=fill.strategy_id,
                account_id=fill.account_id,
                side=fill.side,
                quantity=fill.quantity,
                entry_price=fill.avg_fill_price,
                entry_time=fill.timestamp,
                fills=[fill],
            )
            continue

        if fill.side == position.side:
            position.quantity += fill.quantity
            position.fills.append(fill)
            continue

        remaining = position.quantity - fill.quantity
        if abs(remaining) < epsilon:
            trades.append(_close(position, fill, contract_multiplier))
            del positions[key]
            continue

        if remaining < 0:
            position.side = position.side.opposite()
        position.quantity = abs(remaining)
        position.fills.append(fill)

    return trades, positions


def reconstruct(
    fills: Iterable[Fill],
    *,
    contract_multiplier: float = CONTRACT_MULTIPLIER,
    epsilon: float = CLOSE_EPSILON,
) -> list[Trade]:
    """Rebuild closed trades from fills.

    Parameters
    ----------
    fills:
        Fills in time order. Only FILLED fills are used; ties on timestamp
        keep their input order.
    contract_multiplier:
        Scaling applied to price deltas (standard lot = 100000).
    epsilon:
        Net quantity below which a position is considered closed.

    Returns
    -------
    list[Trade]
        Closed trades in the order they were closed.
    """
    trades, remaining = _scan(fills, contract_multiplier, epsilon)
    if remaining:
        logger.debug("%d position(s) still open after reconstruction", len(remaining))
    return trades


def open_positions(
    fills: Iterable[Fill],
    *,
    epsilon: float = CLOSE_EPSILON,
) -> list[OpenPosition]:
    """Positions left open after scanning *fills* (not realized)."""
    _, remaining = _scan(fills, CONTRACT_MULTIPLIER, epsilon)
    return list(remaining.values())


def realized_pnl(
    fills: Iterable[Fill],
    *,
    contract_multiplier: float = CONTRACT_MULTIPLIER,
    epsilon: float = CLOSE_EPSILON,
) -> float:
    """Sum of realized P&L over the trades reconstructed from *fills*."""
    trades = reconstruct(fills, contract_multiplier=contract_multiplier, epsilon=epsilon)
    return sum(t.pnl for t in trades)
