"""
Strategy performance report: fills -> trades -> metrics, daily returns, drawdown history.

Only FILLED fills of the strategy inside the lookback window are used.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from risk_core.contracts import (
    CLOSE_EPSILON,
    CONTRACT_MULTIPLIER,
    Fill,
    FillStatus,
    StrategyContext,
    StrategyPerformance,
    as_utc,
)
from risk_core.metrics import PERIODS_PER_YEAR, calculate, daily_returns, drawdown_history
from risk_core.trade_reconstructor import reconstruct


def strategy_performance(
    strategy: StrategyContext,
    fills: Iterable[Fill],
    *,
    days: int = 30,
    now: datetime | None = None,
    contract_multiplier: float = CONTRACT_MULTIPLIER,
    epsilon: float = CLOSE_EPSILON,
    periods_per_year: int = PERIODS_PER_YEAR,
) -> StrategyPerformance:
    """Performance of *strategy* over the last *days* days ending at *now*."""
    cutoff = as_utc(now or datetime.now(timezone.utc)) - timedelta(days=days)
    window = [
        f for f in fills
        if f.strategy_id == strategy.id
        and f.status == FillStatus.FILLED
        and as_utc(f.timestamp) >= cutoff
    ]

    trades = reconstruct(window, contract_multiplier=contract_multiplier, epsilon=epsilon)
    daily = daily_returns(trades, pnl_scale=contract_multiplier)
    return StrategyPerformance(
        strategy_id=strategy.id,
        strategy_name=strategy.name,
        metrics=calculate(trades, pnl_scale=contract_multiplier, periods_per_year=periods_per_year),
        daily_returns=daily,
        drawdown_history=drawdown_history(daily),
        trades=trades,
    )
