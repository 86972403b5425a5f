"""
Metrics Calculator: Trade list -> PerformanceMetrics.

Pure and deterministic. Trades are taken in input order (assumed sorted
by time). No ratio ever divides by zero; an undefined ratio is 0.0.

Sharpe and Sortino treat each trade as one period and annualize with
sqrt(periods_per_year). This is a per-trade approximation, not a true
daily-returns Sharpe.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date
from typing import Sequence

from risk_core.contracts import (
    CONTRACT_MULTIPLIER,
    DailyReturn,
    DrawdownPoint,
    PerformanceMetrics,
    Trade,
    as_utc,
)

PERIODS_PER_YEAR = 252


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _population_std(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    mu = _mean(values)
    return math.sqrt(sum((v - mu) ** 2 for v in values) / len(values))


def max_drawdown(pnls: Sequence[float]) -> float:
    """Largest peak-to-trough drop of the running P&L total (account currency).

    The running total starts at 0, so an initial loss counts as drawdown.
    """
    running = 0.0
    peak = 0.0
    worst = 0.0
    for pnl in pnls:
        running += pnl
        if running > peak:
            peak = running
        drawdown = peak - running
        if drawdown > worst:
            worst = drawdown
    return worst


def sharpe_ratio(returns: Sequence[float], periods_per_year: int = PERIODS_PER_YEAR) -> float:
    std = _population_std(returns)
    if std <= 0:
        return 0.0
    return _mean(returns) / std * math.sqrt(periods_per_year)


def sortino_ratio(returns: Sequence[float], periods_per_year: int = PERIODS_PER_YEAR) -> float:
    """Mean return over downside deviation (target 0), annualized."""
    downside = [r for r in returns if r < 0]
    if not downside:
        return 0.0
    downside_dev = math.sqrt(sum(r * r for r in downside) / len(downside))
    if downside_dev <= 0:
        return 0.0
    return _mean(returns) / downside_dev * math.sqrt(periods_per_year)


def longest_streak(pnls: Sequence[float], *, winning: bool) -> int:
    best = 0
    current = 0
    for pnl in pnls:
        hit = pnl > 0 if winning else pnl < 0
        current = current + 1 if hit else 0
        best = max(best, current)
    return best


def calculate(
    trades: Sequence[Trade],
    *,
    pnl_scale: float = CONTRACT_MULTIPLIER,
    periods_per_year: int = PERIODS_PER_YEAR,
) -> PerformanceMetrics:
    """Compute aggregate and risk-adjusted statistics for *trades*.

    Empty input returns all-zero metrics.
    """
    if not trades:
        return PerformanceMetrics()

    pnls = [t.pnl for t in trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]

    total_return = sum(pnls)
    avg_win = _mean(wins)
    avg_loss = abs(_mean(losses))
    profit_factor = avg_win / avg_loss if avg_loss > 0 else 0.0

    returns = [p / pnl_scale for p in pnls]
    hold_seconds = [t.hold_time.total_seconds() for t in trades]

    return PerformanceMetrics(
        total_return=total_return,
        sharpe_ratio=sharpe_ratio(returns, periods_per_year),
        sortino_ratio=sortino_ratio(returns, periods_per_year),
        max_drawdown=max_drawdown(pnls) / pnl_scale * 100,
        win_rate=len(wins) / len(trades) * 100,
        profit_factor=profit_factor,
        average_trade=total_return / len(trades),
        largest_win=max(pnls),
        largest_loss=min(pnls),
        consecutive_wins=longest_streak(pnls, winning=True),
        consecutive_losses=longest_streak(pnls, winning=False),
        total_trades=len(trades),
        average_hold_time=_mean(hold_seconds),
    )


def _exit_date(trade: Trade) -> date:
    return as_utc(trade.exit_time).date()


def daily_returns(
    trades: Sequence[Trade],
    *,
    pnl_scale: float = CONTRACT_MULTIPLIER,
) -> list[DailyReturn]:
    """Sum P&L per UTC calendar date of exit, scaled to return units, sorted by date."""
    by_day: dict[date, float] = defaultdict(float)
    for trade in trades:
        by_day[_exit_date(trade)] += trade.pnl
    return [DailyReturn(date=day, value=by_day[day] / pnl_scale) for day in sorted(by_day)]


def drawdown_history(daily: Sequence[DailyReturn]) -> list[DrawdownPoint]:
    """Drawdown of the cumulative daily series as percent of its running peak.

    While the peak is not positive the drawdown is reported as 0.
    """
    running = 0.0
    peak = 0.0
    history: list[DrawdownPoint] = []
    for day in daily:
        running += day.value
        if running > peak:
            peak = running
        drawdown = (peak - running) / peak * 100 if peak > 0 else 0.0
        history.append(DrawdownPoint(date=day.date, drawdown=drawdown))
    return history
