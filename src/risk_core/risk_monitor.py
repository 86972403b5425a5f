"""
Risk Monitor: rolling account health from successive daily P&L updates.

Tracks an equity high-water mark, current drawdown, consecutive losing
days, and volatility / Sharpe over a rolling window of daily returns.
Raises alerts through the logger and an optional notifier.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Sequence

from config.risk_config import MonitorConfig
from risk_core.contracts import AccountSnapshot, RiskLevel, Trade
from risk_core.metrics import daily_returns
from risk_core.risk_gate import Notifier

logger = logging.getLogger("fxrisk.monitor")


@dataclass(frozen=True)
class MonitorMetrics:
    equity_high_water_mark: float
    current_drawdown: float
    consecutive_losses: int
    sharpe_ratio: float
    volatility: float


@dataclass(frozen=True)
class MonitorAlert:
    level: RiskLevel
    message: str


class RiskMonitor:
    """Single-owner monitor; call update() once per trading day."""

    def __init__(self, config: MonitorConfig | None = None, *, notifier: Notifier | None = None) -> None:
        self._config = config or MonitorConfig()
        self._notifier = notifier
        self._high_water_mark = self._config.initial_high_water_mark
        self._drawdown = 0.0
        self._consecutive_losses = 0
        self._sharpe = 0.0
        self._volatility = 0.0
        self._returns: deque[float] = deque(maxlen=self._config.history_days)

    @property
    def daily_returns(self) -> list[float]:
        return list(self._returns)

    def metrics(self) -> MonitorMetrics:
        return MonitorMetrics(
            equity_high_water_mark=self._high_water_mark,
            current_drawdown=self._drawdown,
            consecutive_losses=self._consecutive_losses,
            sharpe_ratio=self._sharpe,
            volatility=self._volatility,
        )

    def update(self, account: AccountSnapshot, daily_pnl: float) -> list[MonitorAlert]:
        """Fold one day's realized P&L into the rolling metrics.

        Returns the alerts raised by this update.
        """
        if account.equity > self._high_water_mark:
            self._high_water_mark = account.equity
        if self._high_water_mark > 0:
            self._drawdown = (self._high_water_mark - account.equity) / self._high_water_mark * 100
        else:
            self._drawdown = 0.0

        daily_return = daily_pnl / account.balance * 100 if account.balance > 0 else 0.0
        self._returns.append(daily_return)
        self._consecutive_losses = self._consecutive_losses + 1 if daily_return < 0 else 0

        if len(self._returns) >= self._config.min_samples_for_sharpe:
            n = len(self._returns)
            mean = sum(self._returns) / n
            self._volatility = math.sqrt(sum((r - mean) ** 2 for r in self._returns) / n)
            self._sharpe = mean / self._volatility if self._volatility > 0 else 0.0

        alerts = self._check_alerts()
        for alert in alerts:
            self._raise(alert)
        return alerts

    def replay(self, account: AccountSnapshot, trades: Sequence[Trade]) -> list[MonitorAlert]:
        """Feed realized P&L per UTC exit date, oldest first, through update().

        Equity for each past day is rebuilt backwards from the account's
        current equity by removing the P&L realized on later days.
        """
        by_day = [d.value for d in daily_returns(trades, pnl_scale=1.0)]
        later = sum(by_day)
        alerts: list[MonitorAlert] = []
        for pnl in by_day:
            later -= pnl
            day_account = replace(account, equity=account.equity - later)
            alerts.extend(self.update(day_account, pnl))
        return alerts

    def _check_alerts(self) -> list[MonitorAlert]:
        cfg = self._config
        alerts: list[MonitorAlert] = []
        if self._drawdown > cfg.drawdown_alert_pct:
            alerts.append(MonitorAlert(
                RiskLevel.CRITICAL, f"High drawdown alert: {self._drawdown:.2f}%",
            ))
        if self._consecutive_losses >= cfg.consecutive_loss_alert:
            alerts.append(MonitorAlert(
                RiskLevel.WARNING, f"Consecutive losses alert: {self._consecutive_losses} days",
            ))
        if self._sharpe < cfg.sharpe_alert_below and len(self._returns) >= cfg.sharpe_alert_min_samples:
            alerts.append(MonitorAlert(
                RiskLevel.WARNING, f"Poor performance alert: Sharpe ratio {self._sharpe:.2f}",
            ))
        return alerts

    def _raise(self, alert: MonitorAlert) -> None:
        if alert.level is RiskLevel.CRITICAL:
            logger.critical(alert.message)
        else:
            logger.warning(alert.message)
        if self._notifier is None:
            return
        try:
            self._notifier.send_alert(alert.level.value, "Risk Monitor", alert.message)
        except Exception as exc:
            logger.warning("Risk monitor notification failed: %s", exc)

    def report(self, account: AccountSnapshot) -> dict[str, Any]:
        """Metrics plus a position summary and the last week of daily returns."""
        positions = account.open_positions
        return {
            "metrics": self.metrics(),
            "position_summary": {
                "total_positions": len(positions),
                "total_exposure": account.total_exposure,
                "unrealized_pnl": sum(p.unrealized_pnl for p in positions),
            },
            "daily_performance": list(self._returns)[-7:],
        }
