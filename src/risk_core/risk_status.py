"""Risk Status Reporter: one account snapshot -> utilization vs limits."""

from __future__ import annotations

from datetime import date

from config.risk_config import RiskLimits
from risk_core.contracts import CLOSE_EPSILON, CONTRACT_MULTIPLIER, AccountSnapshot, RiskStatus
from risk_core.risk_gate import todays_fills
from risk_core.trade_reconstructor import realized_pnl


def build_risk_status(
    account: AccountSnapshot,
    limits: RiskLimits,
    *,
    today: date,
    contract_multiplier: float = CONTRACT_MULTIPLIER,
    epsilon: float = CLOSE_EPSILON,
) -> RiskStatus:
    """Build a RiskStatus from a single consistent snapshot.

    *limits* should already carry the account's overrides
    (see RiskGate.resolve_limits).
    """
    daily_pnl = realized_pnl(
        todays_fills(account, today),
        contract_multiplier=contract_multiplier,
        epsilon=epsilon,
    )
    return RiskStatus(
        daily_loss_used=max(0.0, -daily_pnl),
        daily_loss_limit=limits.daily_loss_limit,
        max_drawdown=max(0.0, account.drawdown_pct),
        max_drawdown_limit=limits.max_drawdown_limit,
        total_exposure=account.total_exposure,
        max_exposure=limits.max_exposure,
        position_count=len(account.open_positions),
        max_positions=limits.max_positions,
    )


def utilization(status: RiskStatus) -> dict[str, float]:
    """Percent of each limit in use (0 when a limit is 0)."""

    def pct(used: float, limit: float) -> float:
        return used / limit * 100 if limit > 0 else 0.0

    return {
        "daily_loss": pct(status.daily_loss_used, status.daily_loss_limit),
        "drawdown": pct(status.max_drawdown, status.max_drawdown_limit),
        "exposure": pct(status.total_exposure, status.max_exposure),
        "positions": pct(status.position_count, status.max_positions),
    }
