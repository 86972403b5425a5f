"""
Human-readable terminal output for risk checks, risk status and performance.

Every CLI command uses these formatters. The journal receives the same data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from risk_core.risk_status import utilization

if TYPE_CHECKING:
    from risk_core.contracts import (
        EmergencyStopReport,
        RiskCheckResult,
        RiskStatus,
        Signal,
        StrategyPerformance,
    )
    from risk_core.risk_monitor import MonitorAlert


def _fmt_money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _fmt_duration(seconds: float) -> str:
    if seconds >= 86_400:
        return f"{seconds / 86_400:.1f}d"
    if seconds >= 3_600:
        return f"{seconds / 3_600:.1f}h"
    if seconds >= 60:
        return f"{seconds / 60:.0f}m"
    return f"{seconds:.0f}s"


def format_check_result(signal: Signal, result: RiskCheckResult) -> str:
    price = f" @ {signal.price}" if signal.price is not None else ""
    head = f"{signal.side.value} {signal.quantity:g} {signal.symbol}{price}"
    if result.approved:
        return f"APPROVED  {head}"
    return f"REJECTED  {head}\n  Rule   : {result.rule}\n  Reason : {result.reason}"


def format_risk_status(account_id: str, status: RiskStatus) -> str:
    used = utilization(status)
    lines = [
        f"--- Risk Status: {account_id} ---",
        f"Daily loss   : {_fmt_money(status.daily_loss_used)} / {_fmt_money(status.daily_loss_limit)}  ({used['daily_loss']:.1f}%)",
        f"Drawdown     : {status.max_drawdown:.2f}% / {status.max_drawdown_limit:g}%  ({used['drawdown']:.1f}%)",
        f"Exposure     : {_fmt_money(status.total_exposure)} / {_fmt_money(status.max_exposure)}  ({used['exposure']:.1f}%)",
        f"Positions    : {status.position_count} / {status.max_positions}",
    ]
    return "\n".join(lines)


def format_performance(perf: StrategyPerformance) -> str:
    """Format a strategy performance report: summary metrics then daily series."""
    m = perf.metrics
    title = perf.strategy_name or perf.strategy_id
    lines = [
        f"=== Performance: {title} ({perf.strategy_id}) ===",
        f"Trades            : {m.total_trades}",
        f"Total return      : {_fmt_money(m.total_return)}",
        f"Win rate          : {m.win_rate:.1f}%",
        f"Profit factor     : {m.profit_factor:.2f}",
        f"Average trade     : {_fmt_money(m.average_trade)}",
        f"Largest win/loss  : {_fmt_money(m.largest_win)} / {_fmt_money(m.largest_loss)}",
        f"Max drawdown      : {m.max_drawdown:.2f}%",
        f"Sharpe / Sortino  : {m.sharpe_ratio:.2f} / {m.sortino_ratio:.2f}",
        f"Streaks (W/L)     : {m.consecutive_wins} / {m.consecutive_losses}",
        f"Avg hold time     : {_fmt_duration(m.average_hold_time)}",
    ]
    if perf.daily_returns:
        lines.append("")
        lines.append("--- Daily ---")
        for ret, dd in zip(perf.daily_returns, perf.drawdown_history):
            lines.append(f"  {ret.date.isoformat()}  return {ret.value:+.5f}  drawdown {dd.drawdown:6.2f}%")
    return "\n".join(lines)


def format_emergency_stop(report: EmergencyStopReport) -> str:
    lines = [
        f"EMERGENCY STOP at {report.triggered_at.isoformat()}",
        f"  Positions marked closed : {len(report.closed)}",
    ]
    if report.failed:
        lines.append(f"  Failed to close         : {', '.join(report.failed)}")
    return "\n".join(lines)


def format_monitor_report(account_id: str, report: dict, alerts: list[MonitorAlert]) -> str:
    m = report["metrics"]
    pos = report["position_summary"]
    lines = [
        f"--- Risk Monitor: {account_id} ---",
        f"High-water mark : {_fmt_money(m.equity_high_water_mark)}",
        f"Drawdown        : {m.current_drawdown:.2f}%",
        f"Losing days     : {m.consecutive_losses}",
        f"Sharpe / vol    : {m.sharpe_ratio:.2f} / {m.volatility:.3f}%",
        f"Open positions  : {pos['total_positions']}  exposure {_fmt_money(pos['total_exposure'])}"
        f"  unrealized {_fmt_money(pos['unrealized_pnl'])}",
    ]
    recent = report["daily_performance"]
    if recent:
        lines.append("Last days (%)   : " + "  ".join(f"{r:+.3f}" for r in recent))
    if alerts:
        lines.append("")
        lines.append("Alerts:")
        lines.extend(f"  [{a.level.value}] {a.message}" for a in alerts)
    return "\n".join(lines)
