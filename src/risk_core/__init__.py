"""
Risk and analytics core: fills -> trades -> metrics; signal + snapshot -> risk decision.

Deterministic and synchronous. No I/O; callers assemble snapshots and
persist events.
"""

from risk_core.contracts import (
    AccountSnapshot,
    Fill,
    FillStatus,
    GateState,
    PerformanceMetrics,
    PositionSnapshot,
    RiskCheckResult,
    RiskEvent,
    RiskLevel,
    RiskProfile,
    RiskStatus,
    Side,
    Signal,
    StrategyContext,
    Trade,
)
from risk_core.metrics import calculate
from risk_core.performance import strategy_performance
from risk_core.risk_gate import RiskGate
from risk_core.risk_monitor import MonitorAlert, MonitorMetrics, RiskMonitor
from risk_core.risk_status import build_risk_status
from risk_core.trade_reconstructor import reconstruct

__all__ = [
    "AccountSnapshot",
    "Fill",
    "FillStatus",
    "GateState",
    "MonitorAlert",
    "MonitorMetrics",
    "PerformanceMetrics",
    "PositionSnapshot",
    "RiskCheckResult",
    "RiskEvent",
    "RiskGate",
    "RiskLevel",
    "RiskMonitor",
    "RiskProfile",
    "RiskStatus",
    "Side",
    "Signal",
    "StrategyContext",
    "Trade",
    "build_risk_status",
    "calculate",
    "reconstruct",
    "strategy_performance",
]
