"""
Data contracts for risk-core: Fill, Trade, Signal, AccountSnapshot, RiskEvent.

risk-core consumes fills and account snapshots and produces trades,
performance metrics, risk decisions and risk events.
No I/O; these are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any

# Standard-lot scaling applied to price deltas when realizing P&L.
CONTRACT_MULTIPLIER = 100_000.0
# A position whose net quantity falls below this is considered flat.
CLOSE_EPSILON = 0.001


def as_utc(ts: datetime) -> datetime:
    """Naive timestamps are taken as UTC; aware ones are converted to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    def opposite(self) -> Side:
        return Side.SELL if self is Side.BUY else Side.BUY


class FillStatus(str, Enum):
    PENDING = "PENDING"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"
    PARTIAL = "PARTIAL"


class RiskLevel(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class GateState(str, Enum):
    """Risk gate state. ACTIVE -> EMERGENCY_STOPPED only via emergency_stop()."""

    ACTIVE = "ACTIVE"
    EMERGENCY_STOPPED = "EMERGENCY_STOPPED"


# ---------------------------------------------------------------------------
# Fills and trades
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Fill:
    """One executed order. Immutable once filled."""

    id: str
    account_id: str
    strategy_id: str | None
    symbol: str
    side: Side
    quantity: float
    avg_fill_price: float
    timestamp: datetime
    status: FillStatus = FillStatus.FILLED
    commission: float = 0.0


@dataclass
class OpenPosition:
    """Running net holding per (symbol, strategy). Internal to the reconstructor."""

    symbol: str
    strategy_id: str | None
    account_id: str
    side: Side
    quantity: float
    entry_price: float
    entry_time: datetime
    fills: list[Fill] = field(default_factory=list)


@dataclass(frozen=True)
class Trade:
    """A realized round trip. Created once when a position goes flat."""

    symbol: str
    strategy_id: str | None
    account_id: str
    side: Side
    entry_price: float
    exit_price: float
    entry_time: datetime
    exit_time: datetime
    quantity: float
    pnl: float
    commission: float = 0.0

    @property
    def hold_time(self) -> timedelta:
        return self.exit_time - self.entry_time


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PerformanceMetrics:
    total_return: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    max_drawdown: float = 0.0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    average_trade: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    consecutive_wins: int = 0
    consecutive_losses: int = 0
    total_trades: int = 0
    average_hold_time: float = 0.0  # seconds


@dataclass(frozen=True)
class DailyReturn:
    date: date
    value: float


@dataclass(frozen=True)
class DrawdownPoint:
    date: date
    drawdown: float  # percent of peak


@dataclass(frozen=True)
class StrategyPerformance:
    strategy_id: str
    strategy_name: str
    metrics: PerformanceMetrics
    daily_returns: list[DailyReturn] = field(default_factory=list)
    drawdown_history: list[DrawdownPoint] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Risk inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Signal:
    """Proposed trade submitted for a pre-trade risk check."""

    symbol: str
    side: Side
    quantity: float
    price: float | None = None
    strategy_id: str | None = None

    @property
    def notional(self) -> float:
        price = self.price if self.price is not None else 1.0
        return abs(self.quantity * price)


@dataclass(frozen=True)
class RiskProfile:
    """Optional per-account or per-strategy overrides of the risk limits."""

    daily_loss_limit: float | None = None
    max_drawdown_limit: float | None = None
    max_positions: int | None = None
    max_exposure: float | None = None


@dataclass(frozen=True)
class StrategyContext:
    id: str
    name: str = ""
    risk_profile: RiskProfile = RiskProfile()


@dataclass(frozen=True)
class PositionSnapshot:
    id: str
    account_id: str
    strategy_id: str | None
    symbol: str
    side: Side
    quantity: float
    avg_price: float
    current_price: float | None = None
    unrealized_pnl: float = 0.0

    @property
    def exposure(self) -> float:
        price = self.current_price if self.current_price is not None else self.avg_price
        return abs(self.quantity * price)


@dataclass(frozen=True)
class AccountSnapshot:
    """Balance, equity, open positions and fills read together."""

    id: str
    balance: float
    equity: float
    currency: str = "USD"
    risk_profile: RiskProfile = RiskProfile()
    open_positions: tuple[PositionSnapshot, ...] = ()
    fills: tuple[Fill, ...] = ()

    @property
    def drawdown_pct(self) -> float:
        if self.balance <= 0:
            return 0.0
        return (self.balance - self.equity) / self.balance * 100

    @property
    def total_exposure(self) -> float:
        return sum(p.exposure for p in self.open_positions)


# ---------------------------------------------------------------------------
# Risk outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskCheckResult:
    approved: bool
    reason: str = ""
    rule: str | None = None


@dataclass(frozen=True)
class RiskEvent:
    """Append-only audit record for a rejected signal or an emergency stop."""

    account_id: str | None
    strategy_id: str | None
    level: RiskLevel
    rule: str
    action: str
    timestamp: datetime
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RiskStatus:
    daily_loss_used: float
    daily_loss_limit: float
    max_drawdown: float
    max_drawdown_limit: float
    total_exposure: float
    max_exposure: float
    position_count: int
    max_positions: int


@dataclass(frozen=True)
class EmergencyStopReport:
    triggered_at: datetime
    closed: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
