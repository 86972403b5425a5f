"""
Risk Gate: Signal + strategy + account snapshot -> RiskCheckResult.

The final gate before an order is submitted. Runs a fixed, ordered,
short-circuiting chain of checks; the first failing check decides the
result, records exactly one RiskEvent and increments the block counters.

Check order (audit trails depend on it):
    1. Emergency stop
    2. Account / strategy context present (fail closed)
    3. Daily loss limit (today's realized P&L)
    4. Max drawdown (balance vs equity)
    5. Max open positions
    6. Max exposure (strictly greater than the limit rejects)

Owns the emergency-stop state machine: ACTIVE -> EMERGENCY_STOPPED via
emergency_stop(); back to ACTIVE only through an explicit operator reset.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter, deque
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Protocol

from config.risk_config import RiskLimits
from risk_core.contracts import (
    CLOSE_EPSILON,
    CONTRACT_MULTIPLIER,
    AccountSnapshot,
    EmergencyStopReport,
    Fill,
    GateState,
    PositionSnapshot,
    RiskCheckResult,
    RiskEvent,
    RiskLevel,
    Signal,
    StrategyContext,
    as_utc,
)
from risk_core.trade_reconstructor import realized_pnl

logger = logging.getLogger("fxrisk.gate")

EMERGENCY_STOP = "EMERGENCY_STOP"
EMERGENCY_STOP_RESET = "EMERGENCY_STOP_RESET"
NO_ACCOUNT = "NO_ACCOUNT"
NO_STRATEGY = "NO_STRATEGY"
DAILY_LOSS_LIMIT = "DAILY_LOSS_LIMIT"
MAX_DRAWDOWN = "MAX_DRAWDOWN"
POSITION_LIMIT = "POSITION_LIMIT"
EXPOSURE_LIMIT = "EXPOSURE_LIMIT"
SYSTEM_ERROR = "SYSTEM_ERROR"


# ---------------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------------


class Notifier(Protocol):
    """Best-effort alerting channel. Failures never affect a risk decision."""

    def send_risk_warning(self, message: str) -> object: ...

    def send_alert(self, level: str, title: str, message: str) -> object: ...


class PositionStore(Protocol):
    """Source of open positions across all accounts, for the emergency stop."""

    def open_positions(self, account_id: str | None = None) -> list[PositionSnapshot]: ...

    def close_position(self, position_id: str) -> None: ...


EventSink = Callable[[RiskEvent], object]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _utc_date(ts: datetime) -> date:
    return as_utc(ts).date()


@dataclass(frozen=True)
class _Rejection:
    rule: str
    level: RiskLevel
    reason: str
    warning: str | None = None


# ---------------------------------------------------------------------------
# Individual checks (pure; no state)
# ---------------------------------------------------------------------------


def todays_fills(account: AccountSnapshot, today: date) -> list[Fill]:
    return [
        f for f in account.fills
        if f.account_id == account.id and _utc_date(f.timestamp) == today
    ]


def check_daily_loss(
    account: AccountSnapshot,
    limits: RiskLimits,
    today: date,
    contract_multiplier: float = CONTRACT_MULTIPLIER,
    epsilon: float = CLOSE_EPSILON,
) -> _Rejection | None:
    daily_pnl = realized_pnl(
        todays_fills(account, today),
        contract_multiplier=contract_multiplier,
        epsilon=epsilon,
    )
    if daily_pnl < 0 and abs(daily_pnl) >= limits.daily_loss_limit:
        return _Rejection(
            rule=DAILY_LOSS_LIMIT,
            level=RiskLevel.CRITICAL,
            reason=f"Daily loss limit of ${limits.daily_loss_limit:g} reached",
            warning=(
                f"Daily loss limit exceeded: ${abs(daily_pnl):.2f} "
                f">= ${limits.daily_loss_limit:.2f}"
            ),
        )
    return None


def check_max_drawdown(account: AccountSnapshot, limits: RiskLimits) -> _Rejection | None:
    drawdown = account.drawdown_pct
    if drawdown >= limits.max_drawdown_limit:
        return _Rejection(
            rule=MAX_DRAWDOWN,
            level=RiskLevel.CRITICAL,
            reason=f"Max drawdown limit of {limits.max_drawdown_limit:g}% reached",
            warning=f"Max drawdown limit reached: {drawdown:.2f}% >= {limits.max_drawdown_limit:g}%",
        )
    return None


def check_position_count(account: AccountSnapshot, limits: RiskLimits) -> _Rejection | None:
    count = len(account.open_positions)
    if count >= limits.max_positions:
        return _Rejection(
            rule=POSITION_LIMIT,
            level=RiskLevel.WARNING,
            reason=f"Maximum position limit of {limits.max_positions} reached",
            warning=f"Maximum position limit reached: {count} >= {limits.max_positions}",
        )
    return None


def check_exposure(account: AccountSnapshot, signal: Signal, limits: RiskLimits) -> _Rejection | None:
    new_total = account.total_exposure + signal.notional
    if new_total > limits.max_exposure:
        return _Rejection(
            rule=EXPOSURE_LIMIT,
            level=RiskLevel.WARNING,
            reason=f"Total exposure limit of ${limits.max_exposure:g} would be exceeded",
            warning=(
                f"Total exposure limit would be exceeded: ${new_total:.2f} "
                f"> ${limits.max_exposure:.2f}"
            ),
        )
    return None


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


class RiskGate:
    """Pre-trade risk gate with an emergency-stop state machine.

    Parameters
    ----------
    limits:
        Default limits, overridden per check by the strategy and then the
        account risk profile (account wins).
    positions:
        Store whose open positions are force-marked closed on emergency stop.
    notifier:
        Best-effort alert channel.
    event_sink:
        Called with every RiskEvent after it is recorded (e.g. a journal).
    clock:
        Returns the current UTC time; decides which fills count as "today".
    contract_multiplier, epsilon:
        P&L scaling and flat-position tolerance for the daily loss check.
    event_history:
        How many recent RiskEvents ``events`` keeps in memory. The event
        sink is the durable record.
    emergency_stopped:
        Start in EMERGENCY_STOPPED (e.g. a halt persisted by a prior process).
    """

    def __init__(
        self,
        limits: RiskLimits | None = None,
        *,
        positions: PositionStore | None = None,
        notifier: Notifier | None = None,
        event_sink: EventSink | None = None,
        clock: Callable[[], datetime] | None = None,
        contract_multiplier: float = CONTRACT_MULTIPLIER,
        epsilon: float = CLOSE_EPSILON,
        emergency_stopped: bool = False,
        event_history: int = 1000,
    ) -> None:
        self._limits = limits or RiskLimits()
        self._positions = positions
        self._notifier = notifier
        self._event_sink = event_sink
        self._clock = clock or _utc_now
        self._contract_multiplier = contract_multiplier
        self._epsilon = epsilon

        self._lock = threading.Lock()
        self._state = GateState.EMERGENCY_STOPPED if emergency_stopped else GateState.ACTIVE
        self._check_count = 0
        self._block_count = 0
        self._blocks_by_rule: Counter[str] = Counter()
        self._events: deque[RiskEvent] = deque(maxlen=event_history)

    # --- observers ---

    @property
    def limits(self) -> RiskLimits:
        return self._limits

    @property
    def state(self) -> GateState:
        with self._lock:
            return self._state

    @property
    def is_emergency_stopped(self) -> bool:
        return self.state is GateState.EMERGENCY_STOPPED

    @property
    def check_count(self) -> int:
        with self._lock:
            return self._check_count

    @property
    def block_count(self) -> int:
        with self._lock:
            return self._block_count

    @property
    def blocks_by_rule(self) -> dict[str, int]:
        with self._lock:
            return dict(self._blocks_by_rule)

    @property
    def events(self) -> list[RiskEvent]:
        with self._lock:
            return list(self._events)

    def is_healthy(self) -> bool:
        return not self.is_emergency_stopped

    def resolve_limits(
        self,
        strategy: StrategyContext | None,
        account: AccountSnapshot | None,
    ) -> RiskLimits:
        return self._limits.apply(
            strategy.risk_profile if strategy else None,
            account.risk_profile if account else None,
        )

    # --- pre-trade check ---

    def validate_trade(
        self,
        signal: Signal,
        strategy: StrategyContext | None,
        account: AccountSnapshot | None,
    ) -> RiskCheckResult:
        """Run the ordered check chain for *signal*.

        Returns RiskCheckResult(approved=True) when every check passes,
        otherwise the first failing check's reason and rule.
        """
        with self._lock:
            self._check_count += 1
            try:
                rejection = self._first_failure(signal, strategy, account)
            except Exception:
                logger.exception("Risk validation error for %s", signal.symbol)
                rejection = _Rejection(
                    rule=SYSTEM_ERROR,
                    level=RiskLevel.CRITICAL,
                    reason="Risk validation system error",
                )

            if rejection is None:
                logger.debug("Approved %s %s %s", signal.side.value, signal.quantity, signal.symbol)
                return RiskCheckResult(approved=True)

            event = self._record(
                account_id=account.id if account else None,
                strategy_id=strategy.id if strategy else signal.strategy_id,
                level=rejection.level,
                rule=rejection.rule,
                action="Trade blocked",
                details={
                    "symbol": signal.symbol,
                    "side": signal.side.value,
                    "quantity": signal.quantity,
                    "reason": rejection.reason,
                },
            )
            self._block_count += 1
            self._blocks_by_rule[rejection.rule] += 1

        logger.warning("Blocked %s %s: %s", signal.side.value, signal.symbol, rejection.reason)
        self._sink(event)
        if rejection.warning:
            self._notify(lambda n: n.send_risk_warning(rejection.warning))
        return RiskCheckResult(approved=False, reason=rejection.reason, rule=rejection.rule)

    def _first_failure(
        self,
        signal: Signal,
        strategy: StrategyContext | None,
        account: AccountSnapshot | None,
    ) -> _Rejection | None:
        if self._state is GateState.EMERGENCY_STOPPED:
            return _Rejection(EMERGENCY_STOP, RiskLevel.CRITICAL, "Emergency stop is active")
        if account is None:
            return _Rejection(NO_ACCOUNT, RiskLevel.CRITICAL, "No active account found")
        if strategy is None:
            return _Rejection(NO_STRATEGY, RiskLevel.CRITICAL, "No strategy context found")

        limits = self.resolve_limits(strategy, account)
        today = _utc_date(self._clock())
        return (
            check_daily_loss(account, limits, today, self._contract_multiplier, self._epsilon)
            or check_max_drawdown(account, limits)
            or check_position_count(account, limits)
            or check_exposure(account, signal, limits)
        )

    # --- emergency stop state machine ---

    def emergency_stop(self) -> EmergencyStopReport:
        """Halt all trading and mark every open position closed.

        The state transition happens first and always succeeds. Positions
        that fail to close are reported and skipped; the rest are still
        attempted. Does not place closing orders.
        """
        with self._lock:
            self._state = GateState.EMERGENCY_STOPPED
        logger.critical("EMERGENCY STOP TRIGGERED")

        closed: list[str] = []
        failed: list[str] = []
        for position in self._open_positions():
            try:
                self._positions.close_position(position.id)
            except Exception as exc:
                logger.error("Failed to close position %s: %s", position.id, exc)
                failed.append(position.id)
            else:
                closed.append(position.id)

        with self._lock:
            event = self._record(
                account_id=None,
                strategy_id=None,
                level=RiskLevel.CRITICAL,
                rule=EMERGENCY_STOP,
                action="All trading halted",
                details={"closed": closed, "failed": failed},
            )
        self._sink(event)
        self._notify(lambda n: n.send_alert(
            RiskLevel.CRITICAL.value,
            "Emergency Stop",
            "Emergency stop triggered - all trading halted immediately",
        ))
        return EmergencyStopReport(
            triggered_at=event.timestamp,
            closed=tuple(closed),
            failed=tuple(failed),
        )

    def reset_emergency_stop(self, operator: str) -> None:
        """Operator action: return to ACTIVE. Closed positions stay closed."""
        if not operator:
            raise ValueError("operator is required to reset an emergency stop")
        with self._lock:
            if self._state is GateState.ACTIVE:
                return
            self._state = GateState.ACTIVE
            event = self._record(
                account_id=None,
                strategy_id=None,
                level=RiskLevel.INFO,
                rule=EMERGENCY_STOP_RESET,
                action="Trading resumed",
                details={"operator": operator},
            )
        logger.warning("Emergency stop reset by %s", operator)
        self._sink(event)

    # --- internals ---

    def _open_positions(self) -> Iterable[PositionSnapshot]:
        if self._positions is None:
            return []
        try:
            return list(self._positions.open_positions())
        except Exception as exc:
            logger.error("Could not list open positions during emergency stop: %s", exc)
            return []

    def _record(self, **fields) -> RiskEvent:
        # Caller holds self._lock.
        event = RiskEvent(timestamp=self._clock(), **fields)
        self._events.append(event)
        return event

    def _sink(self, event: RiskEvent) -> None:
        if self._event_sink is None:
            return
        try:
            self._event_sink(event)
        except Exception as exc:
            logger.warning("Risk event sink failed: %s", exc)

    def _notify(self, send: Callable[[Notifier], object]) -> None:
        if self._notifier is None:
            return
        try:
            send(self._notifier)
        except Exception as exc:
            logger.warning("Risk notification failed: %s", exc)
