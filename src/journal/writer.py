"""
Audit journal: append-only JSON lines. One line per risk event, check, trade or emergency stop.
"""

import json
from dataclasses import fields, is_dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from risk_core.contracts import EmergencyStopReport, RiskCheckResult, RiskEvent, Signal, Trade


def _serialize(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _serialize(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    return obj


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload.

    Instances are callable with a RiskEvent so they can be passed to
    RiskGate as its event sink.
    """

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def __call__(self, event: RiskEvent) -> None:
        self.risk_event(event)

    def risk_event(self, event: RiskEvent) -> None:
        self._write("risk_event", _serialize(event))

    def check(self, signal: Signal, result: RiskCheckResult, account_id: str | None, **extra: Any) -> None:
        self._write(
            "check",
            {"account_id": account_id, "signal": signal, "approved": result.approved, "reason": result.reason, "rule": result.rule, **extra},
        )

    def trade(self, trade: Trade, **extra: Any) -> None:
        self._write("trade", {**_serialize(trade), "hold_time_s": trade.hold_time.total_seconds(), **extra})

    def emergency_stop(self, report: EmergencyStopReport, **extra: Any) -> None:
        self._write("emergency_stop", {**_serialize(report), **extra})


def read_events(path: str | Path, event_type: str | None = None) -> list[dict[str, Any]]:
    """Parse every journal line (oldest first), optionally filtered by event type."""
    p = Path(path)
    if not p.exists():
        return []
    out = []
    with open(p) as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if event_type is None or obj.get("event") == event_type:
                out.append(obj)
    return out
