"""
Structured JSON risk events, one object per line, for log aggregators.

Also the alert channel used by RiskGate and RiskMonitor (Notifier interface).
Alert-level events (risk_warning, alert, error) are additionally POSTed to an
optional webhook with a one-line ``text`` summary so chat webhooks can render
them. Delivery is best-effort: a failed POST is logged and dropped.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any, TextIO

logger = logging.getLogger("fxrisk.events")

ALERT_EVENTS = frozenset({"risk_warning", "alert", "error"})


def _summary(record: dict[str, Any]) -> str:
    level = record.get("level", "ERROR")
    title = record.get("title") or record["event"]
    return f"[{record['source']}] {level} {title}: {record.get('message', '')}".rstrip(": ")


class StructuredEventLogger:
    """Risk event stream on stderr (or *stream*) plus optional webhook alerts."""

    def __init__(
        self,
        source: str = "RISK_MANAGER",
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: TextIO | None = None,
        webhook_timeout: float = 5.0,
    ) -> None:
        self._source = source
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._webhook_timeout = webhook_timeout
        self._stream = stream or sys.stderr

    def _emit(self, event_type: str, **fields: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "source": self._source,
            "event": event_type,
            **fields,
        }
        if self._enabled:
            print(json.dumps(record, default=str), file=self._stream, flush=True)
        if event_type in ALERT_EVENTS and self._webhook_url:
            self._deliver(record)
        return record

    def _deliver(self, record: dict[str, Any]) -> None:
        body = json.dumps({"text": _summary(record), **record}, default=str).encode("utf-8")
        req = urllib.request.Request(
            self._webhook_url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            urllib.request.urlopen(req, timeout=self._webhook_timeout)
        except Exception as exc:
            logger.warning("Alert webhook delivery failed (%s): %s", record["event"], exc)

    # --- Notifier interface ---

    def send_risk_warning(self, message: str) -> dict[str, Any]:
        return self._emit("risk_warning", level="WARNING", message=message)

    def send_alert(self, level: str, title: str, message: str) -> dict[str, Any]:
        return self._emit("alert", level=level, title=title, message=message)

    # --- decisions ---

    def trade_checked(
        self,
        account_id: str | None,
        symbol: str,
        side: str,
        quantity: float,
        approved: bool,
        reason: str = "",
    ) -> dict[str, Any]:
        return self._emit(
            "trade_checked",
            account_id=account_id,
            symbol=symbol,
            side=side,
            quantity=quantity,
            decision="APPROVED" if approved else "REJECTED",
            approved=approved,
            reason=reason,
        )

    def emergency_stop(self, closed: int, failed: int) -> dict[str, Any]:
        return self._emit("emergency_stop", level="CRITICAL", closed=closed, failed=failed)

    def error(self, message: str, detail: str = "") -> dict[str, Any]:
        return self._emit("error", level="ERROR", message=message, detail=detail)
