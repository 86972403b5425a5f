"""Tests for structured JSON event logger."""

import io
import json
from unittest.mock import patch

import pytest

from cli.structured_log import StructuredEventLogger


@pytest.fixture
def buf() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(buf: io.StringIO) -> StructuredEventLogger:
    return StructuredEventLogger(enabled=True, stream=buf)


class TestEmit:
    """Basic event emission and format."""

    def test_risk_warning(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.send_risk_warning("Max drawdown limit reached: 16.00% >= 15%")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "risk_warning"
        assert record["source"] == "RISK_MANAGER"
        assert record["level"] == "WARNING"
        assert "drawdown" in record["message"]
        assert "ts" in record

    def test_alert(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.send_alert("CRITICAL", "Emergency Stop", "halted")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "alert"
        assert record["level"] == "CRITICAL"
        assert record["title"] == "Emergency Stop"

    def test_trade_checked(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.trade_checked("acc-1", "EURUSD", "BUY", 1000.0, False, "Emergency stop is active")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "trade_checked"
        assert record["approved"] is False
        assert record["decision"] == "REJECTED"
        assert record["reason"] == "Emergency stop is active"

    def test_one_line_per_event(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.emergency_stop(closed=2, failed=1)
        logger.error("boom", detail="trace")
        lines = buf.getvalue().strip().split("\n")
        assert [json.loads(l)["event"] for l in lines] == ["emergency_stop", "error"]

    def test_disabled_writes_nothing(self, buf: io.StringIO) -> None:
        log = StructuredEventLogger(enabled=False, stream=buf)
        record = log.send_risk_warning("x")
        assert buf.getvalue() == ""
        assert record["event"] == "risk_warning"


class TestWebhook:
    def test_alert_events_posted(self, buf: io.StringIO) -> None:
        log = StructuredEventLogger(stream=buf, webhook_url="https://hooks.example.com/risk")
        with patch("cli.structured_log.urllib.request.urlopen") as urlopen:
            log.send_risk_warning("limit")
            log.trade_checked("acc-1", "EURUSD", "BUY", 1.0, True)
        assert urlopen.call_count == 1
        req = urlopen.call_args[0][0]
        assert req.full_url == "https://hooks.example.com/risk"
        assert json.loads(req.data)["event"] == "risk_warning"
        assert json.loads(req.data)["text"] == "[RISK_MANAGER] WARNING risk_warning: limit"

    def test_webhook_failure_is_swallowed(self, buf: io.StringIO) -> None:
        log = StructuredEventLogger(stream=buf, webhook_url="https://hooks.example.com/risk")
        with patch("cli.structured_log.urllib.request.urlopen", side_effect=OSError("down")):
            record = log.send_alert("CRITICAL", "t", "m")
        assert record["event"] == "alert"
