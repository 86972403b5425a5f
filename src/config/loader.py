"""
App config: config.yaml -> AppConfig (where the book, journal and alerts live).

Risk limits are not here; they come from the JSON risk config
(see config.risk_config). Secrets stay out of the file: the alert webhook
URL may be given as FXRISK_ALERT_WEBHOOK_URL, which wins over the file.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

WEBHOOK_ENV_VAR = "FXRISK_ALERT_WEBHOOK_URL"


@dataclass(frozen=True)
class BookConfig:
    path: str = "data/book.json"


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    book: BookConfig = BookConfig()
    journal: JournalConfig = JournalConfig()
    alerting: AlertingConfig = AlertingConfig()
    risk_config_path: str | None = None


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(value).__name__}")
    return value


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Read config.yaml. Missing sections and keys fall back to defaults.

    Raises FileNotFoundError for a missing file and ValueError when the
    document or one of its sections is not a mapping.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    book = _section(raw, "book")
    journal = _section(raw, "journal")
    alerting = _section(raw, "alerting")

    webhook_url = os.environ.get(WEBHOOK_ENV_VAR) or alerting.get("webhook_url") or ""
    risk_path = raw.get("risk_config_path")

    return AppConfig(
        book=BookConfig(path=str(book.get("path", BookConfig.path))),
        journal=JournalConfig(
            path=str(journal.get("path", JournalConfig.path)),
            echo_stdout=bool(journal.get("echo_stdout", False)),
        ),
        alerting=AlertingConfig(
            structured_logs=bool(alerting.get("structured_logs", True)),
            webhook_url=str(webhook_url),
        ),
        risk_config_path=str(risk_path) if risk_path else None,
    )
