"""Tests for config loader: YAML parsing, env var resolution, error cases."""

from pathlib import Path

import pytest

from config import load_config


def test_load_config_basic(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        """
book:
  path: test_book.json
journal:
  path: test_journal.jsonl
  echo_stdout: true
alerting:
  structured_logs: false
  webhook_url: "https://hooks.example.com/x"
risk_config_path: risk.json
"""
    )
    cfg = load_config(path)
    assert cfg.book.path == "test_book.json"
    assert cfg.journal.path == "test_journal.jsonl"
    assert cfg.journal.echo_stdout is True
    assert cfg.alerting.structured_logs is False
    assert cfg.alerting.webhook_url == "https://hooks.example.com/x"
    assert cfg.risk_config_path == "risk.json"


def test_load_config_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("book: {}\n")
    cfg = load_config(path)
    assert cfg.book.path == "data/book.json"
    assert cfg.journal.path == "data/journal.jsonl"
    assert cfg.alerting.structured_logs is True
    assert cfg.risk_config_path is None


def test_load_config_env_webhook(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("alerting:\n  webhook_url: from-file\n")
    monkeypatch.setenv("FXRISK_ALERT_WEBHOOK_URL", "https://from-env")
    assert load_config(path).alerting.webhook_url == "https://from-env"


def test_load_config_missing_file() -> None:
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/config.yaml")


def test_load_config_not_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(path)


def test_example_config_loads(monkeypatch: pytest.MonkeyPatch) -> None:
    example = Path(__file__).resolve().parent.parent / "config.example.yaml"
    monkeypatch.delenv("FXRISK_ALERT_WEBHOOK_URL", raising=False)
    cfg = load_config(example)
    assert cfg.book.path == "data/book.json"


def test_load_config_section_not_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("journal: data/journal.jsonl\n")
    with pytest.raises(ValueError, match="journal"):
        load_config(path)
