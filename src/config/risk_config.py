"""
Risk config loader: JSON file -> frozen dataclass tree, validated against JSON Schema.

Default values: docs/config/risk.default.json
Schema:         docs/config/risk_config.schema.json

Per-account overrides: place a partial JSON file named ``risk.{ACCOUNT}.json``
next to the default config (e.g. ``docs/config/risk.FTMO-1.json``). Only the
keys you want to override need to be present; they are deep-merged on top
of the base config before schema validation.

Usage:
    from config.risk_config import load_risk_config
    cfg = load_risk_config()                        # loads default
    cfg = load_risk_config(account="FTMO-1")        # merges risk.FTMO-1.json if present
    cfg.limits.max_exposure  # -> 75000.0
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jsonschema

if TYPE_CHECKING:
    from risk_core.contracts import RiskProfile

logger = logging.getLogger("fxrisk.config")

# ---------------------------------------------------------------------------
# Project root detection (walk up from this file to find pyproject.toml)
# ---------------------------------------------------------------------------


def _find_project_root() -> Path:
    """Walk up from this file looking for pyproject.toml.

    When installed as a package, pyproject.toml won't exist; fall back to CWD.
    """
    candidate = Path(__file__).resolve().parent
    for _ in range(10):
        if (candidate / "pyproject.toml").exists():
            return candidate
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return Path.cwd()


_PROJECT_ROOT = _find_project_root()

DEFAULT_CONFIG_DIR = _PROJECT_ROOT / "docs" / "config"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "risk.default.json"
DEFAULT_SCHEMA_PATH = DEFAULT_CONFIG_DIR / "risk_config.schema.json"


# ---------------------------------------------------------------------------
# Frozen dataclass tree, mirrors risk.default.json
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskLimits:
    """Resolved pre-trade limits. Every field is concrete."""
    daily_loss_limit: float = 5_000.0
    max_drawdown_limit: float = 15.0     # percent of balance
    max_positions: int = 10
    max_exposure: float = 75_000.0

    def apply(self, *profiles: RiskProfile | None) -> RiskLimits:
        """Return limits with overrides applied.

        Profiles are given in increasing precedence: a later profile wins
        over an earlier one. ``None`` fields leave the limit unchanged.
        """
        resolved = self
        for profile in profiles:
            if profile is None:
                continue
            overrides = {
                name: getattr(profile, name)
                for name in ("daily_loss_limit", "max_drawdown_limit", "max_positions", "max_exposure")
                if getattr(profile, name) is not None
            }
            if overrides:
                resolved = replace(resolved, **overrides)
        return resolved


@dataclass(frozen=True)
class PnlConfig:
    contract_multiplier: float = 100_000.0
    close_epsilon: float = 0.001


@dataclass(frozen=True)
class AnalyticsConfig:
    periods_per_year: int = 252
    lookback_days: int = 30


@dataclass(frozen=True)
class MonitorConfig:
    initial_high_water_mark: float = 100_000.0
    history_days: int = 30
    min_samples_for_sharpe: int = 10
    drawdown_alert_pct: float = 10.0
    consecutive_loss_alert: int = 5
    sharpe_alert_below: float = -0.5
    sharpe_alert_min_samples: int = 20


@dataclass(frozen=True)
class RiskConfig:
    """Top-level risk configuration."""
    version: str
    limits: RiskLimits
    pnl: PnlConfig = PnlConfig()
    analytics: AnalyticsConfig = AnalyticsConfig()
    monitor: MonitorConfig = MonitorConfig()


# ---------------------------------------------------------------------------
# Deep merge for per-account overrides
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base*.

    - Dict values are merged recursively (override keys win).
    - Non-dict values in overrides replace the base value.
    - Keys in base that are absent from overrides are preserved.
    """
    merged = dict(base)
    for key, val in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, dict):
            merged[key] = _deep_merge(merged[key], val)
        else:
            merged[key] = val
    return merged


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class RiskConfigError(Exception):
    """Raised when risk config loading or validation fails."""


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    if not schema_path.exists():
        raise RiskConfigError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise RiskConfigError(f"Risk config validation failed: {exc.message}") from exc


def _build_config(data: dict[str, Any]) -> RiskConfig:
    """Convert a raw dict (already validated) into the frozen dataclass tree."""
    limits_raw = data["limits"]
    pnl_raw = data.get("pnl", {})
    an_raw = data.get("analytics", {})
    mon_raw = data.get("monitor", {})

    return RiskConfig(
        version=data["version"],
        limits=RiskLimits(
            daily_loss_limit=float(limits_raw["daily_loss_limit"]),
            max_drawdown_limit=float(limits_raw["max_drawdown_limit"]),
            max_positions=int(limits_raw["max_positions"]),
            max_exposure=float(limits_raw["max_exposure"]),
        ),
        pnl=PnlConfig(
            contract_multiplier=float(pnl_raw.get("contract_multiplier", 100_000.0)),
            close_epsilon=float(pnl_raw.get("close_epsilon", 0.001)),
        ),
        analytics=AnalyticsConfig(
            periods_per_year=int(an_raw.get("periods_per_year", 252)),
            lookback_days=int(an_raw.get("lookback_days", 30)),
        ),
        monitor=MonitorConfig(
            initial_high_water_mark=float(mon_raw.get("initial_high_water_mark", 100_000.0)),
            history_days=int(mon_raw.get("history_days", 30)),
            min_samples_for_sharpe=int(mon_raw.get("min_samples_for_sharpe", 10)),
            drawdown_alert_pct=float(mon_raw.get("drawdown_alert_pct", 10.0)),
            consecutive_loss_alert=int(mon_raw.get("consecutive_loss_alert", 5)),
            sharpe_alert_below=float(mon_raw.get("sharpe_alert_below", -0.5)),
            sharpe_alert_min_samples=int(mon_raw.get("sharpe_alert_min_samples", 20)),
        ),
    )


def load_risk_config(
    config_path: str | Path | None = None,
    schema_path: str | Path | None = None,
    account: str | None = None,
) -> RiskConfig:
    """Load and validate risk configuration.

    Parameters
    ----------
    config_path:
        Path to a risk JSON config file.  Defaults to ``docs/config/risk.default.json``.
    schema_path:
        Path to the JSON Schema file.  Defaults to ``docs/config/risk_config.schema.json``.
    account:
        Optional account id.  When provided, the loader looks for
        ``risk.{ACCOUNT}.json`` in the same directory as the base config and
        deep-merges it before validation.  A missing override file is not an
        error.

    Raises
    ------
    RiskConfigError
        If the file is missing, unparseable, or fails schema validation.
    """
    cfg_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    sch_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH

    if not cfg_path.exists():
        raise RiskConfigError(f"Risk config file not found: {cfg_path}")

    try:
        with open(cfg_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise RiskConfigError(f"Risk config is not valid JSON: {exc}") from exc

    if account:
        override_path = cfg_path.parent / f"risk.{account}.json"
        if override_path.exists():
            try:
                with open(override_path) as f:
                    overrides = json.load(f)
            except json.JSONDecodeError as exc:
                raise RiskConfigError(
                    f"Per-account config {override_path.name} is not valid JSON: {exc}"
                ) from exc
            data = _deep_merge(data, overrides)
            logger.info("Loaded per-account config: %s", override_path.name)
        else:
            logger.debug("No per-account config found at %s, using defaults", override_path)

    _validate_schema(data, sch_path)

    return _build_config(data)
