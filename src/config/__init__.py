"""
Configuration loaders.

App config:   reads config.yaml, resolves env vars for secrets.
Risk config:  reads risk.default.json (or override), validates against JSON Schema.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    BookConfig,
    JournalConfig,
    load_config,
)
from config.risk_config import (
    MonitorConfig,
    PnlConfig,
    RiskConfig,
    RiskConfigError,
    RiskLimits,
    load_risk_config,
)

__all__ = [
    # App config (YAML)
    "AlertingConfig",
    "AppConfig",
    "BookConfig",
    "JournalConfig",
    "load_config",
    # Risk config (JSON + schema)
    "MonitorConfig",
    "PnlConfig",
    "RiskConfig",
    "RiskConfigError",
    "RiskLimits",
    "load_risk_config",
]
