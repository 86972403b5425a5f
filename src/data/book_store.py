"""
Book file: accounts, strategies, positions, fills and the halted flag as one JSON document.

Validated against docs/config/book.schema.json on load. save_book writes the
current state back (e.g. after an emergency stop marks positions closed).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import jsonschema

from config.risk_config import DEFAULT_CONFIG_DIR
from execution.models import Account, Position
from execution.position_book import PositionBook
from risk_core.contracts import Fill, FillStatus, RiskProfile, Side, StrategyContext, as_utc

logger = logging.getLogger("fxrisk.book")

DEFAULT_BOOK_SCHEMA_PATH = DEFAULT_CONFIG_DIR / "book.schema.json"

_PROFILE_FIELDS = ("daily_loss_limit", "max_drawdown_limit", "max_positions", "max_exposure")


class BookFileError(Exception):
    """Raised when a book file is missing, unparseable, or invalid."""


@dataclass
class Book:
    positions: PositionBook
    strategies: dict[str, StrategyContext] = field(default_factory=dict)
    halted: bool = False


def _ts(value: str) -> datetime:
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def _profile(raw: dict[str, Any] | None) -> RiskProfile:
    raw = raw or {}
    return RiskProfile(**{k: raw.get(k) for k in _PROFILE_FIELDS})


def _profile_dict(profile: RiskProfile) -> dict[str, Any]:
    return {k: getattr(profile, k) for k in _PROFILE_FIELDS if getattr(profile, k) is not None}


def _validate(data: Any, schema_path: Path) -> None:
    if not schema_path.exists():
        raise BookFileError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise BookFileError(f"Book file validation failed: {exc.message}") from exc


def load_book(path: str | Path, schema_path: str | Path | None = None) -> Book:
    """Load and validate a book file into a PositionBook."""
    book_path = Path(path)
    if not book_path.exists():
        raise BookFileError(f"Book file not found: {book_path}")
    try:
        with open(book_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise BookFileError(f"Book file is not valid JSON: {exc}") from exc

    _validate(data, Path(schema_path) if schema_path else DEFAULT_BOOK_SCHEMA_PATH)

    positions = PositionBook()
    for a in data.get("accounts", []):
        positions.upsert_account(Account(
            id=a["id"],
            balance=float(a["balance"]),
            equity=float(a["equity"]),
            currency=a.get("currency", "USD"),
            risk_profile=_profile(a.get("risk_profile")),
        ))
    for p in data.get("positions", []):
        positions.add_position(Position(
            id=p["id"],
            account_id=p["account_id"],
            strategy_id=p.get("strategy_id"),
            symbol=p["symbol"],
            side=Side(p["side"]),
            quantity=float(p["quantity"]),
            avg_price=float(p["avg_price"]),
            current_price=float(p["current_price"]) if p.get("current_price") is not None else None,
            unrealized_pnl=float(p.get("unrealized_pnl", 0.0)),
            is_open=bool(p.get("is_open", True)),
        ))
    for f in data.get("fills", []):
        positions.record_fill(Fill(
            id=f["id"],
            account_id=f["account_id"],
            strategy_id=f.get("strategy_id"),
            symbol=f["symbol"],
            side=Side(f["side"]),
            quantity=float(f["quantity"]),
            avg_fill_price=float(f["avg_fill_price"]),
            timestamp=_ts(f["timestamp"]),
            status=FillStatus(f.get("status", "FILLED")),
            commission=float(f.get("commission", 0.0)),
        ))

    strategies = {
        s["id"]: StrategyContext(id=s["id"], name=s.get("name", s["id"]), risk_profile=_profile(s.get("risk_profile")))
        for s in data.get("strategies", [])
    }
    halted = bool(data.get("halted", False))
    logger.info(
        "Loaded book %s: %d account(s), %d position(s), %d fill(s)%s",
        book_path.name,
        len(positions.accounts()),
        len(positions.positions()),
        len(positions.fills()),
        " [HALTED]" if halted else "",
    )
    return Book(positions=positions, strategies=strategies, halted=halted)


def save_book(book: Book, path: str | Path) -> None:
    """Write *book* back as JSON (positions keep their is_open flag)."""
    pb = book.positions
    data = {
        "halted": book.halted,
        "accounts": [
            {
                "id": a.id,
                "balance": a.balance,
                "equity": a.equity,
                "currency": a.currency,
                "risk_profile": _profile_dict(a.risk_profile),
            }
            for a in pb.accounts()
        ],
        "strategies": [
            {"id": s.id, "name": s.name, "risk_profile": _profile_dict(s.risk_profile)}
            for s in book.strategies.values()
        ],
        "positions": [
            {
                "id": p.id,
                "account_id": p.account_id,
                "strategy_id": p.strategy_id,
                "symbol": p.symbol,
                "side": p.side.value,
                "quantity": p.quantity,
                "avg_price": p.avg_price,
                "current_price": p.current_price,
                "unrealized_pnl": p.unrealized_pnl,
                "is_open": p.is_open,
            }
            for p in pb.positions()
        ],
        "fills": [
            {
                "id": f.id,
                "account_id": f.account_id,
                "strategy_id": f.strategy_id,
                "symbol": f.symbol,
                "side": f.side.value,
                "quantity": f.quantity,
                "avg_fill_price": f.avg_fill_price,
                "timestamp": f.timestamp.isoformat(),
                "status": f.status.value,
                "commission": f.commission,
            }
            for f in pb.fills()
        ],
    }
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(data, indent=2) + "\n")
