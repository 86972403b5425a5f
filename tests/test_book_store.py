"""Tests for book file load/save and schema validation."""

import json
from pathlib import Path

import pytest

from data import BookFileError, load_book, save_book
from risk_core.contracts import FillStatus, Side

EXAMPLE_BOOK = Path(__file__).resolve().parent.parent / "data" / "book.example.json"


def _book_data() -> dict:
    return {
        "halted": False,
        "accounts": [{"id": "acc-1", "balance": 100000, "equity": 97000, "risk_profile": {"max_positions": 3}}],
        "strategies": [{"id": "s1", "name": "Breakout"}],
        "positions": [
            {"id": "p1", "account_id": "acc-1", "strategy_id": "s1", "symbol": "EURUSD",
             "side": "BUY", "quantity": 10000, "avg_price": 1.1, "current_price": 1.12},
        ],
        "fills": [
            {"id": "f1", "account_id": "acc-1", "strategy_id": "s1", "symbol": "EURUSD",
             "side": "BUY", "quantity": 1, "avg_fill_price": 1.1, "timestamp": "2024-03-05T09:00:00Z"},
            {"id": "f2", "account_id": "acc-1", "strategy_id": "s1", "symbol": "EURUSD",
             "side": "SELL", "quantity": 1, "avg_fill_price": 1.2, "timestamp": "2024-03-05T10:00:00",
             "status": "CANCELLED"},
        ],
    }


def _write(tmp_path: Path, data: dict) -> Path:
    p = tmp_path / "book.json"
    p.write_text(json.dumps(data))
    return p


def test_load_book(tmp_path: Path) -> None:
    book = load_book(_write(tmp_path, _book_data()))
    snap = book.positions.snapshot("acc-1")
    assert snap.equity == 97000.0
    assert snap.risk_profile.max_positions == 3
    assert snap.risk_profile.max_exposure is None
    assert snap.open_positions[0].exposure == pytest.approx(11200.0)
    f1, f2 = snap.fills
    assert f1.side == Side.BUY
    assert f1.timestamp.tzinfo is not None
    assert f2.status == FillStatus.CANCELLED
    assert f2.timestamp.tzinfo is not None
    assert book.strategies["s1"].name == "Breakout"
    assert book.halted is False


def test_round_trip_preserves_halt_and_closed(tmp_path: Path) -> None:
    path = _write(tmp_path, _book_data())
    book = load_book(path)
    book.positions.close_position("p1")
    book.halted = True
    save_book(book, path)

    again = load_book(path)
    assert again.halted is True
    assert again.positions.open_positions() == []
    assert again.positions.snapshot("acc-1").risk_profile.max_positions == 3
    assert len(again.positions.fills()) == 2


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(BookFileError, match="not found"):
        load_book(tmp_path / "missing.json")


def test_invalid_json(tmp_path: Path) -> None:
    p = tmp_path / "book.json"
    p.write_text("{")
    with pytest.raises(BookFileError, match="not valid JSON"):
        load_book(p)


def test_schema_violation(tmp_path: Path) -> None:
    data = _book_data()
    data["fills"][0]["side"] = "LONG"
    with pytest.raises(BookFileError, match="validation failed"):
        load_book(_write(tmp_path, data))


def test_example_book_loads() -> None:
    book = load_book(EXAMPLE_BOOK)
    assert "FTMO-1" in {a.id for a in book.positions.accounts()}
