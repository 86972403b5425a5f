"""
Position book: single-writer, in-memory account/position/fill state.

Every read used by a risk decision goes through snapshot(), which copies
balance, equity, open positions and fills inside one critical section.
"""

import threading
from datetime import datetime, timezone

from risk_core.contracts import AccountSnapshot, Fill, PositionSnapshot

from execution.models import Account, Position


class UnknownPositionError(KeyError):
    """Raised when a position id is not in the book."""


class PositionBook:
    """
    Accounts, positions and fills for the risk core.
    Implements the PositionStore interface used by RiskGate.emergency_stop().
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._accounts: dict[str, Account] = {}
        self._positions: dict[str, Position] = {}
        self._fills: list[Fill] = []

    # --- writes ---

    def upsert_account(self, account: Account) -> None:
        with self._lock:
            self._accounts[account.id] = account

    def update_equity(self, account_id: str, *, balance: float | None = None, equity: float | None = None) -> None:
        with self._lock:
            account = self._accounts[account_id]
            if balance is not None:
                account.balance = balance
            if equity is not None:
                account.equity = equity

    def add_position(self, position: Position) -> None:
        with self._lock:
            self._positions[position.id] = position

    def mark_price(self, symbol: str, price: float) -> None:
        """Set current_price on every open position in *symbol*."""
        with self._lock:
            for pos in self._positions.values():
                if pos.is_open and pos.symbol == symbol:
                    pos.current_price = price

    def record_fill(self, fill: Fill) -> None:
        with self._lock:
            self._fills.append(fill)

    def close_position(self, position_id: str) -> None:
        """Mark a position closed. Does not place a closing order."""
        with self._lock:
            pos = self._positions.get(position_id)
            if pos is None:
                raise UnknownPositionError(position_id)
            pos.is_open = False
            pos.closed_at = datetime.now(timezone.utc)

    # --- reads ---

    def get_account(self, account_id: str) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def accounts(self) -> list[Account]:
        with self._lock:
            return list(self._accounts.values())

    def positions(self) -> list[Position]:
        with self._lock:
            return list(self._positions.values())

    def fills(self, account_id: str | None = None) -> list[Fill]:
        with self._lock:
            if account_id is None:
                return list(self._fills)
            return [f for f in self._fills if f.account_id == account_id]

    def open_positions(self, account_id: str | None = None) -> list[PositionSnapshot]:
        with self._lock:
            return [
                p.snapshot()
                for p in self._positions.values()
                if p.is_open and (account_id is None or p.account_id == account_id)
            ]

    def snapshot(self, account_id: str) -> AccountSnapshot | None:
        """Consistent view of one account, or None if unknown."""
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                return None
            return AccountSnapshot(
                id=account.id,
                balance=account.balance,
                equity=account.equity,
                currency=account.currency,
                risk_profile=account.risk_profile,
                open_positions=tuple(self.open_positions(account_id)),
                fills=tuple(self.fills(account_id)),
            )
