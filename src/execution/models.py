"""Account and Position records held by the position book."""

from dataclasses import dataclass
from datetime import datetime

from risk_core.contracts import PositionSnapshot, RiskProfile, Side


@dataclass
class Account:
    id: str
    balance: float
    equity: float
    currency: str = "USD"
    risk_profile: RiskProfile = RiskProfile()


@dataclass
class Position:
    id: str
    account_id: str
    strategy_id: str | None
    symbol: str
    side: Side
    quantity: float
    avg_price: float
    current_price: float | None = None
    unrealized_pnl: float = 0.0
    is_open: bool = True
    closed_at: datetime | None = None

    def snapshot(self) -> PositionSnapshot:
        return PositionSnapshot(
            id=self.id,
            account_id=self.account_id,
            strategy_id=self.strategy_id,
            symbol=self.symbol,
            side=self.side,
            quantity=self.quantity,
            avg_price=self.avg_price,
            current_price=self.current_price,
            unrealized_pnl=self.unrealized_pnl,
        )
