"""
Execution-side state: accounts, positions and fills the risk core reads from.
Single writer; snapshots are consistent. No order placement.
"""

from execution.models import Account, Position
from execution.position_book import PositionBook, UnknownPositionError

__all__ = ["Account", "Position", "PositionBook", "UnknownPositionError"]
