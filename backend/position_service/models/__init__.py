"""Database model exports."""

from .account import Account, User
from .position import Position, position_transactions
from .stock_split import StockSplit
from .transaction import Transaction

__all__ = [
    "Account",
    "Position",
    "StockSplit",
    "Transaction",
    "User",
    "position_transactions",
]
