"""Domain records used by the position engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


class Action(str, enum.Enum):
    BUY = "Buy"
    SELL = "Sell"
    SELL_SHORT = "Sell Short"
    BUY_TO_OPEN = "Buy to Open"
    BUY_TO_CLOSE = "Buy to Close"
    SELL_TO_OPEN = "Sell to Open"
    SELL_TO_CLOSE = "Sell to Close"
    ASSIGNED = "Assigned"
    EXPIRED = "Expired"
    EXCHANGE_OR_EXERCISE = "Exchange or Exercise"
    STOCK_SPLIT = "Stock Split"
    REVERSE_SPLIT = "Reverse Split"
    OPTIONS_FRWD_SPLIT = "Options Frwd Split"


ACTIONS = tuple(action.value for action in Action)

OPENING_ACTIONS = frozenset(
    action.value.lower()
    for action in (
        Action.BUY,
        Action.BUY_TO_OPEN,
        Action.SELL_SHORT,
        Action.SELL_TO_OPEN,
        Action.REVERSE_SPLIT,
    )
)


def matches(action: str, expected: Action) -> bool:
    """Return True when ``action`` names ``expected``, ignoring case."""

    return action.strip().lower() == expected.value.lower()


def is_buy(action: str) -> bool:
    return action.strip().lower().startswith("buy")


def is_sell(action: str) -> bool:
    return action.strip().lower().startswith("sell")


def is_opener(action: str) -> bool:
    return action.strip().lower() in OPENING_ACTIONS


def underlying_of(symbol: str) -> str:
    """Return the first whitespace-delimited token of ``symbol``."""

    parts = symbol.split()
    return parts[0] if parts else symbol


@dataclass
class TransactionRecord:
    """One brokerage event as seen by the engine.

    Numeric fields may be ``None`` when the stored row is incomplete; the
    normalizer reports such rows and the builder ignores them.
    """

    id: int
    account_id: int
    date: date
    action: str
    symbol: str
    description: str = ""
    quantity: Decimal | None = Decimal("0")
    price: Decimal | None = Decimal("0")
    fees: Decimal | None = Decimal("0")
    amount: Decimal | None = Decimal("0")
    processed: bool = False

    @property
    def sort_key(self) -> tuple[date, int]:
        return (self.date, self.id)

    @property
    def underlying_symbol(self) -> str:
        return underlying_of(self.symbol)


@dataclass
class PositionRecord:
    """A single lot cycle of one symbol within an account."""

    account_id: int
    symbol: str
    underlying_symbol: str
    open_date: date
    short: bool
    quantity: Decimal = Decimal("0")
    cost_basis: Decimal = Decimal("0")
    opened: bool = True
    gain_loss: Decimal = Decimal("0")
    close_date: date | None = None
    transactions: list[TransactionRecord] = field(default_factory=list)

    @property
    def transaction_ids(self) -> list[int]:
        return [tx.id for tx in self.transactions]

    def total_cost(self) -> Decimal:
        """Sum of price x quantity over contributing transactions."""

        return sum((tx.price * tx.quantity for tx in self.transactions), start=Decimal("0"))

    def net_amount(self) -> Decimal:
        """Net cash flow over contributing transactions."""

        return sum((tx.amount for tx in self.transactions), start=Decimal("0"))


@dataclass(frozen=True)
class StockSplitRecord:
    """Reference row describing a forward split of an underlying."""

    symbol: str
    split_date: date
    ratio: Decimal


__all__ = [
    "Action",
    "ACTIONS",
    "OPENING_ACTIONS",
    "PositionRecord",
    "StockSplitRecord",
    "TransactionRecord",
    "is_buy",
    "is_opener",
    "is_sell",
    "matches",
    "underlying_of",
]
