"""Per-row errors raised by the position engine."""

from __future__ import annotations


class PositionEngineError(Exception):
    """Base class for errors scoped to a single transaction row."""

    def __init__(self, message: str, *, transaction_id: int | None = None) -> None:
        super().__init__(message)
        self.transaction_id = transaction_id


class MalformedTransactionError(PositionEngineError):
    """A numeric or date field could not be interpreted."""


class MalformedOptionSymbolError(PositionEngineError):
    """An option contract symbol has fewer than four tokens or a bad strike."""


class MissingSplitReferenceError(PositionEngineError):
    """No stock split reference row covers the underlying on the given date."""


__all__ = [
    "PositionEngineError",
    "MalformedTransactionError",
    "MalformedOptionSymbolError",
    "MissingSplitReferenceError",
]
