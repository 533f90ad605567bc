"""Pydantic schemas for transactions and brokerage exports."""

from .transactions import (
    BrokerageFile,
    BrokerageTransaction,
    StockSplitSchema,
    TransactionCreate,
)

__all__ = [
    "BrokerageFile",
    "BrokerageTransaction",
    "StockSplitSchema",
    "TransactionCreate",
]
