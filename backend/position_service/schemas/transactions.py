"""Pydantic schemas for transactions, brokerage exports and split reference rows."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from position_engine import ACTIONS, MalformedTransactionError, StockSplitRecord
from position_service.ingest.parsing import parse_money

_ACTIONS_BY_KEY = {action.lower(): action for action in ACTIONS}


class TransactionCreate(BaseModel):
    account_id: int
    date: dt.date
    action: str = Field(..., examples=["Buy to Open"])
    symbol: str = Field(..., min_length=1, examples=["AAPL", "TSLA 01/20/2023 1000.00 C"])
    description: str = ""
    quantity: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    fees: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")

    @field_validator("action")
    @classmethod
    def _canonical_action(cls, value: str) -> str:
        action = _ACTIONS_BY_KEY.get(value.strip().lower())
        if action is None:
            raise ValueError(f"Unsupported transaction action: {value!r}")
        return action

    @field_validator("symbol")
    @classmethod
    def _strip_symbol(cls, value: str) -> str:
        return " ".join(value.split())

    @field_validator("quantity", "price", "fees", "amount", mode="before")
    @classmethod
    def _parse_numeric(cls, value: Any) -> Decimal:
        try:
            return parse_money(value)
        except MalformedTransactionError as exc:
            raise ValueError(str(exc)) from exc


class BrokerageTransaction(BaseModel):
    """One row of a brokerage JSON export, kept as raw strings."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str = Field(default="", alias="Date")
    action: str = Field(default="", alias="Action")
    symbol: str = Field(default="", alias="Symbol")
    description: str = Field(default="", alias="Description")
    quantity: str = Field(default="", alias="Quantity")
    price: str = Field(default="", alias="Price")
    fees: str = Field(default="", alias="Fees & Comm")
    amount: str = Field(default="", alias="Amount")

    @field_validator("*", mode="before")
    @classmethod
    def _none_as_blank(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return value


class BrokerageFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    transactions: list[BrokerageTransaction] = Field(default_factory=list, alias="BrokerageTransactions")


class StockSplitSchema(BaseModel):
    symbol: str = Field(..., min_length=1)
    split_date: dt.date
    ratio: Decimal = Field(..., gt=0)

    def to_record(self) -> StockSplitRecord:
        return StockSplitRecord(symbol=self.symbol.strip().upper(), split_date=self.split_date, ratio=self.ratio)


__all__ = [
    "BrokerageFile",
    "BrokerageTransaction",
    "StockSplitSchema",
    "TransactionCreate",
]
