"""Derived position rows, regenerated from the transaction log."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Column, Date, ForeignKey, Index, Integer, Numeric, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from position_service.db.base import Base
from position_service.models.transaction import Transaction

position_transactions = Table(
    "position_transactions",
    Base.metadata,
    Column("position_id", ForeignKey("positions.id", ondelete="CASCADE"), primary_key=True),
    Column("transaction_id", ForeignKey("transactions.id", ondelete="CASCADE"), primary_key=True),
)


class Position(Base):
    __tablename__ = "positions"
    __table_args__ = (
        Index("ix_positions_account_symbol_open", "account_id", "symbol", "open_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), index=True)
    symbol: Mapped[str] = mapped_column(String(50))
    underlying_symbol: Mapped[str] = mapped_column(String(50), index=True)
    open_date: Mapped[date] = mapped_column(Date)
    close_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6))
    cost_basis: Mapped[Decimal] = mapped_column(Numeric(18, 6))
    opened: Mapped[bool] = mapped_column(Boolean)
    short: Mapped[bool] = mapped_column(Boolean, default=False)
    gain_loss: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0)

    transactions: Mapped[list[Transaction]] = relationship(
        secondary=position_transactions,
        order_by=(Transaction.date, Transaction.id),
    )


__all__ = ["Position", "position_transactions"]
