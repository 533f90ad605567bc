"""Brokerage transaction log."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from position_service.db.base import Base


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_account_date", "account_id", "date"),
        Index("ix_transactions_account_symbol", "account_id", "symbol"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"))
    date: Mapped[dt.date] = mapped_column(Date)
    action: Mapped[str] = mapped_column(String(50))
    symbol: Mapped[str] = mapped_column(String(50))
    description: Mapped[str] = mapped_column(String(250), default="")
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True, default=0)
    price: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True, default=0)
    fees: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True, default=0)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True, default=0)
    processed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=dt.datetime.utcnow)


__all__ = ["Transaction"]
