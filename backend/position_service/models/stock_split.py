"""Curated forward split reference table."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from position_service.db.base import Base


class StockSplit(Base):
    __tablename__ = "stock_splits"
    __table_args__ = (UniqueConstraint("symbol", "split_date", name="uq_stock_split_symbol_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    symbol: Mapped[str] = mapped_column(String(20), index=True)
    split_date: Mapped[date] = mapped_column(Date)
    ratio: Mapped[Decimal] = mapped_column(Numeric(12, 6))


__all__ = ["StockSplit"]
