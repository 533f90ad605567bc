"""Stock split reference table: loading, seeding and file-based extension."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from position_engine import SplitTable, StockSplitRecord
from position_service.models import StockSplit
from position_service.schemas import StockSplitSchema

logger = logging.getLogger(__name__)

_SPLIT_FILE_ADAPTER = TypeAdapter(list[StockSplitSchema])


def read_stock_splits_file(path: Path | str) -> list[StockSplitRecord]:
    """Read extra reference rows from a JSON list of ``{symbol, split_date, ratio}``."""

    rows = _SPLIT_FILE_ADAPTER.validate_json(Path(path).read_bytes())
    return [row.to_record() for row in rows]


async def load_stock_splits(session: AsyncSession) -> SplitTable:
    rows = (await session.execute(select(StockSplit).order_by(StockSplit.symbol, StockSplit.split_date))).scalars()
    return SplitTable(
        StockSplitRecord(symbol=row.symbol, split_date=row.split_date, ratio=row.ratio) for row in rows
    )


async def seed_stock_splits(session: AsyncSession, splits: Iterable[StockSplitRecord]) -> int:
    """Insert reference rows that are not stored yet; returns the number added."""

    existing = {
        (symbol, split_date)
        for symbol, split_date in (await session.execute(select(StockSplit.symbol, StockSplit.split_date))).all()
    }
    inserted = 0
    for split in splits:
        key = (split.symbol.upper(), split.split_date)
        if key in existing:
            continue
        session.add(StockSplit(symbol=key[0], split_date=split.split_date, ratio=split.ratio))
        existing.add(key)
        inserted += 1
    await session.commit()
    if inserted:
        logger.info("Seeded %d stock split reference rows", inserted)
    return inserted


__all__ = ["load_stock_splits", "read_stock_splits_file", "seed_stock_splits"]
