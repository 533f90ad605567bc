"""Database schema initialization helpers."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from position_engine import DEFAULT_STOCK_SPLITS
from position_service.config import PositionSettings, get_settings
from position_service.db.session import Database
from position_service.services.stock_splits import read_stock_splits_file, seed_stock_splits

logger = logging.getLogger(__name__)


async def init_database(database: Database, settings: PositionSettings | None = None) -> int:
    """Ensure all tables exist and the stock split reference table is seeded.

    Returns the number of reference rows inserted.
    """

    settings = settings or get_settings()
    splits = list(DEFAULT_STOCK_SPLITS)
    if settings.stock_splits_file is not None:
        splits.extend(read_stock_splits_file(settings.stock_splits_file))

    try:
        await database.create_all()
        async with database.session() as session:
            inserted = await seed_stock_splits(session, splits)
    except SQLAlchemyError:
        logger.exception("Failed to initialise database schema")
        raise
    logger.info("Database ready; %d stock split reference rows added", inserted)
    return inserted


__all__ = ["init_database"]
