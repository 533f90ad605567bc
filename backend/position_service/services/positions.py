"""Persistence adapter for the position engine.

Positions are derived state: every recompute loads the account's full
transaction log, runs the engine in memory and replaces the account's
positions in a single database transaction.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from position_engine import PositionRecord, TransactionRecord, recompute
from position_service.core.telemetry import get_tracer
from position_service.models import Account, Position, Transaction, position_transactions
from position_service.services.stock_splits import load_stock_splits

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


def to_record(row: Transaction) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,
        account_id=row.account_id,
        date=row.date,
        action=row.action,
        symbol=row.symbol,
        description=row.description or "",
        quantity=row.quantity,
        price=row.price,
        fees=row.fees,
        amount=row.amount,
        processed=bool(row.processed),
    )


def _apply_record(row: Transaction, record: TransactionRecord) -> None:
    row.symbol = record.symbol
    row.quantity = record.quantity
    row.price = record.price
    row.fees = record.fees
    row.amount = record.amount
    row.processed = record.processed


def _to_model(record: PositionRecord, rows_by_id: dict[int, Transaction]) -> Position:
    return Position(
        account_id=record.account_id,
        symbol=record.symbol,
        underlying_symbol=record.underlying_symbol,
        open_date=record.open_date,
        close_date=record.close_date,
        quantity=record.quantity,
        cost_basis=record.cost_basis,
        opened=record.opened,
        short=record.short,
        gain_loss=record.gain_loss,
        transactions=[rows_by_id[tx.id] for tx in record.transactions],
    )


async def load_transaction_log(session: AsyncSession, account_id: int) -> list[Transaction]:
    """Return the account's transactions ordered by ``(date, id)``."""

    result = await session.execute(
        select(Transaction)
        .where(Transaction.account_id == account_id)
        .order_by(Transaction.date, Transaction.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def _lock_account(session: AsyncSession, account_id: int) -> None:
    # Serialises recomputes of one account; other accounts are unaffected.
    await session.execute(select(Account.id).where(Account.id == account_id).with_for_update())


async def _replace_positions(
    session: AsyncSession,
    account_id: int,
    records: list[PositionRecord],
    rows_by_id: dict[int, Transaction],
) -> list[Position]:
    account_positions = select(Position.id).where(Position.account_id == account_id)
    await session.execute(
        delete(position_transactions).where(position_transactions.c.position_id.in_(account_positions))
    )
    await session.execute(delete(Position).where(Position.account_id == account_id))
    positions = [_to_model(record, rows_by_id) for record in records]
    session.add_all(positions)
    await session.flush()
    return positions


async def recompute_positions(session: AsyncSession, account_id: int) -> list[Position]:
    """Rebuild every position of ``account_id`` from its transaction log.

    Normalization write-backs, the position delete and the insert commit
    together; on any error the session is rolled back and the previous
    positions stay in place.
    """

    with tracer.start_as_current_span("positions.recompute") as span:
        span.set_attribute("account.id", account_id)
        try:
            await _lock_account(session, account_id)
            rows = await load_transaction_log(session, account_id)
            splits = await load_stock_splits(session)
            rows_by_id = {row.id: row for row in rows}

            result = recompute(account_id, [to_record(row) for row in rows], splits)
            for record in result.prepared.modified:
                _apply_record(rows_by_id[record.id], record)

            positions = await _replace_positions(session, account_id, result.positions, rows_by_id)
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Failed to recompute positions for account %s", account_id)
            raise

        span.set_attribute("transactions.count", len(rows))
        span.set_attribute("positions.count", len(positions))
        span.set_attribute("transactions.orphaned", len(result.build.orphans))
        span.set_attribute("transactions.errors", len(result.errors))
        logger.info(
            "Recomputed %d positions for account %s from %d transactions (%d normalized, %d orphans, %d errors)",
            len(positions),
            account_id,
            len(rows),
            len(result.prepared.modified),
            len(result.build.orphans),
            len(result.errors),
        )
        return positions


async def get_last_transaction_date(session: AsyncSession, account_id: int) -> date | None:
    """Return the most recent transaction date for the account, if any."""

    result = await session.execute(
        select(func.max(Transaction.date)).where(Transaction.account_id == account_id)
    )
    return result.scalar_one_or_none()


async def list_positions(
    session: AsyncSession,
    account_id: int,
    *,
    opened: bool | None = None,
    symbol: str | None = None,
) -> list[Position]:
    stmt = (
        select(Position)
        .options(selectinload(Position.transactions))
        .where(Position.account_id == account_id)
        .order_by(Position.open_date, Position.symbol, Position.id)
    )
    if opened is not None:
        stmt = stmt.where(Position.opened.is_(opened))
    if symbol:
        stmt = stmt.where(Position.symbol == symbol)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def realized_gain_loss(session: AsyncSession, account_id: int) -> Decimal:
    """Sum of realized P&L over the account's closed positions."""

    result = await session.execute(
        select(func.coalesce(func.sum(Position.gain_loss), 0)).where(
            Position.account_id == account_id,
            Position.opened.is_(False),
        )
    )
    return Decimal(str(result.scalar_one()))


__all__ = [
    "get_last_transaction_date",
    "list_positions",
    "load_transaction_log",
    "realized_gain_loss",
    "recompute_positions",
    "to_record",
]
