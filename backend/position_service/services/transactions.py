"""Transaction log CRUD; every mutation is followed by a position recompute."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from position_service.models import Transaction
from position_service.schemas import TransactionCreate
from position_service.services.positions import recompute_positions

logger = logging.getLogger(__name__)


class TransactionNotFoundError(LookupError):
    """Raised when a transaction id does not exist."""


def _to_row(payload: TransactionCreate) -> Transaction:
    return Transaction(
        account_id=payload.account_id,
        date=payload.date,
        action=payload.action,
        symbol=payload.symbol,
        description=payload.description,
        quantity=payload.quantity,
        price=payload.price,
        fees=payload.fees,
        amount=payload.amount,
        processed=False,
    )


async def add_transactions(session: AsyncSession, payloads: Iterable[TransactionCreate]) -> list[Transaction]:
    """Insert ``payloads`` oldest first without recomputing positions."""

    rows = [_to_row(payload) for payload in sorted(payloads, key=lambda payload: payload.date)]
    if not rows:
        return []
    session.add_all(rows)
    await session.commit()
    return rows


async def create_transaction(session: AsyncSession, payload: TransactionCreate) -> Transaction:
    [row] = await add_transactions(session, [payload])
    await recompute_positions(session, row.account_id)
    return row


async def create_transactions(session: AsyncSession, payloads: Sequence[TransactionCreate]) -> list[Transaction]:
    """Bulk insert then recompute each affected account once."""

    rows = await add_transactions(session, payloads)
    for account_id in sorted({row.account_id for row in rows}):
        await recompute_positions(session, account_id)
    return rows


async def get_transaction(session: AsyncSession, transaction_id: int) -> Transaction | None:
    return await session.get(Transaction, transaction_id)


async def delete_transaction(session: AsyncSession, transaction_id: int) -> None:
    row = await session.get(Transaction, transaction_id)
    if row is None:
        raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
    account_id = row.account_id
    await session.delete(row)
    await session.commit()
    logger.info("Deleted transaction %s from account %s", transaction_id, account_id)
    await recompute_positions(session, account_id)


async def list_transactions(
    session: AsyncSession,
    account_id: int,
    *,
    symbol: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> list[Transaction]:
    """Return one page of the account's transactions, newest first."""

    page = max(page, 1)
    limit = max(limit, 1)
    stmt = select(Transaction).where(Transaction.account_id == account_id)
    if symbol:
        stmt = stmt.where(Transaction.symbol == symbol)
    stmt = stmt.order_by(Transaction.date.desc(), Transaction.id.desc()).offset((page - 1) * limit).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_transactions(session: AsyncSession, account_id: int, *, symbol: str | None = None) -> int:
    stmt = select(func.count(Transaction.id)).where(Transaction.account_id == account_id)
    if symbol:
        stmt = stmt.where(Transaction.symbol == symbol)
    return (await session.execute(stmt)).scalar_one()


__all__ = [
    "TransactionNotFoundError",
    "add_transactions",
    "count_transactions",
    "create_transaction",
    "create_transactions",
    "delete_transaction",
    "get_transaction",
    "list_transactions",
]
