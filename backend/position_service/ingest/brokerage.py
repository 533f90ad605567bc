"""Parse brokerage JSON exports into transaction payloads."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from pydantic import ValidationError

from position_engine import ACTIONS, MalformedTransactionError
from position_service.ingest.parsing import parse_brokerage_date, parse_money
from position_service.schemas import BrokerageFile, BrokerageTransaction, TransactionCreate

logger = logging.getLogger(__name__)

ALLOWED_IMPORT_ACTIONS = frozenset(ACTIONS)


def _to_payload(row: BrokerageTransaction, account_id: int, trade_date: date) -> TransactionCreate:
    return TransactionCreate(
        account_id=account_id,
        date=trade_date,
        action=row.action,
        symbol=row.symbol,
        description=row.description,
        quantity=parse_money(row.quantity),
        price=parse_money(row.price),
        fees=parse_money(row.fees),
        amount=parse_money(row.amount),
    )


def load_brokerage_file(payload: bytes | str | dict[str, Any]) -> BrokerageFile:
    if isinstance(payload, (bytes, str)):
        return BrokerageFile.model_validate_json(payload)
    return BrokerageFile.model_validate(payload)


def parse_brokerage_payload(
    payload: bytes | str | dict[str, Any],
    account_id: int,
    *,
    after: date | None = None,
) -> list[TransactionCreate]:
    """Convert a brokerage export into payloads, oldest first.

    Rows with an action outside :data:`ALLOWED_IMPORT_ACTIONS` are dropped
    silently, rows dated on or before ``after`` are skipped, and rows whose
    date or numbers cannot be parsed are logged and skipped.
    """

    export = load_brokerage_file(payload)
    parsed: list[TransactionCreate] = []
    for index, row in enumerate(export.transactions):
        if row.action.strip() not in ALLOWED_IMPORT_ACTIONS:
            continue
        try:
            trade_date = parse_brokerage_date(row.date)
            if after is not None and trade_date <= after:
                continue
            parsed.append(_to_payload(row, account_id, trade_date))
        except (MalformedTransactionError, ValidationError) as exc:
            logger.warning("Skipping brokerage row %d (%s %s): %s", index, row.action, row.symbol, exc)
    parsed.sort(key=lambda item: item.date)
    return parsed


__all__ = [
    "ALLOWED_IMPORT_ACTIONS",
    "load_brokerage_file",
    "parse_brokerage_payload",
]
