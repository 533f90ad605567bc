"""Canonicalise raw brokerage transactions before positions are built."""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Iterable

from .errors import MalformedTransactionError
from .models import Action, TransactionRecord, is_buy, is_sell, matches

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = ("quantity", "price", "fees", "amount")

_REVERSE_SPLIT_PATTERN = re.compile(r"^(?P<company>.+?)\s+XXXREVERSE SPLIT EFF:")


def reverse_split_company(description: str | None) -> str | None:
    """Return the company name carried by a reverse split description."""

    if not description:
        return None
    match = _REVERSE_SPLIT_PATTERN.match(description.strip())
    if match is None:
        return None
    return match.group("company").strip()


def _coerce_numeric(record: TransactionRecord, name: str) -> Decimal:
    value = getattr(record, name)
    if value is None:
        raise MalformedTransactionError(
            f"Transaction {record.id} is missing {name}", transaction_id=record.id
        )
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise MalformedTransactionError(
            f"Transaction {record.id} has non-numeric {name}: {value!r}",
            transaction_id=record.id,
        ) from exc
    if not number.is_finite():
        raise MalformedTransactionError(
            f"Transaction {record.id} has non-finite {name}: {value!r}",
            transaction_id=record.id,
        )
    return number


def validate_numbers(record: TransactionRecord) -> None:
    """Coerce numeric fields to ``Decimal`` or raise ``MalformedTransactionError``."""

    for name in NUMERIC_FIELDS:
        setattr(record, name, _coerce_numeric(record, name))


def has_valid_numbers(record: TransactionRecord) -> bool:
    try:
        for name in NUMERIC_FIELDS:
            _coerce_numeric(record, name)
    except MalformedTransactionError:
        return False
    return True


def _reverse_split_symbol(record: TransactionRecord, log: Iterable[TransactionRecord]) -> str | None:
    company = reverse_split_company(record.description)
    if company is None:
        return None
    candidates = [
        other
        for other in log
        if other.account_id == record.account_id
        and other.id != record.id
        and other.sort_key < record.sort_key
        and (other.description or "").strip() == company
    ]
    if not candidates:
        logger.debug("No prior transaction named %r for reverse split %s", company, record.id)
        return None
    return min(candidates, key=lambda other: other.sort_key).symbol


def normalize_transaction(record: TransactionRecord, log: Iterable[TransactionRecord] = ()) -> bool:
    """Enforce sign and price conventions on ``record`` in place.

    ``log`` is the account's transaction log, consulted to collapse the two
    legs of a reverse split onto the pre-split ticker. Returns True when any
    field other than ``processed`` changed. Applying it twice is a no-op.
    """

    validate_numbers(record)
    before = (record.symbol, record.quantity, record.price, record.amount)

    if is_buy(record.action) and record.amount > 0:
        record.amount = -record.amount
    if is_sell(record.action) and record.quantity > 0:
        record.quantity = -record.quantity
    if matches(record.action, Action.STOCK_SPLIT) or matches(record.action, Action.OPTIONS_FRWD_SPLIT):
        record.price = Decimal("0")
    if matches(record.action, Action.REVERSE_SPLIT):
        symbol = _reverse_split_symbol(record, log)
        if symbol is not None and symbol != record.symbol:
            logger.info("Reverse split %s: %s -> %s", record.id, record.symbol, symbol)
            record.symbol = symbol

    record.processed = True
    return before != (record.symbol, record.quantity, record.price, record.amount)


__all__ = [
    "NUMERIC_FIELDS",
    "has_valid_numbers",
    "normalize_transaction",
    "reverse_split_company",
    "validate_numbers",
]
