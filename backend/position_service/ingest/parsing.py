"""Field parsers for brokerage export values."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from position_engine import MalformedTransactionError

BROKERAGE_DATE_FORMAT = "%m/%d/%Y"
AS_OF_SEPARATOR = " as of "


def parse_money(value: str | int | float | Decimal | None) -> Decimal:
    """Parse a brokerage numeric string such as ``"$1,234.50"`` or ``"-$3.10"``.

    Blank values are zero.
    """

    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        cleaned = value.replace("$", "").replace(",", "").strip()
        if not cleaned:
            return Decimal("0")
        try:
            number = Decimal(cleaned)
        except InvalidOperation as exc:
            raise MalformedTransactionError(f"Invalid numeric value: {value!r}") from exc
    if not number.is_finite():
        raise MalformedTransactionError(f"Invalid numeric value: {value!r}")
    return number


def effective_date_text(value: str) -> str:
    """Return the effective date portion of ``"<date> as of <date>"`` strings."""

    return value.split(AS_OF_SEPARATOR)[-1].strip()


def parse_brokerage_date(value: str) -> date:
    text = effective_date_text(value)
    try:
        return datetime.strptime(text, BROKERAGE_DATE_FORMAT).date()
    except ValueError as exc:
        raise MalformedTransactionError(f"Invalid transaction date: {value!r}") from exc


__all__ = [
    "AS_OF_SEPARATOR",
    "BROKERAGE_DATE_FORMAT",
    "effective_date_text",
    "parse_brokerage_date",
    "parse_money",
]
