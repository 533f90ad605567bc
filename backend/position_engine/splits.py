"""Stock split reference data and the options forward split resolver.

Brokerage reports describe an options forward split as a single row carrying
the post-split contract and the added contract count. The split ratio is not
part of the report, so it comes from a curated reference table. The resolver
recovers the pre-split strike from the ratio and renames earlier legs of the
same contract so the builder sees one lot.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Sequence

from .errors import MalformedOptionSymbolError, MissingSplitReferenceError
from .models import StockSplitRecord, TransactionRecord

logger = logging.getLogger(__name__)

DEFAULT_STOCK_SPLITS: tuple[StockSplitRecord, ...] = (
    StockSplitRecord("AAPL", date(2014, 6, 9), Decimal("7")),
    StockSplitRecord("AAPL", date(2020, 8, 31), Decimal("4")),
    StockSplitRecord("AMZN", date(1998, 6, 6), Decimal("2")),
    StockSplitRecord("AMZN", date(1999, 1, 5), Decimal("3")),
    StockSplitRecord("AMZN", date(1999, 9, 2), Decimal("2")),
    StockSplitRecord("AMZN", date(2022, 6, 6), Decimal("20")),
    StockSplitRecord("TSLA", date(2020, 8, 31), Decimal("5")),
    StockSplitRecord("TSLA", date(2022, 8, 25), Decimal("3")),
)


@dataclass(frozen=True)
class OptionSymbol:
    """Parsed ``"<UND> <MM/DD/YYYY> <STRIKE> <C|P>"`` contract string."""

    underlying: str
    expiration: str
    strike: Decimal
    option_type: str

    @classmethod
    def parse(cls, symbol: str) -> "OptionSymbol":
        parts = symbol.split()
        if len(parts) < 4:
            raise MalformedOptionSymbolError(f"Invalid option symbol format: {symbol!r}")
        underlying, expiration, strike_text, option_type = parts[:4]
        try:
            strike = Decimal(strike_text)
        except InvalidOperation as exc:
            raise MalformedOptionSymbolError(f"Invalid strike price in {symbol!r}") from exc
        if not strike.is_finite():
            raise MalformedOptionSymbolError(f"Invalid strike price in {symbol!r}")
        return cls(underlying, expiration, strike, option_type)

    def same_series(self, other: "OptionSymbol") -> bool:
        """True when both contracts share underlying, expiration and type."""

        return (
            self.underlying == other.underlying
            and self.expiration == other.expiration
            and self.option_type == other.option_type
        )


class SplitTable:
    """Lookup of split ratios keyed by underlying and effective date."""

    def __init__(self, splits: Iterable[StockSplitRecord] = ()) -> None:
        self._by_symbol: dict[str, list[StockSplitRecord]] = {}
        for split in splits:
            self.add(split)

    def add(self, split: StockSplitRecord) -> None:
        rows = self._by_symbol.setdefault(split.symbol.upper(), [])
        rows[:] = [row for row in rows if row.split_date != split.split_date]
        rows.append(split)
        rows.sort(key=lambda row: row.split_date)

    def __len__(self) -> int:
        return sum(len(rows) for rows in self._by_symbol.values())

    def __iter__(self):
        for symbol in sorted(self._by_symbol):
            yield from self._by_symbol[symbol]

    def ratio_for(self, symbol: str, on_date: date) -> Decimal:
        """Return the most recent ratio for ``symbol`` effective on or before ``on_date``."""

        rows = self._by_symbol.get(symbol.upper(), [])
        index = bisect_right([row.split_date for row in rows], on_date)
        if index == 0:
            raise MissingSplitReferenceError(
                f"No stock split reference for {symbol} on or before {on_date.isoformat()}"
            )
        return rows[index - 1].ratio


def pre_split_strike(new_strike: Decimal, ratio: Decimal) -> Decimal:
    """Recover the pre-split strike, rounded half-up to a whole number."""

    return (new_strike * ratio).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def resolve_options_forward_split(
    record: TransactionRecord,
    log: Sequence[TransactionRecord],
    splits: SplitTable,
) -> list[TransactionRecord]:
    """Rename pre-split legs of ``record``'s contract to its post-split symbol.

    Returns the transactions whose symbol was rewritten.
    """

    try:
        contract = OptionSymbol.parse(record.symbol)
    except MalformedOptionSymbolError as exc:
        exc.transaction_id = record.id
        raise
    try:
        ratio = splits.ratio_for(contract.underlying, record.date)
    except MissingSplitReferenceError as exc:
        exc.transaction_id = record.id
        raise
    old_strike = pre_split_strike(contract.strike, ratio)

    rewritten: list[TransactionRecord] = []
    for other in log:
        if other.account_id != record.account_id or other.id == record.id:
            continue
        if other.date >= record.date or other.symbol == record.symbol:
            continue
        try:
            candidate = OptionSymbol.parse(other.symbol)
        except MalformedOptionSymbolError:
            continue
        if not candidate.same_series(contract) or candidate.strike != old_strike:
            continue
        logger.info(
            "Options forward split %s: %s -> %s (transaction %s)",
            record.id,
            other.symbol,
            record.symbol,
            other.id,
        )
        other.symbol = record.symbol
        rewritten.append(other)
    return rewritten


__all__ = [
    "DEFAULT_STOCK_SPLITS",
    "OptionSymbol",
    "SplitTable",
    "pre_split_strike",
    "resolve_options_forward_split",
]
