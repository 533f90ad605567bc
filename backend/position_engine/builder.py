"""Walk a normalized transaction log and group it into position lots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, getcontext
from typing import Iterable

from .models import PositionRecord, TransactionRecord, is_opener, underlying_of
from .normalizer import has_valid_numbers

getcontext().prec = 28

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Positions produced by a build plus the rows that could not join one."""

    positions: list[PositionRecord] = field(default_factory=list)
    orphans: list[TransactionRecord] = field(default_factory=list)
    skipped: list[TransactionRecord] = field(default_factory=list)

    @property
    def open_positions(self) -> list[PositionRecord]:
        return [position for position in self.positions if position.opened]

    @property
    def closed_positions(self) -> list[PositionRecord]:
        return [position for position in self.positions if not position.opened]


def _open_position(account_id: int, tx: TransactionRecord) -> PositionRecord:
    return PositionRecord(
        account_id=account_id,
        symbol=tx.symbol,
        underlying_symbol=underlying_of(tx.symbol),
        open_date=tx.date,
        short=tx.quantity < 0,
    )


def _finalise(position: PositionRecord) -> None:
    position.opened = position.quantity != 0
    if position.opened:
        position.cost_basis = position.total_cost() / position.quantity
        position.gain_loss = Decimal("0")
    else:
        position.cost_basis = Decimal("0")
        position.gain_loss = position.net_amount()


def build_positions(account_id: int, transactions: Iterable[TransactionRecord]) -> BuildResult:
    """Group ``transactions`` into lot cycles ordered by ``(date, id)``.

    A lot opens on an opening action and closes on the transaction that
    brings its net quantity back to zero; a later opener on the same symbol
    starts a new lot. Closing actions with no open lot are collected as
    orphans and never create a position.
    """

    result = BuildResult()
    open_lots: dict[str, PositionRecord] = {}

    for tx in sorted(transactions, key=lambda item: item.sort_key):
        if tx.account_id != account_id:
            continue
        if not has_valid_numbers(tx):
            result.skipped.append(tx)
            continue

        position = open_lots.get(tx.symbol)
        if position is None:
            if not is_opener(tx.action):
                logger.warning(
                    "Orphan %r transaction %s on %s has no open position", tx.action, tx.id, tx.symbol
                )
                result.orphans.append(tx)
                continue
            position = _open_position(account_id, tx)
            open_lots[tx.symbol] = position
            result.positions.append(position)

        position.quantity += tx.quantity
        position.transactions.append(tx)
        if position.quantity == 0:
            position.close_date = tx.date
            del open_lots[tx.symbol]

    for position in result.positions:
        _finalise(position)
    return result


__all__ = ["BuildResult", "build_positions"]
