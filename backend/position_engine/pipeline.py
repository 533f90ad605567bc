"""End-to-end recompute over one account's transaction log.

The pipeline never touches storage: callers load the log and the split
reference table, run :func:`recompute`, then persist ``modified`` rows and
the resulting positions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .builder import BuildResult, build_positions
from .errors import MalformedTransactionError, PositionEngineError
from .models import Action, PositionRecord, TransactionRecord, matches
from .normalizer import normalize_transaction
from .splits import SplitTable, resolve_options_forward_split

logger = logging.getLogger(__name__)


@dataclass
class PreparedLog:
    transactions: list[TransactionRecord]
    modified: list[TransactionRecord] = field(default_factory=list)
    errors: list[PositionEngineError] = field(default_factory=list)


@dataclass
class RecomputeResult:
    prepared: PreparedLog
    build: BuildResult

    @property
    def positions(self) -> list[PositionRecord]:
        return self.build.positions

    @property
    def errors(self) -> list[PositionEngineError]:
        return self.prepared.errors


def prepare_log(transactions: Iterable[TransactionRecord], splits: SplitTable) -> PreparedLog:
    """Normalize unprocessed rows, then resolve options forward splits.

    Rows are visited in ``(date, id)`` order. Reverse split symbol rewrites
    happen in the first pass so every later step sees unified symbols.
    """

    ordered = sorted(transactions, key=lambda tx: tx.sort_key)
    prepared = PreparedLog(transactions=ordered)
    modified: dict[int, TransactionRecord] = {}
    forward_splits: list[TransactionRecord] = []

    for tx in ordered:
        if tx.processed:
            continue
        try:
            normalize_transaction(tx, ordered)
        except MalformedTransactionError as exc:
            logger.warning("Skipping transaction %s: %s", tx.id, exc)
            prepared.errors.append(exc)
            continue
        modified[tx.id] = tx
        if matches(tx.action, Action.OPTIONS_FRWD_SPLIT):
            forward_splits.append(tx)

    for tx in forward_splits:
        try:
            rewritten = resolve_options_forward_split(tx, ordered, splits)
        except PositionEngineError as exc:
            # Left pending so a later recompute retries once the reference table covers it.
            tx.processed = False
            logger.warning("Options forward split %s not resolved: %s", tx.id, exc)
            prepared.errors.append(exc)
            continue
        for other in rewritten:
            modified[other.id] = other

    prepared.modified = sorted(modified.values(), key=lambda tx: tx.sort_key)
    return prepared


def recompute(
    account_id: int,
    transactions: Iterable[TransactionRecord],
    splits: SplitTable | None = None,
) -> RecomputeResult:
    """Run normalization, split resolution and the position builder."""

    prepared = prepare_log(transactions, splits if splits is not None else SplitTable())
    build = build_positions(account_id, prepared.transactions)
    logger.debug(
        "Account %s: %d positions, %d orphans, %d row errors",
        account_id,
        len(build.positions),
        len(build.orphans),
        len(prepared.errors),
    )
    return RecomputeResult(prepared=prepared, build=build)


__all__ = ["PreparedLog", "RecomputeResult", "prepare_log", "recompute"]
