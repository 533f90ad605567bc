"""Position engine: derive account positions from a brokerage transaction log."""

from .builder import BuildResult, build_positions
from .errors import (
    MalformedOptionSymbolError,
    MalformedTransactionError,
    MissingSplitReferenceError,
    PositionEngineError,
)
from .models import Action, ACTIONS, PositionRecord, StockSplitRecord, TransactionRecord
from .normalizer import normalize_transaction
from .pipeline import PreparedLog, RecomputeResult, prepare_log, recompute
from .splits import DEFAULT_STOCK_SPLITS, OptionSymbol, SplitTable, resolve_options_forward_split

__all__ = [
    "Action",
    "ACTIONS",
    "BuildResult",
    "DEFAULT_STOCK_SPLITS",
    "MalformedOptionSymbolError",
    "MalformedTransactionError",
    "MissingSplitReferenceError",
    "OptionSymbol",
    "PositionEngineError",
    "PositionRecord",
    "PreparedLog",
    "RecomputeResult",
    "SplitTable",
    "StockSplitRecord",
    "TransactionRecord",
    "build_positions",
    "normalize_transaction",
    "prepare_log",
    "recompute",
    "resolve_options_forward_split",
]
