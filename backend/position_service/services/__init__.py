"""Service layer exports."""

from .positions import (
    get_last_transaction_date,
    list_positions,
    realized_gain_loss,
    recompute_positions,
)
from .stock_splits import load_stock_splits, read_stock_splits_file, seed_stock_splits
from .transactions import (
    TransactionNotFoundError,
    add_transactions,
    count_transactions,
    create_transaction,
    create_transactions,
    delete_transaction,
    get_transaction,
    list_transactions,
)

__all__ = [
    "TransactionNotFoundError",
    "add_transactions",
    "count_transactions",
    "create_transaction",
    "create_transactions",
    "delete_transaction",
    "get_last_transaction_date",
    "get_transaction",
    "list_positions",
    "list_transactions",
    "load_stock_splits",
    "read_stock_splits_file",
    "realized_gain_loss",
    "recompute_positions",
    "seed_stock_splits",
]
