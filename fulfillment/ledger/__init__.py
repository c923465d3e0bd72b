"""
Ledger stores backing the book inventory and customer loyalty balances.
"""

from fulfillment.ledger.base import BOOKS, CUSTOMERS, LedgerStore, decrement_marker
from fulfillment.ledger.errors import (
    LedgerConflictError,
    LedgerConnectionError,
    LedgerInsufficientError,
    LedgerNotFoundError,
    LedgerStoreError,
)
from fulfillment.ledger.factory import create_ledger_store
from fulfillment.ledger.memory import InMemoryLedgerStore

__all__ = [
    "BOOKS",
    "CUSTOMERS",
    "InMemoryLedgerStore",
    "LedgerConflictError",
    "LedgerConnectionError",
    "LedgerInsufficientError",
    "LedgerNotFoundError",
    "LedgerStore",
    "LedgerStoreError",
    "create_ledger_store",
    "decrement_marker",
]
