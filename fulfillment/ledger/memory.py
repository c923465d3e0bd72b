"""
In-memory ledger store

Keeps books and customers in dictionaries guarded by an asyncio lock.
Intended for development and tests; state is lost on restart.
"""

import asyncio
import copy
from typing import Any

from fulfillment.ledger.base import BOOKS, CUSTOMERS, LedgerStore, decrement_marker, key_field
from fulfillment.ledger.errors import LedgerInsufficientError, LedgerNotFoundError


class InMemoryLedgerStore(LedgerStore):
    """
    In-memory implementation of the ledger store.

    Each mutation runs entirely under the lock, so it is atomic with
    respect to other coroutines in the same event loop.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._markers: set[str] = set()
        self._lock = asyncio.Lock()

    def _records(self, collection: str) -> dict[str, dict[str, Any]]:
        key_field(collection)
        return self._collections.setdefault(collection, {})

    def _require(self, collection: str, key: str) -> dict[str, Any]:
        record = self._records(collection).get(key)
        if record is None:
            raise LedgerNotFoundError(collection, key)
        return record

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        async with self._lock:
            record = self._records(collection).get(key)
            # Return a copy to prevent external modification
            return copy.deepcopy(record) if record is not None else None

    async def put(self, collection: str, key: str, record: dict[str, Any]) -> None:
        async with self._lock:
            self._records(collection)[key] = {**copy.deepcopy(record), key_field(collection): key}

    async def increment(self, collection: str, key: str, field: str, amount: int) -> int:
        async with self._lock:
            record = self._require(collection, key)
            record[field] = record.get(field, 0) + amount
            return record[field]

    async def decrement_once(
        self,
        collection: str,
        key: str,
        field: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> bool:
        async with self._lock:
            record = self._require(collection, key)
            marker = decrement_marker(idempotency_key) if idempotency_key is not None else None
            if marker is not None and marker in self._markers:
                return False

            available = record.get(field, 0)
            if available < amount:
                raise LedgerInsufficientError(collection, key, field, available, amount)

            if marker is not None:
                self._markers.add(marker)
            record[field] = available - amount
            return True

    async def compare_and_set(
        self, collection: str, key: str, field: str, expected: Any, value: Any
    ) -> bool:
        async with self._lock:
            record = self._require(collection, key)
            if record.get(field) != expected:
                return False
            record[field] = value
            return True

    async def set_field(self, collection: str, key: str, field: str, value: Any) -> None:
        async with self._lock:
            self._require(collection, key)[field] = value

    async def mark_once(self, marker: str) -> bool:
        async with self._lock:
            if marker in self._markers:
                return False
            self._markers.add(marker)
            return True

    async def has_marker(self, marker: str) -> bool:
        async with self._lock:
            return marker in self._markers

    # Seed helpers (handy for tests and local runs)
    async def add_book(self, book_id: str, quantity: int, price: Any = 0) -> None:
        await self.put(BOOKS, book_id, {"quantity": quantity, "price": price})

    async def add_customer(self, user_id: str, points: int) -> None:
        await self.put(CUSTOMERS, user_id, {"points": points})
