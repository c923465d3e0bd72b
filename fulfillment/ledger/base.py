"""
Base ledger store interface.

Keyed record access against the two collections the fulfillment steps
own: ``books`` (key ``bookId``) and ``customers`` (key ``userId``).

Every mutation is a single atomic operation against the backend. Steps
never read a value, change it locally and write it back; they express the
change as an increment, an idempotent decrement or a compare-and-set.
"""

from abc import ABC, abstractmethod
from typing import Any

BOOKS = "books"
CUSTOMERS = "customers"

KEY_FIELDS = {
    BOOKS: "bookId",
    CUSTOMERS: "userId",
}


class LedgerStore(ABC):
    """
    Abstract base class for ledger backends.

    Records are plain dicts holding the key field plus the data fields.
    Reads return ``None`` (or an empty list) for missing records; mutations
    against a missing record raise ``LedgerNotFoundError``.
    """

    @abstractmethod
    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """
        Load one record by key.

        Args:
            collection: Collection name (``books`` or ``customers``)
            key: Record key

        Returns:
            Record dict or None if not found
        """

    async def query(self, collection: str, key: str) -> list[dict[str, Any]]:
        """
        Query records by key.

        Key lookups match at most one record; the list shape mirrors
        key-condition queries on document stores.
        """
        record = await self.get(collection, key)
        return [record] if record is not None else []

    @abstractmethod
    async def put(self, collection: str, key: str, record: dict[str, Any]) -> None:
        """Create or replace a record."""

    @abstractmethod
    async def increment(self, collection: str, key: str, field: str, amount: int) -> int:
        """
        Atomically add ``amount`` to a numeric field.

        Returns:
            The new field value
        """

    @abstractmethod
    async def decrement_once(
        self,
        collection: str,
        key: str,
        field: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> bool:
        """
        Atomically subtract ``amount`` from a numeric field, never below zero.

        With an idempotency key the decrement is applied at most once per
        key; marker and decrement are committed together. A used key wins
        over the stock condition, so a repeat reports False rather than
        failing on the already-reduced value.

        Returns:
            True if the decrement was applied, False if the key was already used

        Raises:
            LedgerInsufficientError: Field holds less than ``amount``; nothing written
        """

    @abstractmethod
    async def compare_and_set(
        self, collection: str, key: str, field: str, expected: Any, value: Any
    ) -> bool:
        """
        Set ``field`` to ``value`` only if it currently equals ``expected``.

        Returns:
            True if the write happened, False if the current value differed
        """

    @abstractmethod
    async def set_field(self, collection: str, key: str, field: str, value: Any) -> None:
        """Unconditionally set one field of an existing record."""

    @abstractmethod
    async def mark_once(self, marker: str) -> bool:
        """
        Record a marker if it does not exist yet.

        Returns:
            True if the marker was newly recorded
        """

    @abstractmethod
    async def has_marker(self, marker: str) -> bool:
        """Check whether a marker has been recorded."""

    async def health_check(self) -> bool:
        """Check backend health."""
        return True

    async def close(self) -> None:
        """Release backend resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def decrement_marker(idempotency_key: str) -> str:
    """Marker recording that a keyed decrement was applied or voided."""
    return f"decrement:{idempotency_key}"


def key_field(collection: str) -> str:
    """Name of the key field for a collection."""
    try:
        return KEY_FIELDS[collection]
    except KeyError:
        msg = f"Unknown ledger collection: '{collection}'"
        raise ValueError(msg) from None
