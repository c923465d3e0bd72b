"""
Error hierarchy for ledger store operations.

All store faults inherit from LedgerStoreError so the steps can wrap any
backend failure without knowing which backend raised it.
"""

import re
from typing import Any


class LedgerStoreError(Exception):
    """
    Base exception for all ledger store operations.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class LedgerConnectionError(LedgerStoreError):
    """
    Failed to connect to the ledger backend.

    Raised when:
    - Initial connection fails
    - Network timeout
    - Authentication failure
    """

    def __init__(
        self,
        message: str = "Failed to connect to ledger store",
        backend: str | None = None,
        url: str | None = None,
        **details,
    ):
        super().__init__(
            message,
            details={"backend": backend, "url": self._mask_url(url), **details},
        )
        self.backend = backend
        self.url = url

    @staticmethod
    def _mask_url(url: str | None) -> str | None:
        """Mask the password in a connection URL."""
        if not url:
            return None
        return re.sub(r"://([^:]*):([^@]+)@", r"://\1:***@", url)


class LedgerNotFoundError(LedgerStoreError):
    """
    Record does not exist.

    Raised by mutations against a missing key; reads return None instead.
    """

    def __init__(self, collection: str, key: str, **details):
        super().__init__(
            f"Record not found: {collection}/{key}",
            details={"collection": collection, "key": key, **details},
        )
        self.collection = collection
        self.key = key


class LedgerInsufficientError(LedgerStoreError):
    """
    Conditional decrement would take a field below zero.

    Raised before anything is written, including the idempotency marker.
    """

    def __init__(self, collection: str, key: str, field: str, available: int, requested: int):
        super().__init__(
            f"Cannot take {requested} from {collection}/{key}.{field}: only {available} left",
            details={"collection": collection, "key": key, "field": field},
        )
        self.collection = collection
        self.key = key
        self.field = field
        self.available = available
        self.requested = requested


class LedgerConflictError(LedgerStoreError):
    """
    Conditional update kept losing to concurrent writers.

    Raised when a compare-and-set retry loop exhausts its attempts.
    """

    def __init__(self, collection: str, key: str, field: str, attempts: int):
        super().__init__(
            f"Conditional update of {collection}/{key}.{field} failed after {attempts} attempts",
            details={"collection": collection, "key": key, "field": field, "attempts": attempts},
        )
        self.collection = collection
        self.key = key
        self.field = field
        self.attempts = attempts
