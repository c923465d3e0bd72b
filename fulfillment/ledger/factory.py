"""
Ledger Store Factory - pick a backend from a URL

    >>> store = create_ledger_store("memory://")
    >>> store = create_ledger_store("redis://localhost:6379/0", key_prefix="shop:")
"""

from typing import Any

from fulfillment.ledger.base import LedgerStore
from fulfillment.ledger.memory import InMemoryLedgerStore


def _create_redis_store(url: str, kwargs: dict[str, Any]) -> LedgerStore:
    """Create Redis store instance."""
    from fulfillment.ledger.redis import RedisLedgerStore

    return RedisLedgerStore(redis_url=url, **kwargs)


# Scheme registry mapping URL schemes to factory functions
_STORE_REGISTRY = {
    "memory": lambda url, kwargs: InMemoryLedgerStore(),
    "redis": _create_redis_store,
    "rediss": _create_redis_store,
}


def create_ledger_store(url: str | None = None, **kwargs: Any) -> LedgerStore:
    """
    Create a ledger store from a connection URL.

    Args:
        url: ``memory://`` (default) or ``redis://``/``rediss://`` URL
        **kwargs: Backend-specific options (e.g. ``key_prefix`` for Redis)

    Raises:
        ValueError: If the URL scheme is unknown
        MissingDependencyError: If the backend's client library isn't installed
    """
    url = (url or "memory://").strip()
    scheme = url.split("://", 1)[0].lower() if "://" in url else url.lower()

    if scheme not in _STORE_REGISTRY:
        msg = (
            f"Unknown ledger store URL scheme: '{scheme}'\n"
            f"Available schemes: {', '.join(sorted(_STORE_REGISTRY))}"
        )
        raise ValueError(msg)

    return _STORE_REGISTRY[scheme](url, kwargs)
