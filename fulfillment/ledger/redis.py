"""
Redis ledger store

Books and customers are Redis hashes (``{prefix}{collection}:{key}``) whose
field values are JSON-encoded. Integer fields stay valid JSON under
HINCRBY, so increments run natively; conditional writes and the
idempotent decrement run as Lua scripts so each is one atomic round trip.

Requires: pip install redis
"""

import json
from typing import Any

from fulfillment.core.exceptions import MissingDependencyError
from fulfillment.ledger.base import LedgerStore, decrement_marker, key_field
from fulfillment.ledger.errors import (
    LedgerConnectionError,
    LedgerInsufficientError,
    LedgerNotFoundError,
    LedgerStoreError,
)

try:
    import redis.asyncio as redis

    REDIS_AVAILABLE = True
except ImportError:  # pragma: no cover
    REDIS_AVAILABLE = False  # pragma: no cover
    redis: Any = None  # type: ignore[no-redef]  # pragma: no cover


# KEYS[1] record, KEYS[2] marker (optional); ARGV field, amount, marker ttl
# Returns {status, value}: 1 applied, 0 key used, -1 missing, -2 insufficient
_DECREMENT_ONCE = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return {-1, 0}
end
if #KEYS > 1 and redis.call('EXISTS', KEYS[2]) == 1 then
    return {0, 0}
end
local current = tonumber(redis.call('HGET', KEYS[1], ARGV[1]) or '0')
if current < tonumber(ARGV[2]) then
    return {-2, current}
end
if #KEYS > 1 then
    redis.call('SET', KEYS[2], '1', 'EX', ARGV[3])
end
return {1, redis.call('HINCRBY', KEYS[1], ARGV[1], -tonumber(ARGV[2]))}
"""

# KEYS[1] record; ARGV field, expected (json), value (json)
_COMPARE_AND_SET = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return -1
end
if redis.call('HGET', KEYS[1], ARGV[1]) ~= ARGV[2] then
    return 0
end
redis.call('HSET', KEYS[1], ARGV[1], ARGV[3])
return 1
"""

# KEYS[1] record; ARGV field, amount
_INCREMENT_EXISTING = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return false
end
return redis.call('HINCRBY', KEYS[1], ARGV[1], ARGV[2])
"""

# KEYS[1] record; ARGV field, value (json)
_SET_EXISTING = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
redis.call('HSET', KEYS[1], ARGV[1], ARGV[2])
return 1
"""


def _encode(value: Any) -> str:
    return json.dumps(value, default=str)


def _decode(raw: bytes | str) -> Any:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return json.loads(raw)


class RedisLedgerStore(LedgerStore):
    """
    Redis implementation of the ledger store

    Example:
        >>> async with RedisLedgerStore("redis://localhost:6379") as store:
        ...     await store.put("books", "B1", {"quantity": 10, "price": 20})
        ...     await store.increment("books", "B1", "quantity", 3)
        13
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "fulfillment:",
        marker_ttl: int = 7 * 24 * 3600,
        **redis_kwargs,
    ):
        if not REDIS_AVAILABLE:
            msg = "redis"
            raise MissingDependencyError(msg, "Redis ledger store")

        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.marker_ttl = marker_ttl
        self.redis_kwargs = redis_kwargs
        self._redis = None

    async def _get_redis(self):
        """Get Redis connection, creating if necessary"""
        if self._redis is None:
            try:
                self._redis = redis.from_url(self.redis_url, **self.redis_kwargs)
                await self._redis.ping()  # type: ignore[attr-defined]
            except Exception as e:
                self._redis = None
                msg = f"Failed to connect to Redis: {e}"
                raise LedgerConnectionError(msg, backend="redis", url=self.redis_url) from e

        return self._redis

    def _record_key(self, collection: str, key: str) -> str:
        key_field(collection)
        return f"{self.key_prefix}{collection}:{key}"

    def _marker_key(self, marker: str) -> str:
        return f"{self.key_prefix}marker:{marker}"

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        redis_client = await self._get_redis()
        raw = await redis_client.hgetall(self._record_key(collection, key))
        if not raw:
            return None

        try:
            record = {
                (k.decode("utf-8") if isinstance(k, bytes) else k): _decode(v)
                for k, v in raw.items()
            }
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            msg = f"Failed to decode {collection}/{key}: {e}"
            raise LedgerStoreError(msg) from e

        record[key_field(collection)] = key
        return record

    async def put(self, collection: str, key: str, record: dict[str, Any]) -> None:
        redis_client = await self._get_redis()
        mapping = {field: _encode(value) for field, value in record.items()}
        mapping[key_field(collection)] = _encode(key)
        record_key = self._record_key(collection, key)

        async with redis_client.pipeline() as pipe:
            await pipe.delete(record_key)
            await pipe.hset(record_key, mapping=mapping)
            await pipe.execute()

    async def increment(self, collection: str, key: str, field: str, amount: int) -> int:
        redis_client = await self._get_redis()
        result = await redis_client.eval(
            _INCREMENT_EXISTING, 1, self._record_key(collection, key), field, int(amount)
        )
        if result is None:
            raise LedgerNotFoundError(collection, key)
        return int(result)

    async def decrement_once(
        self,
        collection: str,
        key: str,
        field: str,
        amount: int,
        idempotency_key: str | None = None,
    ) -> bool:
        redis_client = await self._get_redis()
        keys = [self._record_key(collection, key)]
        if idempotency_key is not None:
            keys.append(self._marker_key(decrement_marker(idempotency_key)))

        result = await redis_client.eval(
            _DECREMENT_ONCE, len(keys), *keys, field, int(amount), self.marker_ttl
        )
        status, value = int(result[0]), int(result[1])
        if status == -1:
            raise LedgerNotFoundError(collection, key)
        if status == -2:
            raise LedgerInsufficientError(collection, key, field, value, int(amount))
        return status == 1

    async def compare_and_set(
        self, collection: str, key: str, field: str, expected: Any, value: Any
    ) -> bool:
        redis_client = await self._get_redis()
        result = await redis_client.eval(
            _COMPARE_AND_SET,
            1,
            self._record_key(collection, key),
            field,
            _encode(expected),
            _encode(value),
        )
        if int(result) < 0:
            raise LedgerNotFoundError(collection, key)
        return int(result) == 1

    async def set_field(self, collection: str, key: str, field: str, value: Any) -> None:
        redis_client = await self._get_redis()
        result = await redis_client.eval(
            _SET_EXISTING, 1, self._record_key(collection, key), field, _encode(value)
        )
        if int(result) == 0:
            raise LedgerNotFoundError(collection, key)

    async def mark_once(self, marker: str) -> bool:
        redis_client = await self._get_redis()
        created = await redis_client.set(
            self._marker_key(marker), "1", nx=True, ex=self.marker_ttl
        )
        return bool(created)

    async def has_marker(self, marker: str) -> bool:
        redis_client = await self._get_redis()
        return bool(await redis_client.exists(self._marker_key(marker)))

    async def health_check(self) -> bool:
        try:
            redis_client = await self._get_redis()
            await redis_client.ping()
            return True
        except Exception:
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
