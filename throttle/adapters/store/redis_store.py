"""Redis-backed counter store.

Shares windows across every worker and node pointing at the same Redis.
Redis executes commands one at a time, so INCRBY is linearizable per key.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import redis

from throttle.adapters.store.base import AbstractCounterStore
from throttle.core.errors import StoreAppError

logger = logging.getLogger(__name__)


# Increment only when the key exists. A plain INCRBY on an evicted key would
# recreate it with no TTL and the window would never reset.
INCREMENT_EXISTING_SCRIPT = """
    if redis.call('EXISTS', KEYS[1]) == 1 then
        return redis.call('INCRBY', KEYS[1], ARGV[1])
    end
    return false
"""


class RedisCounterStore(AbstractCounterStore):
    """Counter store using plain Redis strings with EX expiry."""

    def __init__(
        self,
        *,
        client: Any | None = None,
        url: str | None = None,
        socket_timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            client: Existing redis.Redis instance (takes precedence over url).
            url: Redis connection URL.
            socket_timeout_seconds: Socket timeout applied when building from url.

        Raises:
            ValueError: If neither client nor url is given.
        """
        if client is None and not url:
            raise ValueError("either client or url is required")

        self._client = client or redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout_seconds,
            decode_responses=True,
        )
        self._increment_script = self._client.register_script(INCREMENT_EXISTING_SCRIPT)

    def setup(self) -> None:
        """Check connectivity and preload the increment script."""

        self._call("setup", self._client.ping)
        self._call("setup", self._client.script_load, INCREMENT_EXISTING_SCRIPT)
        logger.info("store.redis_ready")

    def read(self, key: str) -> int | None:
        raw = self._call("read", self._client.get, key)
        if raw is None:
            return None
        return int(raw)

    def write(self, key: str, value: int, ttl_seconds: int) -> None:
        self._call("write", self._client.set, key, int(value), ex=int(ttl_seconds))

    def increment(self, key: str, delta: int = 1) -> int | None:
        result = self._call("increment", self._increment_script, keys=[key], args=[delta])
        if result is None:
            return None
        return int(result)

    def delete(self, key: str) -> None:
        self._call("delete", self._client.delete, key)

    @staticmethod
    def _call(operation: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except redis.RedisError as exc:
            logger.error(
                "store.redis_error",
                extra={
                    "operation": operation,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise StoreAppError(
                code="store_unavailable",
                message=f"Counter store {operation} failed",
                details={"backend": "redis", "operation": operation},
            ) from exc
