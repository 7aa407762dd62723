"""In-memory counter store with per-key TTL.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every operation runs under a single lock.
- Expired entries are evicted lazily on access and on writes.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from throttle.adapters.store.base import AbstractCounterStore

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: int
    expires_at: float


class InMemoryCounterStore(AbstractCounterStore):
    """Dictionary-backed counter store.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits. Use the Redis store for shared limits.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, _Entry] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryCounterStore(size={len(self._entries)})"

    def read(self, key: str) -> int | None:
        with self._lock:
            entry = self._get_live_entry_locked(key)
            return entry.value if entry else None

    def write(self, key: str, value: int, ttl_seconds: int) -> None:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        with self._lock:
            self._evict_expired_locked()
            self._entries[key] = _Entry(
                value=int(value),
                expires_at=self._clock() + ttl_seconds,
            )

    def increment(self, key: str, delta: int = 1) -> int | None:
        with self._lock:
            entry = self._get_live_entry_locked(key)
            if entry is None:
                logger.debug("store.increment_missing", extra={"key_length": len(key)})
                return None
            entry.value += delta
            return entry.value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""

        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired_locked()
            return len(self._entries)

    def _get_live_entry_locked(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry):
            self._entries.pop(key, None)
            return None
        return entry

    def _evict_expired_locked(self) -> None:
        expired_keys = [k for k, entry in self._entries.items() if self._is_expired(entry)]
        for key in expired_keys:
            self._entries.pop(key, None)

    def _is_expired(self, entry: _Entry) -> bool:
        return self._clock() >= entry.expires_at
