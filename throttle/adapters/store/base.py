"""Counter store interface.

The throttle core depends on this abstraction (not a concrete backend) so the
same window logic runs against an in-process dictionary or a shared Redis.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractCounterStore(ABC):
    """Key-value store holding integer counters with per-key TTL.

    Implementations must make ``increment`` atomic (linearizable per key).
    Nothing is assumed across different keys.
    """

    def setup(self) -> None:
        """Prepare the backend once at process startup.

        Must be idempotent. The default implementation does nothing.
        """

    @abstractmethod
    def read(self, key: str) -> int | None:
        """Return the integer stored under key, or None when absent/expired."""
        raise NotImplementedError

    @abstractmethod
    def write(self, key: str, value: int, ttl_seconds: int) -> None:
        """Store value under key, replacing any previous value and TTL.

        Args:
            key: Store key.
            value: Integer value to store.
            ttl_seconds: Seconds until the store evicts the key.
        """
        raise NotImplementedError

    @abstractmethod
    def increment(self, key: str, delta: int = 1) -> int | None:
        """Atomically add delta to an existing counter.

        Callers guarantee the key was initialized first. Backends return None
        when the key is absent rather than creating it with no TTL.

        Returns:
            The new value, or None if the key does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present."""
        raise NotImplementedError
