"""Per-identity request counting on top of a counter store.

Each identity owns two store keys with the same TTL (the window interval):

- ``{namespace}_{identity}``: number of requests seen in the current window.
- ``{namespace}_{identity}_expires``: epoch second at which the window resets.

The store evicts both keys when the TTL lapses and the next touch starts a
fresh window. The tracker never deletes keys and never scans for expiry.

First touch is check-then-initialize without a lock. Concurrent first
requests may all write the baseline, but they write the same constants
(0 and now + interval), so whichever write lands last is equivalent. Only the
increment that follows must be atomic, and the store guarantees that.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from throttle.adapters.store.base import AbstractCounterStore

logger = logging.getLogger(__name__)

EXPIRATION_SUFFIX = "expires"


class WindowTracker:
    """Counts requests per identity within store-managed windows."""

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        interval_seconds: int,
        namespace: str = "throttle",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the tracker.

        Args:
            store: Counter store shared by every request.
            interval_seconds: Window length, also used as the store TTL.
            namespace: Prefix for every store key.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If interval_seconds is not positive.
        """
        if interval_seconds < 1:
            raise ValueError("interval_seconds must be >= 1")

        self._store = store
        self._interval = interval_seconds
        self._namespace = namespace
        self._clock = clock

    def counter_key(self, identity: str) -> str:
        return f"{self._namespace}_{identity}"

    def expiration_key(self, identity: str) -> str:
        return f"{self.counter_key(identity)}_{EXPIRATION_SUFFIX}"

    def touch(self, identity: str) -> int:
        """Record one request for identity and return the window count.

        Initializes the window when the counter key is absent, then
        atomically increments the counter by one.

        Args:
            identity: Requester identity.

        Returns:
            The post-increment count. A missing increment result counts as 0.

        Raises:
            StoreAppError: Propagated unchanged when the store fails.
        """
        key = self.counter_key(identity)

        if self._store.read(key) is None:
            reset_at = int(self._clock()) + self._interval
            self._store.write(key, 0, self._interval)
            self._store.write(self.expiration_key(identity), reset_at, self._interval)
            logger.debug(
                "store.window_initialized",
                extra={"reset_at": reset_at, "interval_s": self._interval},
            )

        return self._store.increment(key, 1) or 0

    def reset_at(self, identity: str) -> int | None:
        """Return the recorded window reset time for identity.

        The value is advisory: it was computed when the window started and may
        drift from the store's actual eviction instant, or be gone already.
        """

        return self._store.read(self.expiration_key(identity))
