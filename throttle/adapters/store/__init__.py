"""Counter store adapters.

A small abstraction layer so the throttle can run against an in-memory store
in a single process or against Redis when limits must be shared.
"""

from throttle.adapters.store.base import AbstractCounterStore
from throttle.adapters.store.factory import create_counter_store
from throttle.adapters.store.in_memory import InMemoryCounterStore
from throttle.adapters.store.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_counter_store",
]
