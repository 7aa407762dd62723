"""Factory for creating counter store instances."""

from __future__ import annotations

from throttle.adapters.store.base import AbstractCounterStore
from throttle.adapters.store.in_memory import InMemoryCounterStore
from throttle.adapters.store.redis_store import RedisCounterStore
from throttle.core.config import StoreSettings, settings
from throttle.core.errors import ConfigurationAppError


def create_counter_store(store_settings: StoreSettings | None = None) -> AbstractCounterStore:
    """Instantiate the configured counter store and run its startup setup.

    Called once during application construction. The returned store is
    passed explicitly to the throttle; nothing is registered globally.

    Args:
        store_settings: Optional settings; defaults to global settings if omitted.

    Returns:
        AbstractCounterStore: Ready-to-use store.

    Raises:
        ConfigurationAppError: If the backend name is unknown.
        StoreAppError: If the backend cannot be reached during setup.
    """
    cfg = store_settings or settings.store
    backend = cfg.backend.lower()

    if backend == "memory":
        store: AbstractCounterStore = InMemoryCounterStore()
    elif backend == "redis":
        store = RedisCounterStore(
            url=cfg.redis_url,
            socket_timeout_seconds=cfg.socket_timeout_seconds,
        )
    else:
        raise ConfigurationAppError(
            code="store_unknown_backend",
            message=f"Unknown counter store backend: '{backend}'. Supported backends: memory, redis",
            details={"option": "backend", "value": backend},
        )

    store.setup()
    return store
