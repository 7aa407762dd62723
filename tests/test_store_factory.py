"""Tests for counter store construction from settings."""

from unittest.mock import patch

import pytest

from throttle.adapters.store.factory import create_counter_store
from throttle.adapters.store.in_memory import InMemoryCounterStore
from throttle.core.config import StoreSettings
from throttle.core.errors import ConfigurationAppError


def test_memory_backend() -> None:
    store = create_counter_store(StoreSettings(backend="memory"))

    assert isinstance(store, InMemoryCounterStore)


def test_backend_name_is_case_insensitive() -> None:
    store = create_counter_store(StoreSettings(backend="MEMORY"))

    assert isinstance(store, InMemoryCounterStore)


@patch("throttle.adapters.store.factory.RedisCounterStore")
def test_redis_backend_is_built_and_set_up(mock_redis_store) -> None:
    store = create_counter_store(
        StoreSettings(
            backend="redis",
            redis_url="redis://cache:6379/1",
            socket_timeout_seconds=1.5,
        )
    )

    mock_redis_store.assert_called_once_with(
        url="redis://cache:6379/1",
        socket_timeout_seconds=1.5,
    )
    assert store is mock_redis_store.return_value
    store.setup.assert_called_once_with()


def test_unknown_backend_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationAppError) as exc_info:
        create_counter_store(StoreSettings(backend="memcached"))

    assert exc_info.value.code == "store_unknown_backend"
