"""Application factory for the throttled FastAPI app.

Centralizes app construction (logging, store setup, middleware, handlers,
routers). All configuration is validated here, before the app serves any
request.
"""

from __future__ import annotations

from fastapi import FastAPI

from throttle.adapters.store.base import AbstractCounterStore
from throttle.adapters.store.factory import create_counter_store
from throttle.api.routes import health_router, ping_router
from throttle.core.config import Settings, settings as global_settings
from throttle.core.exception_handlers import setup_exception_handlers
from throttle.core.logging import configure_logging
from throttle.core.middleware import build_throttle_middleware
from throttle.services.identity import Identifier
from throttle.services.throttle import Throttle, ThrottleConfig


def create_app(
    settings: Settings | None = None,
    *,
    store: AbstractCounterStore | None = None,
    config: ThrottleConfig | None = None,
    identifier: Identifier | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to use; defaults to the global settings.
        store: Counter store; built from settings.store when omitted.
        config: Throttle config; built from settings.throttle when omitted.
        identifier: Identifier overriding settings.throttle.identifier.

    Returns:
        Configured FastAPI app.

    Raises:
        ConfigurationAppError: If throttle or store settings are invalid.
        StoreAppError: If the store cannot be set up.
    """
    cfg = settings or global_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Throttle",
        description="Request rate limiting middleware with X-RateLimit-* headers.",
        version="0.1.0",
    )

    if cfg.throttle.enabled:
        throttle_config = config or ThrottleConfig.from_settings(cfg.throttle, identifier=identifier)
        throttle = Throttle(throttle_config, store or create_counter_store(cfg.store))
        app.state.throttle = throttle
        app.middleware("http")(
            build_throttle_middleware(throttle, fail_open=cfg.throttle.fail_open)
        )

    setup_exception_handlers(app)

    app.include_router(ping_router, prefix="/v1")
    app.include_router(health_router)

    return app
