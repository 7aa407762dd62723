"""HTTP middleware enforcing the throttle on every request.

The middleware:
- Resolves the requester identity and counts the request in the store
- Short-circuits with the configured 429 rejection response when over limit
- Adds X-RateLimit-* headers to whichever response is returned
- Applies the fail-open/fail-closed policy when the counter store fails

Usage:
    app.middleware("http")(build_throttle_middleware(throttle))
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable, Iterable

from fastapi import Request, Response
from starlette.concurrency import run_in_threadpool

from throttle.core.errors import StoreAppError
from throttle.core.exception_handlers import build_error_response
from throttle.services.throttle import Throttle

logger = logging.getLogger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]

DEFAULT_EXEMPT_PATHS = frozenset({"/health"})


def hash_identity(identity: str) -> str:
    """Hash the identity for logging without exposing client addresses."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


def build_throttle_middleware(
    throttle: Throttle,
    *,
    fail_open: bool = False,
    exempt_paths: Iterable[str] = DEFAULT_EXEMPT_PATHS,
) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Create an HTTP middleware function bound to a throttle.

    Args:
        throttle: Configured throttle service.
        fail_open: When the store fails, pass requests through instead of
            answering 503.
        exempt_paths: Paths that are never counted.

    Returns:
        Middleware function for app.middleware("http").
    """

    exempt = frozenset(exempt_paths)

    async def throttle_middleware(request: Request, call_next: CallNext) -> Response:
        if request.url.path in exempt:
            return await call_next(request)

        identity = throttle.identify(request)
        identity_hash = hash_identity(identity)

        try:
            # Store calls may block (e.g. Redis); keep them off the event loop
            decision = await run_in_threadpool(throttle.check_identity, identity)
        except StoreAppError as exc:
            if fail_open:
                logger.warning(
                    "throttle.store_failure",
                    extra={
                        "identity_hash": identity_hash,
                        "error_code": exc.code,
                        "policy": "fail_open",
                    },
                )
                return await call_next(request)

            logger.error(
                "throttle.store_failure",
                extra={
                    "identity_hash": identity_hash,
                    "error_code": exc.code,
                    "policy": "fail_closed",
                },
            )
            return build_error_response(exc)

        if not decision.allowed:
            logger.warning(
                "throttle.exceeded",
                extra={
                    "identity_hash": identity_hash,
                    "count": decision.count,
                    "limit": decision.limit,
                    "reset_at": decision.reset_at,
                    "path": request.url.path,
                },
            )
            return throttle.reject(decision)

        logger.debug(
            "throttle.allowed",
            extra={
                "identity_hash": identity_hash,
                "count": decision.count,
                "limit": decision.limit,
                "remaining": decision.remaining,
            },
        )
        response = await call_next(request)
        return throttle.annotate(response, decision)

    return throttle_middleware
