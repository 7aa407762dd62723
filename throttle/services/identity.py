"""Requester identity resolution.

An identifier is any callable taking the inbound request and returning the
string that scopes its rate limit window. Identifiers are validated once when
the throttle is configured, never per request.
"""

from __future__ import annotations

import importlib
from typing import Any, Callable

from starlette.requests import Request

from throttle.core.errors import ConfigurationAppError

Identifier = Callable[[Request], str]


def resolve_identifier(request: Request) -> str:
    """Default identifier: the client network address.

    Args:
        request: Incoming request.

    Returns:
        str: Client host, or "unknown" when the transport exposes none.
    """

    return request.client.host if request.client else "unknown"


def validate_identifier(identifier: Any) -> Identifier:
    """Ensure a configured identifier can be invoked.

    Raises:
        ConfigurationAppError: If identifier is not callable.
    """

    if not callable(identifier):
        raise ConfigurationAppError(
            code="throttle_invalid_identifier",
            message="Throttle identifier option must be a callable",
            details={"option": "identifier", "value": type(identifier).__name__},
        )
    return identifier


def load_identifier(path: str) -> Identifier:
    """Import an identifier from a 'package.module:function' path.

    Args:
        path: Import path of the identifier callable.

    Returns:
        The validated callable.

    Raises:
        ConfigurationAppError: If the path is malformed, cannot be imported,
            or does not point at a callable.
    """

    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationAppError(
            code="throttle_invalid_identifier",
            message=f"Identifier path must look like 'module:function', got '{path}'",
            details={"option": "identifier", "value": path},
        )

    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationAppError(
            code="throttle_invalid_identifier",
            message=f"Cannot import throttle identifier '{path}'",
            details={"option": "identifier", "value": path},
        ) from exc

    return validate_identifier(target)


def forwarded_for_identifier(request: Request) -> str:
    """Identifier for deployments behind a trusted reverse proxy.

    Uses the first X-Forwarded-For hop and falls back to the client address.
    Only enable this when the proxy overwrites the header.
    """

    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or resolve_identifier(request)
