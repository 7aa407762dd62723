"""Throttle service: identity -> window count -> admission decision.

ThrottleConfig is validated once at construction so misconfiguration fails
before any traffic is served. Throttle itself holds no mutable state; all
window state lives in the counter store it was given.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Mapping

from starlette.requests import Request
from starlette.responses import Response

from throttle.adapters.store.base import AbstractCounterStore
from throttle.core.config import DEFAULT_HEADER_NAMES, ThrottleSettings
from throttle.core.errors import ConfigurationAppError
from throttle.services.annotator import annotate_response
from throttle.services.decision import LimitDecision, build_decision
from throttle.services.identity import (
    Identifier,
    load_identifier,
    resolve_identifier,
    validate_identifier,
)
from throttle.services.window_tracker import WindowTracker
from throttle.utils.intervals import parse_interval

TOO_MANY_REQUESTS = 429


@dataclass(frozen=True)
class RejectionResponse:
    """Response returned when a request is over the limit."""

    body: str = "Rate limit exceeded"
    content_type: str = "text/html"
    headers: Mapping[str, str] = field(default_factory=dict)

    def render(self) -> Response:
        return Response(
            content=self.body,
            status_code=TOO_MANY_REQUESTS,
            media_type=self.content_type,
            headers=dict(self.headers),
        )


@dataclass(frozen=True)
class ThrottleConfig:
    """Validated throttle configuration.

    Attributes:
        interval: Window length; accepts anything parse_interval does and is
            normalized to whole seconds.
        limit: Max requests per identity per window.
        identifier: Callable mapping a request to an identity.
        header_names: Mapping of limit/remaining/reset to header names. Any
            other value disables rate limit headers.
        rejection: Response used for denied requests.
        namespace: Prefix for counter store keys.
    """

    interval: str | int | float | timedelta = "+1 minute"
    limit: int = 10
    identifier: Any = resolve_identifier
    header_names: Any = field(default_factory=lambda: dict(DEFAULT_HEADER_NAMES))
    rejection: RejectionResponse = field(default_factory=RejectionResponse)
    namespace: str = "throttle"

    def __post_init__(self) -> None:
        validate_identifier(self.identifier)
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 0:
            raise ConfigurationAppError(
                code="throttle_invalid_limit",
                message="Throttle limit must be a non-negative integer",
                details={"option": "limit", "value": str(self.limit)},
            )
        if not self.namespace:
            raise ConfigurationAppError(
                code="throttle_invalid_namespace",
                message="Throttle namespace must be a non-empty string",
                details={"option": "namespace", "value": repr(self.namespace)},
            )
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "interval", parse_interval(self.interval))

    @property
    def interval_seconds(self) -> int:
        return int(self.interval)

    @classmethod
    def from_settings(
        cls,
        throttle_settings: ThrottleSettings,
        *,
        identifier: Identifier | None = None,
    ) -> "ThrottleConfig":
        """Build a config from environment-driven settings.

        Args:
            throttle_settings: Throttle section of the application settings.
            identifier: Callable overriding settings.identifier.

        Raises:
            ConfigurationAppError: If any option is invalid.
        """

        if identifier is None:
            identifier = (
                load_identifier(throttle_settings.identifier)
                if throttle_settings.identifier
                else resolve_identifier
            )

        return cls(
            interval=throttle_settings.interval,
            limit=throttle_settings.limit,
            identifier=identifier,
            header_names=throttle_settings.headers,
            rejection=RejectionResponse(
                body=throttle_settings.response_body,
                content_type=throttle_settings.response_type,
                headers=dict(throttle_settings.response_headers),
            ),
            namespace=throttle_settings.namespace,
        )


class Throttle:
    """Applies a ThrottleConfig against a counter store."""

    def __init__(
        self,
        config: ThrottleConfig,
        store: AbstractCounterStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self._clock = clock
        self.tracker = WindowTracker(
            store,
            interval_seconds=config.interval_seconds,
            namespace=config.namespace,
            clock=clock,
        )

    def identify(self, request: Request) -> str:
        return str(self.config.identifier(request))

    def check(self, request: Request) -> LimitDecision:
        """Count the request and decide whether it may proceed."""

        return self.check_identity(self.identify(request))

    def check_identity(self, identity: str) -> LimitDecision:
        """Count one request for identity and decide whether it may proceed.

        Raises:
            StoreAppError: Propagated unchanged when the store fails.
        """

        count = self.tracker.touch(identity)
        reset_at = self.tracker.reset_at(identity)
        if reset_at is None:
            # Marker already evicted; report an approximate reset time
            reset_at = int(self._clock()) + self.config.interval_seconds
        return build_decision(count, self.config.limit, reset_at)

    def reject(self, decision: LimitDecision) -> Response:
        """Build the annotated rejection response for a denied decision."""

        return self.annotate(self.config.rejection.render(), decision)

    def annotate(self, response: Response, decision: LimitDecision) -> Response:
        return annotate_response(response, decision, self.config.header_names)
