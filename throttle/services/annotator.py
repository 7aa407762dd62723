"""Rate limit response headers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from starlette.responses import Response

from throttle.services.decision import LimitDecision

HEADER_KEYS = frozenset({"limit", "remaining", "reset"})

# RFC 9110 field-name token; anything else cannot be sent as a header name
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


def _is_valid_header_names(header_names: Any) -> bool:
    if not isinstance(header_names, Mapping):
        return False
    if set(header_names.keys()) != HEADER_KEYS:
        return False
    return all(
        isinstance(name, str) and _HEADER_NAME_RE.fullmatch(name) is not None
        for name in header_names.values()
    )


def build_rate_limit_headers(decision: LimitDecision, header_names: Any) -> dict[str, str]:
    """Map a decision onto header name/value pairs.

    Args:
        decision: Decision for the current request.
        header_names: Mapping with exactly the keys limit, remaining and reset.

    Returns:
        dict[str, str]: Headers to set, empty when header_names is malformed.
    """

    if not _is_valid_header_names(header_names):
        return {}

    return {
        header_names["limit"]: str(decision.limit),
        header_names["remaining"]: str(decision.remaining),
        header_names["reset"]: str(decision.reset_at),
    }


def annotate_response(response: Response, decision: LimitDecision, header_names: Any) -> Response:
    """Add rate limit headers to response and return it.

    A malformed header_names value leaves the response untouched, so a
    broken header configuration only disables the headers.
    """

    for name, value in build_rate_limit_headers(decision, header_names).items():
        response.headers[name] = value
    return response
