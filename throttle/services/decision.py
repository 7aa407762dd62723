"""Admission decision derived from a window count."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LimitDecision:
    """Outcome of one throttled request.

    Attributes:
        count: Requests seen in the current window, this one included.
        limit: Max requests per window.
        remaining: Requests left in the window (never negative).
        reset_at: UNIX epoch seconds when the window resets (advisory).
        allowed: Whether the request may proceed.
    """

    count: int
    limit: int
    remaining: int
    reset_at: int
    allowed: bool


def build_decision(count: int, limit: int, reset_at: int) -> LimitDecision:
    """Build a LimitDecision.

    The boundary is inclusive: the request that brings the count exactly to
    the limit is still allowed; the next one is denied.
    """

    return LimitDecision(
        count=count,
        limit=limit,
        remaining=max(0, limit - count),
        reset_at=int(reset_at),
        allowed=count <= limit,
    )
