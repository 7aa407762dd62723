"""Tests for rate limit response headers."""

import pytest
from starlette.responses import Response

from throttle.core.config import DEFAULT_HEADER_NAMES
from throttle.services.annotator import annotate_response, build_rate_limit_headers
from throttle.services.decision import build_decision


@pytest.fixture
def decision():
    return build_decision(count=3, limit=10, reset_at=1_700_000_000)


def test_default_header_values(decision) -> None:
    headers = build_rate_limit_headers(decision, DEFAULT_HEADER_NAMES)

    assert headers == {
        "X-RateLimit-Limit": "10",
        "X-RateLimit-Remaining": "7",
        "X-RateLimit-Reset": "1700000000",
    }


def test_annotate_sets_headers_on_response(decision) -> None:
    response = Response(content="ok", headers={"X-Existing": "1"})

    result = annotate_response(response, decision, DEFAULT_HEADER_NAMES)

    assert result is response
    assert result.headers["X-RateLimit-Limit"] == "10"
    assert result.headers["X-RateLimit-Remaining"] == "7"
    assert result.headers["X-RateLimit-Reset"] == "1700000000"
    assert result.headers["X-Existing"] == "1"


def test_custom_header_names(decision) -> None:
    names = {"limit": "RateLimit-Limit", "remaining": "RateLimit-Remaining", "reset": "RateLimit-Reset"}

    headers = build_rate_limit_headers(decision, names)

    assert headers["RateLimit-Remaining"] == "7"


def test_remaining_reported_as_zero_when_over_limit() -> None:
    over = build_decision(count=15, limit=10, reset_at=1_700_000_000)

    headers = build_rate_limit_headers(over, DEFAULT_HEADER_NAMES)

    assert headers["X-RateLimit-Remaining"] == "0"


@pytest.mark.parametrize(
    "header_names",
    [
        None,
        False,
        "X-RateLimit-Limit",
        ["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
        {"limit": "X-RateLimit-Limit"},
        {**DEFAULT_HEADER_NAMES, "extra": "X-Extra"},
        {"limit": "X-RateLimit-Limit", "remaining": None, "reset": "X-RateLimit-Reset"},
        {"limit": "", "remaining": "X-RateLimit-Remaining", "reset": "X-RateLimit-Reset"},
        {"limit": "X-RateLimit-Limit", "remaining": "X-Restante-\u00f1\u20ac", "reset": "X-RateLimit-Reset"},
        {"limit": "X-A\r\nB", "remaining": "X-RateLimit-Remaining", "reset": "X-RateLimit-Reset"},
        {"limit": "X-RateLimit-Limit", "remaining": "X-RateLimit Remaining", "reset": "X-RateLimit-Reset"},
        {"limit": "X-RateLimit-Limit", "remaining": "X-RateLimit-Remaining", "reset": "X-RateLimit-Reset\n"},
    ],
)
def test_malformed_header_names_leave_response_unchanged(decision, header_names) -> None:
    response = Response(content="ok")
    before = dict(response.headers)

    result = annotate_response(response, decision, header_names)

    assert result is response
    assert dict(result.headers) == before
