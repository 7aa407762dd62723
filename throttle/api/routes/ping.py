from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Ping"])


@router.get("/ping")
def ping() -> dict:
    """Throttled endpoint for checking rate limit behaviour.

    Returns:
        dict: A dictionary with a single "message" key set to "pong".
    """

    return {"message": "pong"}
