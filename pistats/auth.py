from __future__ import annotations

import secrets

from fastapi import HTTPException, Request

API_KEY_HEADER = "X-API-KEY"
OPEN_PATHS = frozenset({"/healthz"})


async def verify_api_key(request: Request) -> None:
    """Guard the Pi-hole state and commands behind ``PISTATS_API_KEY``.

    With no key configured every request passes; liveness stays open.
    """
    expected = request.app.state.settings.api_key
    if not expected or request.url.path in OPEN_PATHS:
        return
    supplied = request.headers.get(API_KEY_HEADER, "")
    if not secrets.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
