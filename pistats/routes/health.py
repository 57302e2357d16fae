from __future__ import annotations

import time

from fastapi import APIRouter, Request

router = APIRouter()

_start_time = time.time()
_VERSION = "0.1.0"


@router.get("/healthz")
async def healthz(request: Request):
    provider = request.app.state.provider
    poller = request.app.state.poller
    return {
        "status": "ok",
        "version": _VERSION,
        "uptime_seconds": round(time.time() - _start_time),
        "polling": poller.running,
        "inflight": poller.inflight,
        "updated_at": {s.target.host: s.updated_at for s in provider.states()},
        "errors": {s.target.host: s.error for s in provider.states()},
    }
