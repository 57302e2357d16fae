from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from pistats.provider import DataProvider, TargetState

router = APIRouter(prefix="/api/pihole")


def _provider(request: Request) -> DataProvider:
    return request.app.state.provider


def _state(provider: DataProvider, host: str) -> TargetState:
    try:
        return provider.state(host)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown Pi-hole {host}")


@router.get("")
async def list_piholes(request: Request):
    return [s.model_dump() for s in _provider(request).states()]


@router.get("/summary")
async def get_summary(request: Request):
    return _provider(request).totals().model_dump()


@router.post("/refresh")
async def refresh_all(request: Request):
    provider = _provider(request)
    await provider.refresh()
    return [s.model_dump() for s in provider.states()]


@router.post("/enable")
async def enable_all(request: Request):
    return {"results": await _provider(request).enable_all()}


@router.post("/disable")
async def disable_all(request: Request, seconds: int | None = Query(default=None, ge=0)):
    return {"results": await _provider(request).disable_all(seconds)}


@router.delete("/errors")
async def reset_errors(request: Request):
    _provider(request).reset_error()
    return {"ok": True}


# Hosts may carry a scheme or port, hence the path converter.
@router.post("/{host:path}/enable")
async def enable_pihole(host: str, request: Request):
    provider = _provider(request)
    _state(provider, host)
    ok = await provider.enable(host)
    return {"ok": ok, **provider.state(host).model_dump()}


@router.post("/{host:path}/disable")
async def disable_pihole(
    host: str, request: Request, seconds: int | None = Query(default=None, ge=0)
):
    provider = _provider(request)
    _state(provider, host)
    ok = await provider.disable(host, seconds)
    return {"ok": ok, **provider.state(host).model_dump()}


@router.delete("/{host:path}/error")
async def reset_error(host: str, request: Request):
    provider = _provider(request)
    _state(provider, host)
    provider.reset_error(host)
    return provider.state(host).model_dump()


@router.get("/{host:path}")
async def get_pihole(host: str, request: Request):
    return _state(_provider(request), host).model_dump()
