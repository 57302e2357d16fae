"""PiStats — live Pi-hole statistics for a menu-bar style front end."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI

from pistats.auth import verify_api_key
from pistats.config import Settings
from pistats.poller import Poller
from pistats.provider import DataProvider, TargetState
from pistats.routes import health
from pistats.routes import pihole as pihole_routes
from pistats.services.pihole import PiholeClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("pistats")


def _log_change(host: str, state: TargetState) -> None:
    log.debug("%s -> %s", host, state.phase)


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app.  *transport* replaces the network (tests)."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.validate_targets()
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout),
            transport=transport,
        )
        provider = DataProvider(
            settings.targets,
            PiholeClient(client, timeout=settings.request_timeout),
        )
        provider.subscribe(_log_change)
        poller = Poller(provider, interval=settings.poll_interval)
        app.state.http = client
        app.state.provider = provider
        app.state.poller = poller

        poller.start()
        log.info("PiStats started — %d Pi-hole(s)", len(settings.targets))
        yield

        poller.stop()
        await poller.drain()
        await client.aclose()
        log.info("PiStats shutdown complete")

    app = FastAPI(
        title="PiStats",
        version="0.1.0",
        lifespan=lifespan,
        dependencies=[Depends(verify_api_key)],
    )
    app.state.settings = settings
    app.include_router(health.router)
    app.include_router(pihole_routes.router)
    return app


def main() -> None:
    import uvicorn

    settings = Settings.from_env()
    logging.getLogger().setLevel(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
