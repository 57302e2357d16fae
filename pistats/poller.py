"""Fixed-interval polling of every configured Pi-hole."""
from __future__ import annotations

import asyncio
import logging

from pistats.models import Target
from pistats.provider import DataProvider

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 3.0


class Poller:
    """Fan out one fetch per target on every tick.

    Ticks never wait for the previous tick's requests, so a slow or dead
    Pi-hole cannot delay the others.  ``stop()`` cancels the schedule only;
    requests already in flight finish and are applied by the provider,
    which drops them if something newer has landed in the meantime.
    """

    def __init__(self, provider: DataProvider, interval: float = DEFAULT_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("polling interval must be positive")
        self.provider = provider
        self.interval = interval
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def start(self) -> None:
        """Fetch immediately, then every ``interval`` seconds.  Must run on the loop."""
        if self.running:
            return
        self._tick()
        self._task = asyncio.create_task(self._schedule(), name="pistats-poller")
        log.info(
            "Polling %d Pi-hole(s) every %gs",
            len(self.provider.targets),
            self.interval,
        )

    def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        log.info("Polling stopped (%d request(s) still in flight)", len(self._inflight))

    async def drain(self) -> None:
        """Wait for requests issued before ``stop()`` to be applied."""
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def _schedule(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._tick()

    def _tick(self) -> None:
        for target in self.provider.targets:
            if self.provider.is_misconfigured(target.host):
                continue
            task = asyncio.create_task(self._fetch(target))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _fetch(self, target: Target) -> None:
        try:
            await self.provider.fetch(target)
        except Exception:
            # the client only raises PiholeError, which fetch() handles
            log.exception("Unexpected failure polling %s", target.display_name)
