"""Published per-Pi-hole state and the commands that mutate it.

All mutation happens on the event loop that runs the poller: fetches are
coroutines on that loop and results are applied right after their await,
so there is one writer context and no locking.  Subscribers are called
synchronously after every committed change.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Iterable

from pydantic import BaseModel, computed_field

from pistats import formatting
from pistats.errors import PiholeError
from pistats.models import BlockingStatus, Summary, Target
from pistats.services.pihole import PiholeClient

log = logging.getLogger(__name__)

Subscriber = Callable[[str, "TargetState"], None]


class TargetDisplay(BaseModel):
    total_queries: str
    queries_blocked: str
    percent_blocked: str
    domains_on_blocklist: str
    status: str
    action: str
    error_message: str


class TargetState(BaseModel):
    """Last-known-good snapshot plus the latest error for one target."""

    target: Target
    summary: Summary | None = None
    enabled: bool | None = None
    error: str | None = None
    error_kind: str | None = None
    updated_at: float | None = None

    @computed_field
    @property
    def display(self) -> TargetDisplay:
        return TargetDisplay(
            **formatting.summary_strings(self.summary),
            status=formatting.status_label(self.enabled),
            action=formatting.action_label(self.enabled),
            error_message=self.error or "",
        )

    @property
    def phase(self) -> str:
        """unknown | enabled | disabled | error (stale data kept)."""
        if self.error is not None:
            return "error"
        if self.enabled is None:
            return "unknown"
        return "enabled" if self.enabled else "disabled"


class FleetTotals(BaseModel):
    """Aggregate over every target that has reported at least once."""

    reporting: int
    queries_today: int
    blocked_today: int
    percent_blocked: float
    domains_blocked: int
    status: str

    @computed_field
    @property
    def display(self) -> dict[str, str]:
        return {
            "total_queries": formatting.format_count(self.queries_today),
            "queries_blocked": formatting.format_count(self.blocked_today),
            "percent_blocked": formatting.format_percent(self.percent_blocked),
            "domains_on_blocklist": formatting.format_count(self.domains_blocked),
            "status": self.status,
        }


class _Sequence:
    __slots__ = ("issued", "success", "failure", "command")

    def __init__(self) -> None:
        self.issued = 0
        self.success = 0
        self.failure = 0
        # sequence already issued when a command was last confirmed
        self.command = 0


class DataProvider:
    def __init__(self, targets: Iterable[Target], client: PiholeClient) -> None:
        self._client = client
        self._states: dict[str, TargetState] = {}
        self._seq: dict[str, _Sequence] = {}
        for t in targets:
            if t.host in self._states:
                if not t.host:
                    # one blank entry is enough to surface the config error
                    log.warning("Ignoring repeated Pi-hole entry without a host")
                    continue
                raise ValueError(f"duplicate Pi-hole host {t.host!r}")
            self._states[t.host] = TargetState(target=t)
            self._seq[t.host] = _Sequence()
        self._misconfigured: set[str] = set()
        self._subscribers: list[Subscriber] = []

    # ---- Read side ---------------------------------------------------------

    @property
    def targets(self) -> list[Target]:
        return [s.target for s in self._states.values()]

    def state(self, host: str) -> TargetState:
        return self._states[host]

    def states(self) -> list[TargetState]:
        return list(self._states.values())

    def is_misconfigured(self, host: str) -> bool:
        return host in self._misconfigured

    def totals(self) -> FleetTotals:
        reported = [s for s in self._states.values() if s.summary is not None]
        queries = sum(s.summary.queries_today for s in reported)
        blocked = sum(s.summary.blocked_today for s in reported)
        flags = {s.enabled for s in reported if s.enabled is not None}
        if not flags:
            status = formatting.STATUS_UNKNOWN
        elif len(flags) > 1:
            status = formatting.STATUS_MIXED
        else:
            status = formatting.status_label(flags.pop())
        return FleetTotals(
            reporting=len(reported),
            queries_today=queries,
            blocked_today=blocked,
            percent_blocked=(blocked / queries * 100) if queries else 0.0,
            # replicas share gravity, so the largest list is the fleet's list
            domains_blocked=max((s.summary.domains_blocked for s in reported), default=0),
            status=status,
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ---- Poll results ------------------------------------------------------

    def next_sequence(self, host: str) -> int:
        seq = self._seq[host]
        seq.issued += 1
        return seq.issued

    def apply_success(self, host: str, summary: Summary, sequence: int) -> bool:
        """Store *summary* unless a newer success was already applied."""
        state = self._states[host]
        seq = self._seq[host]
        if sequence <= seq.success:
            log.debug("Dropping stale summary #%d for %s", sequence, host)
            return False
        seq.success = sequence
        state.summary = summary
        state.updated_at = time.time()
        if sequence > seq.failure:
            state.error = None
            state.error_kind = None
        if sequence > seq.command:
            state.enabled = summary.enabled
        self._notify(host)
        return True

    def apply_failure(self, host: str, error: PiholeError, sequence: int) -> bool:
        """Record *error*; snapshot and enabled flag are left alone."""
        state = self._states[host]
        seq = self._seq[host]
        if sequence <= max(seq.success, seq.failure):
            log.debug("Dropping stale failure #%d for %s", sequence, host)
            return False
        seq.failure = sequence
        if not error.retryable:
            self._misconfigured.add(host)
        self._set_error(state, error)
        self._notify(host)
        return True

    async def fetch(self, target: Target) -> None:
        """One summary round trip for *target*, applied with the staleness guard."""
        host = target.host
        sequence = self.next_sequence(host)
        try:
            summary = await self._client.fetch_summary(target)
        except PiholeError as e:
            log.warning("Refresh %s failed: %s", target.display_name, e)
            self.apply_failure(host, e, sequence)
        else:
            log.debug("Refreshed %s (#%d)", target.display_name, sequence)
            self.apply_success(host, summary, sequence)

    async def refresh(self, host: str | None = None) -> None:
        """Fetch every target (or just *host*) concurrently.

        Targets that failed with a configuration error are skipped until
        the provider is rebuilt with new settings.
        """
        if host is not None:
            targets = [self._states[host].target]
        else:
            targets = self.targets
        targets = [t for t in targets if t.host not in self._misconfigured]
        await asyncio.gather(*(self.fetch(t) for t in targets))

    # ---- Commands ----------------------------------------------------------

    async def enable(self, host: str) -> bool:
        return await self._set_enabled(host, True)

    async def disable(self, host: str, seconds: int | None = None) -> bool:
        return await self._set_enabled(host, False, seconds)

    async def enable_all(self) -> dict[str, bool]:
        return await self._for_all(self.enable)

    async def disable_all(self, seconds: int | None = None) -> dict[str, bool]:
        return await self._for_all(lambda h: self.disable(h, seconds))

    def reset_error(self, host: str | None = None) -> None:
        hosts = [host] if host is not None else list(self._states)
        for h in hosts:
            state = self._states[h]
            if state.error is None:
                continue
            state.error = None
            state.error_kind = None
            self._notify(h)

    async def _set_enabled(self, host: str, enabled: bool, seconds: int | None = None) -> bool:
        state = self._states[host]
        try:
            status = await self._client.set_enabled(state.target, enabled, seconds)
        except PiholeError as e:
            log.warning(
                "%s %s failed: %s",
                "Enable" if enabled else "Disable",
                state.target.display_name,
                e,
            )
            self._set_error(state, e)
            self._notify(host)
            return False

        # polls issued before this confirmation must not flip the flag back
        self._seq[host].command = self._seq[host].issued
        state.enabled = status is BlockingStatus.ENABLED
        state.error = None
        state.error_kind = None
        log.info("%s is now %s", state.target.display_name, status.value)
        self._notify(host)
        return True

    async def _for_all(self, command) -> dict[str, bool]:
        hosts = list(self._states)
        results = await asyncio.gather(*(command(h) for h in hosts))
        return dict(zip(hosts, results))

    # ---- Internals ---------------------------------------------------------

    @staticmethod
    def _set_error(state: TargetState, error: PiholeError) -> None:
        state.error = error.message
        state.error_kind = error.kind

    def _notify(self, host: str) -> None:
        state = self._states[host]
        for callback in list(self._subscribers):
            try:
                callback(host, state)
            except Exception:
                log.exception("State subscriber failed for %s", host)
