from __future__ import annotations

import asyncio

import httpx
import pytest

from pistats.errors import PiholeError
from pistats.models import BlockingStatus, Summary, Target
from pistats.services.pihole import PiholeClient

SUMMARY_RAW = {
    "domains_being_blocked": 150000,
    "dns_queries_today": 1000,
    "ads_blocked_today": 250,
    "ads_percentage_today": 25.0,
    "unique_clients": 7,
    "status": "enabled",
    "gravity_last_updated": {
        "file_exists": True,
        "absolute": 1700000000,
        "relative": {"days": 1, "hours": 2, "minutes": 3},
    },
}


def make_summary(queries: int = 1000, status: str = "enabled", **overrides) -> Summary:
    data = {**SUMMARY_RAW, "dns_queries_today": queries, "status": status, **overrides}
    return Summary.model_validate(data)


@pytest.fixture
def summary_raw() -> dict:
    return dict(SUMMARY_RAW)


@pytest.fixture
def mock_client():
    """Build a PiholeClient over an httpx.MockTransport driven by *handler*."""
    def build(handler, timeout: float = 5.0) -> PiholeClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return PiholeClient(http, timeout=timeout)

    return build


class FakePiholeClient:
    """Stands in for PiholeClient; records calls, answers from dicts."""

    def __init__(self) -> None:
        self.summaries: dict[str, Summary] = {}
        self.errors: dict[str, PiholeError] = {}
        self.delays: dict[str, float] = {}
        self.command_error: PiholeError | None = None
        self.calls: list[str] = []
        self.commands: list[tuple[str, bool, int | None]] = []

    def count(self, host: str) -> int:
        return self.calls.count(host)

    async def fetch_summary(self, target: Target) -> Summary:
        self.calls.append(target.host)
        delay = self.delays.get(target.host)
        if delay:
            await asyncio.sleep(delay)
        if target.host in self.errors:
            raise self.errors[target.host]
        return self.summaries.get(target.host) or make_summary()

    async def set_enabled(
        self, target: Target, enabled: bool, seconds: int | None = None
    ) -> BlockingStatus:
        self.commands.append((target.host, enabled, seconds))
        if self.command_error is not None:
            raise self.command_error
        return BlockingStatus.ENABLED if enabled else BlockingStatus.DISABLED


@pytest.fixture
def fake_client() -> FakePiholeClient:
    return FakePiholeClient()
