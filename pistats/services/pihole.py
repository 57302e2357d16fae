"""Pi-hole admin API client (v5 /admin/api.php)."""
from __future__ import annotations

import asyncio
import logging

import httpx
from pydantic import ValidationError

from pistats.errors import (
    ConfigurationError,
    DecodeError,
    MissingCredentialError,
    TransportError,
    UnexpectedStatusError,
)
from pistats.models import BlockingStatus, Summary, Target

log = logging.getLogger(__name__)

API_PATH = "/admin/api.php"
DEFAULT_TIMEOUT = 20.0


def base_url(target: Target) -> str:
    """Return ``scheme://host[:port]`` for *target*, defaulting to http."""
    host = target.host
    if not host:
        raise ConfigurationError()
    if "://" not in host:
        host = f"http://{host}"
    try:
        url = httpx.URL(host)
    except (httpx.InvalidURL, ValueError) as e:
        raise ConfigurationError("Invalid URL") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError("Invalid URL")
    return host


class PiholeClient:
    """One attempt per call against a single Pi-hole; failures are ``PiholeError``.

    The ``httpx.AsyncClient`` is shared and owned by the caller.  Each call
    is bounded by *timeout* on top of whatever the client itself enforces.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._client = client
        self.timeout = timeout

    async def fetch_summary(self, target: Target) -> Summary:
        """Fetch Pi-hole summary stats."""
        data = await self._call(target, {"summaryRaw": ""})
        if isinstance(data, list):
            # v5 answers [] when the summary needs a token
            raise MissingCredentialError()
        if not isinstance(data, dict):
            raise DecodeError(f"expected a JSON object, got {type(data).__name__}")
        try:
            return Summary.model_validate(data)
        except ValidationError as e:
            raise DecodeError(e) from e

    async def set_enabled(
        self, target: Target, enabled: bool, seconds: int | None = None
    ) -> BlockingStatus:
        """Enable or disable blocking and return the status Pi-hole confirmed.

        *seconds* only applies to disable; ``None`` or 0 disables until
        re-enabled.
        """
        base_url(target)
        if not target.api_token:
            raise MissingCredentialError()

        if enabled:
            params = {"enable": ""}
        else:
            params = {"disable": str(seconds) if seconds else ""}
        data = await self._call(target, params)

        if isinstance(data, list):
            # token was rejected
            raise MissingCredentialError("API Token rejected")
        if not isinstance(data, dict) or not isinstance(data.get("status"), str):
            raise DecodeError("missing status field")
        return BlockingStatus.parse(data["status"])

    async def _call(self, target: Target, params: dict[str, str]):
        url = base_url(target) + API_PATH
        if target.api_token:
            params["auth"] = target.api_token

        try:
            resp = await asyncio.wait_for(
                self._client.get(url, params=params), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise TransportError(f"timed out after {self.timeout:g}s") from e
        except httpx.InvalidURL as e:
            raise ConfigurationError("Invalid URL") from e
        except httpx.HTTPError as e:
            raise TransportError(e) from e

        if not resp.is_success:
            log.debug("Pi-hole %s answered %s", target.host, resp.status_code)
            raise UnexpectedStatusError(resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(e) from e
