from __future__ import annotations

import json
import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError

from pistats.models import Target

log = logging.getLogger(__name__)


def _csv_list(key: str) -> list[str]:
    raw = os.getenv(key, "")
    return [x.strip() for x in raw.split(",") if x.strip()]


def load_targets_file(path: str) -> list[Target]:
    """Return the targets listed in a JSON file (a list of objects)."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON list of Pi-hole targets")
    try:
        return [Target.model_validate(item) for item in raw]
    except ValidationError as e:
        raise ValueError(f"{path}: invalid target entry: {e}") from e


class Settings(BaseModel):
    """Startup configuration; built once and handed to each component."""

    model_config = ConfigDict(frozen=True)

    # --- Auth / Server ---
    api_key: str = ""
    host: str = "127.0.0.1"
    port: int = 8100
    log_level: str = "INFO"

    # --- Pi-hole fleet ---
    targets: tuple[Target, ...] = ()

    # --- Polling (seconds) ---
    poll_interval: float = 3.0
    request_timeout: float = 20.0

    @classmethod
    def from_env(cls, dotenv: bool = True) -> Settings:
        """Build settings from the environment (and ``.env`` when *dotenv*)."""
        if dotenv:
            load_dotenv()
        return cls(
            api_key=os.getenv("PISTATS_API_KEY", ""),
            host=os.getenv("PISTATS_HOST", "127.0.0.1"),
            port=int(os.getenv("PISTATS_PORT", "8100")),
            log_level=os.getenv("PISTATS_LOG_LEVEL", "INFO").upper(),
            targets=tuple(cls._targets_from_env()),
            poll_interval=float(os.getenv("PISTATS_POLL_INTERVAL", "3")),
            request_timeout=float(os.getenv("PISTATS_REQUEST_TIMEOUT", "20")),
        )

    @staticmethod
    def _targets_from_env() -> list[Target]:
        path = os.getenv("PISTATS_TARGETS_PATH", "")
        if path:
            return load_targets_file(path)

        token = os.getenv("PIHOLE_API_TOKEN") or None
        hosts = _csv_list("PIHOLE_HOSTS")
        if hosts:
            return [Target(host=h, api_token=token) for h in hosts]
        # single Pi-hole; an empty URL is kept so it surfaces as a config error
        return [Target(host=os.getenv("PIHOLE_URL", ""), api_token=token)]

    def validate_targets(self) -> None:
        """Log warnings for targets that will not work as configured.

        Duplicate hosts are dealt with by ``DataProvider``.
        """
        for t in self.targets:
            if not t.host:
                log.warning("A Pi-hole has no host address — it will not be polled")
            elif not t.api_token:
                log.warning(
                    "No API token for %s — enable/disable will fail and stats may be incomplete",
                    t.display_name,
                )
        if not self.targets:
            log.warning("No Pi-hole configured; set PIHOLE_URL, PIHOLE_HOSTS or PISTATS_TARGETS_PATH")
