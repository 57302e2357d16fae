from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class BlockingStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def parse(cls, value: str) -> BlockingStatus:
        """Anything Pi-hole reports other than "enabled" counts as disabled."""
        return cls.ENABLED if value.strip().lower() == "enabled" else cls.DISABLED


class Target(BaseModel):
    """One monitored Pi-hole, identified by its host address."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    host: str
    # passed through to Pi-hole only; never serialized
    api_token: str | None = Field(
        default=None,
        exclude=True,
        repr=False,
        validation_alias=AliasChoices("api_token", "apiToken", "token"),
    )
    label: str | None = None

    @field_validator("host")
    @classmethod
    def _strip_host(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def display_name(self) -> str:
        return self.label or self.host


class Summary(BaseModel):
    """Point-in-time statistics decoded from ``/admin/api.php?summaryRaw``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    queries_today: int = Field(ge=0, validation_alias="dns_queries_today")
    blocked_today: int = Field(ge=0, validation_alias="ads_blocked_today")
    percent_blocked: float = Field(ge=0, le=100, validation_alias="ads_percentage_today")
    domains_blocked: int = Field(ge=0, validation_alias="domains_being_blocked")
    status: BlockingStatus
    unique_clients: int | None = None
    gravity_last_updated: int | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, v):
        return BlockingStatus.parse(v) if isinstance(v, str) else v

    @field_validator("gravity_last_updated", mode="before")
    @classmethod
    def _gravity_absolute(cls, v):
        # comes as an object with absolute/relative keys
        if isinstance(v, dict):
            return v.get("absolute")
        return v

    @property
    def enabled(self) -> bool:
        return self.status is BlockingStatus.ENABLED
