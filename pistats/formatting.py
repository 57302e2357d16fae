"""Display strings derived from a summary snapshot."""
from __future__ import annotations

from pistats.models import Summary

PLACEHOLDER = "-"

STATUS_ENABLED = "Enabled"
STATUS_DISABLED = "Disabled"
STATUS_MIXED = "Mixed"
STATUS_UNKNOWN = "Unknown"

BUTTON_ENABLE = "Enable"
BUTTON_DISABLE = "Disable"


def format_count(value: int | None) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:,}"


def format_percent(value: float | None) -> str:
    """``25.0`` -> ``"25.00%"`` (input is already 0-100)."""
    if value is None:
        return PLACEHOLDER
    return f"{value:.2f}%"


def status_label(enabled: bool | None) -> str:
    if enabled is None:
        return STATUS_UNKNOWN
    return STATUS_ENABLED if enabled else STATUS_DISABLED


def action_label(enabled: bool | None) -> str:
    """Label of the button that flips the current state."""
    return BUTTON_DISABLE if enabled else BUTTON_ENABLE


def summary_strings(summary: Summary | None) -> dict[str, str]:
    if summary is None:
        return {
            "total_queries": PLACEHOLDER,
            "queries_blocked": PLACEHOLDER,
            "percent_blocked": PLACEHOLDER,
            "domains_on_blocklist": PLACEHOLDER,
        }
    return {
        "total_queries": format_count(summary.queries_today),
        "queries_blocked": format_count(summary.blocked_today),
        "percent_blocked": format_percent(summary.percent_blocked),
        "domains_on_blocklist": format_count(summary.domains_blocked),
    }
