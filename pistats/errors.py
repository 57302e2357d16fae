"""Failure taxonomy for Pi-hole round trips.

Every failure the client can hit is raised as one of these; nothing else
escapes ``PiholeClient``.  ``message`` is what the UI shows next to the
last-known-good stats.
"""
from __future__ import annotations


class PiholeError(Exception):
    kind = "error"
    retryable = True

    @property
    def message(self) -> str:
        return str(self)


class ConfigurationError(PiholeError):
    """Empty or malformed host.  Not retried until the target is reconfigured."""

    kind = "configuration"
    retryable = False

    def __init__(self, detail: str = "Open Settings to configure your host address") -> None:
        super().__init__(detail)


class MissingCredentialError(PiholeError):
    kind = "missing_credential"

    def __init__(self, detail: str = "No API Token Provided") -> None:
        super().__init__(detail)


class TransportError(PiholeError):
    kind = "transport"

    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause
        super().__init__(f"Session error: {str(cause) or type(cause).__name__}")


class UnexpectedStatusError(PiholeError):
    kind = "unexpected_status"

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Session error: {status_code}")


class DecodeError(PiholeError):
    kind = "decode"

    def __init__(self, cause: BaseException | str) -> None:
        self.cause = cause
        super().__init__(f"Can't decode response: {cause}")
