"""Custom exception hierarchy for vyntool."""

from __future__ import annotations


class VynError(Exception):
    """Base exception for all vyntool errors."""


class VynConfigError(VynError):
    """Invalid or missing configuration."""


class VynTransportError(VynError):
    """HTTP-level failure talking to the backend (network, non-200, invalid JSON, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        command: str = "",
    ) -> None:
        self.status_code = status_code
        self.command = command
        super().__init__(message)


class VynBackendError(VynError):
    """Backend accepted the request but reported a failure (``ok: false``)."""

    def __init__(self, message: str, *, command: str = "") -> None:
        self.command = command
        super().__init__(message)


class VynPayloadError(VynError):
    """A snapshot payload could not be validated.

    Raised at the ingestion boundary; the channel catches it and keeps the
    current snapshot.
    """
