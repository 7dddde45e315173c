"""Error kinds raised by the WM client."""

from __future__ import annotations

__all__ = [
    "WmError",
    "WmConnectionError",
    "ProtocolError",
    "ValidationError",
    "ServerError",
    "NotFoundError",
    "DeviceNotFoundError",
]


class WmError(Exception):
    """Base class for every failure surfaced by :mod:`wmclient`."""


class WmConnectionError(WmError, ConnectionError):
    """Raised when the WM server cannot be reached or does not answer in time."""


class ProtocolError(WmError):
    """Raised when the server answers with malformed or incomplete data."""


class ValidationError(WmError, ValueError):
    """Raised when the caller supplies a request that cannot be sent."""


class ServerError(WmError):
    """Raised when the server reports an error for a well-formed request."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class NotFoundError(WmError, LookupError):
    """Raised when a catalog key does not exist."""


class DeviceNotFoundError(ServerError, NotFoundError):
    """Raised when a device identifier lookup is rejected by the server."""

    def __init__(self, wurfl_id: str, message: str, *, status: int | None = None) -> None:
        super().__init__(message, status=status)
        self.wurfl_id = wurfl_id
