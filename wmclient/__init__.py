"""Python client for the WM device-detection server."""

from .client import API_VERSION, WmClient, create, create_from_config
from .config import ClientConfig
from .errors import (
    DeviceNotFoundError,
    NotFoundError,
    ProtocolError,
    ServerError,
    ValidationError,
    WmConnectionError,
    WmError,
)
from .model import DeviceResult, InfoData, ModelMarketingName

__version__ = API_VERSION

__all__ = [
    "ClientConfig",
    "DeviceNotFoundError",
    "DeviceResult",
    "InfoData",
    "ModelMarketingName",
    "NotFoundError",
    "ProtocolError",
    "ServerError",
    "ValidationError",
    "WmClient",
    "WmConnectionError",
    "WmError",
    "create",
    "create_from_config",
]
