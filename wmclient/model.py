"""Wire schema of the WM server JSON API.

Every response is validated at this boundary: anything that does not
match the expected shape raises :class:`~wmclient.errors.ProtocolError`
before it can reach the caches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .errors import ProtocolError

__all__ = [
    "InfoData",
    "LookupRequest",
    "DeviceResult",
    "ModelMarketingName",
    "parse_info",
    "parse_device",
    "parse_device_list",
    "parse_os_version_list",
]


@dataclass(frozen=True, slots=True)
class InfoData:
    """Server and API information returned by ``/v2/getinfo/json``."""

    wurfl_api_version: str
    wurfl_info: str
    wm_version: str
    important_headers: tuple[str, ...]
    static_caps: tuple[str, ...]
    virtual_caps: tuple[str, ...]
    ltime: Optional[str] = None


@dataclass(slots=True)
class LookupRequest:
    """Body of the three ``lookup*`` POST endpoints."""

    lookup_headers: Dict[str, str]
    requested_caps: Optional[List[str]] = None
    requested_vcaps: Optional[List[str]] = None
    wurfl_id: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "lookup_headers": dict(self.lookup_headers),
            "requested_caps": self.requested_caps,
            "requested_vCaps": self.requested_vcaps,
        }
        if self.wurfl_id is not None:
            payload["wurfl_id"] = self.wurfl_id
        return payload


@dataclass(frozen=True, slots=True)
class DeviceResult:
    """Outcome of a detection call."""

    capabilities: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    api_version: str = ""
    error: Optional[str] = None
    mtime: Any = None
    ltime: Optional[str] = None

    @property
    def wurfl_id(self) -> Optional[str]:
        return self.capabilities.get("wurfl_id")


@dataclass(frozen=True)
class ModelMarketingName:
    """Model and marketing name of one device of a given make."""

    model_name: str
    marketing_name: str


def _require_object(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ProtocolError(f"{what}: expected a JSON object, got {type(data).__name__}")
    return data


def _string_list(data: Dict[str, Any], key: str, what: str) -> List[str]:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ProtocolError(f"{what}: field {key!r} must be a list of strings")
    return list(raw)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_info(data: Any) -> InfoData:
    """Validate and convert a ``getinfo`` response."""

    obj = _require_object(data, "server info")
    info = InfoData(
        wurfl_api_version=str(obj.get("wurfl_api_version") or ""),
        wurfl_info=str(obj.get("wurfl_info") or ""),
        wm_version=str(obj.get("wm_version") or ""),
        important_headers=tuple(_string_list(obj, "important_headers", "server info")),
        static_caps=tuple(_string_list(obj, "static_caps", "server info")),
        virtual_caps=tuple(_string_list(obj, "virtual_caps", "server info")),
        ltime=_optional_str(obj.get("ltime")),
    )
    missing = [
        name
        for name, value in (
            ("wm_version", info.wm_version),
            ("wurfl_api_version", info.wurfl_api_version),
            ("wurfl_info", info.wurfl_info),
            ("static_caps", info.static_caps),
        )
        if not value
    ]
    if missing:
        raise ProtocolError(
            "server returned invalid or empty data: missing " + ", ".join(missing)
        )
    return info


def parse_device(data: Any) -> DeviceResult:
    """Convert a lookup response; the ``error`` field is kept, not raised."""

    obj = _require_object(data, "device data")
    raw_caps = obj.get("capabilities")
    if raw_caps is None:
        raw_caps = {}
    if not isinstance(raw_caps, dict):
        raise ProtocolError("device data: field 'capabilities' must be an object")
    capabilities = {str(name): "" if value is None else str(value) for name, value in raw_caps.items()}
    error = obj.get("error")
    return DeviceResult(
        capabilities=MappingProxyType(capabilities),
        api_version=str(obj.get("apiVersion") or ""),
        error=str(error) if error else None,
        mtime=obj.get("mtime"),
        ltime=_optional_str(obj.get("ltime")),
    )


def _object_list(data: Any, what: str) -> List[Dict[str, Any]]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ProtocolError(f"{what}: expected a JSON array, got {type(data).__name__}")
    return [item for item in data if isinstance(item, dict)]


def parse_device_list(data: Any) -> List[Dict[str, str]]:
    """Return ``brand_name``/``model_name``/``marketing_name`` records."""

    return [
        {
            "brand_name": str(item.get("brand_name") or ""),
            "model_name": str(item.get("model_name") or ""),
            "marketing_name": str(item.get("marketing_name") or ""),
        }
        for item in _object_list(data, "device list")
    ]


def parse_os_version_list(data: Any) -> List[Dict[str, str]]:
    """Return ``device_os``/``device_os_version`` records."""

    return [
        {
            "device_os": str(item.get("device_os") or ""),
            "device_os_version": str(item.get("device_os_version") or ""),
        }
        for item in _object_list(data, "os version list")
    ]
