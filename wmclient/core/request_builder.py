"""Build lookup payloads and the cache fingerprints derived from them."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence

from ..errors import ValidationError
from ..model import LookupRequest
from .capabilities import CapabilitySelection

__all__ = [
    "USER_AGENT",
    "extract_headers",
    "filter_important_headers",
    "build_user_agent_request",
    "build_headers_request",
    "build_device_id_request",
    "fingerprint",
]

USER_AGENT = "User-Agent"


def extract_headers(request: Any) -> Mapping[str, Any]:
    """Return the header mapping of *request*.

    Accepts a plain mapping or any request object exposing ``headers``
    (framework request objects, :class:`requests.PreparedRequest`, ...).
    """

    if isinstance(request, Mapping):
        return request
    headers = getattr(request, "headers", None)
    if headers is None:
        raise ValidationError("request object carries no headers")
    return headers


def filter_important_headers(
    headers: Mapping[str, Any], important_headers: Sequence[str]
) -> Dict[str, str]:
    """Copy the important headers, in registry order, matching names case-insensitively."""

    lowered: Dict[str, Any] = {}
    for name, value in headers.items():
        lowered.setdefault(str(name).lower(), value)
    filtered: Dict[str, str] = {}
    for name in important_headers:
        value = lowered.get(name.lower())
        if value is None:
            continue
        value = str(value)
        if value:
            filtered[name] = value
    return filtered


def _require_user_agent(headers: Mapping[str, str]) -> None:
    for name, value in headers.items():
        if name.lower() == USER_AGENT.lower() and value:
            return
    raise ValidationError("no User-Agent header provided")


def build_user_agent_request(
    user_agent: str,
    static: CapabilitySelection,
    virtual: CapabilitySelection,
) -> LookupRequest:
    headers = {USER_AGENT: user_agent} if user_agent else {}
    _require_user_agent(headers)
    return LookupRequest(headers, static.to_wire(), virtual.to_wire())


def build_headers_request(
    headers: Mapping[str, Any],
    important_headers: Sequence[str],
    static: CapabilitySelection,
    virtual: CapabilitySelection,
) -> LookupRequest:
    lookup_headers = filter_important_headers(headers, important_headers)
    _require_user_agent(lookup_headers)
    return LookupRequest(lookup_headers, static.to_wire(), virtual.to_wire())


def build_device_id_request(
    wurfl_id: str,
    static: CapabilitySelection,
    virtual: CapabilitySelection,
) -> LookupRequest:
    if not wurfl_id:
        raise ValidationError("no device id provided")
    return LookupRequest({}, static.to_wire(), virtual.to_wire(), wurfl_id=wurfl_id)


def fingerprint(headers: Mapping[str, str], important_headers: Sequence[str]) -> str:
    """Concatenate header values in important-header order, without delimiters."""

    lowered = {name.lower(): value for name, value in headers.items()}
    parts = []
    for name in important_headers:
        value = lowered.get(name.lower())
        if value:
            parts.append(value)
    return "".join(parts)
