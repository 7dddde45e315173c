"""In-process stand-in for a WM server, used through a fake requests session."""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

ASUS_UA = (
    "Mozilla/5.0 (Linux; Android 6.0; ASUS_Z017D Build/MMB29P) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/52.0.2743.98 Mobile Safari/537.36"
)
NOKIA_UA = "Nokia6300/2.0 (05.00) Profile/MIDP-2.0 Configuration/CLDC-1.1"

STATIC_CAPS = [
    "model_name",
    "brand_name",
    "marketing_name",
    "device_os",
    "device_os_version",
    "is_wireless_device",
]
VIRTUAL_CAPS = ["is_smartphone", "is_robot", "form_factor", "complete_device_name"]
IMPORTANT_HEADERS = [
    "User-Agent",
    "X-UCBrowser-Device-UA",
    "Device-Stock-UA",
    "X-OperaMini-Phone-UA",
]

DEVICES: Dict[str, Dict[str, str]] = {
    "asus_z017d_ver1": {
        "wurfl_id": "asus_z017d_ver1",
        "brand_name": "Asus",
        "model_name": "ZenFone 3",
        "marketing_name": "ZE520KL",
        "device_os": "Android",
        "device_os_version": "6.0",
        "is_wireless_device": "true",
        "is_smartphone": "true",
        "is_robot": "false",
        "form_factor": "Smartphone",
        "complete_device_name": "Asus ZenFone 3",
    },
    "nokia_generic_series40": {
        "wurfl_id": "nokia_generic_series40",
        "brand_name": "Nokia",
        "model_name": "Series40",
        "marketing_name": "",
        "device_os": "Nokia OS",
        "device_os_version": "",
        "is_wireless_device": "true",
        "is_smartphone": "false",
        "is_robot": "false",
        "form_factor": "Feature Phone",
        "complete_device_name": "Nokia Series40",
    },
    "generic": {
        "wurfl_id": "generic",
        "brand_name": "",
        "model_name": "",
        "marketing_name": "",
        "device_os": "",
        "device_os_version": "",
        "is_wireless_device": "false",
        "is_smartphone": "false",
        "is_robot": "false",
        "form_factor": "Desktop",
        "complete_device_name": "",
    },
}

USER_AGENTS = {ASUS_UA: "asus_z017d_ver1", NOKIA_UA: "nokia_generic_series40"}

ALL_DEVICES = [
    {"brand_name": "Asus", "model_name": "ZenFone 3", "marketing_name": "ZE520KL"},
    {"brand_name": "Asus", "model_name": "ZenFone 2", "marketing_name": "ZE551ML"},
    {"brand_name": "Nokia", "model_name": "Series40", "marketing_name": ""},
    {"brand_name": "", "model_name": "generic", "marketing_name": ""},
]

ALL_OS_VERSIONS = [
    {"device_os": "Android", "device_os_version": "6.0"},
    {"device_os": "Android", "device_os_version": ""},
    {"device_os": "Android", "device_os_version": "7.1"},
    {"device_os": "iOS", "device_os_version": "12.0"},
    {"device_os": "", "device_os_version": "1.0"},
]


class FakeResponse:
    def __init__(self, status_code: int, body: Any = None, *, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("no JSON body")
        return copy.deepcopy(self._body)


class FakeWmServer:
    """Stands in for ``requests.Session`` and answers like a WM server."""

    def __init__(self) -> None:
        self.ltime = "2024-01-01 10:00:00"
        self.info: Dict[str, Any] = {
            "wurfl_api_version": "1.9.5.0",
            "wurfl_info": "/usr/share/wurfl/wurfl.zip:for WURFL API 1.9.5.0",
            "wm_version": "2.1.0",
            "important_headers": list(IMPORTANT_HEADERS),
            "static_caps": list(STATIC_CAPS),
            "virtual_caps": list(VIRTUAL_CAPS),
        }
        self.calls: List[Dict[str, Any]] = []
        self.fail_with: Optional[BaseException] = None
        self.closed = False

    # requests.Session surface -------------------------------------------
    def request(self, method: str, url: str, json: Any = None, headers: Any = None, timeout: Any = None) -> FakeResponse:
        path = urlsplit(url).path
        self.calls.append({"method": method, "url": url, "path": path, "json": json, "timeout": timeout})
        if self.fail_with is not None:
            raise self.fail_with
        if path.endswith("/v2/getinfo/json"):
            return FakeResponse(200, dict(self.info, ltime=self.ltime))
        if path.endswith("/v2/lookupuseragent/json") or path.endswith("/v2/lookuprequest/json"):
            ua = json["lookup_headers"].get("User-Agent", "")
            return FakeResponse(200, self._device_body(USER_AGENTS.get(ua, "generic"), json))
        if path.endswith("/v2/lookupdeviceid/json"):
            wurfl_id = json.get("wurfl_id")
            if wurfl_id not in DEVICES:
                return FakeResponse(
                    200,
                    {
                        "apiVersion": "WM_API 2.1.0",
                        "capabilities": {},
                        "error": f"device is missing: {wurfl_id} does not exist",
                        "mtime": 0,
                        "ltime": self.ltime,
                    },
                )
            return FakeResponse(200, self._device_body(wurfl_id, json))
        if path.endswith("/v2/alldevices/json"):
            return FakeResponse(200, ALL_DEVICES)
        if path.endswith("/v2/alldeviceosversions/json"):
            return FakeResponse(200, ALL_OS_VERSIONS)
        return FakeResponse(404, None, text="not found")

    def close(self) -> None:
        self.closed = True

    # helpers -------------------------------------------------------------
    def _device_body(self, wurfl_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        caps = DEVICES[wurfl_id]
        requested = list(payload.get("requested_caps") or []) + list(payload.get("requested_vCaps") or [])
        if requested:
            caps = {name: caps[name] for name in requested if name in caps}
            caps["wurfl_id"] = wurfl_id
        return {
            "apiVersion": "WM_API 2.1.0",
            "capabilities": dict(caps),
            "mtime": 1546300800,
            "ltime": self.ltime,
        }

    def calls_to(self, suffix: str) -> int:
        return sum(1 for call in self.calls if call["path"].endswith(suffix))

    @property
    def lookup_calls(self) -> int:
        return sum(1 for call in self.calls if call["method"] == "POST")


