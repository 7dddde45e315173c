"""JSON-over-HTTP transport to the WM server."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import requests

from .core.logging import get_logger
from .errors import ProtocolError, ServerError, WmConnectionError

__all__ = ["HttpTransport", "normalize_scheme", "build_base_url", "DEFAULT_TIMEOUT_S"]

DEFAULT_TIMEOUT_S = 10.0

_JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def normalize_scheme(scheme: Optional[str]) -> str:
    """Default to ``http:`` and make sure the scheme ends with a colon."""

    if not scheme:
        return "http:"
    return scheme if scheme.endswith(":") else scheme + ":"


def build_base_url(scheme: Optional[str], host: Optional[str], port: Any, base_uri: Optional[str]) -> str:
    address = host or "localhost"
    port_text = str(port).strip() if port is not None else ""
    if port_text:
        address = f"{address}:{port_text}"
    url = f"{normalize_scheme(scheme)}//{address}"
    base = (base_uri or "").strip("/")
    if base:
        url = f"{url}/{base}"
    return url


class HttpTransport:
    """Minimal JSON client; blocking calls run in a worker thread."""

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.sess = session if session is not None else requests.Session()
        self.timeout = float(timeout_s)
        self._log = logger or get_logger("transport")

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_json(self, path: str) -> Any:
        return await asyncio.to_thread(self._request, "GET", path, None)

    async def post_json(
        self, path: str, payload: Dict[str, Any], *, error_body_ok: bool = False
    ) -> Any:
        """POST *payload*; with *error_body_ok* a non-2xx JSON error body is returned."""

        return await asyncio.to_thread(self._request, "POST", path, payload, error_body_ok)

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]],
        error_body_ok: bool = False,
    ) -> Any:
        url = self.url_for(path)
        try:
            response = self.sess.request(
                method,
                url,
                json=payload,
                headers=_JSON_HEADERS,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise WmConnectionError(f"request to {url} timed out after {self.timeout}s") from exc
        except requests.exceptions.RequestException as exc:
            raise WmConnectionError(f"unable to reach WM server at {url}: {exc}") from exc

        status = response.status_code
        self._log.debug("wm_request method=%s path=%s status=%s", method, path, status)
        try:
            body = response.json()
        except ValueError as exc:
            if 200 <= status < 300:
                raise ProtocolError(f"invalid JSON from {url}") from exc
            body = None

        if not 200 <= status < 300:
            if error_body_ok and isinstance(body, dict) and body.get("error"):
                return body
            text = (getattr(response, "text", "") or "")[:200]
            raise ServerError(f"WM server returned HTTP {status}: {text}", status=status)
        return body

    def close(self) -> None:
        self.sess.close()
