"""WM server client: session setup, capability selection and cached lookups."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

import requests

from .catalog import DeviceCatalog
from .config import ClientConfig
from .core.cache import ResultCache
from .core.capabilities import (
    CapabilityRegistry,
    CapabilitySelection,
    SelectionState,
    partition,
    select_static,
    select_virtual,
)
from .core.coherency import CoherencyMonitor
from .core.logging import get_logger
from .core.request_builder import (
    build_device_id_request,
    build_headers_request,
    build_user_agent_request,
    extract_headers,
    fingerprint,
)
from .errors import DeviceNotFoundError, ServerError
from .model import DeviceResult, InfoData, LookupRequest, ModelMarketingName, parse_device, parse_info
from .transport import DEFAULT_TIMEOUT_S, HttpTransport, build_base_url, normalize_scheme

__all__ = ["WmClient", "create", "create_from_config", "API_VERSION"]

API_VERSION = "2.2.0"

INFO_PATH = "/v2/getinfo/json"
LOOKUP_USER_AGENT_PATH = "/v2/lookupuseragent/json"
LOOKUP_DEVICE_ID_PATH = "/v2/lookupdeviceid/json"
LOOKUP_REQUEST_PATH = "/v2/lookuprequest/json"


class WmClient:
    """Session with one WM server.

    Instances are built by :func:`create`, which performs the initial
    server-info handshake. Lookups are coroutines; results are cached once
    :meth:`set_cache_size` has been called.
    """

    def __init__(
        self,
        transport: HttpTransport,
        info: InfoData,
        *,
        scheme: str = "http:",
        host: str = "localhost",
        port: Any = None,
        base_uri: str = "",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.scheme = scheme
        self.host = host
        self.port = port
        self.base_uri = base_uri
        self._transport = transport
        self._log = logger or get_logger("client")
        self._registry = CapabilityRegistry.from_server(
            info.static_caps, info.virtual_caps, info.important_headers
        )
        self._static_selection = CapabilitySelection.unset()
        self._virtual_selection = CapabilitySelection.unset()
        self._cache = ResultCache()
        # bumped on every purge; lookups started before a purge are not cached
        self._generation = 0
        self._catalog = DeviceCatalog(transport)
        self._coherency = CoherencyMonitor(self.clear_caches)
        self._coherency.reconcile(info.ltime)

    # ------------------------------------------------------------------
    # Registry
    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    @property
    def static_capabilities(self) -> tuple[str, ...]:
        return self._registry.static_caps

    @property
    def virtual_capabilities(self) -> tuple[str, ...]:
        return self._registry.virtual_caps

    @property
    def important_headers(self) -> tuple[str, ...]:
        return self._registry.important_headers

    def has_static_capability(self, name: str) -> bool:
        return self._registry.has_static(name)

    def has_virtual_capability(self, name: str) -> bool:
        return self._registry.has_virtual(name)

    @staticmethod
    def get_api_version() -> str:
        return API_VERSION

    async def get_info(self) -> InfoData:
        """Fetch server information and purge caches if its data changed."""

        info = parse_info(await self._transport.get_json(INFO_PATH))
        self._coherency.reconcile(info.ltime)
        return info

    # ------------------------------------------------------------------
    # Capability selection
    @property
    def requested_static_capabilities(self) -> tuple[str, ...]:
        return self._static_selection.names

    @property
    def requested_virtual_capabilities(self) -> tuple[str, ...]:
        return self._virtual_selection.names

    def set_requested_capabilities(self, names: Optional[Iterable[str]]) -> None:
        """Request a mix of static and virtual capabilities; ``None`` requests all."""

        static, virtual = partition(self._registry, names)
        self._apply_selection(static, virtual)

    def set_requested_static_capabilities(self, names: Optional[Iterable[str]]) -> None:
        self._apply_selection(select_static(self._registry, names), self._virtual_selection)

    def set_requested_virtual_capabilities(self, names: Optional[Iterable[str]]) -> None:
        self._apply_selection(self._static_selection, select_virtual(self._registry, names))

    def _apply_selection(self, static: CapabilitySelection, virtual: CapabilitySelection) -> None:
        changed = (static, virtual) != (self._static_selection, self._virtual_selection)
        self._static_selection = static
        self._virtual_selection = virtual
        # cached results were filtered under the previous selection
        if changed or static.returns_all or virtual.returns_all:
            self.clear_caches()
        self._log.debug(
            "capabilities selected static=%s virtual=%s",
            _describe(static),
            _describe(virtual),
        )

    # ------------------------------------------------------------------
    # Cache management
    def set_cache_size(self, ua_max_entries: int, device_id_max_entries: Optional[int] = None) -> None:
        """Size the result caches; a non-positive size disables caching."""

        self._cache.resize(ua_max_entries, device_id_max_entries)

    def get_actual_cache_sizes(self) -> tuple[int, int]:
        """Return the number of entries in the header and device-id caches."""

        return self._cache.sizes()

    def clear_caches(self) -> None:
        self._generation += 1
        self._cache.clear()
        self._catalog.clear()

    def clear_caches_if_needed(self, ltime: Optional[str]) -> bool:
        return self._coherency.reconcile(ltime)

    @property
    def ltime(self) -> Optional[str]:
        return self._coherency.ltime

    def set_http_timeout(self, timeout_s: float) -> None:
        if timeout_s is None or timeout_s <= 0:
            self._log.warning("Ignoring invalid HTTP timeout: %r", timeout_s)
            return
        self._transport.timeout = float(timeout_s)

    @property
    def http_timeout(self) -> float:
        return self._transport.timeout

    # ------------------------------------------------------------------
    # Lookups
    async def lookup_user_agent(self, user_agent: str) -> DeviceResult:
        """Detect the device sending *user_agent*."""

        request = build_user_agent_request(
            user_agent, self._static_selection, self._virtual_selection
        )
        return await self._lookup_by_headers(LOOKUP_USER_AGENT_PATH, request)

    async def lookup_request(self, request: Any) -> DeviceResult:
        """Detect the device behind an incoming HTTP request (or header mapping)."""

        return await self.lookup_headers(extract_headers(request))

    async def lookup_headers(self, headers: Mapping[str, Any]) -> DeviceResult:
        request = build_headers_request(
            headers,
            self._registry.important_headers,
            self._static_selection,
            self._virtual_selection,
        )
        return await self._lookup_by_headers(LOOKUP_REQUEST_PATH, request)

    async def lookup_device_id(self, wurfl_id: str) -> DeviceResult:
        """Return the capabilities of the device identified by *wurfl_id*."""

        request = build_device_id_request(
            wurfl_id, self._static_selection, self._virtual_selection
        )
        cached = self._cache.get_by_device_id(wurfl_id)
        if cached is not None:
            self._log.debug("wm_lookup kind=device_id cache=hit")
            return cached

        self._log.debug("wm_lookup kind=device_id cache=miss")
        device, fresh = await self._remote_lookup(LOOKUP_DEVICE_ID_PATH, request, wurfl_id=wurfl_id)
        if fresh:
            self._cache.put_by_device_id(device.wurfl_id, device)
        return device

    async def _lookup_by_headers(self, path: str, request: LookupRequest) -> DeviceResult:
        key = fingerprint(request.lookup_headers, self._registry.important_headers)
        cached = self._cache.get_by_fingerprint(key)
        if cached is not None:
            self._log.debug("wm_lookup kind=headers cache=hit")
            return cached

        self._log.debug("wm_lookup kind=headers cache=miss")
        device, fresh = await self._remote_lookup(path, request)
        if fresh:
            self._cache.put_by_fingerprint(key, device)
        return device

    async def _remote_lookup(
        self, path: str, request: LookupRequest, *, wurfl_id: Optional[str] = None
    ) -> tuple[DeviceResult, bool]:
        """Run a lookup; the flag is false if the caches were purged meanwhile."""

        generation = self._generation
        device = parse_device(
            await self._transport.post_json(path, request.to_json(), error_body_ok=True)
        )
        if device.error:
            if wurfl_id is not None:
                raise DeviceNotFoundError(wurfl_id, device.error)
            raise ServerError(device.error)
        fresh = generation == self._generation
        self._coherency.reconcile(device.ltime)
        return device, fresh

    @staticmethod
    def get_capability_count(device: Optional[DeviceResult]) -> int:
        capabilities = getattr(device, "capabilities", None)
        if not capabilities:
            return 0
        return len(capabilities)

    # ------------------------------------------------------------------
    # Catalogs
    async def get_all_device_makes(self) -> List[str]:
        return await self._catalog.all_makes()

    async def get_all_devices_for_make(self, make: str) -> List[ModelMarketingName]:
        return await self._catalog.devices_for_make(make)

    async def get_all_oses(self) -> List[str]:
        return await self._catalog.all_oses()

    async def get_all_versions_for_os(self, device_os: str) -> List[str]:
        return await self._catalog.versions_for_os(device_os)

    # ------------------------------------------------------------------
    def close(self) -> None:
        self.clear_caches()
        self._transport.close()

    async def __aenter__(self) -> "WmClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


def _describe(selection: CapabilitySelection) -> str:
    if selection.state is SelectionState.NAMED:
        return ",".join(selection.names)
    return selection.state.value


async def create(
    scheme: Optional[str] = "http",
    host: Optional[str] = "localhost",
    port: Any = 8080,
    base_uri: Optional[str] = "",
    *,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    session: Optional[requests.Session] = None,
) -> WmClient:
    """Connect to a WM server and return a ready client.

    Raises :class:`~wmclient.errors.WmConnectionError` if the server cannot
    be reached and :class:`~wmclient.errors.ProtocolError` if its info
    response lacks version data or static capabilities.
    """

    log = get_logger("client")
    transport = HttpTransport(
        build_base_url(scheme, host, port, base_uri),
        session=session,
        timeout_s=timeout_s,
    )
    try:
        info = parse_info(await transport.get_json(INFO_PATH))
    except Exception:
        if session is None:
            transport.close()
        raise
    if not info.virtual_caps:
        log.warning("WM server exposes no virtual capabilities")

    client = WmClient(
        transport,
        info,
        scheme=normalize_scheme(scheme),
        host=host or "localhost",
        port=port,
        base_uri=base_uri or "",
    )
    log.info(
        "wm_client connected url=%s wm_version=%s api_version=%s static_caps=%d virtual_caps=%d",
        transport.base_url,
        info.wm_version,
        info.wurfl_api_version,
        len(info.static_caps),
        len(info.virtual_caps),
    )
    return client


async def create_from_config(
    config: Optional[ClientConfig] = None,
    *,
    session: Optional[requests.Session] = None,
) -> WmClient:
    """Create a client from :class:`ClientConfig` (``WM_*`` environment by default)."""

    cfg = config or ClientConfig.from_env()
    client = await create(
        cfg.scheme,
        cfg.host,
        cfg.port,
        cfg.base_uri,
        timeout_s=cfg.timeout_s,
        session=session,
    )
    if cfg.cache_size > 0:
        client.set_cache_size(cfg.cache_size)
    return client
