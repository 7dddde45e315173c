"""Device make and OS version indexes built from the server catalog."""

from __future__ import annotations

import asyncio
import copy
import logging
import weakref
from typing import Dict, List, Optional

from .core.logging import get_logger
from .errors import NotFoundError
from .model import ModelMarketingName, parse_device_list, parse_os_version_list
from .transport import HttpTransport

__all__ = ["DeviceCatalog", "ALL_DEVICES_PATH", "ALL_OS_VERSIONS_PATH"]

ALL_DEVICES_PATH = "/v2/alldevices/json"
ALL_OS_VERSIONS_PATH = "/v2/alldeviceosversions/json"

MakesMap = Dict[str, List[ModelMarketingName]]
OsVersionsMap = Dict[str, List[str]]


class DeviceCatalog:
    """Lazily fetched indexes: devices grouped by make, versions grouped by OS.

    Callers always receive deep copies. :meth:`clear` drops both indexes;
    a fetch that was in flight while they were cleared is returned to its
    caller but not kept.
    """

    def __init__(self, transport: HttpTransport, logger: Optional[logging.Logger] = None) -> None:
        self._transport = transport
        self._log = logger or get_logger("catalog")
        self._makes: Optional[MakesMap] = None
        self._os_versions: Optional[OsVersionsMap] = None
        # asyncio locks bind to one loop; keep a pair per running loop
        self._locks: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
        self._generation = 0

    def clear(self) -> None:
        self._makes = None
        self._os_versions = None
        self._generation += 1

    def _lock(self, kind: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._locks.get(loop)
        if locks is None:
            locks = self._locks[loop] = {"makes": asyncio.Lock(), "os_versions": asyncio.Lock()}
        return locks[kind]

    async def device_makes_map(self) -> MakesMap:
        makes = self._makes
        if makes is None:
            async with self._lock("makes"):
                makes = self._makes
                if makes is None:
                    makes = await self._fetch_makes()
        return copy.deepcopy(makes)

    async def os_versions_map(self) -> OsVersionsMap:
        versions = self._os_versions
        if versions is None:
            async with self._lock("os_versions"):
                versions = self._os_versions
                if versions is None:
                    versions = await self._fetch_os_versions()
        return copy.deepcopy(versions)

    async def all_makes(self) -> List[str]:
        return list(await self.device_makes_map())

    async def devices_for_make(self, make: str) -> List[ModelMarketingName]:
        makes = await self.device_makes_map()
        try:
            return makes[make]
        except KeyError:
            raise NotFoundError(f"{make} does not exist") from None

    async def all_oses(self) -> List[str]:
        return list(await self.os_versions_map())

    async def versions_for_os(self, device_os: str) -> List[str]:
        versions = await self.os_versions_map()
        try:
            found = versions[device_os]
        except KeyError:
            raise NotFoundError(f"{device_os} does not exist") from None
        return [version for version in found if version != ""]

    async def _fetch_makes(self) -> MakesMap:
        generation = self._generation
        records = parse_device_list(await self._transport.get_json(ALL_DEVICES_PATH))
        makes: MakesMap = {}
        for record in records:
            brand = record["brand_name"]
            if not brand:
                continue
            makes.setdefault(brand, []).append(
                ModelMarketingName(record["model_name"], record["marketing_name"])
            )
        if generation == self._generation:
            self._makes = makes
        self._log.info("catalog built kind=makes keys=%d devices=%d", len(makes), len(records))
        return makes

    async def _fetch_os_versions(self) -> OsVersionsMap:
        generation = self._generation
        records = parse_os_version_list(await self._transport.get_json(ALL_OS_VERSIONS_PATH))
        versions: OsVersionsMap = {}
        for record in records:
            device_os = record["device_os"]
            if not device_os:
                continue
            versions.setdefault(device_os, []).append(record["device_os_version"])
        if generation == self._generation:
            self._os_versions = versions
        self._log.info("catalog built kind=os_versions keys=%d entries=%d", len(versions), len(records))
        return versions
