"""Bounded LRU caches holding detection results."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Generic, Hashable, Optional, TypeVar

from ..model import DeviceResult
from .logging import get_logger

__all__ = ["LRUCache", "ResultCache", "DEVICE_ID_CACHE_MAX_ENTRIES"]

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEVICE_ID_CACHE_MAX_ENTRIES = 20_000


class LRUCache(Generic[K, V]):
    """Fixed-capacity mapping evicting the least recently used entry."""

    def __init__(self, max_entries: int) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = int(max_entries)
        self._data: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            try:
                value = self._data[key]
            except KeyError:
                return None
            self._data.move_to_end(key)
            return value

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._data[key] = value
            self._data.move_to_end(key)
            while len(self._data) > self.max_entries:
                self._data.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class ResultCache:
    """Header-fingerprint cache plus device-id cache.

    Both caches are absent until :meth:`resize` is called with a positive
    size; until then every lookup goes to the server.
    """

    def __init__(self) -> None:
        self._headers: Optional[LRUCache[str, DeviceResult]] = None
        self._device_ids: Optional[LRUCache[str, DeviceResult]] = None
        self._log = get_logger("core.cache")

    @property
    def active(self) -> bool:
        return self._headers is not None

    def resize(self, header_entries: int, device_id_entries: Optional[int] = None) -> None:
        """Replace both caches with empty ones of the given capacities."""

        if header_entries <= 0:
            self._headers = None
            self._device_ids = None
            self._log.info("result cache disabled")
            return
        if device_id_entries is None or device_id_entries <= 0:
            device_id_entries = DEVICE_ID_CACHE_MAX_ENTRIES
        device_id_entries = min(device_id_entries, DEVICE_ID_CACHE_MAX_ENTRIES)
        self._headers = LRUCache(header_entries)
        self._device_ids = LRUCache(device_id_entries)
        self._log.info(
            "result cache sized header_entries=%d device_id_entries=%d",
            header_entries,
            device_id_entries,
        )

    def get_by_fingerprint(self, key: str) -> Optional[DeviceResult]:
        if self._headers is None or not key:
            return None
        return self._headers.get(key)

    def put_by_fingerprint(self, key: str, result: DeviceResult) -> None:
        if self._headers is None or not key:
            return
        self._headers.put(key, result)

    def get_by_device_id(self, wurfl_id: str) -> Optional[DeviceResult]:
        if self._device_ids is None or not wurfl_id:
            return None
        return self._device_ids.get(wurfl_id)

    def put_by_device_id(self, wurfl_id: Optional[str], result: DeviceResult) -> None:
        if self._device_ids is None or not wurfl_id:
            return
        self._device_ids.put(wurfl_id, result)

    def clear(self) -> None:
        if self._headers is not None:
            self._headers.clear()
        if self._device_ids is not None:
            self._device_ids.clear()

    def sizes(self) -> tuple[int, int]:
        """Return ``(header_entries, device_id_entries)`` currently stored."""

        headers = len(self._headers) if self._headers is not None else 0
        device_ids = len(self._device_ids) if self._device_ids is not None else 0
        return headers, device_ids

    def capacities(self) -> tuple[int, int]:
        headers = self._headers.max_entries if self._headers is not None else 0
        device_ids = self._device_ids.max_entries if self._device_ids is not None else 0
        return headers, device_ids
