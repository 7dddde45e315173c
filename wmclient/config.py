"""Environment-driven client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .core.logging import get_logger
from .transport import DEFAULT_TIMEOUT_S

__all__ = ["ClientConfig"]

_log = get_logger("config")


def _coerce_float(value: Optional[str], default: float) -> float:
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError:
        _log.warning("Invalid WM timeout value: %r", value)
        return default
    if parsed <= 0:
        _log.warning("Non-positive WM timeout value: %r", value)
        return default
    return parsed


def _coerce_int(value: Optional[str], default: int) -> int:
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        _log.warning("Invalid WM cache size value: %r", value)
        return default
    return max(0, parsed)


def _coerce_port(value: Optional[str], default: Optional[int]) -> Optional[int]:
    if not value:
        return default
    try:
        port = int(value)
    except ValueError:
        _log.warning("Invalid WM port value: %r", value)
        return default
    if not 0 < port < 65536:
        _log.warning("WM port out of range: %r", value)
        return default
    return port


@dataclass(slots=True)
class ClientConfig:
    scheme: str = "http"
    host: str = "localhost"
    port: Optional[int] = 8080
    base_uri: str = ""
    timeout_s: float = DEFAULT_TIMEOUT_S
    cache_size: int = 0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Read ``WM_*`` variables, falling back to defaults on bad values."""

        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            scheme=env.get("WM_SCHEME") or defaults.scheme,
            host=env.get("WM_HOST") or defaults.host,
            port=_coerce_port(env.get("WM_PORT"), defaults.port),
            base_uri=env.get("WM_BASE_URI", defaults.base_uri),
            timeout_s=_coerce_float(env.get("WM_TIMEOUT_S"), defaults.timeout_s),
            cache_size=_coerce_int(env.get("WM_CACHE_SIZE"), defaults.cache_size),
        )

    def summary(self) -> str:
        port = self.port if self.port is not None else "-"
        return (
            f"{self.scheme.rstrip(':')}://{self.host}:{port}/{self.base_uri.strip('/')}"
            f" (timeout={self.timeout_s}s, cache={self.cache_size})"
        )
