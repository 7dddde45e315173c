"""Keep cached results coherent with the server's data generation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .logging import get_logger

__all__ = ["CoherencyMonitor"]


@dataclass(slots=True)
class _CoherencyState:
    ltime: Optional[str] = None
    sweeps: int = 0


class CoherencyMonitor:
    """Track the server load time (``ltime``) and purge caches when it moves.

    The server stamps every response with the token of the device database
    it currently serves. Whenever an observed token differs from the last
    one seen, *clear* is invoked once and the new token is remembered.
    Tokens are opaque: only string equality is used.
    """

    def __init__(
        self,
        clear: Callable[[], None],
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._clear = clear
        self._state = _CoherencyState()
        self._lock = threading.Lock()
        self._log = logger or get_logger("core.coherency")

    @property
    def ltime(self) -> Optional[str]:
        return self._state.ltime

    @property
    def sweeps(self) -> int:
        """Number of cache sweeps performed so far."""

        return self._state.sweeps

    def reconcile(self, observed_ltime: Optional[str]) -> bool:
        """Clear caches if *observed_ltime* differs; return whether it did."""

        if observed_ltime is None:
            return False
        with self._lock:
            previous = self._state.ltime
            if observed_ltime == previous:
                return False
            self._clear()
            self._state.ltime = observed_ltime
            self._state.sweeps += 1
        self._log.info("ltime changed previous=%s current=%s caches=cleared", previous, observed_ltime)
        return True
