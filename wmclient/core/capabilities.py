"""Capability registry and requested-capability selection."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .logging import get_logger

__all__ = [
    "CapabilityRegistry",
    "CapabilitySelection",
    "SelectionState",
    "select_static",
    "select_virtual",
    "partition",
]

_log = get_logger("core.capabilities")


@dataclass(frozen=True, slots=True)
class CapabilityRegistry:
    """Capability names and important headers exposed by one server.

    Static and virtual names are kept sorted; important headers keep the
    order the server reported since fingerprints depend on it.
    """

    static_caps: tuple[str, ...] = ()
    virtual_caps: tuple[str, ...] = ()
    important_headers: tuple[str, ...] = ()

    @classmethod
    def from_server(
        cls,
        static_caps: Iterable[str],
        virtual_caps: Iterable[str],
        important_headers: Iterable[str],
    ) -> "CapabilityRegistry":
        return cls(
            static_caps=tuple(sorted(set(static_caps))),
            virtual_caps=tuple(sorted(set(virtual_caps))),
            important_headers=tuple(important_headers),
        )

    def has_static(self, name: str) -> bool:
        return name in self.static_caps

    def has_virtual(self, name: str) -> bool:
        return name in self.virtual_caps


class SelectionState(enum.Enum):
    UNSET = "unset"
    EMPTY = "empty"
    NAMED = "named"


@dataclass(frozen=True, slots=True)
class CapabilitySelection:
    """Requested subset of one capability kind.

    ``UNSET`` and ``EMPTY`` both mean "return everything"; they differ only
    on the wire (``null`` versus ``[]``).
    """

    state: SelectionState = SelectionState.UNSET
    names: tuple[str, ...] = ()

    @classmethod
    def unset(cls) -> "CapabilitySelection":
        return cls()

    @classmethod
    def of(cls, names: Sequence[str]) -> "CapabilitySelection":
        if not names:
            return cls(SelectionState.EMPTY)
        return cls(SelectionState.NAMED, tuple(names))

    @property
    def returns_all(self) -> bool:
        return self.state is not SelectionState.NAMED

    def to_wire(self) -> Optional[List[str]]:
        if self.state is SelectionState.UNSET:
            return None
        return list(self.names)


def _filter(names: Iterable[str], accept, kind: str) -> List[str]:
    selected: List[str] = []
    for name in names:
        if accept(name):
            if name not in selected:
                selected.append(name)
        else:
            _log.debug("capability dropped kind=%s name=%r", kind, name)
    return selected


def select_static(
    registry: CapabilityRegistry, names: Optional[Iterable[str]]
) -> CapabilitySelection:
    """Keep only names that are static capabilities of *registry*."""

    if names is None:
        return CapabilitySelection.unset()
    return CapabilitySelection.of(_filter(names, registry.has_static, "static"))


def select_virtual(
    registry: CapabilityRegistry, names: Optional[Iterable[str]]
) -> CapabilitySelection:
    """Keep only names that are virtual capabilities of *registry*."""

    if names is None:
        return CapabilitySelection.unset()
    return CapabilitySelection.of(_filter(names, registry.has_virtual, "virtual"))


def partition(
    registry: CapabilityRegistry, names: Optional[Iterable[str]]
) -> tuple[CapabilitySelection, CapabilitySelection]:
    """Split mixed names into static and virtual selections.

    A name is checked against the static set first; names known to
    neither set are dropped.
    """

    if names is None:
        return CapabilitySelection.unset(), CapabilitySelection.unset()
    static: List[str] = []
    virtual: List[str] = []
    for name in names:
        if registry.has_static(name):
            if name not in static:
                static.append(name)
        elif registry.has_virtual(name):
            if name not in virtual:
                virtual.append(name)
        else:
            _log.debug("capability dropped kind=any name=%r", name)
    return CapabilitySelection.of(static), CapabilitySelection.of(virtual)
