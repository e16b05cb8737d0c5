from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .switcher_state import SwitcherState


class UpdateKind(str, Enum):
    CONNECTED = "connected"
    STATE_CHANGED = "state_changed"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class SwitcherUpdate:
    """One item from a switcher adapter: a snapshot and the paths that changed in it."""

    kind: UpdateKind
    state: Optional[SwitcherState] = None
    paths: Tuple[str, ...] = field(default_factory=tuple)
    sequence: int = 0

    @classmethod
    def connected(cls, state: SwitcherState, sequence: int = 0) -> "SwitcherUpdate":
        return cls(kind=UpdateKind.CONNECTED, state=state, sequence=sequence)

    @classmethod
    def changed(cls, state: SwitcherState, paths, sequence: int = 0) -> "SwitcherUpdate":
        return cls(kind=UpdateKind.STATE_CHANGED, state=state, paths=tuple(paths), sequence=sequence)

    @classmethod
    def disconnected(cls, sequence: int = 0) -> "SwitcherUpdate":
        return cls(kind=UpdateKind.DISCONNECTED, sequence=sequence)


__all__ = ["SwitcherUpdate", "UpdateKind"]
