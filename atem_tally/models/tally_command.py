from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from .source_key import SourceKey


@dataclass(frozen=True)
class TallyCommand:
    """One outbound tally message.

    ``source_key`` is None for reset-sweep commands that are not tied to an
    on-air role.
    """

    address: str
    active: bool
    source_key: Optional[SourceKey] = None

    @property
    def value(self) -> float:
        return 1.0 if self.active else 0.0


@dataclass(frozen=True)
class TallyDelta:
    to_activate: FrozenSet[SourceKey] = field(default_factory=frozenset)
    to_deactivate: FrozenSet[SourceKey] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.to_activate and not self.to_deactivate


@dataclass(frozen=True)
class TallyUpdate:
    """Result of applying a batch: the new on-air set and the diff that produced it."""

    on_air: FrozenSet[SourceKey]
    delta: TallyDelta


__all__ = ["TallyCommand", "TallyDelta", "TallyUpdate"]
