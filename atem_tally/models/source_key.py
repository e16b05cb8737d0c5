from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TallyRole(str, Enum):
    PROGRAM = "program"
    PREVIEW_DURING_TRANSITION = "preview_during_transition"
    UPSTREAM_KEYER_FILL = "upstream_keyer_fill"
    DOWNSTREAM_KEYER_FILL = "downstream_keyer_fill"

    @property
    def is_downstream(self) -> bool:
        return self is TallyRole.DOWNSTREAM_KEYER_FILL


_ROLE_ORDER = {role: position for position, role in enumerate(TallyRole)}


@dataclass(frozen=True)
class SourceKey:
    """A source in a particular on-air role.

    ``index`` is the mix-effect row for ME roles and the downstream keyer for
    ``DOWNSTREAM_KEYER_FILL``.
    """

    index: int
    role: TallyRole
    source: int

    @property
    def scope(self) -> str:
        return f"{'D' if self.role.is_downstream else 'M'}{self.index}"

    def sort_key(self) -> tuple:
        return (self.role.is_downstream, self.index, _ROLE_ORDER[self.role], self.source)

    def __str__(self) -> str:
        return f"{self.scope}.{self.role.value}.{self.source}"


def sorted_keys(keys) -> list[SourceKey]:
    """Deterministic ordering used wherever keys become commands or log lines."""
    return sorted(keys, key=SourceKey.sort_key)


__all__ = ["SourceKey", "TallyRole", "sorted_keys"]
