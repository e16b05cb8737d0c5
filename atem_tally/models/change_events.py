from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class ProgramChanged:
    me_index: int
    new_source: int


@dataclass(frozen=True)
class TransitionPositionChanged:
    me_index: int
    handle_position: int
    program_source: int
    preview_source: int

    @property
    def is_idle(self) -> bool:
        return self.handle_position == 0


@dataclass(frozen=True)
class KeyerOnAirChanged:
    """Keyer on-air flag or fill change.

    ``index`` is the ME row for upstream keyers and the DSK number otherwise;
    ``keyer_index`` tells apart the upstream keyers of one row.
    """

    index: int
    is_upstream: bool
    fill_source: int
    on_air: bool
    keyer_index: Optional[int] = None

    @property
    def slot(self) -> tuple:
        return (self.is_upstream, self.index, self.keyer_index)


ChangeEvent = Union[ProgramChanged, TransitionPositionChanged, KeyerOnAirChanged]


__all__ = ["ChangeEvent", "KeyerOnAirChanged", "ProgramChanged", "TransitionPositionChanged"]
