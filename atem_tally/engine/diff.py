from __future__ import annotations

from typing import AbstractSet

from ..models.source_key import SourceKey
from ..models.tally_command import TallyDelta


def compute_delta(previous: AbstractSet[SourceKey], current: AbstractSet[SourceKey]) -> TallyDelta:
    """Keys that must switch on and off to move from ``previous`` to ``current``.

    Keys present in both sets produce nothing.
    """
    return TallyDelta(
        to_activate=frozenset(current - previous),
        to_deactivate=frozenset(previous - current),
    )


__all__ = ["compute_delta"]
