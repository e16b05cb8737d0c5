from __future__ import annotations

from typing import AsyncIterator, Protocol

from ..models.switcher_update import SwitcherUpdate


class SwitcherAdapter(Protocol):
    """Source of switcher snapshots and change batches."""

    def updates(self) -> AsyncIterator[SwitcherUpdate]:
        ...

    async def close(self) -> None:
        ...


__all__ = ["SwitcherAdapter"]
