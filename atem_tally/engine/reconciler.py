from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List

from ..dispatch.tally_dispatcher import TallyDispatcher
from ..models.source_key import SourceKey
from ..models.switcher_state import SwitcherState
from ..models.tally_command import TallyCommand
from .tally_state import TallyStateEngine

logger = logging.getLogger(__name__)


def startup_paths(state: SwitcherState) -> List[str]:
    """Synthetic change batch covering every tally-relevant part of a snapshot."""
    paths: List[str] = []
    for me_index, me in enumerate(state.video.mix_effects):
        paths.append(f"video.ME.{me_index}.programInput")
        paths.append(f"video.ME.{me_index}.transitionPosition")
        for keyer_index in range(len(me.upstream_keyers)):
            paths.append(f"video.ME.{me_index}.upstreamKeyers.{keyer_index}")
    for dsk_index in range(len(state.video.downstream_keyers)):
        paths.append(f"video.downstreamKeyers.{dsk_index}")
    return paths


class StartupReconciler:
    """Brings lights and engine to a known baseline after every (re)connect."""

    def __init__(
        self,
        engine: TallyStateEngine,
        dispatcher: TallyDispatcher,
        reset_first_index: int = 1,
        reset_count: int = 8,
    ) -> None:
        self._engine = engine
        self._dispatcher = dispatcher
        self.reset_first_index = reset_first_index
        self.reset_count = reset_count

    def reset_sweep(self, me_indices: Iterable[int] = (0,), dsk_indices: Iterable[int] = ()) -> List[TallyCommand]:
        """Force every light in the reset bank, and every light we think is on, to off."""
        me_indices = list(me_indices)
        dsk_indices = list(dsk_indices)
        addressing = self._dispatcher.addressing
        bank = [
            address
            for source in range(self.reset_first_index, self.reset_first_index + self.reset_count)
            for address in addressing.reset_addresses(source, me_indices, dsk_indices)
        ]
        addresses = list(dict.fromkeys(bank + sorted(self._dispatcher.active_addresses)))
        commands = [self._dispatcher.force(address, False) for address in addresses]
        self._dispatcher.forget()
        logger.info("Resetting lights: %s off commands queued", len(commands))
        return commands

    def reconcile(self, state: SwitcherState) -> FrozenSet[SourceKey]:
        self.reset_sweep(
            me_indices=range(len(state.video.mix_effects)),
            dsk_indices=range(len(state.video.downstream_keyers)),
        )
        self._engine.reset()
        update = self._engine.process(state, startup_paths(state))
        commands = self._dispatcher.dispatch(update.delta)
        logger.info(
            "Reconciled switcher state: %s sources on air, %s tally commands queued",
            len(update.on_air),
            len(commands),
        )
        return update.on_air


__all__ = ["StartupReconciler", "startup_paths"]
