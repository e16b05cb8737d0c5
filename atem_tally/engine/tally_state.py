from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Set, Tuple

from ..models.change_events import ChangeEvent, KeyerOnAirChanged, ProgramChanged, TransitionPositionChanged
from ..models.source_key import SourceKey, TallyRole
from ..models.switcher_state import SwitcherState
from ..models.tally_command import TallyUpdate
from .diff import compute_delta
from .path_classifier import classify_batch

logger = logging.getLogger(__name__)


@dataclass
class TransitionState:
    in_transition: bool = False
    last_program_source: Optional[int] = None
    preview_source: Optional[int] = None


class TallyStateEngine:
    """Canonical set of on-air sources, updated from switcher change events.

    Not safe for concurrent use: callers feed batches one at a time.
    """

    def __init__(self) -> None:
        self._on_air: Set[SourceKey] = set()
        self._transitions: Dict[int, TransitionState] = {}
        self._keyer_fills: Dict[Tuple[bool, int, Optional[int]], int] = {}

    @property
    def on_air(self) -> FrozenSet[SourceKey]:
        return frozenset(self._on_air)

    def transition_state(self, me_index: int) -> TransitionState:
        """Copy of the transition bookkeeping for one ME row."""
        return dataclasses.replace(self._transitions.get(me_index, TransitionState()))

    def reset(self) -> None:
        """Forget everything; only the startup reconciler calls this."""
        self._on_air.clear()
        self._transitions.clear()
        self._keyer_fills.clear()

    def process(self, state: SwitcherState, paths: Iterable[str]) -> TallyUpdate:
        return self.apply(classify_batch(paths, state))

    def apply(self, events: Iterable[ChangeEvent]) -> TallyUpdate:
        previous = frozenset(self._on_air)
        for event in events:
            if isinstance(event, ProgramChanged):
                self._apply_program(event)
            elif isinstance(event, TransitionPositionChanged):
                self._apply_transition(event)
            elif isinstance(event, KeyerOnAirChanged):
                self._apply_keyer(event)
            else:
                raise TypeError(f"Unsupported change event {event!r}")
        current = frozenset(self._on_air)
        return TallyUpdate(on_air=current, delta=compute_delta(previous, current))

    def _transition(self, me_index: int) -> TransitionState:
        return self._transitions.setdefault(me_index, TransitionState())

    def _set_program(self, me_index: int, source: int) -> None:
        transition = self._transition(me_index)
        last = transition.last_program_source
        if last is not None and last != source:
            self._on_air.discard(SourceKey(me_index, TallyRole.PROGRAM, last))
        self._on_air.add(SourceKey(me_index, TallyRole.PROGRAM, source))
        transition.last_program_source = source

    def _apply_program(self, event: ProgramChanged) -> None:
        logger.debug("ME %s program -> %s", event.me_index, event.new_source)
        self._set_program(event.me_index, event.new_source)

    def _apply_transition(self, event: TransitionPositionChanged) -> None:
        me_index = event.me_index
        transition = self._transition(me_index)

        if event.is_idle:
            logger.debug("ME %s transition complete, program=%s", me_index, event.program_source)
            self._set_program(me_index, event.program_source)
            # The switcher may already have swapped program/preview; drop whatever preview was shown.
            for preview in {event.preview_source, transition.preview_source}:
                if preview is not None:
                    self._on_air.discard(SourceKey(me_index, TallyRole.PREVIEW_DURING_TRANSITION, preview))
            transition.preview_source = None
            transition.in_transition = False
            return

        if transition.in_transition:
            return

        logger.debug(
            "ME %s transition started, program=%s preview=%s",
            me_index,
            event.program_source,
            event.preview_source,
        )
        transition.in_transition = True
        transition.preview_source = event.preview_source
        self._set_program(me_index, event.program_source)
        self._on_air.add(SourceKey(me_index, TallyRole.PREVIEW_DURING_TRANSITION, event.preview_source))

    def _apply_keyer(self, event: KeyerOnAirChanged) -> None:
        role = TallyRole.UPSTREAM_KEYER_FILL if event.is_upstream else TallyRole.DOWNSTREAM_KEYER_FILL
        slot = event.slot
        held_fill = self._keyer_fills.get(slot)
        logger.debug(
            "%s keyer %s/%s on_air=%s fill=%s",
            "Upstream" if event.is_upstream else "Downstream",
            event.index,
            event.keyer_index,
            event.on_air,
            event.fill_source,
        )

        if event.is_upstream and event.keyer_index is None:
            # No keyer slot to track a fill against; plain add/remove.
            if event.on_air:
                self._on_air.add(SourceKey(event.index, role, event.fill_source))
            else:
                self._release_keyer_fill(event.index, role, event.fill_source)
            return

        if event.on_air:
            if held_fill is not None and held_fill != event.fill_source:
                del self._keyer_fills[slot]
                self._release_keyer_fill(event.index, role, held_fill)
            self._keyer_fills[slot] = event.fill_source
            self._on_air.add(SourceKey(event.index, role, event.fill_source))
            return

        self._keyer_fills.pop(slot, None)
        self._release_keyer_fill(event.index, role, event.fill_source)
        if held_fill is not None and held_fill != event.fill_source:
            self._release_keyer_fill(event.index, role, held_fill)

    def _release_keyer_fill(self, index: int, role: TallyRole, fill: int) -> None:
        # Another keyer on the same row may still be showing this fill.
        is_upstream = role is TallyRole.UPSTREAM_KEYER_FILL
        for (slot_upstream, slot_index, _), slot_fill in self._keyer_fills.items():
            if slot_upstream == is_upstream and slot_index == index and slot_fill == fill:
                return
        self._on_air.discard(SourceKey(index, role, fill))


__all__ = ["TallyStateEngine", "TransitionState"]
