"""Turn switcher change paths into tally change events.

Paths look like ``video.ME.<me>.<field>[...]`` or ``video.downstreamKeyers.<dsk>[...]``.
Every path is classified on its own: an irrelevant or malformed entry is skipped
and the rest of the batch is still processed.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..models.change_events import ChangeEvent, KeyerOnAirChanged, ProgramChanged, TransitionPositionChanged
from ..models.switcher_state import SwitcherState

logger = logging.getLogger(__name__)

_ME_FIELDS_IGNORED = frozenset({"previewInput", "transitionProperties", "transitionSettings", "fadeToBlack"})


class MalformedPathError(ValueError):
    """A video path whose indices cannot be resolved against the snapshot."""


def _parse_index(raw: Optional[str], path: str) -> int:
    if raw is None or not raw.isdigit():
        raise MalformedPathError(f"expected a numeric index in {path!r}, got {raw!r}")
    return int(raw)


def _classify_me(parts: List[str], path: str, state: SwitcherState) -> Optional[ChangeEvent]:
    me_index = _parse_index(parts[2] if len(parts) > 2 else None, path)
    me = state.mix_effect(me_index)
    if me is None:
        raise MalformedPathError(f"mix effect {me_index} not present in snapshot ({path!r})")

    location = parts[3] if len(parts) > 3 else None
    if location == "programInput":
        return ProgramChanged(me_index=me_index, new_source=me.program_input)

    if location == "transitionPosition":
        return TransitionPositionChanged(
            me_index=me_index,
            handle_position=me.transition_position.handle_position,
            program_source=me.program_input,
            preview_source=me.preview_input,
        )

    if location == "upstreamKeyers":
        keyer_index = _parse_index(parts[4] if len(parts) > 4 else None, path)
        if keyer_index >= len(me.upstream_keyers):
            raise MalformedPathError(f"upstream keyer {keyer_index} not present on ME {me_index} ({path!r})")
        keyer = me.upstream_keyers[keyer_index]
        return KeyerOnAirChanged(
            index=me_index,
            is_upstream=True,
            fill_source=keyer.fill_source,
            on_air=keyer.on_air,
            keyer_index=keyer_index,
        )

    if location not in _ME_FIELDS_IGNORED:
        logger.debug("Ignoring unsupported ME path %s", path)
    return None


def _classify_dsk(parts: List[str], path: str, state: SwitcherState) -> ChangeEvent:
    dsk_index = _parse_index(parts[2] if len(parts) > 2 else None, path)
    dsk = state.downstream_keyer(dsk_index)
    if dsk is None:
        raise MalformedPathError(f"downstream keyer {dsk_index} not present in snapshot ({path!r})")
    return KeyerOnAirChanged(
        index=dsk_index,
        is_upstream=False,
        fill_source=dsk.sources.fill_source,
        on_air=dsk.on_air,
    )


def classify_path(path: str, state: SwitcherState) -> Optional[ChangeEvent]:
    """Classify one changed path; returns None when it does not affect tally."""
    if not isinstance(path, str):
        logger.warning("Skipping non-string change path %r", path)
        return None

    parts = path.split(".")
    if parts[0] != "video" or len(parts) < 2:
        return None

    try:
        if parts[1] == "ME":
            return _classify_me(parts, path, state)
        if parts[1] == "downstreamKeyers":
            return _classify_dsk(parts, path, state)
    except MalformedPathError as exc:
        logger.warning("Skipping malformed change path: %s", exc)
        return None

    logger.debug("Ignoring video path %s", path)
    return None


def classify_batch(paths: Iterable[str], state: SwitcherState) -> List[ChangeEvent]:
    """Classify a batch in order, dropping irrelevant entries."""
    events: List[ChangeEvent] = []
    for path in paths:
        event = classify_path(path, state)
        if event is not None:
            events.append(event)
    return events


__all__ = ["MalformedPathError", "classify_batch", "classify_path"]
