"""Data model shared by the classifier, engine and dispatcher."""

from .change_events import ChangeEvent, KeyerOnAirChanged, ProgramChanged, TransitionPositionChanged
from .source_key import SourceKey, TallyRole, sorted_keys
from .switcher_state import (
    DownstreamKeyerSources,
    DownstreamKeyerState,
    MixEffectState,
    SwitcherState,
    TransitionPosition,
    UpstreamKeyerState,
    VideoState,
    changed_paths,
)
from .switcher_update import SwitcherUpdate, UpdateKind
from .tally_command import TallyCommand, TallyDelta, TallyUpdate

__all__ = [
    "ChangeEvent",
    "KeyerOnAirChanged",
    "ProgramChanged",
    "TransitionPositionChanged",
    "SourceKey",
    "TallyRole",
    "sorted_keys",
    "DownstreamKeyerSources",
    "DownstreamKeyerState",
    "MixEffectState",
    "SwitcherState",
    "TransitionPosition",
    "UpstreamKeyerState",
    "VideoState",
    "changed_paths",
    "SwitcherUpdate",
    "UpdateKind",
    "TallyCommand",
    "TallyDelta",
    "TallyUpdate",
]
