"""Switcher state snapshot as seen by the tally engine.

The dict form mirrors the camelCase state tree published by ATEM control
libraries (``video.mixEffects[n].programInput`` and so on), which is also what
scenario files use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass
class TransitionPosition:
    handle_position: int = 0
    in_transition: bool = False
    remaining_frames: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TransitionPosition":
        data = data or {}
        return cls(
            handle_position=int(data.get("handlePosition", 0)),
            in_transition=bool(data.get("inTransition", False)),
            remaining_frames=int(data.get("remainingFrames", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handlePosition": self.handle_position,
            "inTransition": self.in_transition,
            "remainingFrames": self.remaining_frames,
        }


@dataclass
class UpstreamKeyerState:
    on_air: bool = False
    fill_source: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "UpstreamKeyerState":
        data = data or {}
        return cls(on_air=bool(data.get("onAir", False)), fill_source=int(data.get("fillSource", 0)))

    def to_dict(self) -> Dict[str, Any]:
        return {"onAir": self.on_air, "fillSource": self.fill_source}


@dataclass
class DownstreamKeyerSources:
    fill_source: int = 0
    cut_source: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"fillSource": self.fill_source, "cutSource": self.cut_source}


@dataclass
class DownstreamKeyerState:
    on_air: bool = False
    in_transition: bool = False
    sources: DownstreamKeyerSources = field(default_factory=DownstreamKeyerSources)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "DownstreamKeyerState":
        data = data or {}
        sources = data.get("sources") or {}
        return cls(
            on_air=bool(data.get("onAir", False)),
            in_transition=bool(data.get("inTransition", False)),
            sources=DownstreamKeyerSources(
                fill_source=int(sources.get("fillSource", 0)),
                cut_source=int(sources.get("cutSource", 0)),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"onAir": self.on_air, "inTransition": self.in_transition, "sources": self.sources.to_dict()}


@dataclass
class MixEffectState:
    program_input: int = 0
    preview_input: int = 0
    transition_position: TransitionPosition = field(default_factory=TransitionPosition)
    upstream_keyers: List[UpstreamKeyerState] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "MixEffectState":
        data = data or {}
        return cls(
            program_input=int(data.get("programInput", 0)),
            preview_input=int(data.get("previewInput", 0)),
            transition_position=TransitionPosition.from_dict(data.get("transitionPosition")),
            upstream_keyers=[UpstreamKeyerState.from_dict(k) for k in data.get("upstreamKeyers") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "programInput": self.program_input,
            "previewInput": self.preview_input,
            "transitionPosition": self.transition_position.to_dict(),
            "upstreamKeyers": [k.to_dict() for k in self.upstream_keyers],
        }


@dataclass
class VideoState:
    mix_effects: List[MixEffectState] = field(default_factory=list)
    downstream_keyers: List[DownstreamKeyerState] = field(default_factory=list)


@dataclass
class SwitcherState:
    video: VideoState = field(default_factory=VideoState)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "SwitcherState":
        video = (data or {}).get("video") or {}
        return cls(
            video=VideoState(
                mix_effects=[MixEffectState.from_dict(me) for me in video.get("mixEffects") or []],
                downstream_keyers=[DownstreamKeyerState.from_dict(d) for d in video.get("downstreamKeyers") or []],
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "video": {
                "mixEffects": [me.to_dict() for me in self.video.mix_effects],
                "downstreamKeyers": [dsk.to_dict() for dsk in self.video.downstream_keyers],
            }
        }

    def mix_effect(self, index: int) -> Optional[MixEffectState]:
        if 0 <= index < len(self.video.mix_effects):
            return self.video.mix_effects[index]
        return None

    def downstream_keyer(self, index: int) -> Optional[DownstreamKeyerState]:
        if 0 <= index < len(self.video.downstream_keyers):
            return self.video.downstream_keyers[index]
        return None


def changed_paths(previous: Optional[SwitcherState], current: SwitcherState) -> List[str]:
    """List the change paths between two snapshots, in switcher order.

    With no previous snapshot every tally-relevant path is reported.
    """
    paths: List[str] = []
    for me_index, me in enumerate(current.video.mix_effects):
        old = previous.mix_effect(me_index) if previous else None
        prefix = f"video.ME.{me_index}"
        if old is None or old.program_input != me.program_input:
            paths.append(f"{prefix}.programInput")
        if old is None or old.preview_input != me.preview_input:
            paths.append(f"{prefix}.previewInput")
        if old is None or old.transition_position.handle_position != me.transition_position.handle_position:
            paths.append(f"{prefix}.transitionPosition")
        for keyer_index, keyer in enumerate(me.upstream_keyers):
            old_keyer = old.upstream_keyers[keyer_index] if old and keyer_index < len(old.upstream_keyers) else None
            if old_keyer != keyer:
                paths.append(f"{prefix}.upstreamKeyers.{keyer_index}")
    for dsk_index, dsk in enumerate(current.video.downstream_keyers):
        old_dsk = previous.downstream_keyer(dsk_index) if previous else None
        if old_dsk is None or old_dsk.on_air != dsk.on_air or old_dsk.sources.fill_source != dsk.sources.fill_source:
            paths.append(f"video.downstreamKeyers.{dsk_index}")
    return paths


__all__ = [
    "DownstreamKeyerSources",
    "DownstreamKeyerState",
    "MixEffectState",
    "SwitcherState",
    "TransitionPosition",
    "UpstreamKeyerState",
    "VideoState",
    "changed_paths",
]
