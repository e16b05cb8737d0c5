"""ATEM switcher adapter built on PyATEMMax.

PyATEMMax keeps a live copy of the switcher state in a background thread. This
adapter polls that copy, turns it into a ``SwitcherState`` and reports the paths
that changed since the previous poll.
"""

from __future__ import annotations

import asyncio
import importlib
import logging
from typing import Any, AsyncIterator, Callable, Optional

from ..config import ReconnectConfig
from ..models.switcher_state import (
    DownstreamKeyerSources,
    DownstreamKeyerState,
    MixEffectState,
    SwitcherState,
    TransitionPosition,
    UpstreamKeyerState,
    VideoState,
    changed_paths,
)
from ..models.switcher_update import SwitcherUpdate

logger = logging.getLogger(__name__)

DEFAULT_UPSTREAM_KEYERS = 4


class SwitcherUnavailableError(RuntimeError):
    """Raised when the ATEM control library cannot be loaded."""


def _default_switcher_factory() -> Any:
    try:
        pyatemmax = importlib.import_module("PyATEMMax")
    except ModuleNotFoundError as exc:
        raise SwitcherUnavailableError(
            "PyATEMMax is required to talk to an ATEM switcher; install the 'atem' extra."
        ) from exc
    return pyatemmax.ATEMMax()


def _source_id(value: Any) -> int:
    """PyATEMMax reports sources as constants carrying a ``value``; plain ints pass through."""
    return int(getattr(value, "value", value) or 0)


def _count(value: Any, fallback: int) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        return fallback
    return count if count > 0 else fallback


def read_switcher_state(switcher: Any, upstream_keyers: int = DEFAULT_UPSTREAM_KEYERS) -> SwitcherState:
    """Copy the tally-relevant parts of a PyATEMMax switcher into a snapshot."""
    topology = switcher.topology
    me_count = _count(getattr(topology, "mEs", None), 1)
    dsk_count = _count(getattr(topology, "downstreamKeyers", None), 0)
    keyer_count = _count(getattr(topology, "upstreamKeyers", None), upstream_keyers)

    mix_effects = []
    for me in range(me_count):
        transition = switcher.transition[me]
        keyers = [
            UpstreamKeyerState(
                on_air=bool(switcher.keyer[me][k].onAir.enabled),
                fill_source=_source_id(switcher.keyer[me][k].fillSource),
            )
            for k in range(keyer_count)
        ]
        mix_effects.append(
            MixEffectState(
                program_input=_source_id(switcher.programInput[me].videoSource),
                preview_input=_source_id(switcher.previewInput[me].videoSource),
                transition_position=TransitionPosition(
                    handle_position=int(transition.position or 0),
                    in_transition=bool(transition.inTransition),
                    remaining_frames=int(transition.framesRemaining or 0),
                ),
                upstream_keyers=keyers,
            )
        )

    downstream_keyers = [
        DownstreamKeyerState(
            on_air=bool(switcher.downstreamKeyer[dsk].onAir),
            in_transition=bool(switcher.downstreamKeyer[dsk].inTransition),
            sources=DownstreamKeyerSources(
                fill_source=_source_id(switcher.downstreamKeyer[dsk].fillSource),
                cut_source=_source_id(switcher.downstreamKeyer[dsk].keySource),
            ),
        )
        for dsk in range(dsk_count)
    ]
    return SwitcherState(video=VideoState(mix_effects=mix_effects, downstream_keyers=downstream_keyers))


class AtemSwitcherAdapter:
    """Polls an ATEM switcher and yields connect, change and disconnect updates."""

    def __init__(
        self,
        host: str,
        *,
        poll_interval_ms: int = 50,
        connect_timeout_ms: int = 5_000,
        reconnect: Optional[ReconnectConfig] = None,
        switcher_factory: Optional[Callable[[], Any]] = None,
        upstream_keyers: int = DEFAULT_UPSTREAM_KEYERS,
    ):
        self.host = host
        self.poll_interval = poll_interval_ms / 1000
        self.connect_timeout = connect_timeout_ms / 1000
        self.reconnect = reconnect or ReconnectConfig()
        self.upstream_keyers = upstream_keyers
        self._switcher_factory = switcher_factory or _default_switcher_factory
        self._switcher: Any = None
        self._closed = False
        self._sequence = 0

    async def _connect(self) -> bool:
        self._switcher = self._switcher_factory()
        self._switcher.connect(self.host)
        deadline = asyncio.get_running_loop().time() + self.connect_timeout
        while not self._switcher.connected:
            if self._closed or asyncio.get_running_loop().time() >= deadline:
                return False
            await asyncio.sleep(self.poll_interval)
        logger.info("Connected to ATEM at %s", self.host)
        return True

    def _disconnect(self) -> None:
        if self._switcher is None:
            return
        try:
            self._switcher.disconnect()
        except Exception:
            logger.exception("Error while disconnecting from ATEM at %s", self.host)
        self._switcher = None

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    async def updates(self) -> AsyncIterator[SwitcherUpdate]:
        backoff = self.reconnect.initial_delay_ms / 1000
        while not self._closed:
            if not await self._connect():
                logger.warning("Failed to connect to ATEM at %s; retrying in %.1fs", self.host, backoff)
                self._disconnect()
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, self.reconnect.max_delay_ms / 1000)
                continue

            backoff = self.reconnect.initial_delay_ms / 1000
            previous = read_switcher_state(self._switcher, self.upstream_keyers)
            yield SwitcherUpdate.connected(previous, sequence=self._next_sequence())

            while not self._closed and self._switcher is not None and self._switcher.connected:
                await asyncio.sleep(self.poll_interval)
                if self._switcher is None:
                    break
                current = read_switcher_state(self._switcher, self.upstream_keyers)
                paths = changed_paths(previous, current)
                if paths:
                    yield SwitcherUpdate.changed(current, paths, sequence=self._next_sequence())
                previous = current

            if self._closed:
                break
            logger.warning("Lost connection to ATEM at %s; reconnecting", self.host)
            yield SwitcherUpdate.disconnected(sequence=self._next_sequence())
            self._disconnect()
            await asyncio.sleep(backoff)

    async def close(self) -> None:
        self._closed = True
        self._disconnect()
        logger.info("Closed ATEM adapter for %s", self.host)


__all__ = ["AtemSwitcherAdapter", "SwitcherUnavailableError", "read_switcher_state"]
