"""Replay switcher activity from a YAML scenario file.

A scenario starts from an ``initial`` state tree and walks through ``steps``::

    id: cut-then-mix
    initial:
      video:
        mixEffects:
          - {programInput: 1, previewInput: 2, transitionPosition: {handlePosition: 0}}
    steps:
      - delay_ms: 500
        set:
          video.ME.0.programInput: 2
          video.ME.0.previewInput: 1
      - disconnect: true
      - reconnect: true

Keys under ``set`` use change-path syntax and, unless a step lists ``paths``
explicitly, are also reported as the step's changed paths.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import yaml

from ..models.switcher_state import SwitcherState
from ..models.switcher_update import SwitcherUpdate

logger = logging.getLogger(__name__)


class ScenarioError(Exception):
    """Raised when a scenario file is missing or malformed."""


@dataclass
class ScenarioStep:
    delay_ms: int = 0
    set: Dict[str, Any] = field(default_factory=dict)
    paths: Optional[List[str]] = None
    disconnect: bool = False
    reconnect: bool = False


@dataclass
class Scenario:
    id: str
    initial: Dict[str, Any]
    steps: List[ScenarioStep]
    description: str = ""


def assign_path(tree: Dict[str, Any], path: str, value: Any) -> None:
    """Set ``value`` at a change path inside a camelCase state tree, growing lists as needed."""
    parts = path.split(".")
    if len(parts) >= 2 and parts[0] == "video" and parts[1] == "ME":
        parts[1] = "mixEffects"

    node: Any = tree
    for position, part in enumerate(parts[:-1]):
        next_is_index = parts[position + 1].isdigit()
        if part.isdigit():
            if not isinstance(node, list):
                raise ScenarioError(f"Path {path!r} indexes into a non-list at {part!r}")
            index = int(part)
            while len(node) <= index:
                node.append({})
            node = node[index]
            continue
        if not isinstance(node, dict):
            raise ScenarioError(f"Path {path!r} descends into a non-mapping at {part!r}")
        if node.get(part) is None:
            node[part] = [] if next_is_index else {}
        node = node[part]

    last = parts[-1]
    if last.isdigit():
        if not isinstance(node, list):
            raise ScenarioError(f"Path {path!r} indexes into a non-list at {last!r}")
        index = int(last)
        while len(node) <= index:
            node.append({})
        node[index] = value
    elif isinstance(node, dict):
        node[last] = value
    else:
        raise ScenarioError(f"Path {path!r} cannot be assigned")


class ScenarioLoader:
    """Load scenario definitions into dataclasses."""

    def load(self, path: Path) -> Scenario:
        raw = self._load_raw(path)
        if "initial" not in raw:
            raise ScenarioError(f"Scenario {path} has no 'initial' state")

        steps = []
        for position, item in enumerate(raw.get("steps") or []):
            if not isinstance(item, dict):
                raise ScenarioError(f"Step {position} of {path} must be a mapping")
            try:
                steps.append(ScenarioStep(**item))
            except TypeError as exc:
                raise ScenarioError(f"Step {position} of {path} is invalid: {exc}") from exc

        scenario = Scenario(
            id=str(raw.get("id") or path.stem),
            description=raw.get("description", ""),
            initial=raw["initial"] or {},
            steps=steps,
        )
        logger.info("Scenario loaded id:%s steps:%s path:%s", scenario.id, len(steps), path)
        return scenario

    def _load_raw(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ScenarioError(f"Scenario file not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ScenarioError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ScenarioError(f"Scenario {path} must contain a mapping at the top level")
        return data


class ScenarioSwitcherAdapter:
    """Switcher adapter that plays back a ``Scenario`` instead of talking to hardware."""

    def __init__(self, scenario: Scenario, *, speed: float = 1.0):
        if speed <= 0:
            raise ValueError("speed must be positive")
        self.scenario = scenario
        self.speed = speed
        self._tree = copy.deepcopy(scenario.initial)
        self._closed = False
        self._sequence = 0

    @classmethod
    def from_file(cls, path: Path, *, speed: float = 1.0) -> "ScenarioSwitcherAdapter":
        return cls(ScenarioLoader().load(path), speed=speed)

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _state(self) -> SwitcherState:
        return SwitcherState.from_dict(copy.deepcopy(self._tree))

    async def updates(self) -> AsyncIterator[SwitcherUpdate]:
        yield SwitcherUpdate.connected(self._state(), sequence=self._next_sequence())
        for step in self.scenario.steps:
            if self._closed:
                return
            if step.delay_ms:
                await asyncio.sleep(step.delay_ms / 1000 / self.speed)
            if step.disconnect:
                yield SwitcherUpdate.disconnected(sequence=self._next_sequence())
                continue
            for path, value in step.set.items():
                assign_path(self._tree, path, value)
            if step.reconnect:
                yield SwitcherUpdate.connected(self._state(), sequence=self._next_sequence())
                continue
            paths = step.paths if step.paths is not None else list(step.set)
            if paths:
                yield SwitcherUpdate.changed(self._state(), paths, sequence=self._next_sequence())
        logger.info("Scenario %s finished", self.scenario.id)

    async def close(self) -> None:
        self._closed = True


__all__ = [
    "Scenario",
    "ScenarioError",
    "ScenarioLoader",
    "ScenarioStep",
    "ScenarioSwitcherAdapter",
    "assign_path",
]
