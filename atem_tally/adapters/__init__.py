"""Switcher inputs and tally outputs."""

from .atem import AtemSwitcherAdapter, SwitcherUnavailableError, read_switcher_state
from .base import SwitcherAdapter
from .osc_transport import LoggingTransport, OscTallyTransport
from .scenario import Scenario, ScenarioError, ScenarioLoader, ScenarioSwitcherAdapter

__all__ = [
    "AtemSwitcherAdapter",
    "SwitcherUnavailableError",
    "read_switcher_state",
    "SwitcherAdapter",
    "LoggingTransport",
    "OscTallyTransport",
    "Scenario",
    "ScenarioError",
    "ScenarioLoader",
    "ScenarioSwitcherAdapter",
]
