"""Small helpers shared across the tally bridge."""

from .dict_utils import deep_merge
from .env_config import EnvConfigError, apply_env_overrides, parse_env_value
from .logging_setup import configure_logging
from .time_utils import MonotonicClock

__all__ = [
    "deep_merge",
    "EnvConfigError",
    "apply_env_overrides",
    "parse_env_value",
    "configure_logging",
    "MonotonicClock",
]
