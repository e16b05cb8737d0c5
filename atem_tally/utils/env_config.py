"""Environment overrides for the config tree.

Every leaf of the config dict can be replaced by a variable named after its
path: ``tally.reset.count`` becomes ``TALLY_TALLY_RESET_COUNT``. The value is
parsed into the type of the value it replaces, for example::

    TALLY_SYSTEM_LOG_LEVEL=DEBUG
    TALLY_SWITCHER_HOST=10.0.0.20
    TALLY_TALLY_STRICT_ME=true

Lists are left alone.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable, Dict, Iterator, List, Mapping, Tuple

logger = logging.getLogger(__name__)

ENV_PREFIX = "TALLY"

_TRUE = frozenset({"true", "yes", "1", "on"})
_FALSE = frozenset({"false", "no", "0", "off"})
_NULL = frozenset({"", "null", "none"})


class EnvConfigError(Exception):
    """Raised when environment variable configuration fails."""


def _to_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise EnvConfigError(
        f"Cannot parse '{raw}' as boolean. Valid values: true/false, yes/no, 1/0, on/off (case-insensitive)"
    )


def _numeric(kind: type, label: str) -> Callable[[str], Any]:
    def parse(raw: str) -> Any:
        try:
            return kind(raw)
        except ValueError as exc:
            raise EnvConfigError(f"Cannot parse '{raw}' as {label}") from exc

    return parse


def _json(kind: type) -> Callable[[str], Any]:
    def parse(raw: str) -> Any:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise EnvConfigError(f"Cannot parse '{raw}' as JSON {kind.__name__}") from exc
        if not isinstance(parsed, kind):
            raise EnvConfigError(f"Expected JSON {kind.__name__}, got {type(parsed).__name__}")
        return parsed

    return parse


_PARSERS: Dict[type, Callable[[str], Any]] = {
    bool: _to_bool,
    int: _numeric(int, "integer"),
    float: _numeric(float, "float"),
    dict: _json(dict),
    list: _json(list),
}


def parse_env_value(value: str, existing_value: Any) -> Any:
    """Parse ``value`` into the type of ``existing_value``.

    ``""``, ``null`` and ``none`` clear the setting. Unknown types, and settings
    that are currently unset, are kept as strings.

        >>> parse_env_value("on", False)
        True
        >>> parse_env_value("8000", 0)
        8000
        >>> parse_env_value("0.2", 0.0)
        0.2
    """
    if value.lower() in _NULL:
        return None
    parser = _PARSERS.get(type(existing_value))
    return parser(value) if parser else value


def _env_name(path: List[str], prefix: str) -> str:
    return "_".join([prefix, *path]).upper()


def _leaves(tree: Mapping[str, Any], path: List[str]) -> Iterator[Tuple[List[str], Any]]:
    for key, value in tree.items():
        if isinstance(value, dict):
            yield from _leaves(value, path + [key])
        elif not isinstance(value, list):
            yield path + [key], value


def _assign(tree: Dict[str, Any], path: List[str], value: Any) -> None:
    for key in path[:-1]:
        tree[key] = dict(tree[key])
        tree = tree[key]
    tree[path[-1]] = value


def apply_env_overrides(config_dict: Dict[str, Any], prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """Return a copy of ``config_dict`` with matching environment variables applied.

    Raises:
        EnvConfigError: If a variable cannot be parsed into the setting's type
    """
    result = dict(config_dict)
    for path, current in list(_leaves(config_dict, [])):
        name = _env_name(path, prefix)
        raw = os.environ.get(name)
        if raw is None:
            continue
        try:
            parsed = parse_env_value(raw, current)
        except EnvConfigError as exc:
            raise EnvConfigError(f"Failed to parse environment variable {name}: {exc}") from exc
        _assign(result, path, parsed)
        logger.info("Config override from %s (%s) for %s", name, type(parsed).__name__, ".".join(path))
    return result


__all__ = ["apply_env_overrides", "parse_env_value", "EnvConfigError", "ENV_PREFIX"]
