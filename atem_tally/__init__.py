"""Tally-light bridge from a Blackmagic ATEM switcher to OSC."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("atem-tally")
except PackageNotFoundError:  # pragma: no cover - fallback during local execution
    __version__ = "0.0.0"

__all__ = ["__version__"]
