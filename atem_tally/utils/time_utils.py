from __future__ import annotations

import time


class MonotonicClock:
    """Monotonic time helpers for measuring command spacing."""

    @staticmethod
    def now() -> float:
        """Return monotonic time in seconds."""
        return time.monotonic()

    @staticmethod
    def elapsed_from(start: float) -> float:
        """Return elapsed seconds from a monotonic start time."""
        return time.monotonic() - start


__all__ = ["MonotonicClock"]
