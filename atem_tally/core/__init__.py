"""Core async infrastructure for the tally bridge."""

from .event_bus import EventBus, HandlerConfig
from .queues import BoundedQueue, OverflowPolicy

__all__ = [
    "EventBus",
    "HandlerConfig",
    "BoundedQueue",
    "OverflowPolicy",
]
