from __future__ import annotations

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


class OverflowPolicy(str, Enum):
    BLOCK = "BLOCK"
    DROP_OLDEST = "DROP_OLDEST"
    DROP_NEWEST = "DROP_NEWEST"


class BoundedQueue(Generic[T]):
    """Bounded queue with explicit overflow behavior.

    ``BLOCK`` makes producers wait for space so nothing is ever discarded; change
    batches rely on it because a dropped batch would desynchronise tally state.
    """

    def __init__(self, maxsize: int, overflow_policy: OverflowPolicy = OverflowPolicy.BLOCK):
        if maxsize <= 0:
            raise ValueError(f"maxsize must be positive, got {maxsize}")
        self._queue: deque[T] = deque()
        self._maxsize = maxsize
        self._overflow_policy = overflow_policy
        self._changed = asyncio.Condition()

    def __len__(self) -> int:
        return len(self._queue)

    async def put(self, item: T) -> bool:
        """Enqueue ``item``; returns False when an item was dropped on overflow."""
        async with self._changed:
            if len(self._queue) < self._maxsize:
                self._queue.append(item)
                self._changed.notify_all()
                return True

            if self._overflow_policy == OverflowPolicy.BLOCK:
                while len(self._queue) >= self._maxsize:
                    await self._changed.wait()
                self._queue.append(item)
                self._changed.notify_all()
                return True
            if self._overflow_policy == OverflowPolicy.DROP_OLDEST:
                dropped = self._queue.popleft()
                logger.warning("Dropped oldest item due to overflow: %s", dropped)
                self._queue.append(item)
                self._changed.notify_all()
                return False
            if self._overflow_policy == OverflowPolicy.DROP_NEWEST:
                logger.warning("Dropped newest item due to overflow: %s", item)
                return False
        raise ValueError(f"Unknown overflow policy {self._overflow_policy}")

    async def get(self) -> T:
        async with self._changed:
            while not self._queue:
                await self._changed.wait()
            item = self._queue.popleft()
            self._changed.notify_all()
        return item
