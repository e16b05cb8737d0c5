from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List

from .queues import BoundedQueue, OverflowPolicy

logger = logging.getLogger(__name__)


HandlerFn = Callable[[object], Awaitable[None]]


@dataclass
class HandlerConfig:
    name: str
    queue_max: int = 1000
    overflow_policy: OverflowPolicy = OverflowPolicy.BLOCK
    concurrency: int = 1


@dataclass
class HandlerRuntime:
    config: HandlerConfig
    handler: HandlerFn
    queue: BoundedQueue[object]
    tasks: List[asyncio.Task]
    pending: int = 0
    idle: asyncio.Event = field(default_factory=asyncio.Event)


class EventBus:
    """Fan-out event bus with independent per-handler queues.

    A handler registered with ``concurrency=1`` sees envelopes one at a time in
    publish order.
    """

    def __init__(self, name: str):
        self.name = name
        self._handlers: Dict[str, HandlerRuntime] = {}
        self._lock = asyncio.Lock()

    async def register_handler(self, config: HandlerConfig, handler: HandlerFn) -> None:
        async with self._lock:
            if config.name in self._handlers:
                raise ValueError(f"Handler {config.name} already registered on bus {self.name}")
            queue: BoundedQueue[object] = BoundedQueue(config.queue_max, config.overflow_policy)
            runtime = HandlerRuntime(config=config, handler=handler, queue=queue, tasks=[])
            runtime.idle.set()
            runtime.tasks = [
                asyncio.create_task(self._worker(runtime), name=f"{config.name}-worker-{i}")
                for i in range(config.concurrency)
            ]
            self._handlers[config.name] = runtime
            logger.info("Registered handler %s on bus %s with concurrency %s", config.name, self.name, config.concurrency)

    async def publish(self, envelope: object) -> None:
        async with self._lock:
            runtimes = list(self._handlers.values())
        for runtime in runtimes:
            runtime.pending += 1
            runtime.idle.clear()
            enqueued = await runtime.queue.put(envelope)
            if not enqueued:
                self._mark_done(runtime)
                logger.warning(
                    "Handler queue overflow on %s; policy=%s depth=%s",
                    runtime.config.name,
                    runtime.config.overflow_policy,
                    len(runtime.queue),
                )

    async def drain(self) -> None:
        """Wait until every handler has processed everything published so far."""
        async with self._lock:
            runtimes = list(self._handlers.values())
        for runtime in runtimes:
            await runtime.idle.wait()

    async def _worker(self, runtime: HandlerRuntime) -> None:
        while True:
            try:
                envelope = await runtime.queue.get()
            except asyncio.CancelledError:
                logger.info("Worker for %s cancelled", runtime.config.name)
                break
            try:
                await runtime.handler(envelope)
            except asyncio.CancelledError:
                logger.info("Worker for %s cancelled", runtime.config.name)
                break
            except Exception:
                logger.exception("Handler %s failed while processing envelope", runtime.config.name)
            finally:
                self._mark_done(runtime)

    @staticmethod
    def _mark_done(runtime: HandlerRuntime) -> None:
        runtime.pending = max(0, runtime.pending - 1)
        if runtime.pending == 0:
            runtime.idle.set()

    async def shutdown(self) -> None:
        async with self._lock:
            runtimes = list(self._handlers.values())
        for runtime in runtimes:
            for task in runtime.tasks:
                task.cancel()
            await asyncio.gather(*runtime.tasks, return_exceptions=True)
        logger.info("Event bus %s shutdown complete", self.name)
