from __future__ import annotations

import asyncio
import logging
from typing import Dict, FrozenSet, List, Optional, Protocol, Set

from ..models.source_key import SourceKey, sorted_keys
from ..models.tally_command import TallyCommand, TallyDelta
from ..utils.time_utils import MonotonicClock
from .addressing import TallyAddressing

logger = logging.getLogger(__name__)


class TallyTransport(Protocol):
    def send(self, command: TallyCommand) -> None:
        ...


class TallyDispatcher:
    """Turns tally deltas into paced, idempotent outbound commands.

    Commands are decided synchronously in ``dispatch`` and sent by a background
    worker that keeps at least ``pacing_interval_ms`` between two sends. An
    address is switched on by the first key that needs it and off when the last
    key holding it goes away; everything else is suppressed.
    """

    def __init__(
        self,
        transport: TallyTransport,
        addressing: TallyAddressing,
        pacing_interval_ms: int = 200,
    ) -> None:
        if pacing_interval_ms < 0:
            raise ValueError(f"pacing_interval_ms must be >= 0, got {pacing_interval_ms}")
        self._transport = transport
        self.addressing = addressing
        self._pacing_s = pacing_interval_ms / 1000
        self._holders: Dict[str, Set[SourceKey]] = {}
        self._queue: asyncio.Queue[TallyCommand] = asyncio.Queue()
        self._worker_task: Optional[asyncio.Task] = None
        self._last_sent_at: Optional[float] = None
        self.sent_count = 0
        self.failed_count = 0

    @property
    def active_addresses(self) -> FrozenSet[str]:
        return frozenset(self._holders)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._worker_task is None or self._worker_task.done():
            self._worker_task = asyncio.create_task(self._worker(), name="tally-dispatcher")

    async def stop(self, drain: bool = True) -> None:
        if drain and self._worker_task is not None and not self._worker_task.done():
            await self.join()
        if self._worker_task is not None:
            self._worker_task.cancel()
            await asyncio.gather(self._worker_task, return_exceptions=True)
            self._worker_task = None

    async def join(self) -> None:
        """Wait until every queued command has been sent."""
        await self._queue.join()

    def dispatch(self, delta: TallyDelta) -> List[TallyCommand]:
        """Queue the commands for ``delta``: every activation before any deactivation."""
        queued: List[TallyCommand] = []

        for key in sorted_keys(delta.to_activate):
            address = self.addressing.address_for(key)
            holders = self._holders.setdefault(address, set())
            was_on = bool(holders)
            holders.add(key)
            if was_on:
                logger.debug("Tally %s already on for %s", address, key)
                continue
            queued.append(self._enqueue(TallyCommand(address=address, active=True, source_key=key)))

        for key in sorted_keys(delta.to_deactivate):
            address = self.addressing.address_for(key)
            holders = self._holders.get(address)
            if not holders or key not in holders:
                logger.debug("Tally %s not held by %s; nothing to stop", address, key)
                continue
            holders.discard(key)
            if holders:
                logger.debug("Tally %s still held by %s", address, sorted_keys(holders))
                continue
            del self._holders[address]
            queued.append(self._enqueue(TallyCommand(address=address, active=False, source_key=key)))

        return queued

    def force(self, address: str, active: bool) -> TallyCommand:
        """Queue a command regardless of bookkeeping; forcing off releases the address."""
        if not active:
            self._holders.pop(address, None)
        return self._enqueue(TallyCommand(address=address, active=active))

    def forget(self) -> None:
        """Drop all address bookkeeping without sending anything."""
        self._holders.clear()

    def _enqueue(self, command: TallyCommand) -> TallyCommand:
        self._queue.put_nowait(command)
        return command

    async def _worker(self) -> None:
        while True:
            command = await self._queue.get()
            try:
                await self._wait_for_slot()
                self._send(command)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Tally dispatcher failed on %s", command)
            finally:
                self._queue.task_done()

    async def _wait_for_slot(self) -> None:
        if self._last_sent_at is None or self._pacing_s <= 0:
            return
        remaining = self._pacing_s - MonotonicClock.elapsed_from(self._last_sent_at)
        if remaining > 0:
            await asyncio.sleep(remaining)

    def _send(self, command: TallyCommand) -> None:
        self._last_sent_at = MonotonicClock.now()
        try:
            self._transport.send(command)
        except Exception:
            self.failed_count += 1
            logger.exception("Failed to send tally %s=%s", command.address, command.value)
            return
        self.sent_count += 1
        logger.debug("Sent tally %s=%s (%s)", command.address, command.value, command.source_key)


__all__ = ["TallyDispatcher", "TallyTransport"]
