from __future__ import annotations

import logging
from typing import FrozenSet, Protocol

from .adapters.base import SwitcherAdapter
from .config import Config
from .core.event_bus import EventBus, HandlerConfig
from .core.queues import OverflowPolicy
from .dispatch.addressing import TallyAddressing
from .dispatch.tally_dispatcher import TallyDispatcher
from .engine.reconciler import StartupReconciler
from .engine.tally_state import TallyStateEngine
from .models.source_key import SourceKey
from .models.switcher_update import SwitcherUpdate, UpdateKind
from .models.tally_command import TallyCommand

logger = logging.getLogger(__name__)


class ManagedTransport(Protocol):
    def open(self) -> None:
        ...

    def send(self, command: TallyCommand) -> None:
        ...

    def close(self) -> None:
        ...


class TallyService:
    """Wires a switcher adapter through the tally engine to an outbound transport.

    Updates are published on an event bus whose single worker applies them one
    at a time; sending is left to the dispatcher's own paced worker.
    """

    def __init__(self, config: Config, adapter: SwitcherAdapter, transport: ManagedTransport):
        self.config = config
        self.adapter = adapter
        self.transport = transport
        self.engine = TallyStateEngine()
        self.addressing = TallyAddressing(
            template=config.osc.address_template,
            strict_template=config.osc.strict_address_template,
            strict_me=config.tally.strict_me,
        )
        self.dispatcher = TallyDispatcher(
            transport,
            self.addressing,
            pacing_interval_ms=config.tally.pacing_interval_ms,
        )
        self.reconciler = StartupReconciler(
            self.engine,
            self.dispatcher,
            reset_first_index=config.tally.reset.first_index,
            reset_count=config.tally.reset.count,
        )
        self.bus = EventBus("switcher_updates")
        self._started = False
        self._reconciled = False

    @property
    def on_air(self) -> FrozenSet[SourceKey]:
        return self.engine.on_air

    @property
    def reconciled(self) -> bool:
        return self._reconciled

    async def start(self) -> None:
        if self._started:
            return
        self.transport.open()
        self.dispatcher.start()
        await self.bus.register_handler(
            HandlerConfig(
                name="tally_engine",
                queue_max=self.config.buffering.batch_queue_max,
                overflow_policy=OverflowPolicy(self.config.buffering.overflow_policy),
                concurrency=1,
            ),
            self.handle_update,
        )
        self._started = True

    async def run(self) -> None:
        """Consume adapter updates until the adapter is exhausted or closed."""
        await self.start()
        async for update in self.adapter.updates():
            await self.bus.publish(update)
        await self.drain()

    async def drain(self) -> None:
        await self.bus.drain()
        await self.dispatcher.join()

    async def handle_update(self, update: SwitcherUpdate) -> None:
        if update.kind == UpdateKind.CONNECTED:
            first = not self._reconciled
            self.reconciler.reconcile(update.state)
            self._reconciled = True
            if first:
                logger.info("Startup complete")
            return

        if update.kind == UpdateKind.DISCONNECTED:
            self._reconciled = False
            logger.warning("Switcher disconnected; holding %s sources on air until resync", len(self.engine.on_air))
            return

        if not self._reconciled:
            logger.warning("Ignoring change batch #%s received before reconciliation", update.sequence)
            return

        result = self.engine.process(update.state, update.paths)
        if result.delta.is_empty:
            return
        commands = self.dispatcher.dispatch(result.delta)
        logger.debug(
            "Batch #%s: +%s -%s keys, %s commands",
            update.sequence,
            len(result.delta.to_activate),
            len(result.delta.to_deactivate),
            len(commands),
        )

    async def shutdown(self) -> None:
        await self.adapter.close()
        if self._started:
            await self.bus.drain()
            await self.bus.shutdown()
            await self.dispatcher.stop(drain=True)
        self.transport.close()
        logger.info("Tally service shut down")


__all__ = ["ManagedTransport", "TallyService"]
