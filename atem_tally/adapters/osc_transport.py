"""OSC over UDP transport for tally commands."""

from __future__ import annotations

import logging
from typing import Optional

from pythonosc.udp_client import SimpleUDPClient

from ..models.tally_command import TallyCommand

logger = logging.getLogger(__name__)


class OscTallyTransport:
    """Fire-and-forget sender; one OSC message with a single float per command."""

    def __init__(self, host: str, port: int, client: Optional[SimpleUDPClient] = None):
        self.host = host
        self.port = port
        self._client = client

    def open(self) -> None:
        self._ensure_client()

    def _ensure_client(self) -> SimpleUDPClient:
        if self._client is None:
            self._client = SimpleUDPClient(self.host, self.port)
            logger.info("OSC ready, sending tally to %s:%s", self.host, self.port)
        return self._client

    def send(self, command: TallyCommand) -> None:
        self._ensure_client().send_message(command.address, command.value)

    def close(self) -> None:
        self._client = None


class LoggingTransport:
    """Dry-run transport that only logs what would have been sent."""

    def __init__(self) -> None:
        self.sent: list[TallyCommand] = []

    def open(self) -> None:
        logger.info("Dry run: tally commands are logged, not sent")

    def send(self, command: TallyCommand) -> None:
        self.sent.append(command)
        logger.info("tally %s -> %s", command.address, "ON" if command.active else "OFF")

    def close(self) -> None:
        return None


__all__ = ["LoggingTransport", "OscTallyTransport"]
