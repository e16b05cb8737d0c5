from __future__ import annotations

from typing import List

import pytest

from atem_tally.models.tally_command import TallyCommand
from atem_tally.utils.time_utils import MonotonicClock


class RecordingTransport:
    """Keeps every command it is asked to send, with the time it was sent."""

    def __init__(self, fail_first: int = 0) -> None:
        self.sent: List[TallyCommand] = []
        self.sent_at: List[float] = []
        self.opened = False
        self.closed = False
        self._fail_remaining = fail_first

    def open(self) -> None:
        self.opened = True

    def send(self, command: TallyCommand) -> None:
        if self._fail_remaining:
            self._fail_remaining -= 1
            raise OSError("network unreachable")
        self.sent.append(command)
        self.sent_at.append(MonotonicClock.now())

    def close(self) -> None:
        self.closed = True

    @property
    def messages(self) -> List[tuple]:
        return [(command.address, command.value) for command in self.sent]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def failing_transport() -> RecordingTransport:
    return RecordingTransport(fail_first=1)
