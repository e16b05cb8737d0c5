import asyncio
import logging

import pytest

from atem_tally.dispatch.addressing import TallyAddressing
from atem_tally.dispatch.tally_dispatcher import TallyDispatcher
from atem_tally.models.source_key import SourceKey, TallyRole
from atem_tally.models.tally_command import TallyDelta

P1 = SourceKey(0, TallyRole.PROGRAM, 1)
P2 = SourceKey(0, TallyRole.PROGRAM, 2)
P3 = SourceKey(0, TallyRole.PROGRAM, 3)
PV3 = SourceKey(0, TallyRole.PREVIEW_DURING_TRANSITION, 3)
DSK3 = SourceKey(0, TallyRole.DOWNSTREAM_KEYER_FILL, 3)


def _delta(on=(), off=()):
    return TallyDelta(to_activate=frozenset(on), to_deactivate=frozenset(off))


def _dispatcher(transport, pacing_interval_ms=0, strict_me=False):
    return TallyDispatcher(transport, TallyAddressing(strict_me=strict_me), pacing_interval_ms=pacing_interval_ms)


@pytest.mark.asyncio
async def test_activations_are_sent_before_deactivations(transport):
    dispatcher = _dispatcher(transport)
    dispatcher.dispatch(_delta(on=[P1]))

    commands = dispatcher.dispatch(_delta(on=[P2], off=[P1]))

    assert [(c.address, c.active) for c in commands] == [("/exec/1/2", True), ("/exec/1/1", False)]
    dispatcher.start()
    await dispatcher.join()
    await dispatcher.stop()
    assert transport.messages == [("/exec/1/1", 1.0), ("/exec/1/2", 1.0), ("/exec/1/1", 0.0)]


@pytest.mark.asyncio
async def test_stopping_an_unlit_address_sends_nothing(transport):
    dispatcher = _dispatcher(transport)

    assert dispatcher.dispatch(_delta(off=[P1])) == []
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_shared_address_stays_lit_until_last_holder_leaves(transport):
    dispatcher = _dispatcher(transport)

    assert len(dispatcher.dispatch(_delta(on=[P3, PV3]))) == 1
    assert dispatcher.dispatch(_delta(off=[PV3])) == []
    assert dispatcher.active_addresses == {"/exec/1/3"}

    commands = dispatcher.dispatch(_delta(off=[P3]))
    assert [(c.address, c.active) for c in commands] == [("/exec/1/3", False)]
    assert dispatcher.active_addresses == frozenset()


@pytest.mark.asyncio
async def test_repeated_activation_is_suppressed(transport):
    dispatcher = _dispatcher(transport)
    dispatcher.dispatch(_delta(on=[P1]))

    assert dispatcher.dispatch(_delta(on=[P1])) == []


@pytest.mark.asyncio
async def test_strict_addresses_are_scoped_per_row(transport):
    dispatcher = _dispatcher(transport, strict_me=True)

    commands = dispatcher.dispatch(_delta(on=[P3, DSK3]))

    assert [c.address for c in commands] == ["/exec/1/M0/3", "/exec/1/D0/3"]


@pytest.mark.asyncio
async def test_pacing_spaces_sends_without_blocking_dispatch(transport):
    dispatcher = _dispatcher(transport, pacing_interval_ms=40)
    dispatcher.start()

    dispatcher.dispatch(_delta(on=[SourceKey(0, TallyRole.PROGRAM, s) for s in (1, 2, 3)]))
    assert dispatcher.pending == 3

    await dispatcher.join()
    await dispatcher.stop()

    assert [address for address, _ in transport.messages] == ["/exec/1/1", "/exec/1/2", "/exec/1/3"]
    gaps = [later - earlier for earlier, later in zip(transport.sent_at, transport.sent_at[1:])]
    assert all(gap >= 0.035 for gap in gaps)


@pytest.mark.asyncio
async def test_send_failure_is_logged_and_later_commands_still_go_out(failing_transport, caplog):
    dispatcher = _dispatcher(failing_transport)
    dispatcher.start()

    with caplog.at_level(logging.ERROR):
        dispatcher.dispatch(_delta(on=[P1, P2]))
        await dispatcher.join()
    await dispatcher.stop()

    assert failing_transport.messages == [("/exec/1/2", 1.0)]
    assert dispatcher.failed_count == 1
    assert dispatcher.sent_count == 1
    assert "Failed to send tally /exec/1/1" in caplog.text


@pytest.mark.asyncio
async def test_force_off_releases_bookkeeping(transport):
    dispatcher = _dispatcher(transport)
    dispatcher.dispatch(_delta(on=[P1]))

    command = dispatcher.force("/exec/1/1", False)

    assert command.source_key is None
    assert command.value == 0.0
    assert dispatcher.active_addresses == frozenset()
    # After a forced off the next activation must be sent again.
    assert len(dispatcher.dispatch(_delta(on=[P1]))) == 1


@pytest.mark.asyncio
async def test_stop_without_drain_discards_nothing_already_sent(transport):
    dispatcher = _dispatcher(transport)
    dispatcher.start()
    dispatcher.dispatch(_delta(on=[P1]))
    await asyncio.sleep(0.01)

    await dispatcher.stop(drain=False)

    assert transport.messages == [("/exec/1/1", 1.0)]


def test_negative_pacing_rejected(transport):
    with pytest.raises(ValueError):
        TallyDispatcher(transport, TallyAddressing(), pacing_interval_ms=-1)
