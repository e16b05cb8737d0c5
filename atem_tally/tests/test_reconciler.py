import pytest

from atem_tally.dispatch.addressing import TallyAddressing
from atem_tally.dispatch.tally_dispatcher import TallyDispatcher
from atem_tally.engine.reconciler import StartupReconciler, startup_paths
from atem_tally.engine.tally_state import TallyStateEngine
from atem_tally.models.source_key import SourceKey, TallyRole
from atem_tally.models.switcher_state import SwitcherState
from atem_tally.models.tally_command import TallyDelta

RESET_BANK = [(f"/exec/1/{source}", 0.0) for source in range(1, 9)]


def _state(program=1, preview=2, usk=(True, 4), dsk=(True, 7)):
    return SwitcherState.from_dict(
        {
            "video": {
                "mixEffects": [
                    {
                        "programInput": program,
                        "previewInput": preview,
                        "transitionPosition": {"handlePosition": 0},
                        "upstreamKeyers": [{"onAir": usk[0], "fillSource": usk[1]}],
                    }
                ],
                "downstreamKeyers": [{"onAir": dsk[0], "sources": {"fillSource": dsk[1]}}],
            }
        }
    )


def _build(transport, strict_me=False):
    engine = TallyStateEngine()
    dispatcher = TallyDispatcher(transport, TallyAddressing(strict_me=strict_me), pacing_interval_ms=0)
    return engine, dispatcher, StartupReconciler(engine, dispatcher)


def test_startup_paths_include_keyers():
    assert startup_paths(_state()) == [
        "video.ME.0.programInput",
        "video.ME.0.transitionPosition",
        "video.ME.0.upstreamKeyers.0",
        "video.downstreamKeyers.0",
    ]


@pytest.mark.asyncio
async def test_reconcile_resets_bank_then_lights_current_state(transport):
    engine, dispatcher, reconciler = _build(transport)
    dispatcher.start()

    on_air = reconciler.reconcile(_state())
    await dispatcher.join()
    await dispatcher.stop()

    assert on_air == {
        SourceKey(0, TallyRole.PROGRAM, 1),
        SourceKey(0, TallyRole.UPSTREAM_KEYER_FILL, 4),
        SourceKey(0, TallyRole.DOWNSTREAM_KEYER_FILL, 7),
    }
    assert transport.messages == RESET_BANK + [("/exec/1/1", 1.0), ("/exec/1/4", 1.0), ("/exec/1/7", 1.0)]


@pytest.mark.asyncio
async def test_replaying_startup_batch_after_reconcile_sends_nothing(transport):
    engine, dispatcher, reconciler = _build(transport)
    state = _state()
    reconciler.reconcile(state)

    update = engine.process(state, startup_paths(state))

    assert update.delta.is_empty
    assert dispatcher.dispatch(update.delta) == []


@pytest.mark.asyncio
async def test_sweep_turns_off_lights_outside_the_bank(transport):
    engine, dispatcher, reconciler = _build(transport)
    dispatcher.dispatch(TallyDelta(to_activate=frozenset({SourceKey(0, TallyRole.PROGRAM, 12)})))

    commands = reconciler.reset_sweep()

    assert [(c.address, c.value) for c in commands] == RESET_BANK + [("/exec/1/12", 0.0)]
    assert dispatcher.active_addresses == frozenset()


@pytest.mark.asyncio
async def test_reconnect_reconciles_from_scratch(transport):
    engine, dispatcher, reconciler = _build(transport)
    reconciler.reconcile(_state(program=1))

    on_air = reconciler.reconcile(_state(program=3, usk=(False, 4), dsk=(False, 7)))

    assert on_air == {SourceKey(0, TallyRole.PROGRAM, 3)}
    assert dispatcher.active_addresses == {"/exec/1/3"}


@pytest.mark.asyncio
async def test_strict_sweep_covers_rows_and_downstream_keyers(transport):
    engine, dispatcher, reconciler = _build(transport, strict_me=True)
    reconciler.reset_first_index = 1
    reconciler.reset_count = 2

    commands = reconciler.reset_sweep(me_indices=[0], dsk_indices=[0])

    assert [c.address for c in commands] == ["/exec/1/M0/1", "/exec/1/D0/1", "/exec/1/M0/2", "/exec/1/D0/2"]
