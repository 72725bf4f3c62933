import pytest

from match3.components.cascade_state import CascadePhase
from match3.components.turn_gate import GateState, TurnGate
from match3.engine import Match3Engine
from match3.events.bus import (
    EVENT_CASCADE_SETTLED,
    EVENT_CASCADE_STEP,
    EVENT_ANIMATION_COMPLETE,
    EVENT_SWAP_REJECTED,
    EVENT_TURN_GATE_CHANGED,
)
from match3.systems.swap import RejectReason
from match3.config import EngineConfig
from tests.helpers import BOTTOM_ROW_SETUP, KINDS, LATIN_3, ScriptedRandom

TWO_STEP_PICKS = ['A', 'A', 'A', 'C', 'D', 'A', 'B']


@pytest.fixture
def engine():
    return Match3Engine(
        EngineConfig(side=4, kinds=KINDS),
        layout=BOTTOM_ROW_SETUP,
        rng=ScriptedRandom(picks=TWO_STEP_PICKS),
    )


def test_gate_transitions_are_strict():
    gate = TurnGate()
    assert not gate.busy
    gate.acquire()
    assert gate.state is GateState.BUSY
    with pytest.raises(RuntimeError):
        gate.acquire()
    gate.release()
    with pytest.raises(RuntimeError):
        gate.release()


def test_rejected_swaps_leave_gate_ready():
    engine = Match3Engine(EngineConfig(side=3, kinds=KINDS), layout=LATIN_3)
    assert engine.swap((0, 0), (2, 2)).reason is RejectReason.NOT_ADJACENT
    assert not engine.busy
    assert engine.swap((0, 0), (1, 0)).reason is RejectReason.NO_MATCH
    assert not engine.busy


def test_swap_rejected_busy_while_cascade_in_flight(engine):
    assert engine.swap((2, 2), (3, 2)).accepted
    assert engine.busy
    before = engine.snapshot()
    result = engine.swap((0, 0), (0, 1))
    assert result.reason is RejectReason.BUSY
    assert engine.snapshot() == before


def test_cascade_waits_for_every_animation(engine):
    steps = []
    settled = {}
    engine.event_bus.subscribe(EVENT_CASCADE_STEP, lambda s, **k: steps.append(k['step']))
    engine.event_bus.subscribe(EVENT_CASCADE_SETTLED, lambda s, **k: settled.update(k))

    engine.swap((2, 2), (3, 2))
    state = engine.cascade_system.state
    assert len(steps) == 1
    assert state.phase is CascadePhase.AWAITING_ANIMATIONS
    assert state.outstanding == steps[0].animation_count == 20

    engine.animation_complete(count=19)
    assert len(steps) == 1
    assert state.outstanding == 1

    engine.animation_complete()
    # Second iteration only starts once the first one's animations are done.
    assert len(steps) == 2
    assert steps[1].depth == 2
    assert state.outstanding == steps[1].animation_count == 6
    assert engine.busy

    engine.animation_complete(count=6)
    assert state.phase is CascadePhase.SETTLED
    assert settled == {'depth': 2, 'score_delta': 70, 'total': 70}
    assert engine.score == 70
    assert not engine.busy


def test_synchronous_renderer_settles_inside_swap_call(engine):
    bus = engine.event_bus
    bus.subscribe(
        EVENT_CASCADE_STEP,
        lambda s, **k: bus.emit(EVENT_ANIMATION_COMPLETE, count=k['step'].animation_count),
    )
    assert engine.swap((2, 2), (3, 2)).accepted
    assert not engine.busy
    assert engine.score == 70
    assert len(engine.last_steps) == 2


def test_gate_events_and_stray_completion(engine):
    states = []
    engine.event_bus.subscribe(EVENT_TURN_GATE_CHANGED, lambda s, **k: states.append(k['state']))
    engine.animation_complete()
    assert engine.cascade_system.state.phase is CascadePhase.IDLE

    engine.swap((2, 2), (3, 2))
    engine.animation_complete(count=20)
    engine.animation_complete(count=6)
    assert states == [GateState.BUSY, GateState.READY]


def test_headless_engine_resolves_immediately():
    engine = Match3Engine(
        EngineConfig(side=4, kinds=KINDS),
        layout=BOTTOM_ROW_SETUP,
        rng=ScriptedRandom(picks=TWO_STEP_PICKS),
        await_animations=False,
    )
    rejected = []
    engine.event_bus.subscribe(EVENT_SWAP_REJECTED, lambda s, **k: rejected.append(k))
    assert engine.swap((2, 2), (3, 2)).accepted
    assert not engine.busy
    assert engine.score == 70
    assert rejected == []


# The first cascade settles in one step with B,B at the top of column 1 and
# a B at (2,0); swapping (2,0) and (2,1) then completes column 1.
CHAINED_PICKS = ['D', 'B', 'A', 'C', 'A', 'B', 'B']


def _chained_engine(await_animations):
    rng = ScriptedRandom(picks=CHAINED_PICKS)
    engine = Match3Engine(
        EngineConfig(side=4, kinds=KINDS),
        layout=BOTTOM_ROW_SETUP,
        rng=rng,
        await_animations=await_animations,
    )
    return engine, rng


def _swap_next_on(engine, event):
    fired = []
    chained = []

    def play_next(sender, **kwargs):
        if fired or kwargs.get('state', GateState.READY) is not GateState.READY:
            return
        fired.append(True)
        chained.append(engine.swap((2, 0), (2, 1)))

    engine.event_bus.subscribe(event, play_next)
    return chained


@pytest.mark.parametrize("event", [EVENT_CASCADE_SETTLED, EVENT_TURN_GATE_CHANGED])
def test_swap_started_from_settle_events_runs_headless(event):
    engine, rng = _chained_engine(await_animations=False)
    settled = []
    engine.event_bus.subscribe(EVENT_CASCADE_SETTLED, lambda s, **k: settled.append(k))
    chained = _swap_next_on(engine, event)

    assert engine.swap((2, 2), (3, 2)).accepted
    assert len(chained) == 1 and chained[0].accepted
    assert not engine.busy
    assert engine.cascade_system.state.phase is CascadePhase.SETTLED
    assert engine.score == 70
    assert sorted((k['score_delta'], k['total']) for k in settled) == [(30, 70), (40, 40)]
    assert engine.snapshot() == [
        ['D', 'A', 'A', 'C'],
        ['A', 'B', 'C', 'D'],
        ['C', 'B', 'D', 'A'],
        ['C', 'D', 'B', 'B'],
    ]
    assert not rng.picks


@pytest.mark.parametrize("event", [EVENT_CASCADE_SETTLED, EVENT_TURN_GATE_CHANGED])
def test_swap_started_from_settle_events_waits_for_animations(event):
    engine, rng = _chained_engine(await_animations=True)
    chained = _swap_next_on(engine, event)

    assert engine.swap((2, 2), (3, 2)).accepted
    engine.animation_complete(count=20)
    assert len(chained) == 1 and chained[0].accepted
    state = engine.cascade_system.state
    assert state.phase is CascadePhase.AWAITING_ANIMATIONS
    assert state.outstanding == 6
    assert engine.busy

    engine.animation_complete(count=6)
    assert state.phase is CascadePhase.SETTLED
    assert not engine.busy
    assert engine.score == 70
    assert not rng.picks
    # The gate opens again for the move after that.
    assert engine.swap((0, 0), (0, 1)).reason is RejectReason.NO_MATCH
