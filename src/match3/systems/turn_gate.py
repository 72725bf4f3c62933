from esper import World

from match3.components.turn_gate import GateState
from match3.events.bus import EventBus, EVENT_TURN_GATE_CHANGED
from match3.systems.state_utils import get_or_create_turn_gate


def is_busy(world: World) -> bool:
    return get_or_create_turn_gate(world).busy


def acquire_turn(world: World, event_bus: EventBus) -> None:
    """READY -> BUSY. Called the moment a swap is confirmed."""
    gate = get_or_create_turn_gate(world)
    gate.acquire()
    event_bus.emit(EVENT_TURN_GATE_CHANGED, state=GateState.BUSY)


def release_turn(world: World, event_bus: EventBus) -> None:
    """BUSY -> READY. Called once the cascade has settled."""
    gate = get_or_create_turn_gate(world)
    gate.release()
    event_bus.emit(EVENT_TURN_GATE_CHANGED, state=GateState.READY)
