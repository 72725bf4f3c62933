from esper import World

from match3.components.cascade_state import CascadeState
from match3.components.score import Score
from match3.components.turn_gate import TurnGate


def get_or_create_turn_gate(world: World) -> TurnGate:
    """Return the shared TurnGate component, creating it if absent."""
    existing = list(world.get_component(TurnGate))
    if existing:
        return existing[0][1]
    world.create_entity(TurnGate())
    return list(world.get_component(TurnGate))[0][1]


def get_or_create_cascade_state(world: World) -> CascadeState:
    existing = list(world.get_component(CascadeState))
    if existing:
        return existing[0][1]
    world.create_entity(CascadeState())
    return list(world.get_component(CascadeState))[0][1]


def get_or_create_score(world: World) -> Score:
    existing = list(world.get_component(Score))
    if existing:
        return existing[0][1]
    world.create_entity(Score())
    return list(world.get_component(Score))[0][1]
