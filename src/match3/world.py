import random
from typing import Sequence

from esper import World

from match3.components.cascade_state import CascadeState
from match3.components.grid import Grid, KindPalette
from match3.components.score import Score
from match3.components.turn_gate import TurnGate
from match3.config import EngineConfig
from match3.systems.grid_ops import generate_initial, load_layout


def create_world(
    config: EngineConfig | None = None,
    *,
    rng: random.Random | None = None,
    layout: Sequence[Sequence[str]] | None = None,
) -> World:
    """Build a world holding the shared state entity, the grid singletons and the cells.

    ``layout`` replaces the random initial grid with fixed rows (row 0 on top);
    it is loaded as given, so it may already contain runs. Its size must equal
    ``config.side`` and its kinds must come from ``config.kinds``.
    """
    config = config or EngineConfig()
    if layout is not None and len(layout) != config.side:
        raise ValueError(f"Layout has {len(layout)} rows but the grid side is {config.side}")
    world = World()
    setattr(world, "random", rng or random.Random())

    # Turn, cascade and score bookkeeping share one entity.
    world.create_entity(TurnGate(), CascadeState(), Score())
    world.create_entity(Grid(side=config.side), KindPalette(kinds=list(config.kinds)))

    if layout is not None:
        load_layout(world, layout)
    else:
        generate_initial(
            world,
            config.side,
            config.kinds,
            world.random,
            max_draws_per_cell=config.max_draws_per_cell,
            max_attempts=config.max_generation_attempts,
        )
    return world
