"""Headless entry point for the match-3 grid engine.

Sets up the world, event bus and systems the way a game window would, and
exposes the calls a render layer needs: report activations, report finished
animations, read the grid.
"""
from __future__ import annotations

import random
from typing import List, Sequence, Tuple

from match3.components.cell import Cell, Position
from match3.config import EngineConfig
from match3.events.bus import EventBus, EVENT_ANIMATION_COMPLETE, EVENT_CELL_ACTIVATED
from match3.systems.cascade import CascadeStep, CascadeSystem
from match3.systems.grid_ops import all_cells, cell_at, get_grid, snapshot
from match3.systems.input import InputSystem
from match3.systems.match import find_valid_swaps
from match3.systems.state_utils import get_or_create_score
from match3.systems.swap import SwapResult, SwapSystem
from match3.systems.turn_gate import is_busy
from match3.world import create_world


class Match3Engine:
    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        rng: random.Random | None = None,
        seed: int | None = None,
        event_bus: EventBus | None = None,
        await_animations: bool = True,
        layout: Sequence[Sequence[str]] | None = None,
    ):
        if config is None:
            config = EngineConfig(side=len(layout)) if layout is not None else EngineConfig()
        self.config = config
        self.rng = rng or random.Random(seed)
        self.event_bus = event_bus or EventBus()
        self.world = create_world(self.config, rng=self.rng, layout=layout)

        self.input_system = InputSystem(self.world, self.event_bus)
        self.swap_system = SwapSystem(self.world, self.event_bus)
        self.cascade_system = CascadeSystem(
            self.world,
            self.event_bus,
            rng=self.rng,
            points_per_cell=self.config.points_per_cell,
            await_animations=await_animations,
        )

    @property
    def side(self) -> int:
        return get_grid(self.world).side

    @property
    def score(self) -> int:
        return get_or_create_score(self.world).total

    @property
    def busy(self) -> bool:
        return is_busy(self.world)

    @property
    def selected(self) -> Position | None:
        return self.input_system.selected

    @property
    def last_steps(self) -> List[CascadeStep]:
        return list(self.cascade_system.steps)

    def activate(self, row: int, col: int) -> None:
        self.event_bus.emit(EVENT_CELL_ACTIVATED, row=row, col=col)

    def swap(self, src: Position, dst: Position) -> SwapResult:
        return self.swap_system.request_swap(src, dst)

    def animation_complete(self, count: int = 1) -> None:
        self.event_bus.emit(EVENT_ANIMATION_COMPLETE, count=count)

    def cells(self) -> List[Cell]:
        return all_cells(self.world)

    def cell_at(self, row: int, col: int) -> Cell | None:
        return cell_at(self.world, (row, col))

    def snapshot(self) -> List[List[str | None]]:
        return snapshot(self.world)

    def hint(self) -> Tuple[Position, Position] | None:
        swaps = find_valid_swaps(self.world)
        return swaps[0] if swaps else None
