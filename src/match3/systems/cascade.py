from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Set, Tuple

from esper import World

from match3.components.cascade_state import CascadePhase, CascadeState
from match3.components.cell import Cell
from match3.constants import POINTS_PER_CELL
from match3.events.bus import (
    EventBus,
    EVENT_ANIMATION_COMPLETE,
    EVENT_CASCADE_SETTLED,
    EVENT_CASCADE_STEP,
    EVENT_SCORE_CHANGED,
    EVENT_SWAP_ACCEPTED,
)
from match3.systems.grid_ops import column_entities, get_grid, get_palette, make_cell, spawn_cell
from match3.systems.match import find_matches
from match3.systems.state_utils import get_or_create_cascade_state, get_or_create_score
from match3.systems.turn_gate import is_busy, release_turn

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Drop:
    """A surviving cell falling from ``from_row`` to ``to_row`` (``cell`` holds the final position)."""
    cell: Cell
    from_row: int
    to_row: int


@dataclass(frozen=True, slots=True)
class Spawn:
    """A new cell entering from above the grid; ``from_row`` is negative."""
    cell: Cell
    from_row: int
    to_row: int


@dataclass(frozen=True, slots=True)
class CascadeStep:
    """Grid delta of one remove/compact/spawn iteration, in render order."""
    depth: int
    removed: Tuple[Cell, ...]
    drops: Tuple[Drop, ...]
    spawned: Tuple[Spawn, ...]
    score: int

    @property
    def animation_count(self) -> int:
        return len(self.removed) + len(self.drops) + len(self.spawned)


@dataclass(frozen=True, slots=True)
class CascadeOutcome:
    steps: Tuple[CascadeStep, ...]
    score_delta: int

    @property
    def depth(self) -> int:
        return len(self.steps)


def remove_cells(world: World, cells: Iterable[Cell]) -> List[Cell]:
    removed: List[Cell] = []
    for cell in sorted(set(cells), key=lambda c: (c.row, c.col)):
        if not world.entity_exists(cell.id):
            continue
        removed.append(make_cell(world, cell.id))
        world.delete_entity(cell.id, immediate=True)
    return removed


def compact_columns(world: World) -> Tuple[List[Drop], List[int]]:
    """Let cells fall into the gaps below them, column by column.

    Returns the drops and, per column, how many empty positions remain at the
    top. Order inside a column is preserved.
    """
    side = get_grid(world).side
    drops: List[Drop] = []
    vacancies: List[int] = []
    for col in range(side):
        target = side - 1
        for entity, position in column_entities(world, col):
            if position.row != target:
                from_row = position.row
                position.row = target
                drops.append(Drop(cell=make_cell(world, entity), from_row=from_row, to_row=target))
            target -= 1
        vacancies.append(target + 1)
    return drops, vacancies


def spawn_refills(world: World, vacancies: List[int], rng: random.Random) -> List[Spawn]:
    """Fill the top vacancies of every column with freshly drawn kinds.

    No match constraint applies; new runs are picked up by the next recheck.
    """
    kinds = get_palette(world).kinds
    spawned: List[Spawn] = []
    side = get_grid(world).side
    for row in range(side):
        for col in range(side):
            empty = vacancies[col]
            if row >= empty:
                continue
            entity = spawn_cell(world, row, col, rng.choice(kinds))
            spawned.append(Spawn(cell=make_cell(world, entity), from_row=row - empty, to_row=row))
    return spawned


def resolve_step(
    world: World,
    matches: Iterable[Cell],
    rng: random.Random,
    *,
    points_per_cell: int = POINTS_PER_CELL,
    depth: int = 1,
) -> CascadeStep:
    """Remove ``matches``, compact every column and spawn replacements."""
    removed = remove_cells(world, matches)
    drops, vacancies = compact_columns(world)
    spawned = spawn_refills(world, vacancies, rng)
    return CascadeStep(
        depth=depth,
        removed=tuple(removed),
        drops=tuple(drops),
        spawned=tuple(spawned),
        score=len(removed) * points_per_cell,
    )


def resolve(
    world: World,
    initial_matches: Iterable[Cell],
    rng: random.Random,
    *,
    points_per_cell: int = POINTS_PER_CELL,
) -> CascadeOutcome:
    """Run the cascade to completion without waiting on any renderer.

    There is no iteration cap: the loop ends only when the grid has no runs.
    """
    steps: List[CascadeStep] = []
    matches: Set[Cell] = set(initial_matches)
    while matches:
        step = resolve_step(world, matches, rng, points_per_cell=points_per_cell, depth=len(steps) + 1)
        steps.append(step)
        matches = find_matches(world)
    return CascadeOutcome(steps=tuple(steps), score_delta=sum(step.score for step in steps))


class CascadeSystem:
    """Drives the cascade that follows an accepted swap.

    Flow:
      - EVENT_SWAP_ACCEPTED starts the cascade with the swap's match set.
      - Each iteration mutates the grid, emits EVENT_CASCADE_STEP and waits for
        one EVENT_ANIMATION_COMPLETE per removed, dropped and spawned cell.
      - When the outstanding count reaches zero the grid is rechecked; new
        matches start the next iteration, none settles the cascade, releases
        the turn gate and emits EVENT_CASCADE_SETTLED.
    With ``await_animations`` off the iterations run back to back.
    """
    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        rng: random.Random | None = None,
        points_per_cell: int = POINTS_PER_CELL,
        await_animations: bool = True,
    ):
        self.world = world
        self.event_bus = event_bus
        if rng is None:
            rng = getattr(world, "random", None) or random.Random()
        if not callable(getattr(rng, "choice", None)):
            raise TypeError(f"rng must provide choice(), got {type(rng).__name__}")
        self.rng = rng
        self.points_per_cell = points_per_cell
        self.await_animations = await_animations
        self.steps: List[CascadeStep] = []
        self._pending_matches: Set[Cell] | None = None
        self._advancing = False
        self.event_bus.subscribe(EVENT_SWAP_ACCEPTED, self.on_swap_accepted)
        self.event_bus.subscribe(EVENT_ANIMATION_COMPLETE, self.on_animation_complete)
        get_or_create_cascade_state(self.world)

    @property
    def state(self) -> CascadeState:
        return get_or_create_cascade_state(self.world)

    @property
    def in_flight(self) -> bool:
        return self.state.phase not in (CascadePhase.IDLE, CascadePhase.SETTLED)

    def on_swap_accepted(self, sender, **kwargs):
        matches = kwargs.get('matches')
        if not matches:
            return
        self.start(matches)

    def start(self, matches: Iterable[Cell]) -> None:
        if self.in_flight:
            raise RuntimeError("Cascade already in flight")
        state = self.state
        state.phase = CascadePhase.RESOLVING
        state.depth = 0
        state.outstanding = 0
        state.score_delta = 0
        self.steps = []
        self._pending_matches = set(matches)
        self._advance()

    def on_animation_complete(self, sender, **kwargs):
        state = self.state
        if state.phase is not CascadePhase.AWAITING_ANIMATIONS:
            return
        count = kwargs.get('count', 1)
        state.outstanding = max(0, state.outstanding - count)
        if state.outstanding == 0:
            self._advance()

    def _advance(self) -> None:
        # Completion signals delivered while a step is being emitted land here
        # re-entrantly; the running loop picks them up instead.
        if self._advancing:
            return
        self._advancing = True
        settled = False
        try:
            state = self.state
            while state.outstanding == 0:
                if self._pending_matches is not None:
                    matches = self._pending_matches
                    self._pending_matches = None
                else:
                    state.phase = CascadePhase.RECHECKING
                    matches = find_matches(self.world)
                if not matches:
                    settled = True
                    break
                state.phase = CascadePhase.RESOLVING
                state.depth += 1
                step = resolve_step(
                    self.world,
                    matches,
                    self.rng,
                    points_per_cell=self.points_per_cell,
                    depth=state.depth,
                )
                self.steps.append(step)
                state.score_delta += step.score
                state.outstanding = step.animation_count if self.await_animations else 0
                if state.outstanding:
                    state.phase = CascadePhase.AWAITING_ANIMATIONS
                logger.debug(
                    "Cascade step %d: removed=%d drops=%d spawned=%d",
                    step.depth, len(step.removed), len(step.drops), len(step.spawned),
                )
                self.event_bus.emit(EVENT_CASCADE_STEP, depth=step.depth, step=step)
        finally:
            self._advancing = False
        # Settle handlers may start the next swap, whose cascade has to run
        # through a fresh _advance.
        if settled:
            self._settle(state)

    def _settle(self, state: CascadeState) -> None:
        state.phase = CascadePhase.SETTLED
        depth = state.depth
        delta = state.score_delta
        score = get_or_create_score(self.world)
        score.total += delta
        total = score.total
        logger.debug("Cascade settled at depth %d, score +%d", depth, delta)
        # A handler of any event below may begin a new cascade and reset
        # ``state``; the payloads use the values captured above.
        if is_busy(self.world):
            release_turn(self.world, self.event_bus)
        if delta:
            self.event_bus.emit(EVENT_SCORE_CHANGED, total=total, delta=delta)
        self.event_bus.emit(EVENT_CASCADE_SETTLED, depth=depth, score_delta=delta, total=total)
