from __future__ import annotations

import logging
import random
from typing import Dict, List, Sequence, Tuple

from esper import World

from match3.components.cell import Cell, CellKind, GridPosition, Position
from match3.components.grid import Grid, KindPalette
from match3.constants import MAX_DRAWS_PER_CELL, MAX_GENERATION_ATTEMPTS, MIN_KIND_COUNT
from match3.errors import GenerationFailed

logger = logging.getLogger(__name__)


def get_grid(world: World) -> Grid:
    for _, grid in world.get_component(Grid):
        return grid
    raise RuntimeError("Grid component not found")


def get_palette(world: World) -> KindPalette:
    for _, palette in world.get_component(KindPalette):
        return palette
    raise RuntimeError("KindPalette component not found")


def is_adjacent(a: Position, b: Position) -> bool:
    ar, ac = a
    br, bc = b
    return (abs(ar - br) == 1 and ac == bc) or (abs(ac - bc) == 1 and ar == br)


def in_bounds(world: World, pos: Position) -> bool:
    return get_grid(world).contains(pos[0], pos[1])


def entity_at(world: World, row: int, col: int) -> int | None:
    for entity, position in world.get_component(GridPosition):
        if position.row == row and position.col == col:
            return entity
    return None


def make_cell(world: World, entity: int) -> Cell:
    position = world.component_for_entity(entity, GridPosition)
    kind = world.component_for_entity(entity, CellKind)
    return Cell(id=entity, kind=kind.kind, row=position.row, col=position.col)


def cell_at(world: World, pos: Position) -> Cell | None:
    entity = entity_at(world, pos[0], pos[1])
    if entity is None:
        return None
    return make_cell(world, entity)


def all_positions(world: World) -> List[Position]:
    side = get_grid(world).side
    return [(row, col) for row in range(side) for col in range(side)]


def all_cells(world: World) -> List[Cell]:
    """Every live cell, ordered row-major."""
    cells = [make_cell(world, entity) for entity, _ in world.get_component(GridPosition)]
    return sorted(cells, key=lambda cell: (cell.row, cell.col))


def kind_map(world: World) -> Dict[Position, str]:
    """Return mapping of occupied positions to their kinds."""
    mapping: Dict[Position, str] = {}
    for entity, (position, kind) in world.get_components(GridPosition, CellKind):
        mapping[(position.row, position.col)] = kind.kind
    return mapping


def snapshot(world: World) -> List[List[str | None]]:
    """Rows of kinds; empty positions are None. Two equal snapshots mean identical grids."""
    side = get_grid(world).side
    kinds = kind_map(world)
    return [[kinds.get((row, col)) for col in range(side)] for row in range(side)]


def id_snapshot(world: World) -> List[List[int | None]]:
    side = get_grid(world).side
    ids: Dict[Position, int] = {
        (position.row, position.col): entity for entity, position in world.get_component(GridPosition)
    }
    return [[ids.get((row, col)) for col in range(side)] for row in range(side)]


def is_complete(world: World) -> bool:
    """True if every position holds exactly one cell and nothing sits outside the grid."""
    grid = get_grid(world)
    seen: set[Position] = set()
    for _, position in world.get_component(GridPosition):
        pos = (position.row, position.col)
        if pos in seen or not grid.contains(*pos):
            return False
        seen.add(pos)
    return len(seen) == grid.side * grid.side


def swap_positions(world: World, a: Position, b: Position) -> bool:
    """Exchange the positions of the cells at a and b. No validation beyond occupancy."""
    ent_a = entity_at(world, a[0], a[1])
    ent_b = entity_at(world, b[0], b[1])
    if ent_a is None or ent_b is None:
        return False
    pos_a = world.component_for_entity(ent_a, GridPosition)
    pos_b = world.component_for_entity(ent_b, GridPosition)
    pos_a.row, pos_b.row = pos_b.row, pos_a.row
    pos_a.col, pos_b.col = pos_b.col, pos_a.col
    return True


def spawn_cell(world: World, row: int, col: int, kind: str) -> int:
    return world.create_entity(GridPosition(row=row, col=col), CellKind(kind=kind))


def clear_cells(world: World) -> None:
    for entity in [entity for entity, _ in world.get_component(GridPosition)]:
        world.delete_entity(entity, immediate=True)


def _draw_layout(
    side: int,
    kinds: Sequence[str],
    rng: random.Random,
    max_draws_per_cell: int,
) -> List[List[str]] | None:
    layout: List[List[str]] = []
    for row in range(side):
        row_values: List[str] = []
        for col in range(side):
            for _ in range(max_draws_per_cell):
                kind = rng.choice(kinds)
                # Two equal neighbours to the left or above would make a run of three.
                if col >= 2 and row_values[col - 1] == kind and row_values[col - 2] == kind:
                    continue
                if row >= 2 and layout[row - 1][col] == kind and layout[row - 2][col] == kind:
                    continue
                row_values.append(kind)
                break
            else:
                return None
        layout.append(row_values)
    return layout


def generate_initial(
    world: World,
    side: int,
    kinds: Sequence[str],
    rng: random.Random,
    *,
    max_draws_per_cell: int = MAX_DRAWS_PER_CELL,
    max_attempts: int = MAX_GENERATION_ATTEMPTS,
) -> List[Cell]:
    """Fill the grid with a match-free layout drawn by rejection sampling.

    Each cell redraws while its kind would complete a run of three with the two
    cells to its left or above it. A cell that keeps failing abandons the whole
    layout and a fresh one is drawn; nothing is written to the world until a
    full layout succeeds. Raises GenerationFailed once ``max_attempts`` layouts
    have been abandoned.
    """
    kinds = list(kinds)
    if side < 1:
        raise ValueError(f"Grid side must be positive, got {side}")
    if len(set(kinds)) < MIN_KIND_COUNT:
        raise ValueError(f"At least {MIN_KIND_COUNT} distinct kinds are required")

    for attempt in range(1, max_attempts + 1):
        layout = _draw_layout(side, kinds, rng, max_draws_per_cell)
        if layout is not None:
            break
        logger.warning("Grid generation attempt %d/%d abandoned", attempt, max_attempts)
    else:
        raise GenerationFailed(side, len(kinds), max_attempts)

    return load_layout(world, layout)


def load_layout(world: World, rows: Sequence[Sequence[str]]) -> List[Cell]:
    """Replace every cell with the given square layout (row 0 is the top).

    When the world carries a KindPalette every kind in the layout must belong
    to it.
    """
    side = len(rows)
    if any(len(row) != side for row in rows):
        raise ValueError("Layout must be square")
    for _, palette in world.get_component(KindPalette):
        unknown = sorted({kind for row in rows for kind in row} - set(palette.kinds))
        if unknown:
            raise ValueError(f"Layout uses kinds outside the palette: {unknown}")
    grids = list(world.get_component(Grid))
    if grids:
        grids[0][1].side = side
    else:
        world.create_entity(Grid(side=side))
    clear_cells(world)
    for row, values in enumerate(rows):
        for col, kind in enumerate(values):
            spawn_cell(world, row, col, kind)
    return all_cells(world)


def column_entities(world: World, col: int) -> List[Tuple[int, GridPosition]]:
    """Entities in a column ordered bottom to top."""
    entries = [
        (entity, position)
        for entity, position in world.get_component(GridPosition)
        if position.col == col
    ]
    entries.sort(key=lambda entry: entry[1].row, reverse=True)
    return entries
