from __future__ import annotations

from typing import Dict, List, Set, Tuple

from esper import World

from match3.components.cell import Cell, Position
from match3.systems.grid_ops import get_grid, kind_map, make_cell, entity_at

MIN_RUN = 3


def _scan_line(types: Dict[Position, str], line: List[Position]) -> List[List[Position]]:
    runs: List[List[Position]] = []
    run: List[Position] = []
    last_type = None
    for pos in line:
        tval = types.get(pos)
        if tval is not None and tval == last_type:
            run.append(pos)
        else:
            if len(run) >= MIN_RUN:
                runs.append(run)
            run = [pos] if tval is not None else []
            last_type = tval
    if len(run) >= MIN_RUN:
        runs.append(run)
    return runs


def runs_in(types: Dict[Position, str], side: int) -> List[List[Position]]:
    """All maximal runs of >= 3 equal kinds, rows first (left to right) then columns (top to bottom)."""
    runs: List[List[Position]] = []
    for r in range(side):
        runs.extend(_scan_line(types, [(r, c) for c in range(side)]))
    for c in range(side):
        runs.extend(_scan_line(types, [(r, c) for r in range(side)]))
    return runs


def find_runs(world: World) -> List[List[Position]]:
    return runs_in(kind_map(world), get_grid(world).side)


def find_matches(world: World) -> Set[Cell]:
    """Every cell that belongs to a horizontal or vertical run of three or more.

    Pure scan of the current grid; a cell on both a horizontal and a vertical
    run is reported once.
    """
    positions = {pos for run in find_runs(world) for pos in run}
    matches: Set[Cell] = set()
    for row, col in positions:
        entity = entity_at(world, row, col)
        if entity is not None:
            matches.add(make_cell(world, entity))
    return matches


def _has_line_match(types: Dict[Position, str], pos: Position) -> bool:
    """Return True if pos sits on a horizontal or vertical run."""
    row, col = pos
    tval = types.get(pos)
    if tval is None:
        return False
    h_run = 1
    c_left = col - 1
    while types.get((row, c_left)) == tval:
        h_run += 1
        c_left -= 1
    c_right = col + 1
    while types.get((row, c_right)) == tval:
        h_run += 1
        c_right += 1
    if h_run >= MIN_RUN:
        return True
    v_run = 1
    r_up = row - 1
    while types.get((r_up, col)) == tval:
        v_run += 1
        r_up -= 1
    r_down = row + 1
    while types.get((r_down, col)) == tval:
        v_run += 1
        r_down += 1
    return v_run >= MIN_RUN


def predict_swap_creates_match(
    world: World, src: Position, dst: Position, *, types: Dict[Position, str] | None = None
) -> bool:
    """Return True if swapping src/dst would create a match, without touching the grid."""
    tile_map = types if types is not None else kind_map(world)
    if src not in tile_map or dst not in tile_map:
        return False
    swapped = tile_map.copy()
    swapped[src], swapped[dst] = swapped[dst], swapped[src]
    return _has_line_match(swapped, src) or _has_line_match(swapped, dst)


def find_valid_swaps(world: World) -> List[Tuple[Position, Position]]:
    """Enumerate adjacent swaps that would produce a match."""
    side = get_grid(world).side
    tile_map = kind_map(world)
    swaps: List[Tuple[Position, Position]] = []
    for row in range(side):
        for col in range(side):
            pos = (row, col)
            if pos not in tile_map:
                continue
            right = (row, col + 1)
            if col + 1 < side and predict_swap_creates_match(world, pos, right, types=tile_map):
                swaps.append((pos, right))
            down = (row + 1, col)
            if row + 1 < side and predict_swap_creates_match(world, pos, down, types=tile_map):
                swaps.append((pos, down))
    return swaps
