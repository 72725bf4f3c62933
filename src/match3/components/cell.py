from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

Position = Tuple[int, int]


@dataclass(slots=True)
class GridPosition:
    """Where a cell currently sits. Mutated by swap, drop and spawn."""
    row: int
    col: int

    @property
    def pos(self) -> Position:
        return (self.row, self.col)


@dataclass(frozen=True, slots=True)
class CellKind:
    """Symbol type of a cell. Fixed for the lifetime of the entity."""
    kind: str


@dataclass(frozen=True, slots=True)
class Cell:
    """Read-only view of a cell handed to callers and the render layer.

    ``id`` is the owning entity id; it survives swaps and drops so a renderer
    can correlate sprites across steps.
    """
    id: int
    kind: str
    row: int
    col: int

    @property
    def pos(self) -> Position:
        return (self.row, self.col)
