from dataclasses import dataclass, field
from typing import List

@dataclass(slots=True)
class Grid:
    """Singleton describing the square play field."""
    side: int

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.side and 0 <= col < self.side


@dataclass(slots=True)
class KindPalette:
    """Kinds new cells are drawn from, in a stable order for seeded draws."""
    kinds: List[str] = field(default_factory=list)
