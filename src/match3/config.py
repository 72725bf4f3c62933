from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping

from match3.constants import (
    DEFAULT_KIND_COUNT,
    DEFAULT_KIND_NAMES,
    DEFAULT_SIDE,
    GRID_SIZE_MAX,
    GRID_SIZE_MIN,
    MAX_DRAWS_PER_CELL,
    MAX_GENERATION_ATTEMPTS,
    MIN_KIND_COUNT,
    POINTS_PER_CELL,
)


def default_kinds(count: int = DEFAULT_KIND_COUNT) -> List[str]:
    """Return ``count`` kind names, using the template gem colours first."""
    names = list(DEFAULT_KIND_NAMES[:count])
    for index in range(len(names), count):
        names.append(f"gem{index}")
    return names


@dataclass(slots=True)
class EngineConfig:
    """Tunable engine parameters.

    ``kinds`` lists the symbol types cells are drawn from; ``points_per_cell``
    is the score awarded for every removed cell.
    """

    side: int = DEFAULT_SIDE
    kinds: List[str] = field(default_factory=default_kinds)
    points_per_cell: int = POINTS_PER_CELL
    max_draws_per_cell: int = MAX_DRAWS_PER_CELL
    max_generation_attempts: int = MAX_GENERATION_ATTEMPTS

    def __post_init__(self) -> None:
        if self.side < 1:
            raise ValueError(f"Grid side must be positive, got {self.side}")
        seen: set[str] = set()
        unique: List[str] = []
        for name in self.kinds:
            if name not in seen:
                unique.append(name)
                seen.add(name)
        if len(unique) < MIN_KIND_COUNT:
            raise ValueError(
                f"At least {MIN_KIND_COUNT} distinct kinds are required, got {len(unique)}"
            )
        self.kinds = unique
        if self.points_per_cell < 0:
            raise ValueError("points_per_cell cannot be negative")
        if self.max_draws_per_cell < 1 or self.max_generation_attempts < 1:
            raise ValueError("Generation bounds must be at least 1")

    @property
    def kind_count(self) -> int:
        return len(self.kinds)

    @classmethod
    def from_game_config(cls, game_config: Mapping[str, Any] | None, **overrides: Any) -> "EngineConfig":
        """Build a config from a match-3 template ``GAME_CONFIG`` mapping.

        ``parameters.gridSize`` sets the side (clamped to the template's
        6..10 range) and every entry of ``assets.items`` becomes one kind.
        Missing or malformed values fall back to the defaults.
        """
        game_config = game_config or {}
        parameters = game_config.get("parameters") or {}
        assets = game_config.get("assets") or {}

        side = DEFAULT_SIDE
        raw_side = parameters.get("gridSize")
        if raw_side is not None:
            try:
                side = int(raw_side)
            except (TypeError, ValueError):
                side = DEFAULT_SIDE
            side = max(GRID_SIZE_MIN, min(GRID_SIZE_MAX, side))

        items = assets.get("items") or []
        if len(items) >= MIN_KIND_COUNT:
            kinds = [f"gem{index}" for index in range(len(items))]
        else:
            kinds = default_kinds()

        values: dict[str, Any] = {"side": side, "kinds": kinds}
        values.update(overrides)
        return cls(**values)
