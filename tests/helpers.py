from __future__ import annotations

import random
from typing import Iterable, Sequence

from esper import World

from match3.config import EngineConfig
from match3.systems.match import find_valid_swaps
from match3.world import create_world

KINDS = ['A', 'B', 'C', 'D']

# Latin square: no runs anywhere.
LATIN_3 = [
    ['A', 'B', 'C'],
    ['B', 'C', 'A'],
    ['C', 'A', 'B'],
]

# Swapping (2,2) and (3,2) completes A,A,A,A along the bottom row.
BOTTOM_ROW_SETUP = [
    ['A', 'B', 'C', 'D'],
    ['B', 'C', 'D', 'A'],
    ['C', 'D', 'A', 'B'],
    ['A', 'A', 'B', 'A'],
]


class ScriptedRandom(random.Random):
    """Random source whose ``choice`` returns scripted picks in order."""

    def __init__(self, *, picks: Iterable[str] = ()):
        super().__init__(0)
        self.picks = list(picks)

    def choice(self, seq):
        if not self.picks:
            raise AssertionError("ScriptedRandom ran out of picks")
        pick = self.picks.pop(0)
        assert pick in seq, f"{pick!r} not in {seq!r}"
        return pick


class FirstChoiceRandom(random.Random):
    """Always picks the first option; never converges on a match-free grid."""

    def choice(self, seq):
        return seq[0]


def make_world(layout: Sequence[Sequence[str]], kinds: Sequence[str] = KINDS, rng: random.Random | None = None) -> World:
    config = EngineConfig(side=len(layout), kinds=list(kinds))
    return create_world(config, rng=rng, layout=layout)


def first_seed_with_moves(config: EngineConfig, start: int = 0, tries: int = 100) -> int:
    """Lowest seed from ``start`` whose generated grid has at least one valid swap."""
    for seed in range(start, start + tries):
        if find_valid_swaps(create_world(config, rng=random.Random(seed))):
            return seed
    raise AssertionError(f"no seed in {start}..{start + tries - 1} generates a grid with moves")
