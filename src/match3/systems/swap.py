from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, FrozenSet

from esper import World

from match3.components.cell import Cell, Position
from match3.events.bus import EventBus, EVENT_SWAP_REQUEST, EVENT_SWAP_ACCEPTED, EVENT_SWAP_REJECTED
from match3.systems.grid_ops import in_bounds, is_adjacent, swap_positions
from match3.systems.match import find_matches
from match3.systems.turn_gate import acquire_turn, is_busy

logger = logging.getLogger(__name__)


class SwapOutcome(Enum):
    ACCEPTED = auto()
    REJECTED = auto()


class RejectReason(Enum):
    NOT_ADJACENT = auto()
    NO_MATCH = auto()
    BUSY = auto()
    OUT_OF_BOUNDS = auto()


class SwapPhase(Enum):
    IDLE = auto()
    SWAPPING = auto()
    MATCH_CONFIRMED = auto()
    NO_MATCH = auto()
    ROLLING_BACK = auto()


@dataclass(frozen=True, slots=True)
class SwapResult:
    src: Position
    dst: Position
    outcome: SwapOutcome
    reason: RejectReason | None = None
    matches: FrozenSet[Cell] = field(default_factory=frozenset)

    @property
    def accepted(self) -> bool:
        return self.outcome is SwapOutcome.ACCEPTED

    @property
    def reverted(self) -> bool:
        """True when the swap was applied and then rolled back."""
        return self.reason is RejectReason.NO_MATCH

    @classmethod
    def rejected(cls, src: Position, dst: Position, reason: RejectReason) -> "SwapResult":
        return cls(src=src, dst=dst, outcome=SwapOutcome.REJECTED, reason=reason)


def attempt_swap(
    world: World,
    src: Position,
    dst: Position,
    *,
    on_phase: Callable[[SwapPhase], None] | None = None,
) -> SwapResult:
    """Swap two cells if doing so produces a match, otherwise leave the grid as it was.

    On acceptance the grid stays swapped and the result carries the match set
    for the cascade. Every rejection leaves the grid identical to its
    pre-call state. ``on_phase`` is called with each phase as it is entered.
    """
    def enter(phase: SwapPhase) -> None:
        if on_phase is not None:
            on_phase(phase)

    enter(SwapPhase.IDLE)
    if not is_adjacent(src, dst):
        return SwapResult.rejected(src, dst, RejectReason.NOT_ADJACENT)
    if not (in_bounds(world, src) and in_bounds(world, dst)):
        return SwapResult.rejected(src, dst, RejectReason.OUT_OF_BOUNDS)

    enter(SwapPhase.SWAPPING)
    swap_positions(world, src, dst)
    matches = find_matches(world)
    if matches:
        enter(SwapPhase.MATCH_CONFIRMED)
        return SwapResult(src=src, dst=dst, outcome=SwapOutcome.ACCEPTED, matches=frozenset(matches))

    enter(SwapPhase.NO_MATCH)
    enter(SwapPhase.ROLLING_BACK)
    # Swapping the same pair again restores the original layout.
    swap_positions(world, src, dst)
    enter(SwapPhase.IDLE)
    return SwapResult.rejected(src, dst, RejectReason.NO_MATCH)


class SwapSystem:
    """Validates swap requests against the turn gate and the board.

    Flow:
      - EVENT_SWAP_REQUEST (or a direct ``request_swap`` call) is rejected BUSY
        while a cascade is in flight.
      - Otherwise ``attempt_swap`` runs; an accepted swap takes the turn gate
        and emits EVENT_SWAP_ACCEPTED for the cascade resolver.
      - Rejections emit EVENT_SWAP_REJECTED and never touch the gate.
    ``phase`` follows the request through its states. It reads MATCH_CONFIRMED
    while EVENT_SWAP_ACCEPTED is being delivered and IDLE once the request
    has been handed off or rolled back.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.phase = SwapPhase.IDLE
        self.last_result: SwapResult | None = None
        self.event_bus.subscribe(EVENT_SWAP_REQUEST, self.on_swap_request)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if not src or not dst:
            return
        self.request_swap(tuple(src), tuple(dst))

    def _enter(self, phase: SwapPhase) -> None:
        self.phase = phase

    def request_swap(self, src: Position, dst: Position) -> SwapResult:
        if is_busy(self.world):
            result = SwapResult.rejected(src, dst, RejectReason.BUSY)
        else:
            result = attempt_swap(self.world, src, dst, on_phase=self._enter)
        self.last_result = result
        if result.accepted:
            logger.debug("Swap %s <-> %s accepted with %d matched cells", src, dst, len(result.matches))
            acquire_turn(self.world, self.event_bus)
            try:
                self.event_bus.emit(EVENT_SWAP_ACCEPTED, src=src, dst=dst, matches=set(result.matches))
            finally:
                self.phase = SwapPhase.IDLE
        else:
            logger.debug("Swap %s <-> %s rejected: %s", src, dst, result.reason.name)
            self.event_bus.emit(
                EVENT_SWAP_REJECTED,
                src=src,
                dst=dst,
                reason=result.reason,
                reverted=result.reverted,
            )
        return result
