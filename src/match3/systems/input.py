from typing import Optional, Tuple

from esper import World

from match3.events.bus import (
    EventBus,
    EVENT_CELL_ACTIVATED,
    EVENT_CELL_DESELECT,
    EVENT_CELL_DESELECTED,
    EVENT_CELL_SELECTED,
    EVENT_SWAP_REQUEST,
)
from match3.systems.grid_ops import in_bounds, is_adjacent


class InputSystem:
    """Turns cell activations from the render layer into swap requests.

    The first activation selects a cell. An adjacent second activation requests
    a swap and clears the selection; any other second activation (the same
    cell included) moves the selection there instead.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.selected: Optional[Tuple[int, int]] = None
        self.event_bus.subscribe(EVENT_CELL_ACTIVATED, self.on_cell_activated)
        self.event_bus.subscribe(EVENT_CELL_DESELECT, self.on_cell_deselect)

    def on_cell_activated(self, sender, **kwargs):
        row = kwargs.get('row')
        col = kwargs.get('col')
        if row is None or col is None:
            return
        if not in_bounds(self.world, (row, col)):
            return
        if self.selected is None:
            self._select(row, col)
            return
        if is_adjacent(self.selected, (row, col)):
            src = self.selected
            self.selected = None
            self.event_bus.emit(EVENT_SWAP_REQUEST, src=src, dst=(row, col))
        else:
            self._select(row, col)

    def on_cell_deselect(self, sender, **kwargs):
        self.clear_selection(kwargs.get('reason') or 'cancel')

    def clear_selection(self, reason: str = 'cancel') -> None:
        prev = self.selected
        if prev is None:
            return
        self.selected = None
        self.event_bus.emit(EVENT_CELL_DESELECTED, reason=reason, prev_row=prev[0], prev_col=prev[1])

    def _select(self, row: int, col: int) -> None:
        self.selected = (row, col)
        self.event_bus.emit(EVENT_CELL_SELECTED, row=row, col=col)
