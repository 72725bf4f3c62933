from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods of systems that are not stored anywhere alive.
        sig.connect(fn, weak=False)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# INPUT & SELECTION
# ============================================================================
EVENT_CELL_ACTIVATED = "cell_activated"    # payload: row=int, col=int
EVENT_CELL_SELECTED = "cell_selected"      # payload: row=int, col=int
EVENT_CELL_DESELECT = "cell_deselect"      # payload: reason=str|None
EVENT_CELL_DESELECTED = "cell_deselected"  # payload: reason=str, prev_row=int, prev_col=int


# ============================================================================
# SWAP
# ============================================================================
EVENT_SWAP_REQUEST = "swap_request"        # payload: src=(r,c), dst=(r,c)
EVENT_SWAP_ACCEPTED = "swap_accepted"      # payload: src=(r,c), dst=(r,c), matches=set[Cell]
EVENT_SWAP_REJECTED = "swap_rejected"      # payload: src=(r,c), dst=(r,c), reason=RejectReason, reverted=bool


# ============================================================================
# CASCADE
# ============================================================================
EVENT_CASCADE_STEP = "cascade_step"        # payload: depth=int, step=CascadeStep
EVENT_CASCADE_SETTLED = "cascade_settled"  # payload: depth=int, score_delta=int, total=int
EVENT_SCORE_CHANGED = "score_changed"      # payload: total=int, delta=int


# ============================================================================
# ANIMATION (render layer -> engine)
# ============================================================================
EVENT_ANIMATION_COMPLETE = "animation_complete"  # payload: count=int (default 1)


# ============================================================================
# TURN GATE
# ============================================================================
EVENT_TURN_GATE_CHANGED = "turn_gate_changed"  # payload: state=GateState
