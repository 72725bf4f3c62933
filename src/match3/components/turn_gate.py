"""Single-flight guard between player input and board resolution."""
from dataclasses import dataclass
from enum import Enum, auto


class GateState(Enum):
    READY = auto()
    BUSY = auto()


@dataclass(slots=True)
class TurnGate:
    """Two-state gate: READY accepts one swap, BUSY until the cascade settles.

    Only two transitions exist. ``acquire`` fires when a swap is accepted and
    ``release`` when the following cascade settles; anything else is a bug in
    the caller.
    """
    state: GateState = GateState.READY

    @property
    def busy(self) -> bool:
        return self.state is GateState.BUSY

    def acquire(self) -> None:
        if self.state is GateState.BUSY:
            raise RuntimeError("TurnGate already busy")
        self.state = GateState.BUSY

    def release(self) -> None:
        if self.state is GateState.READY:
            raise RuntimeError("TurnGate released while ready")
        self.state = GateState.READY
