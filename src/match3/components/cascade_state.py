from dataclasses import dataclass
from enum import Enum, auto


class CascadePhase(Enum):
    IDLE = auto()
    RESOLVING = auto()
    AWAITING_ANIMATIONS = auto()
    RECHECKING = auto()
    SETTLED = auto()


@dataclass(slots=True)
class CascadeState:
    """Progress of the cascade currently in flight, shared across systems."""
    phase: CascadePhase = CascadePhase.IDLE
    depth: int = 0
    outstanding: int = 0
    score_delta: int = 0
