from dataclasses import dataclass

@dataclass(slots=True)
class Score:
    """Running score for the session."""
    total: int = 0
