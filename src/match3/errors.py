class GenerationFailed(RuntimeError):
    """Raised when constrained random generation cannot produce a match-free grid."""

    def __init__(self, side: int, kinds: int, attempts: int):
        super().__init__(
            f"Unable to generate a {side}x{side} grid with {kinds} kinds "
            f"without matches after {attempts} attempts"
        )
        self.side = side
        self.kinds = kinds
        self.attempts = attempts
