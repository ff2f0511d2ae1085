"""
Scoring engine exceptions.
"""


class ScoringError(Exception):
    """Base exception for scoring engine errors."""

    pass


class InvalidBracketSizeError(ScoringError):
    """Raised when a bracket size has no round progression."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"Unsupported bracket size: {size}")


class NotEnoughQualifiersError(ScoringError):
    """Raised when too few athletes have a valid time to seed finals."""

    def __init__(self, valid_count: int):
        self.valid_count = valid_count
        super().__init__(
            f"Not enough valid qualifier times to seed finals ({valid_count} found, 2 required)"
        )
