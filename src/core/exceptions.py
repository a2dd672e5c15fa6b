"""
Exceptions raised by the bracket engine and the candidate catalog.
"""


class BracketError(Exception):
    """Base class for all bracket errors."""


class InvalidEntrantCount(BracketError, ValueError):
    """Raised when a bracket is started with the wrong number of candidates."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected exactly {expected} jobs, but received {actual}. "
            f"Please ensure the jobs list contains {expected} jobs."
        )


class InvalidWinnerError(BracketError, ValueError):
    """Raised when the chosen winner is not playing in the current match."""


class BracketStateError(BracketError):
    """Raised when a bracket state breaks one of its own invariants."""


class CatalogError(BracketError):
    """Raised when the candidate catalog cannot be loaded."""
