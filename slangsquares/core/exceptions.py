"""Exception hierarchy for the puzzle engine."""


class PuzzleError(Exception):
    """Base exception for puzzle engine failures."""


class DataError(PuzzleError):
    """Raised when a theme or puzzle payload is malformed or missing."""


class ConflictError(DataError):
    """Raised when two placements disagree on the letter of a shared cell."""


class OutOfBoundsError(DataError):
    """Raised when a placement runs past the edge of the grid."""


class BudgetExhausted(PuzzleError):
    """Raised when a smart hint is requested with no hints remaining."""


class NoSelection(PuzzleError):
    """Raised when an action needs an active cell and none is selected."""


class StorageError(PuzzleError):
    """Raised when the key/value store cannot be read or written."""
