"""Shared constants and enumerations for the puzzle engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


BLOCK = "#"

STREAK_KEY = "sqStreak"
LAST_PLAY_KEY = "sqLastPlay"

BASE_MAX_HINTS = 3
STREAK_BONUS_DAYS = 7


class Direction(str, Enum):
    """Word directions supported by the grid."""

    ACROSS = "across"
    DOWN = "down"

    @property
    def step(self) -> Tuple[int, int]:
        return (0, 1) if self is Direction.ACROSS else (1, 0)

    @property
    def other(self) -> "Direction":
        return Direction.DOWN if self is Direction.ACROSS else Direction.ACROSS


class CellStatus(str, Enum):
    """Validation status of a white cell."""

    UNSET = "unset"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    HINTED = "hinted"


class EventKind(str, Enum):
    """Notifications emitted to the rendering surface."""

    PUZZLE_LOADED = "puzzle_loaded"
    CELL_CHANGED = "cell_changed"
    SELECTION_CHANGED = "selection_changed"
    HINTS_CHANGED = "hints_changed"
    TIMER_TICK = "timer_tick"
    COMPLETED = "completed"
    ACHIEVEMENT = "achievement"


@dataclass(frozen=True)
class Bounds:
    """Simple rectangle bounds helper."""

    rows: int
    cols: int

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols


@dataclass(frozen=True)
class RevealThresholds:
    """Correct-cell counts that unlock tier-2 sample words."""

    first: int = 3
    second: int = 5
    final: int = 8

    def __post_init__(self) -> None:
        if not 0 < self.first < self.second < self.final:
            raise ValueError(
                f"Reveal thresholds must be strictly increasing, got "
                f"{self.first}/{self.second}/{self.final}"
            )
