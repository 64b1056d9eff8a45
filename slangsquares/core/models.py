"""Data models shared by the puzzle engine components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from .constants import BASE_MAX_HINTS, CellStatus, Direction, EventKind


Coord = Tuple[int, int]


@dataclass(frozen=True)
class Theme:
    """A themed word list that a day's puzzle is built around."""

    key: str
    name: str
    description: str = ""
    sample_words: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PlacementSpec:
    """A hand-authored word position, before numbering."""

    word: str
    row: int
    col: int
    direction: Direction
    clue: str = ""


@dataclass(frozen=True)
class PlacementEntry:
    """A numbered word placed on the grid."""

    number: int
    row: int
    col: int
    answer: str
    direction: Direction
    clue: str = ""

    @property
    def length(self) -> int:
        return len(self.answer)

    @property
    def cells(self) -> List[Coord]:
        dr, dc = self.direction.step
        return [(self.row + dr * i, self.col + dc * i) for i in range(self.length)]

    def index_of(self, row: int, col: int) -> Optional[int]:
        """Return the letter index of ``(row, col)`` within this word, if any."""
        if self.direction == Direction.ACROSS:
            offset = col - self.col
            inside = row == self.row and 0 <= offset < self.length
        else:
            offset = row - self.row
            inside = col == self.col and 0 <= offset < self.length
        return offset if inside else None


@dataclass
class CellState:
    """Player-facing state of one white cell."""

    row: int
    col: int
    current_letter: str = ""
    status: CellStatus = CellStatus.UNSET
    hinted: bool = False

    @property
    def coord(self) -> Coord:
        return (self.row, self.col)

    @property
    def display_status(self) -> CellStatus:
        """Status to render: hinted letters stay marked even once validated."""
        if self.hinted and self.status != CellStatus.INCORRECT:
            return CellStatus.HINTED
        return self.status

    def is_empty(self) -> bool:
        return not self.current_letter

    def reset(self) -> None:
        self.current_letter = ""
        self.status = CellStatus.UNSET
        self.hinted = False


@dataclass
class SelectionState:
    active_cell: Optional[Coord] = None
    active_direction: Direction = Direction.ACROSS


@dataclass
class GameState:
    """Per-session counters driving hints and completion."""

    correct_count: int = 0
    hints_used: int = 0
    max_hints: int = BASE_MAX_HINTS
    revealed_words: List[str] = field(default_factory=list)
    elapsed_seconds: int = 0
    completed: bool = False

    @property
    def hints_remaining(self) -> int:
        return max(0, self.max_hints - self.hints_used)


@dataclass(frozen=True)
class StreakRecord:
    current_streak: int = 0
    last_play_date: Optional[date] = None


@dataclass(frozen=True)
class GameEvent:
    """One-way notification for the rendering surface."""

    kind: EventKind
    payload: Dict[str, Any] = field(default_factory=dict)
