"""Cell selection and cursor traversal."""

from __future__ import annotations

from typing import Optional

from ..core.constants import Direction
from ..core.models import Coord, PlacementEntry, SelectionState
from ..utils.logger import get_logger
from .puzzle import PuzzleModel


LOGGER = get_logger(__name__)


class NavigationController:
    """Selection state machine over a :class:`PuzzleModel`.

    ``advance``/``retreat`` stay inside the active word, while
    ``move_directional`` steps across the raw grid and ignores word
    boundaries. Every operation returns whether the selection changed;
    requests that cannot be honoured leave the selection untouched.
    """

    def __init__(self, puzzle: PuzzleModel) -> None:
        self.puzzle = puzzle
        self.state = SelectionState()

    @property
    def active_cell(self) -> Optional[Coord]:
        return self.state.active_cell

    @property
    def active_direction(self) -> Direction:
        return self.state.active_direction

    def reset(self, puzzle: PuzzleModel) -> None:
        self.puzzle = puzzle
        self.state = SelectionState()

    def current_placement(self) -> Optional[PlacementEntry]:
        if self.state.active_cell is None:
            return None
        row, col = self.state.active_cell
        return self.puzzle.placement_containing(row, col, self.state.active_direction)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def select_cell(self, row: int, col: int) -> bool:
        if not self.puzzle.is_white(row, col):
            LOGGER.debug("Ignoring selection of non-playable cell (%s,%s)", row, col)
            return False
        available = self.puzzle.directions_at(row, col)
        if self.state.active_direction in available:
            direction = self.state.active_direction
        elif available:
            direction = available[0]
        else:
            direction = Direction.ACROSS
        return self._set(row, col, direction)

    def toggle_direction(self) -> bool:
        if self.state.active_cell is None:
            return False
        row, col = self.state.active_cell
        other = self.state.active_direction.other
        if other not in self.puzzle.directions_at(row, col):
            return False
        return self._set(row, col, other)

    def advance(self) -> bool:
        return self._step_in_word(1)

    def retreat(self) -> bool:
        return self._step_in_word(-1)

    def move_directional(self, d_row: int, d_col: int) -> bool:
        if self.state.active_cell is None:
            return False
        row, col = self.state.active_cell
        target = (row + d_row, col + d_col)
        if not self.puzzle.is_white(*target):
            return False
        # Keep the current direction when the destination has a word in it.
        return self.select_cell(*target)

    def jump_to(self, placement: PlacementEntry) -> bool:
        return self._set(placement.row, placement.col, placement.direction)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _step_in_word(self, delta: int) -> bool:
        entry = self.current_placement()
        if entry is None:
            return False
        row, col = self.state.active_cell
        index = entry.index_of(row, col)
        target = index + delta
        if not 0 <= target < entry.length:
            return False
        return self._set(*entry.cells[target], entry.direction)

    def _set(self, row: int, col: int, direction: Direction) -> bool:
        new = ((row, col), direction)
        old = (self.state.active_cell, self.state.active_direction)
        if new == old:
            return False
        self.state.active_cell = (row, col)
        self.state.active_direction = direction
        LOGGER.debug("Selected (%s,%s) %s", row, col, direction.value)
        return True
