"""Answer checking for player-entered letters."""

from __future__ import annotations

from typing import Iterable, List, Mapping

from ..core.constants import CellStatus
from ..core.models import CellState, Coord, PlacementEntry
from .puzzle import PuzzleModel


class ValidationEngine:
    """Pure checks of cell states against the puzzle solution.

    Nothing here mutates the puzzle or the cell states; callers decide
    when to validate and what to do with the result.
    """

    @staticmethod
    def check_cell(cell: CellState, puzzle: PuzzleModel) -> CellStatus:
        if not cell.current_letter:
            return CellStatus.UNSET
        if cell.current_letter == puzzle.letter_at(cell.row, cell.col):
            return CellStatus.CORRECT
        return CellStatus.INCORRECT

    @staticmethod
    def check_word(placement: PlacementEntry, cells: Mapping[Coord, CellState]) -> bool:
        letters = []
        for coord in placement.cells:
            cell = cells.get(coord)
            if cell is None or not cell.current_letter:
                return False
            letters.append(cell.current_letter)
        return "".join(letters) == placement.answer

    @staticmethod
    def check_completion(white_cells: Iterable[CellState]) -> bool:
        total = 0
        for cell in white_cells:
            total += 1
            if cell.status != CellStatus.CORRECT:
                return False
        return total > 0

    @staticmethod
    def progress(white_cells: Iterable[CellState]) -> int:
        """Percentage of white cells currently marked correct."""
        cells = list(white_cells)
        if not cells:
            return 0
        correct = sum(1 for cell in cells if cell.status == CellStatus.CORRECT)
        return round(correct * 100 / len(cells))

    @classmethod
    def solved_placements(
        cls, puzzle: PuzzleModel, cells: Mapping[Coord, CellState]
    ) -> List[PlacementEntry]:
        return [entry for entry in puzzle.placements() if cls.check_word(entry, cells)]
