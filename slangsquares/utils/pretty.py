"""Text rendering helpers for terminal front-ends."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Mapping, Optional, Tuple

from ..core.constants import BLOCK, CellStatus

if TYPE_CHECKING:
    from ..core.models import CellState, Coord
    from ..engine.puzzle import PuzzleModel


STATUS_MARKS = {
    CellStatus.CORRECT: "+",
    CellStatus.INCORRECT: "!",
    CellStatus.HINTED: "*",
    CellStatus.UNSET: " ",
}


def fmt_time(seconds: int) -> str:
    """Format elapsed seconds as ``MM:SS``."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


def format_grid(
    puzzle: PuzzleModel,
    cells: Optional[Mapping[Coord, CellState]] = None,
    *,
    selected: Optional[Tuple[int, int]] = None,
    reveal: bool = False,
) -> str:
    """Render the grid; player letters by default, the solution with ``reveal``."""

    width = puzzle.size.cols
    # Row labels take five characters ("12 | "); column numbers sit over the letters.
    lines = ["     " + " ".join(f"{c:^3}" for c in range(width))]
    lines.append("     " + "-" * (4 * width - 1))
    for r in range(puzzle.size.rows):
        rendered = []
        for c in range(width):
            if puzzle.grid[r][c] == BLOCK:
                rendered.append("###")
                continue
            if reveal:
                letter, mark = puzzle.grid[r][c], " "
            else:
                cell = cells.get((r, c)) if cells else None
                letter = (cell.current_letter if cell else "") or "."
                mark = STATUS_MARKS[cell.display_status] if cell else " "
            cursor = ">" if selected == (r, c) else " "
            rendered.append(f"{cursor}{letter}{mark}")
        lines.append(f"{r:>2} | " + " ".join(rendered))
    return "\n".join(lines)


def format_clues(puzzle: PuzzleModel) -> str:
    lines = []
    for title, entries in (("ACROSS", puzzle.across), ("DOWN", puzzle.down)):
        lines.append(title)
        for number in sorted(entries):
            entry = entries[number]
            lines.append(f"  {number:>2}. {entry.clue or '(no clue)'} ({entry.length})")
    return "\n".join(lines)


def pretty_print_grid(puzzle: PuzzleModel, cells=None, *, label: str | None = None, stream=None, **kwargs) -> None:
    """Print the grid in a human-friendly format."""

    stream = stream or sys.stdout
    if label:
        print(label, file=stream)
    print(format_grid(puzzle, cells, **kwargs), file=stream)
