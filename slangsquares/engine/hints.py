"""Progressive hint tiers.

Tier 1 is an ambient nudge derived from the theme. Tier 2 reveals theme
sample words as the player gets cells right. Tier 3 is the budgeted smart
hint that writes one correct letter into the active word.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from ..core.constants import RevealThresholds
from ..core.exceptions import BudgetExhausted, NoSelection
from ..core.models import CellState, Coord, GameState, SelectionState, Theme
from ..utils.logger import get_logger
from .puzzle import PuzzleModel
from .validator import ValidationEngine


LOGGER = get_logger(__name__)

WORDS_PER_STEP = 2


@dataclass(frozen=True)
class AmbientHint:
    vibe_text: str
    breadcrumb_text: str


@dataclass(frozen=True)
class HintResult:
    """Outcome of a smart hint request. ``revealed`` is False for no-ops."""

    revealed: bool
    cell: Optional[Coord] = None
    letter: str = ""
    hints_remaining: int = 0


def ambient_hint(theme: Theme) -> AmbientHint:
    return AmbientHint(
        vibe_text=f"✨ {theme.description}",
        breadcrumb_text=f"💭 Think {theme.name.lower()}...",
    )


def revealed_words(
    sample_words: Sequence[str],
    correct_count: int,
    thresholds: RevealThresholds = RevealThresholds(),
) -> List[str]:
    """Sample words earned at ``correct_count``: 2, then 4, then all."""

    if correct_count >= thresholds.final:
        return list(sample_words)
    if correct_count >= thresholds.second:
        return list(sample_words[: 2 * WORDS_PER_STEP])
    if correct_count >= thresholds.first:
        return list(sample_words[:WORDS_PER_STEP])
    return []


def next_unlock_text(correct_count: int, thresholds: RevealThresholds = RevealThresholds()) -> str:
    if correct_count < thresholds.first:
        return f"{thresholds.first - correct_count} more for first reveal"
    if correct_count < thresholds.second:
        return f"{thresholds.second - correct_count} more for next reveal"
    if correct_count < thresholds.final:
        return f"{thresholds.final - correct_count} more to unlock all"
    return "All unlocked!"


class HintEngine:
    """Applies the three hint tiers to one session's state.

    ``max_hints`` lives on :class:`GameState` and is set by the caller from
    the streak; this class only spends it.
    """

    def __init__(self, thresholds: RevealThresholds = RevealThresholds()) -> None:
        self.thresholds = thresholds

    def ambient(self, theme: Theme) -> AmbientHint:
        return ambient_hint(theme)

    def update_reveals(self, theme: Theme, game: GameState) -> List[str]:
        """Recompute tier-2 words for ``game.correct_count``; the list only grows."""
        words = revealed_words(theme.sample_words, game.correct_count, self.thresholds)
        if len(words) > len(game.revealed_words):
            LOGGER.info("Unlocked %d sample words at %d correct", len(words), game.correct_count)
            game.revealed_words = words
        return list(game.revealed_words)

    def next_unlock_text(self, game: GameState) -> str:
        return next_unlock_text(game.correct_count, self.thresholds)

    @staticmethod
    def smart_hint_available(selection: SelectionState, game: GameState) -> bool:
        return game.hints_remaining > 0 and selection.active_cell is not None

    @staticmethod
    def require_hint(selection: SelectionState, game: GameState) -> None:
        """Raise instead of returning a no-op, for callers that want the reason."""
        if selection.active_cell is None:
            raise NoSelection("Select a cell before asking for a hint")
        if game.hints_used >= game.max_hints:
            raise BudgetExhausted(f"All {game.max_hints} hints used")

    def use_smart_hint(
        self,
        selection: SelectionState,
        puzzle: PuzzleModel,
        cells: Mapping[Coord, CellState],
        game: GameState,
    ) -> HintResult:
        try:
            self.require_hint(selection, game)
        except (NoSelection, BudgetExhausted) as exc:
            LOGGER.debug("Smart hint skipped: %s", exc)
            return HintResult(revealed=False, hints_remaining=game.hints_remaining)

        row, col = selection.active_cell
        entry = puzzle.placement_containing(row, col, selection.active_direction)
        if entry is None:
            return HintResult(revealed=False, hints_remaining=game.hints_remaining)

        target = next((cells[coord] for coord in entry.cells if cells[coord].is_empty()), None)
        if target is None:
            LOGGER.debug("Smart hint skipped: %s %s is already filled", entry.number, entry.direction.value)
            return HintResult(revealed=False, hints_remaining=game.hints_remaining)

        target.current_letter = puzzle.letter_at(target.row, target.col)
        target.hinted = True
        game.hints_used += 1
        target.status = ValidationEngine.check_cell(target, puzzle)
        LOGGER.info(
            "Smart hint revealed '%s' at (%s,%s); %d left",
            target.current_letter,
            target.row,
            target.col,
            game.hints_remaining,
        )
        return HintResult(
            revealed=True,
            cell=target.coord,
            letter=target.current_letter,
            hints_remaining=game.hints_remaining,
        )
