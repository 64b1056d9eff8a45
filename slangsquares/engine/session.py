"""Session orchestration: puzzle switching, input, timer and completion."""

from __future__ import annotations

import functools
import random
import threading
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Protocol, Set, Union

from ..core.constants import CellStatus, Direction, EventKind, RevealThresholds
from ..core.models import CellState, Coord, GameEvent, GameState, Theme
from ..data.normalization import normalize_letter
from ..data.sources import DEFAULT_THEME_KEY, PuzzleSource
from ..utils.logger import get_logger
from ..utils.pretty import fmt_time
from .hints import HintEngine, HintResult
from .navigation import NavigationController
from .puzzle import PuzzleModel
from .streak import StreakTracker
from .validator import ValidationEngine


LOGGER = get_logger(__name__)

Listener = Callable[[GameEvent], None]


@dataclass
class GameSettings:
    show_timer: bool = True
    allow_hints: bool = True
    auto_check: bool = True
    thresholds: RevealThresholds = field(default_factory=RevealThresholds)
    tick_seconds: float = 1.0


# ----------------------------------------------------------------------
# Timer scheduling
# ----------------------------------------------------------------------
class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Starts cancelable recurring callbacks."""

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class RepeatingTimer(threading.Thread):
    """Daemon thread calling ``callback`` every ``interval`` seconds until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        super().__init__(daemon=True, name="slangsquares-timer")
        self.interval = interval
        self.callback = callback
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.wait(self.interval):
            self.callback()

    def cancel(self) -> None:
        self._stopped.set()


class ThreadingScheduler:
    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> RepeatingTimer:
        timer = RepeatingTimer(interval, callback)
        timer.start()
        return timer


# ----------------------------------------------------------------------
# Snapshots handed to the rendering surface
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class HintPanel:
    vibe_text: str
    breadcrumb_text: str
    revealed_words: List[str]
    next_unlock_text: str
    correct_count: int
    hints_remaining: int
    smart_hint_enabled: bool
    streak: int


@dataclass(frozen=True)
class CompletionSummary:
    theme_name: str
    elapsed_seconds: int
    time_text: str
    hints_used: int
    streak: int
    progress: int


class SessionController:
    """Owns one player's session and wires the engine components together.

    Every public method runs under a single lock so timer ticks never
    interleave with input handling. Requests that make no sense in the
    current state (nothing selected, no hints left, puzzle finished) are
    silent no-ops that return ``False``.
    """

    def __init__(
        self,
        source: PuzzleSource,
        tracker: StreakTracker,
        settings: Optional[GameSettings] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.source = source
        self.tracker = tracker
        self.settings = settings or GameSettings()
        self.scheduler = scheduler or ThreadingScheduler()
        self.clock = clock
        self.hints = HintEngine(self.settings.thresholds)
        self.themes: Dict[str, Theme] = {}
        self.current_key: Optional[str] = None
        self.puzzle: Optional[PuzzleModel] = None
        self.navigation: Optional[NavigationController] = None
        self.cells: Dict[Coord, CellState] = {}
        self.game = GameState()
        self._counted: Set[Coord] = set()
        self._listeners: List[Listener] = []
        self._timer: Optional[TimerHandle] = None
        self._timer_generation = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, theme_key: Optional[str] = None) -> None:
        with self._lock:
            self.themes = self.source.load_themes()
            self.tracker.load()
            self.game.max_hints = self.tracker.max_hints
            self.load_theme(theme_key or self._default_key())

    def close(self) -> None:
        with self._lock:
            self._stop_timer()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def theme(self) -> Theme:
        if self.current_key in self.themes:
            return self.themes[self.current_key]
        name = self.puzzle.title if self.puzzle and self.puzzle.title else "Crossword Puzzle"
        return Theme(key=self.current_key or "", name=name)

    def load_theme(self, key: str) -> PuzzleModel:
        """Switch to the puzzle for ``key``, resetting all per-puzzle state."""
        with self._lock:
            if key not in self.themes:
                fallback = self._default_key()
                LOGGER.warning("Unknown theme %r; loading %r instead", key, fallback)
                key = fallback
            self._stop_timer()
            self.current_key = key
            theme = self.themes.get(key)
            self.puzzle = self.source.load_puzzle(key, theme)
            if self.navigation is None:
                self.navigation = NavigationController(self.puzzle)
            else:
                self.navigation.reset(self.puzzle)
            self.cells = {coord: CellState(*coord) for coord in self.puzzle.white_cells()}
            self._counted.clear()
            self.game.correct_count = 0
            self.game.hints_used = 0
            self.game.revealed_words = []
            self.game.elapsed_seconds = 0
            self.game.completed = False
            LOGGER.info("Loaded theme %r (%d white cells)", key, len(self.cells))
            self._emit(EventKind.PUZZLE_LOADED, theme_key=key, puzzle=self.puzzle.to_jsonable())
            self._emit_hints()
            self._start_timer()
            return self.puzzle

    def random_theme_key(self, rng: Optional[random.Random] = None) -> str:
        keys = sorted(self.themes) or [DEFAULT_THEME_KEY]
        return (rng or random).choice(keys)

    # ------------------------------------------------------------------
    # Navigation input
    # ------------------------------------------------------------------
    def select_cell(self, row: int, col: int) -> bool:
        with self._lock:
            if self.navigation is None:
                return False
            return self._navigate(self.navigation.select_cell(row, col))

    def move(self, d_row: int, d_col: int) -> bool:
        with self._lock:
            if self.navigation is None:
                return False
            return self._navigate(self.navigation.move_directional(d_row, d_col))

    def toggle_direction(self) -> bool:
        with self._lock:
            if self.navigation is None:
                return False
            return self._navigate(self.navigation.toggle_direction())

    def select_clue(self, number: int, direction: Union[Direction, str]) -> bool:
        with self._lock:
            if self.navigation is None:
                return False
            try:
                entry = self.puzzle.placement(int(number), Direction(direction))
            except ValueError:
                entry = None
            if entry is None:
                LOGGER.debug("No clue %s %s", number, direction)
                return False
            return self._navigate(self.navigation.jump_to(entry))

    # ------------------------------------------------------------------
    # Letter input
    # ------------------------------------------------------------------
    def enter_letter(self, char: str) -> bool:
        with self._lock:
            letter = normalize_letter(char)
            cell = self._active_cell()
            if not letter or cell is None or self.game.completed:
                return False
            cell.current_letter = letter
            cell.hinted = False
            if self.settings.auto_check:
                self._apply_status(cell, ValidationEngine.check_cell(cell, self.puzzle))
            else:
                cell.status = CellStatus.UNSET
            self._emit_cell(cell)
            self._navigate(self.navigation.advance())
            self._after_progress()
            return True

    def delete(self) -> bool:
        """Backspace: empty the active cell and step back, or just step back."""
        with self._lock:
            cell = self._active_cell()
            if cell is None or self.game.completed:
                return False
            if not cell.is_empty():
                cell.reset()
                self._emit_cell(cell)
            self._navigate(self.navigation.retreat())
            return True

    def use_smart_hint(self) -> HintResult:
        with self._lock:
            if not self.settings.allow_hints or self.game.completed or self.navigation is None:
                return HintResult(revealed=False, hints_remaining=self.game.hints_remaining)
            result = self.hints.use_smart_hint(
                self.navigation.state, self.puzzle, self.cells, self.game
            )
            if result.revealed:
                cell = self.cells[result.cell]
                self._apply_status(cell, cell.status)
                self._emit_cell(cell)
                self._achievement("💡 Hint Used", "Letter revealed!")
                self._after_progress()
            return result

    def check_all(self) -> int:
        """Validate every filled cell; returns the progress percentage."""
        with self._lock:
            for cell in self.cells.values():
                if cell.is_empty():
                    continue
                self._apply_status(cell, ValidationEngine.check_cell(cell, self.puzzle))
                self._emit_cell(cell)
            self._after_progress()
            return ValidationEngine.progress(self.cells.values())

    def clear_all(self) -> bool:
        with self._lock:
            if self.game.completed:
                return False
            for cell in self.cells.values():
                cell.reset()
                self._emit_cell(cell)
            self._counted.clear()
            self.game.correct_count = 0
            self.game.revealed_words = []
            self._emit_hints()
            return True

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def hint_panel(self) -> HintPanel:
        ambient = self.hints.ambient(self.theme)
        return HintPanel(
            vibe_text=ambient.vibe_text,
            breadcrumb_text=ambient.breadcrumb_text,
            revealed_words=list(self.game.revealed_words),
            next_unlock_text=self.hints.next_unlock_text(self.game),
            correct_count=self.game.correct_count,
            hints_remaining=self.game.hints_remaining,
            smart_hint_enabled=self.settings.allow_hints
            and not self.game.completed
            and self.navigation is not None
            and HintEngine.smart_hint_available(self.navigation.state, self.game),
            streak=self.tracker.record.current_streak,
        )

    def summary(self) -> CompletionSummary:
        return CompletionSummary(
            theme_name=self.theme.name,
            elapsed_seconds=self.game.elapsed_seconds,
            time_text=fmt_time(self.game.elapsed_seconds),
            hints_used=self.game.hints_used,
            streak=self.tracker.record.current_streak,
            progress=ValidationEngine.progress(self.cells.values()),
        )

    def share_text(self) -> str:
        summary = self.summary()
        return (
            f'🔥 Just completed "{summary.theme_name}" in {summary.time_text}! '
            f"Used {summary.hints_used} hints, {summary.streak}-day streak! Play SlangSquares!"
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _default_key(self) -> str:
        if DEFAULT_THEME_KEY in self.themes or not self.themes:
            return DEFAULT_THEME_KEY
        return next(iter(self.themes))

    def _active_cell(self) -> Optional[CellState]:
        coord = self.navigation.active_cell if self.navigation else None
        return self.cells.get(coord) if coord else None

    def _apply_status(self, cell: CellState, status: CellStatus) -> None:
        cell.status = status
        # A cell only counts the first time it turns correct.
        if status == CellStatus.CORRECT and cell.coord not in self._counted:
            self._counted.add(cell.coord)
            self.game.correct_count += 1

    def _after_progress(self) -> None:
        self.hints.update_reveals(self.theme, self.game)
        self._emit_hints()
        if not self.game.completed and ValidationEngine.check_completion(self.cells.values()):
            self._complete()

    def _complete(self) -> None:
        self._stop_timer()
        update = self.tracker.record_completion(self.clock())
        self.game.max_hints = self.tracker.max_hints
        self.game.completed = True
        summary = self.summary()
        LOGGER.info(
            "Completed %r in %s with %d hint(s); streak %d",
            self.current_key,
            summary.time_text,
            summary.hints_used,
            summary.streak,
        )
        if update.changed and update.record.current_streak > 1:
            self._achievement(f"🔥 {update.record.current_streak}-Day Streak!", "Keep the momentum going!")
        self._emit(EventKind.COMPLETED, **asdict(summary))
        self._achievement("🎉 Puzzle Complete!", f"Finished in {summary.time_text}")
        self._emit_hints()

    def _navigate(self, changed: bool) -> bool:
        if changed:
            entry = self.navigation.current_placement()
            self._emit(
                EventKind.SELECTION_CHANGED,
                cell=self.navigation.active_cell,
                direction=self.navigation.active_direction.value,
                number=entry.number if entry else None,
                word_cells=entry.cells if entry else [],
            )
            self._emit_hints()
        return changed

    def _start_timer(self) -> None:
        if not self.settings.show_timer:
            return
        self._stop_timer()
        self._timer_generation += 1
        callback = functools.partial(self._tick, self._timer_generation)
        self._timer = self.scheduler.schedule_repeating(self.settings.tick_seconds, callback)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _tick(self, generation: int) -> None:
        with self._lock:
            # Ticks from a cancelled timer can still be waiting on the lock.
            if self.game.completed or self._timer is None or generation != self._timer_generation:
                return
            self.game.elapsed_seconds += 1
            self._emit(
                EventKind.TIMER_TICK,
                seconds=self.game.elapsed_seconds,
                text=fmt_time(self.game.elapsed_seconds),
            )

    def _emit_cell(self, cell: CellState) -> None:
        self._emit(
            EventKind.CELL_CHANGED,
            row=cell.row,
            col=cell.col,
            letter=cell.current_letter,
            status=cell.display_status.value,
        )

    def _emit_hints(self) -> None:
        self._emit(EventKind.HINTS_CHANGED, **asdict(self.hint_panel()))

    def _achievement(self, title: str, subtitle: str = "") -> None:
        self._emit(EventKind.ACHIEVEMENT, title=title, subtitle=subtitle)

    def _emit(self, kind: EventKind, **payload) -> None:
        event = GameEvent(kind=kind, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                LOGGER.warning("Listener %r failed on %s: %s", listener, kind.value, exc)
