import threading
import time
import unittest
from contextlib import contextmanager
from datetime import date
from typing import Callable, List
from unittest.mock import MagicMock, patch

from slangsquares.core.constants import CellStatus, Direction, EventKind, LAST_PLAY_KEY, STREAK_KEY
from slangsquares.core.exceptions import StorageError
from slangsquares.core.models import PlacementSpec, Theme
from slangsquares.data.storage import MemoryStore
from slangsquares.engine.puzzle import PuzzleModel
from slangsquares.engine.session import GameSettings, RepeatingTimer, SessionController, ThreadingScheduler
from slangsquares.engine.streak import StreakTracker

TODAY = date(2026, 10, 19)

THEMES = {
    "Day 1": Theme(
        key="Day 1",
        name="Urban Dictionary Essentials",
        description="Basic slang",
        sample_words=("RIZZ", "BUSSIN", "SLAY", "STAN", "SIMP", "VIBES"),
    ),
    "Day 2": Theme(key="Day 2", name="Internet Culture", description="Online lingo"),
}


def slay_simp() -> PuzzleModel:
    return PuzzleModel.build(
        (4, 4),
        [
            PlacementSpec("SLAY", 0, 0, Direction.ACROSS, "Do it well"),
            PlacementSpec("SIMP", 0, 0, Direction.DOWN, "Tries too hard"),
        ],
        title="Urban Dictionary Essentials",
    )


class FakeHandle:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Collects timers so tests can fire ticks by hand."""

    def __init__(self) -> None:
        self.handles: List[FakeHandle] = []

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(callback)
        self.handles.append(handle)
        return handle

    def tick(self, times: int = 1) -> None:
        for _ in range(times):
            self.handles[-1].callback()


class UnwritableStore(MemoryStore):
    """Accepts writes inside a transaction, then fails to commit them."""

    @contextmanager
    def transaction(self):
        staged = MemoryStore(dict(self._values))
        yield staged
        raise StorageError("disk full")


def stub_source() -> MagicMock:
    source = MagicMock()
    source.load_themes.return_value = dict(THEMES)
    source.load_puzzle.side_effect = lambda key, theme=None: slay_simp()
    return source


class SessionTestCase(unittest.TestCase):
    settings = GameSettings()

    def setUp(self) -> None:
        self.source = stub_source()
        self.store = MemoryStore()
        self.tracker = StreakTracker(self.store)
        self.scheduler = FakeScheduler()
        self.session = SessionController(
            self.source,
            self.tracker,
            settings=self.settings,
            scheduler=self.scheduler,
            clock=lambda: TODAY,
        )
        self.events = []
        self.session.subscribe(self.events.append)
        self.session.start()

    def kinds(self, kind: EventKind):
        return [event for event in self.events if event.kind == kind]

    def type_word(self, row: int, col: int, text: str) -> None:
        self.session.select_cell(row, col)
        for char in text:
            self.session.enter_letter(char)


class StartTests(SessionTestCase):
    def test_start_loads_default_theme(self) -> None:
        self.assertEqual(self.session.current_key, "Day 1")
        self.source.load_puzzle.assert_called_once_with("Day 1", THEMES["Day 1"])
        self.assertEqual(len(self.session.cells), 7)
        self.assertEqual(self.session.game.max_hints, 3)
        self.assertEqual(len(self.kinds(EventKind.PUZZLE_LOADED)), 1)

    def test_unknown_theme_falls_back_to_default(self) -> None:
        self.session.load_theme("Day 99")
        self.assertEqual(self.session.current_key, "Day 1")

    def test_streak_raises_hint_budget(self) -> None:
        self.store.set(STREAK_KEY, "7")
        self.store.set(LAST_PLAY_KEY, "2026-10-18")
        self.session.start("Day 2")
        self.assertEqual(self.session.game.max_hints, 4)
        self.assertEqual(self.session.hint_panel().hints_remaining, 4)


class PlayThroughTests(SessionTestCase):
    def test_slay_simp_completes_once(self) -> None:
        with patch.object(self.tracker, "record_completion", wraps=self.tracker.record_completion) as record:
            self.type_word(0, 0, "slay")
            self.assertEqual(self.session.game.correct_count, 4)
            self.assertFalse(self.session.game.completed)

            self.session.select_cell(1, 0)
            self.assertEqual(self.session.navigation.active_direction, Direction.DOWN)
            for char in "IMP":
                self.session.enter_letter(char)

            record.assert_called_once_with(TODAY)

        game = self.session.game
        self.assertTrue(game.completed)
        self.assertEqual(game.correct_count, 7)
        self.assertEqual(len(game.revealed_words), 4)
        self.assertEqual(self.store.get(STREAK_KEY), "1")
        self.assertEqual(self.store.get(LAST_PLAY_KEY), "2026-10-19")

        completed = self.kinds(EventKind.COMPLETED)
        self.assertEqual(len(completed), 1)
        self.assertEqual(completed[0].payload["hints_used"], 0)
        titles = [event.payload["title"] for event in self.kinds(EventKind.ACHIEVEMENT)]
        self.assertEqual(titles, ["🎉 Puzzle Complete!"])

    def test_retyping_a_correct_cell_is_not_counted_twice(self) -> None:
        self.type_word(0, 0, "S")
        self.session.select_cell(0, 0)
        self.session.enter_letter("S")
        self.assertEqual(self.session.game.correct_count, 1)

    def test_wrong_letter_is_marked_and_cursor_advances(self) -> None:
        self.type_word(0, 0, "X")
        cell = self.session.cells[(0, 0)]
        self.assertEqual(cell.status, CellStatus.INCORRECT)
        self.assertEqual(self.session.navigation.active_cell, (0, 1))
        self.assertEqual(self.session.game.correct_count, 0)

    def test_non_letters_are_ignored(self) -> None:
        self.session.select_cell(0, 0)
        self.assertFalse(self.session.enter_letter("7"))
        self.assertFalse(self.session.enter_letter(""))
        self.assertTrue(self.session.cells[(0, 0)].is_empty())

    def test_input_without_selection_is_ignored(self) -> None:
        self.assertFalse(self.session.enter_letter("S"))
        self.assertFalse(self.session.delete())

    def test_delete_clears_then_steps_back(self) -> None:
        self.type_word(0, 0, "SL")
        self.session.select_cell(0, 1)
        self.assertTrue(self.session.delete())
        self.assertTrue(self.session.cells[(0, 1)].is_empty())
        self.assertEqual(self.session.navigation.active_cell, (0, 0))
        self.assertEqual(self.session.cells[(0, 0)].current_letter, "S")

    def test_streak_achievement_on_consecutive_day(self) -> None:
        self.store.set(STREAK_KEY, "2")
        self.store.set(LAST_PLAY_KEY, "2026-10-18")
        self.type_word(0, 0, "SLAY")
        self.type_word(1, 0, "IMP")
        titles = [event.payload["title"] for event in self.kinds(EventKind.ACHIEVEMENT)]
        self.assertEqual(titles, ["🔥 3-Day Streak!", "🎉 Puzzle Complete!"])
        self.assertEqual(self.session.summary().streak, 3)

    def test_finished_puzzle_ignores_input(self) -> None:
        self.type_word(0, 0, "SLAY")
        self.type_word(1, 0, "IMP")
        self.session.select_cell(0, 0)
        self.assertFalse(self.session.enter_letter("Q"))
        self.assertFalse(self.session.clear_all())
        self.assertFalse(self.session.use_smart_hint().revealed)
        self.assertEqual(self.session.cells[(0, 0)].current_letter, "S")

    def test_share_text(self) -> None:
        self.scheduler.tick(75)
        self.type_word(0, 0, "SLAY")
        self.type_word(1, 0, "IMP")
        self.assertEqual(
            self.session.share_text(),
            '🔥 Just completed "Urban Dictionary Essentials" in 01:15! '
            "Used 0 hints, 1-day streak! Play SlangSquares!",
        )


class HintFlowTests(SessionTestCase):
    def test_smart_hint_reveals_and_counts(self) -> None:
        self.session.select_cell(0, 0)
        result = self.session.use_smart_hint()

        self.assertTrue(result.revealed)
        self.assertEqual(result.cell, (0, 0))
        self.assertEqual(result.letter, "S")
        cell = self.session.cells[(0, 0)]
        self.assertEqual(cell.display_status, CellStatus.HINTED)
        self.assertEqual(self.session.game.correct_count, 1)
        self.assertEqual(self.session.hint_panel().hints_remaining, 2)
        titles = [event.payload["title"] for event in self.kinds(EventKind.ACHIEVEMENT)]
        self.assertEqual(titles, ["💡 Hint Used"])

    def test_budget_runs_out(self) -> None:
        self.session.select_cell(0, 0)
        for _ in range(3):
            self.assertTrue(self.session.use_smart_hint().revealed)
        self.assertFalse(self.session.use_smart_hint().revealed)
        self.assertEqual(self.session.game.hints_used, 3)
        self.assertFalse(self.session.hint_panel().smart_hint_enabled)

    def test_hints_can_finish_the_puzzle(self) -> None:
        self.type_word(0, 0, "SLA")
        self.session.select_cell(1, 0)
        self.type_word(1, 0, "IM")
        self.session.select_cell(0, 3)
        self.session.use_smart_hint()
        self.session.select_cell(3, 0)
        self.session.use_smart_hint()
        self.assertTrue(self.session.game.completed)
        self.assertEqual(self.session.summary().hints_used, 2)

    def test_hints_disabled_by_settings(self) -> None:
        self.session.settings.allow_hints = False
        try:
            self.session.select_cell(0, 0)
            self.assertFalse(self.session.use_smart_hint().revealed)
            self.assertFalse(self.session.hint_panel().smart_hint_enabled)
        finally:
            self.session.settings.allow_hints = True

    def test_clear_all_keeps_hint_usage(self) -> None:
        self.session.select_cell(0, 0)
        self.session.use_smart_hint()
        self.type_word(1, 0, "IMP")
        self.session.clear_all()
        self.assertTrue(all(cell.is_empty() for cell in self.session.cells.values()))
        self.assertEqual(self.session.game.correct_count, 0)
        self.assertEqual(self.session.game.revealed_words, [])
        self.assertEqual(self.session.game.hints_used, 1)


class ManualCheckTests(SessionTestCase):
    settings = GameSettings(auto_check=False)

    def test_letters_stay_unchecked_until_check_all(self) -> None:
        self.type_word(0, 0, "SLAX")
        self.assertTrue(all(c.status == CellStatus.UNSET for c in self.session.cells.values()))
        self.assertEqual(self.session.game.correct_count, 0)

        self.assertEqual(self.session.check_all(), 43)
        self.assertEqual(self.session.cells[(0, 3)].status, CellStatus.INCORRECT)
        self.assertEqual(self.session.game.correct_count, 3)
        self.assertFalse(self.session.game.completed)

    def test_check_all_can_complete(self) -> None:
        self.type_word(0, 0, "SLAY")
        self.type_word(1, 0, "IMP")
        self.assertFalse(self.session.game.completed)
        self.assertEqual(self.session.check_all(), 100)
        self.assertTrue(self.session.game.completed)


class TimerTests(SessionTestCase):
    def test_ticks_update_elapsed_time(self) -> None:
        self.scheduler.tick(3)
        self.assertEqual(self.session.game.elapsed_seconds, 3)
        self.assertEqual(self.kinds(EventKind.TIMER_TICK)[-1].payload["text"], "00:03")

    def test_switching_theme_resets_and_cancels_timer(self) -> None:
        first = self.scheduler.handles[-1]
        self.scheduler.tick(5)
        self.type_word(0, 0, "SL")

        self.session.load_theme("Day 2")

        self.assertTrue(first.cancelled)
        self.assertEqual(len(self.scheduler.handles), 2)
        self.assertEqual(self.session.game.elapsed_seconds, 0)
        self.assertEqual(self.session.game.correct_count, 0)
        self.assertIsNone(self.session.navigation.active_cell)
        self.assertTrue(all(cell.is_empty() for cell in self.session.cells.values()))

        # A tick from the old timer that was already queued is ignored.
        first.callback()
        self.assertEqual(self.session.game.elapsed_seconds, 0)

    def test_timer_stops_on_completion(self) -> None:
        self.type_word(0, 0, "SLAY")
        self.type_word(1, 0, "IMP")
        self.assertTrue(self.scheduler.handles[-1].cancelled)
        self.scheduler.tick()
        self.assertEqual(self.session.game.elapsed_seconds, 0)

    def test_close_cancels_timer(self) -> None:
        self.session.close()
        self.assertTrue(self.scheduler.handles[-1].cancelled)


class NoTimerTests(SessionTestCase):
    settings = GameSettings(show_timer=False)

    def test_no_timer_is_scheduled(self) -> None:
        self.assertEqual(self.scheduler.handles, [])


class EventTests(SessionTestCase):
    def test_failing_listener_does_not_break_input(self) -> None:
        def broken(event) -> None:
            raise RuntimeError("render failed")

        self.session.subscribe(broken)
        with self.assertLogs("slangsquares", level="WARNING"):
            self.type_word(0, 0, "S")
        self.assertEqual(self.session.cells[(0, 0)].current_letter, "S")

    def test_unsubscribe(self) -> None:
        seen = []
        unsubscribe = self.session.subscribe(seen.append)
        unsubscribe()
        self.session.select_cell(0, 1)
        self.assertEqual(seen, [])
        self.assertEqual(len(self.kinds(EventKind.SELECTION_CHANGED)), 1)

    def test_select_clue(self) -> None:
        self.assertTrue(self.session.select_clue(1, "down"))
        self.assertEqual(self.session.navigation.active_direction, Direction.DOWN)
        self.assertFalse(self.session.select_clue(7, "across"))
        self.assertFalse(self.session.select_clue(1, "sideways"))


class UnsavedStreakTests(SessionTestCase):
    def test_completion_finishes_when_streak_cannot_be_saved(self) -> None:
        self.tracker.store = UnwritableStore()
        with self.assertLogs("slangsquares", level="WARNING"):
            self.type_word(0, 0, "SLAY")
            self.type_word(1, 0, "IMP")

        self.assertTrue(self.session.game.completed)
        self.assertTrue(self.scheduler.handles[-1].cancelled)
        self.assertEqual(len(self.kinds(EventKind.COMPLETED)), 1)
        self.assertEqual(self.session.summary().streak, 1)
        self.assertIsNone(self.tracker.store.get(STREAK_KEY))
        self.session.select_cell(0, 0)
        self.assertFalse(self.session.enter_letter("Q"))


class BeforeStartTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = SessionController(
            stub_source(), StreakTracker(MemoryStore()), scheduler=FakeScheduler()
        )

    def test_input_before_start_is_ignored(self) -> None:
        self.assertFalse(self.session.select_cell(0, 0))
        self.assertFalse(self.session.move(0, 1))
        self.assertFalse(self.session.toggle_direction())
        self.assertFalse(self.session.select_clue(1, "across"))
        self.assertFalse(self.session.enter_letter("S"))
        self.assertFalse(self.session.delete())
        self.assertFalse(self.session.use_smart_hint().revealed)


class RepeatingTimerTests(unittest.TestCase):
    def test_fires_until_cancelled(self) -> None:
        calls = []
        fired = threading.Event()

        def callback() -> None:
            calls.append(time.monotonic())
            fired.set()

        timer = ThreadingScheduler().schedule_repeating(0.01, callback)
        try:
            self.assertTrue(fired.wait(timeout=1))
        finally:
            timer.cancel()
            timer.join(timeout=1)

        self.assertTrue(timer.daemon)
        self.assertFalse(timer.is_alive())
        seen = len(calls)
        time.sleep(0.05)
        self.assertEqual(len(calls), seen)

    def test_session_close_stops_the_thread(self) -> None:
        session = SessionController(
            stub_source(), StreakTracker(MemoryStore()), settings=GameSettings(tick_seconds=0.01)
        )
        ticked = threading.Event()

        def on_event(event) -> None:
            if event.kind == EventKind.TIMER_TICK:
                ticked.set()

        session.subscribe(on_event)
        session.start()
        timer = session._timer
        try:
            self.assertIsInstance(timer, RepeatingTimer)
            self.assertTrue(ticked.wait(timeout=1))
        finally:
            session.close()
            timer.join(timeout=1)

        self.assertFalse(timer.is_alive())
        elapsed = session.game.elapsed_seconds
        self.assertGreaterEqual(elapsed, 1)
        time.sleep(0.05)
        self.assertEqual(session.game.elapsed_seconds, elapsed)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
