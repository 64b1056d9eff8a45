"""Daily play streak and the hint budget derived from it."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.constants import BASE_MAX_HINTS, LAST_PLAY_KEY, STREAK_BONUS_DAYS, STREAK_KEY
from ..core.exceptions import StorageError
from ..core.models import StreakRecord
from ..data.storage import KeyValueStore
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

# Older saves used the browser's Date.toDateString() format.
LEGACY_DATE_FORMAT = "%a %b %d %Y"


def record_completion(record: StreakRecord, today: date) -> StreakRecord:
    """Return the streak after a puzzle is completed on ``today``."""

    if record.last_play_date == today:
        return record
    if record.last_play_date == today - timedelta(days=1):
        return StreakRecord(current_streak=record.current_streak + 1, last_play_date=today)
    return StreakRecord(current_streak=1, last_play_date=today)


def max_hints_for(streak: int) -> int:
    return BASE_MAX_HINTS + max(0, streak) // STREAK_BONUS_DAYS


@dataclass(frozen=True)
class StreakUpdate:
    record: StreakRecord
    changed: bool


class StreakTracker:
    """Reads and writes the streak record through a key/value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.record = StreakRecord()

    @property
    def max_hints(self) -> int:
        return max_hints_for(self.record.current_streak)

    def load(self) -> StreakRecord:
        self.record = self._read()
        LOGGER.info(
            "Loaded streak %d (last play %s)",
            self.record.current_streak,
            self.record.last_play_date,
        )
        return self.record

    def record_completion(self, today: Optional[date] = None) -> StreakUpdate:
        today = today or date.today()
        current = self.record
        updated = record_completion(current, today)
        try:
            with self.store.transaction() as txn:
                # Re-read inside the transaction so another session's write is not lost.
                current = self._read(txn)
                updated = record_completion(current, today)
                if updated != current:
                    txn.set(STREAK_KEY, str(updated.current_streak))
                    txn.set(LAST_PLAY_KEY, updated.last_play_date.isoformat())
        except StorageError as exc:
            LOGGER.warning("Could not save streak (%s); keeping it for this session only", exc)
        changed = updated != current
        self.record = updated
        if changed:
            LOGGER.info("Streak is now %d day(s)", updated.current_streak)
        else:
            LOGGER.debug("Streak already counted for %s", today)
        return StreakUpdate(record=updated, changed=changed)

    def _read(self, store: Optional[KeyValueStore] = None) -> StreakRecord:
        store = store or self.store
        raw_streak = store.get(STREAK_KEY)
        raw_date = store.get(LAST_PLAY_KEY)
        try:
            streak = int(raw_streak) if raw_streak else 0
        except ValueError:
            LOGGER.warning("Ignoring corrupt streak value %r", raw_streak)
            return StreakRecord()
        if streak < 0:
            LOGGER.warning("Ignoring negative streak value %r", raw_streak)
            return StreakRecord()
        return StreakRecord(current_streak=streak, last_play_date=parse_play_date(raw_date))


def parse_play_date(raw: Optional[str]) -> Optional[date]:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.strptime(raw, LEGACY_DATE_FORMAT).date()
    except ValueError:
        LOGGER.warning("Ignoring unreadable last-play date %r", raw)
        return None
