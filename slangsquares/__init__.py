"""Slang Squares: a themed daily crossword engine.

This package exposes the public API surface via:

- ``slangsquares.engine.puzzle.PuzzleModel``: immutable grid and placements.
- ``slangsquares.engine.session.SessionController``: drives one play session.
- ``slangsquares.engine.streak.StreakTracker``: daily streak and hint budget.
- ``slangsquares.data.sources.PuzzleSource``: theme and puzzle loading with fallbacks.
"""

from .data.sources import PuzzleSource, SourceConfig
from .data.storage import JsonFileStore, MemoryStore
from .engine.puzzle import PuzzleModel
from .engine.session import GameSettings, SessionController
from .engine.streak import StreakTracker

__all__ = [
    "GameSettings",
    "JsonFileStore",
    "MemoryStore",
    "PuzzleModel",
    "PuzzleSource",
    "SessionController",
    "SourceConfig",
    "StreakTracker",
]

__version__ = "0.1.0"
