"""Theme and puzzle providers.

Puzzles are looked up in three tiers: the day's own document, the shared
sample document, then a small puzzle built into the package. Every tier
goes through :meth:`PuzzleModel.from_payload`, so a malformed document
simply drops to the next tier.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import requests

from ..core.exceptions import DataError
from ..core.models import Theme
from ..engine.puzzle import PuzzleModel
from ..utils.logger import get_logger
from .normalization import clean_answer


LOGGER = get_logger(__name__)

SOURCE_ENV = "SLANGSQUARES_SOURCE"
THEMES_FILE = "crossword_themes.json"
SAMPLE_PUZZLE_FILE = "sample_crossword.json"
PUZZLE_DIR = "puzzles"

DEFAULT_THEME_KEY = "Day 1"

BUILTIN_THEMES: Dict[str, Dict[str, Any]] = {
    DEFAULT_THEME_KEY: {
        "theme": "Urban Dictionary Essentials",
        "description": "Basic slang terms every millennial and Gen Z should know",
        "sample_words": [
            "RIZZ", "BUSSIN", "SLAY", "STAN", "SIMP",
            "VIBES", "FIRE", "CRINGE", "ICONIC", "FLEX",
        ],
    },
}

BUILTIN_PUZZLE: Dict[str, Any] = {
    "theme": "Urban Dictionary Essentials",
    "size": {"rows": 4, "cols": 4},
    "across": {
        "1": {"clue": "Do something exceptionally well", "answer": "SLAY", "row": 0, "col": 0},
        "3": {"clue": "Share it on the feed", "answer": "POST", "row": 3, "col": 0},
    },
    "down": {
        "1": {"clue": "Tries way too hard for a crush", "answer": "SIMP", "row": 0, "col": 0},
        "2": {"clue": "Throw it with force (or shout it)", "answer": "YEET", "row": 0, "col": 3},
    },
}


@dataclass
class SourceConfig:
    """Where puzzle documents live: an http(s) base URL or a local directory."""

    location: Optional[str] = None
    timeout_seconds: float = 10.0
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, location: Optional[str] = None, **kwargs: Any) -> "SourceConfig":
        return cls(location=location or os.environ.get(SOURCE_ENV), **kwargs)

    @property
    def is_remote(self) -> bool:
        return bool(self.location) and self.location.startswith(("http://", "https://"))


def puzzle_document_name(theme_key: str) -> str:
    return f"{PUZZLE_DIR}/{theme_key.strip().replace(' ', '_')}.json"


def parse_themes(doc: Any) -> Dict[str, Theme]:
    """Turn ``{key: {theme, description, sample_words}}`` into :class:`Theme` objects."""

    if not isinstance(doc, Mapping):
        raise DataError(f"Theme document must be an object, got {type(doc).__name__}")
    themes: Dict[str, Theme] = {}
    for key, body in doc.items():
        if not isinstance(body, Mapping) or not body.get("theme"):
            LOGGER.warning("Skipping malformed theme entry %r", key)
            continue
        words = body.get("sample_words") or []
        if isinstance(words, str) or not isinstance(words, (list, tuple)):
            LOGGER.warning("Theme %r has no usable sample_words", key)
            words = []
        themes[str(key)] = Theme(
            key=str(key),
            name=str(body["theme"]),
            description=str(body.get("description") or ""),
            sample_words=tuple(w for w in (clean_answer(str(word)) for word in words) if w),
        )
    if not themes:
        raise DataError("Theme document contains no usable themes")
    return themes


def builtin_themes() -> Dict[str, Theme]:
    return parse_themes(BUILTIN_THEMES)


def builtin_puzzle(theme: Optional[Theme] = None) -> PuzzleModel:
    payload = dict(BUILTIN_PUZZLE)
    if theme is not None:
        payload["theme"] = theme.name
    return PuzzleModel.from_payload(payload)


class PuzzleSource:
    """Loads themes and puzzles, degrading to built-in data on any failure."""

    def __init__(self, config: Optional[SourceConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.config = config or SourceConfig.from_env()
        self._http = session

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------
    def load_themes(self) -> Dict[str, Theme]:
        try:
            themes = parse_themes(self.fetch_json(THEMES_FILE))
        except DataError as exc:
            LOGGER.warning("Failed to load themes: %s; using built-in themes", exc)
            return builtin_themes()
        LOGGER.info("Loaded %d themes", len(themes))
        return themes

    def load_puzzle(self, theme_key: str, theme: Optional[Theme] = None) -> PuzzleModel:
        for name in (puzzle_document_name(theme_key), SAMPLE_PUZZLE_FILE):
            try:
                puzzle = PuzzleModel.from_payload(self.fetch_json(name))
            except DataError as exc:
                LOGGER.warning("Puzzle %s unavailable: %s", name, exc)
                continue
            LOGGER.info("Loaded puzzle %s for %r", name, theme_key)
            return puzzle
        LOGGER.warning("Falling back to built-in puzzle for %r", theme_key)
        return builtin_puzzle(theme)

    def fetch_json(self, name: str) -> Any:
        """Return the decoded JSON document ``name`` relative to the source location."""

        if not self.config.location:
            raise DataError("No puzzle source configured")
        if self.config.is_remote:
            return self._fetch_remote(name)
        return self._read_local(name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _fetch_remote(self, name: str) -> Any:
        url = f"{self.config.location.rstrip('/')}/{name}"
        http = self._http or requests
        try:
            response = http.get(url, headers=self.config.headers, timeout=self.config.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DataError(f"Request for {url} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise DataError(f"{url} did not return JSON: {exc}") from exc

    def _read_local(self, name: str) -> Any:
        path = Path(self.config.location) / name
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DataError(f"Could not read {path}: {exc}") from exc
