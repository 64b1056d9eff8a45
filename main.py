"""Terminal front-end for the Slang Squares puzzle engine."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

from slangsquares.core.constants import EventKind
from slangsquares.core.models import GameEvent
from slangsquares.data.sources import PuzzleSource, SourceConfig
from slangsquares.data.storage import DEFAULT_STORE_PATH, JsonFileStore, MemoryStore
from slangsquares.engine.session import GameSettings, SessionController
from slangsquares.engine.streak import StreakTracker
from slangsquares.utils.logger import configure_logging
from slangsquares.utils.pretty import format_clues, pretty_print_grid

ARROWS = {"up": (-1, 0), "down": (1, 0), "left": (0, -1), "right": (0, 1)}

HELP_TEXT = """Commands:
  show                     print the grid
  clues                    list clues
  select ROW COL           select a cell
  clue NUMBER across|down  jump to a clue
  up|down|left|right       move the cursor one cell
  toggle                   switch between across and down
  type LETTERS             enter letters from the cursor onward
  del                      backspace
  hint                     reveal one letter of the current word
  check                    check every filled cell
  clear                    clear the grid
  themes                   list themes
  theme KEY                switch theme
  random                   switch to a random theme
  share                    print a shareable summary
  quit                     leave"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play Slang Squares in the terminal")
    parser.add_argument(
        "--source",
        type=str,
        default=None,
        help="Base URL or directory holding crossword_themes.json and puzzles/ "
        "(defaults to $SLANGSQUARES_SOURCE, then built-in data)",
    )
    parser.add_argument("--theme", type=str, default=None, help="Theme key to start with")
    parser.add_argument(
        "--storage",
        type=str,
        default=str(DEFAULT_STORE_PATH),
        help="Streak storage file, or 'memory' to keep nothing",
    )
    parser.add_argument("--timeout", type=float, default=10.0, help="HTTP timeout in seconds")
    parser.add_argument("--no-auto-check", action="store_true", help="Only check answers on 'check'")
    parser.add_argument("--no-timer", action="store_true", help="Do not run the elapsed-time counter")
    parser.add_argument("--no-hints", action="store_true", help="Disable smart hints")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def build_session(args: argparse.Namespace) -> SessionController:
    store = MemoryStore() if args.storage == "memory" else JsonFileStore(Path(args.storage))
    settings = GameSettings(
        show_timer=not args.no_timer,
        allow_hints=not args.no_hints,
        auto_check=not args.no_auto_check,
    )
    source = PuzzleSource(SourceConfig.from_env(args.source, timeout_seconds=args.timeout))
    return SessionController(source, StreakTracker(store), settings=settings)


def print_event(event: GameEvent, stream: TextIO) -> None:
    if event.kind == EventKind.ACHIEVEMENT:
        subtitle = event.payload.get("subtitle")
        print(f"*** {event.payload['title']}" + (f" - {subtitle}" if subtitle else ""), file=stream)
    elif event.kind == EventKind.COMPLETED:
        print(
            f"Theme: {event.payload['theme_name']} | Time: {event.payload['time_text']} | "
            f"Hints: {event.payload['hints_used']} | Streak: {event.payload['streak']}",
            file=stream,
        )


def print_status(session: SessionController, stream: TextIO) -> None:
    panel = session.hint_panel()
    print(panel.vibe_text, file=stream)
    print(panel.breadcrumb_text, file=stream)
    words = ", ".join(panel.revealed_words) or "-"
    print(f"Earned words: {words} ({panel.next_unlock_text})", file=stream)
    print(
        f"Smart hints left: {panel.hints_remaining} | Streak: {panel.streak} | "
        f"Progress: {session.summary().progress}%",
        file=stream,
    )


def run_commands(session: SessionController, lines: Iterable[str], stream: TextIO) -> None:
    """Apply text commands to ``session`` until ``quit`` or end of input."""

    for raw in lines:
        parts = raw.strip().split()
        if not parts:
            continue
        command, params = parts[0].lower(), parts[1:]
        try:
            if command in ("quit", "exit"):
                break
            if command == "help":
                print(HELP_TEXT, file=stream)
            elif command == "show":
                pretty_print_grid(session.puzzle, session.cells, selected=session.navigation.active_cell, stream=stream)
                print_status(session, stream)
            elif command == "clues":
                print(format_clues(session.puzzle), file=stream)
            elif command == "select":
                session.select_cell(int(params[0]), int(params[1]))
            elif command == "clue":
                session.select_clue(int(params[0]), params[1].lower())
            elif command in ARROWS:
                session.move(*ARROWS[command])
            elif command == "toggle":
                session.toggle_direction()
            elif command == "type":
                for char in "".join(params):
                    session.enter_letter(char)
            elif command == "del":
                session.delete()
            elif command == "hint":
                if not session.use_smart_hint().revealed:
                    print("No hint available here.", file=stream)
            elif command == "check":
                print(f"Progress: {session.check_all()}%", file=stream)
            elif command == "clear":
                session.clear_all()
            elif command == "themes":
                for key, theme in sorted(session.themes.items()):
                    print(f"{key}: {theme.name}", file=stream)
            elif command == "theme":
                session.load_theme(" ".join(params))
            elif command == "random":
                session.load_theme(session.random_theme_key())
            elif command == "share":
                print(session.share_text(), file=stream)
            else:
                print(f"Unknown command {command!r}; try 'help'", file=stream)
        except (IndexError, ValueError):
            print(f"Bad arguments for {command!r}; try 'help'", file=stream)


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    session = build_session(args)
    session.subscribe(lambda event: print_event(event, sys.stdout))
    session.start(args.theme)
    try:
        print(f"{session.theme.name}: {session.theme.description}")
        print(HELP_TEXT)
        run_commands(session, sys.stdin, sys.stdout)
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover
    main()
