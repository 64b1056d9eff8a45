"""Immutable puzzle grid built from hand-authored word placements."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..core.constants import BLOCK, Bounds, Direction
from ..core.exceptions import ConflictError, DataError, OutOfBoundsError
from ..core.models import Coord, PlacementEntry, PlacementSpec
from ..data.normalization import clean_answer
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

SizeLike = Union[Bounds, Tuple[int, int], Mapping[str, Any]]
PlacementLike = Union[PlacementSpec, Mapping[str, Any]]


class PuzzleModel:
    """Grid of letters and blocks plus numbered across/down placements.

    Instances are never mutated after construction. Switching puzzles
    means building a new model.
    """

    def __init__(
        self,
        size: Bounds,
        grid: Tuple[Tuple[str, ...], ...],
        across: Dict[int, PlacementEntry],
        down: Dict[int, PlacementEntry],
        title: str = "",
    ) -> None:
        self.size = size
        self.grid = grid
        self.across = dict(across)
        self.down = dict(down)
        self.title = title
        self._numbers: Dict[Coord, int] = {}
        self._index: Dict[Tuple[Coord, Direction], PlacementEntry] = {}
        for entry in self.placements():
            self._numbers[(entry.row, entry.col)] = entry.number
            for coord in entry.cells:
                self._index[(coord, entry.direction)] = entry

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def build(
        cls,
        size: SizeLike,
        placements: Iterable[PlacementLike],
        title: str = "",
    ) -> "PuzzleModel":
        """Lay out ``placements`` on a grid of ``size`` and number the starts.

        Raises :class:`OutOfBoundsError` when a word leaves the grid and
        :class:`ConflictError` when two words disagree on a shared cell or
        start on the same cell in the same direction.
        """

        bounds = _coerce_bounds(size)
        specs = [_coerce_spec(item) for item in placements]

        letters: Dict[Coord, str] = {}
        owners: Dict[Coord, str] = {}
        starts: Dict[Tuple[Coord, Direction], str] = {}
        words: List[Tuple[PlacementSpec, str]] = []

        for spec in specs:
            word = clean_answer(spec.word)
            if not word:
                raise DataError(f"Placement at ({spec.row},{spec.col}) has no letters: {spec.word!r}")
            start_key = ((spec.row, spec.col), spec.direction)
            if start_key in starts:
                raise ConflictError(
                    f"'{word}' and '{starts[start_key]}' both start {spec.direction.value} "
                    f"at ({spec.row},{spec.col})"
                )
            starts[start_key] = word

            dr, dc = spec.direction.step
            for index, letter in enumerate(word):
                r, c = spec.row + dr * index, spec.col + dc * index
                if not bounds.contains(r, c):
                    raise OutOfBoundsError(
                        f"'{word}' leaves the {bounds.rows}x{bounds.cols} grid at ({r},{c})"
                    )
                existing = letters.get((r, c))
                if existing is not None and existing != letter:
                    raise ConflictError(
                        f"Letter conflict at ({r},{c}): '{owners[(r, c)]}' has '{existing}', "
                        f"'{word}' needs '{letter}'"
                    )
                letters[(r, c)] = letter
                owners.setdefault((r, c), word)
            words.append((spec, word))

        grid = tuple(
            tuple(letters.get((r, c), BLOCK) for c in range(bounds.cols))
            for r in range(bounds.rows)
        )

        # Raster-scan numbering over cells that start at least one word.
        numbers: Dict[Coord, int] = {}
        for counter, coord in enumerate(sorted({key[0] for key in starts}), start=1):
            numbers[coord] = counter

        across: Dict[int, PlacementEntry] = {}
        down: Dict[int, PlacementEntry] = {}
        for spec, word in words:
            entry = PlacementEntry(
                number=numbers[(spec.row, spec.col)],
                row=spec.row,
                col=spec.col,
                answer=word,
                direction=spec.direction,
                clue=spec.clue,
            )
            target = across if spec.direction == Direction.ACROSS else down
            target[entry.number] = entry

        LOGGER.debug(
            "Built %sx%s puzzle with %s across and %s down words",
            bounds.rows,
            bounds.cols,
            len(across),
            len(down),
        )
        return cls(bounds, grid, across, down, title=title)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PuzzleModel":
        """Build a model from a JSON puzzle document.

        Accepts ``size``, ``grid`` and ``across``/``down`` mappings of
        ``number -> {clue, answer, row, col}``. Document numbers only fix
        the order; the model renumbers by raster scan. When only a grid is
        present the words are read off its runs of white cells.
        """

        if not isinstance(payload, Mapping):
            raise DataError(f"Puzzle payload must be an object, got {type(payload).__name__}")

        raw_grid = payload.get("grid")
        rows = _grid_rows(raw_grid) if raw_grid is not None else None
        size = payload.get("size")
        if size is None:
            if not rows:
                raise DataError("Puzzle payload has neither 'size' nor 'grid'")
            size = (len(rows), max(len(row) for row in rows))

        placements: List[PlacementSpec] = []
        for direction in Direction:
            placements.extend(_payload_placements(payload.get(direction.value), direction))
        if not placements:
            if not rows:
                raise DataError("Puzzle payload has no placements and no grid")
            placements = placements_from_grid(rows)

        model = cls.build(size, placements, title=str(payload.get("theme") or payload.get("title") or ""))
        if rows is not None:
            model._check_grid_matches(rows)
        return model

    def _check_grid_matches(self, rows: Sequence[Sequence[str]]) -> None:
        for r in range(self.size.rows):
            for c in range(self.size.cols):
                row = rows[r] if r < len(rows) else ()
                given = row[c] if c < len(row) else BLOCK
                if _grid_letter(given) != self.grid[r][c]:
                    raise DataError(
                        f"Payload grid disagrees with placements at ({r},{c}): "
                        f"{given!r} vs {self.grid[r][c]!r}"
                    )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_white(self, row: int, col: int) -> bool:
        return self.size.contains(row, col) and self.grid[row][col] != BLOCK

    def letter_at(self, row: int, col: int) -> Optional[str]:
        if not self.is_white(row, col):
            return None
        return self.grid[row][col]

    def white_cells(self) -> List[Coord]:
        return [
            (r, c)
            for r in range(self.size.rows)
            for c in range(self.size.cols)
            if self.grid[r][c] != BLOCK
        ]

    def clue_number_at(self, row: int, col: int) -> Optional[int]:
        return self._numbers.get((row, col))

    def placement_containing(
        self, row: int, col: int, direction: Direction
    ) -> Optional[PlacementEntry]:
        return self._index.get(((row, col), direction))

    def directions_at(self, row: int, col: int) -> List[Direction]:
        return [d for d in Direction if ((row, col), d) in self._index]

    def placement(self, number: int, direction: Direction) -> Optional[PlacementEntry]:
        source = self.across if direction == Direction.ACROSS else self.down
        return source.get(number)

    def placements(self, direction: Optional[Direction] = None) -> List[PlacementEntry]:
        if direction is None:
            return self.placements(Direction.ACROSS) + self.placements(Direction.DOWN)
        source = self.across if direction == Direction.ACROSS else self.down
        return [source[number] for number in sorted(source)]

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------
    def to_jsonable(self) -> Dict[str, Any]:
        def entries(direction: Direction) -> Dict[str, dict]:
            return {
                str(entry.number): {
                    "clue": entry.clue,
                    "answer": entry.answer,
                    "row": entry.row,
                    "col": entry.col,
                }
                for entry in self.placements(direction)
            }

        return {
            "theme": self.title,
            "size": {"rows": self.size.rows, "cols": self.size.cols},
            "grid": [list(row) for row in self.grid],
            "across": entries(Direction.ACROSS),
            "down": entries(Direction.DOWN),
        }


def placements_from_grid(rows: Sequence[Sequence[str]]) -> List[PlacementSpec]:
    """Derive word placements from maximal runs of two or more white cells."""

    height = len(rows)
    width = max((len(row) for row in rows), default=0)

    def letter(r: int, c: int) -> str:
        row = rows[r]
        return _grid_letter(row[c]) if c < len(row) else BLOCK

    specs: List[PlacementSpec] = []
    for r in range(height):
        c = 0
        while c < width:
            start = c
            while c < width and letter(r, c) != BLOCK:
                c += 1
            if c - start >= 2:
                word = "".join(letter(r, k) for k in range(start, c))
                specs.append(PlacementSpec(word, r, start, Direction.ACROSS))
            c += 1
    for c in range(width):
        r = 0
        while r < height:
            start = r
            while r < height and letter(r, c) != BLOCK:
                r += 1
            if r - start >= 2:
                word = "".join(letter(k, c) for k in range(start, r))
                specs.append(PlacementSpec(word, start, c, Direction.DOWN))
            r += 1
    return specs


def _coerce_bounds(size: SizeLike) -> Bounds:
    try:
        if isinstance(size, Bounds):
            bounds = size
        elif isinstance(size, Mapping):
            bounds = Bounds(rows=int(size["rows"]), cols=int(size["cols"]))
        else:
            rows, cols = size
            bounds = Bounds(rows=int(rows), cols=int(cols))
    except (KeyError, TypeError, ValueError) as exc:
        raise DataError(f"Invalid puzzle size: {size!r}") from exc
    if bounds.rows <= 0 or bounds.cols <= 0:
        raise DataError(f"Puzzle size must be positive, got {bounds.rows}x{bounds.cols}")
    return bounds


def _coerce_spec(item: PlacementLike) -> PlacementSpec:
    if isinstance(item, PlacementSpec):
        return item
    try:
        return PlacementSpec(
            word=str(item.get("word") or item.get("answer") or ""),
            row=int(item["row"]),
            col=int(item["col"]),
            direction=Direction(str(item["direction"]).lower()),
            clue=str(item.get("clue") or ""),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise DataError(f"Invalid placement: {item!r}") from exc


def _payload_placements(entries: Any, direction: Direction) -> List[PlacementSpec]:
    if not entries:
        return []
    if isinstance(entries, Mapping):
        try:
            ordered = [entries[key] for key in sorted(entries, key=int)]
        except (TypeError, ValueError) as exc:
            raise DataError(f"Clue numbers must be integers: {list(entries)!r}") from exc
    else:
        ordered = list(entries)
    specs = []
    for entry in ordered:
        if not isinstance(entry, Mapping):
            raise DataError(f"Invalid {direction.value} entry: {entry!r}")
        specs.append(_coerce_spec({**entry, "direction": direction.value}))
    return specs


def _grid_rows(raw_grid: Any) -> List[List[str]]:
    if not isinstance(raw_grid, (list, tuple)):
        raise DataError(f"Puzzle grid must be a list of rows, got {type(raw_grid).__name__}")
    rows: List[List[str]] = []
    for row in raw_grid:
        if isinstance(row, str):
            rows.append(list(row))
        elif isinstance(row, (list, tuple)):
            rows.append(["" if cell is None else str(cell) for cell in row])
        else:
            raise DataError(f"Invalid grid row: {row!r}")
    return rows


def _grid_letter(value: str) -> str:
    letter = clean_answer(value)
    return letter if len(letter) == 1 else BLOCK
