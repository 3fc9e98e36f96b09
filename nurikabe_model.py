import random
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

# ----------------------------
# Domain model
# ----------------------------

# Cell states. Numbered cells hold their (positive) clue value,
# which is why the other states are negative.
UNKNOWN = -3
WHITE = -2
BLACK = -1

DEFAULT_SEED = 1729

Coord = Tuple[int, int]  # (x, y), upper-left origin
RuleName = str


class PuzzleError(ValueError):
    """Raised when a puzzle description cannot be turned into a grid."""


class InvariantError(RuntimeError):
    """Raised when the solver reaches a state its own logic rules out."""


class SitRep(Enum):
    KEEP_GOING = "keep going"
    CONTRADICTION_FOUND = "contradiction found"
    SOLUTION_FOUND = "solution found"
    CANNOT_PROCEED = "cannot proceed"


@dataclass
class StepResult:
    changed_cells: List[Coord]
    message: str
    rule: RuleName = ""
    sitrep: SitRep = SitRep.KEEP_GOING
    failed_guesses: int = 0
    failed_coords: List[Coord] = field(default_factory=list)


@dataclass(frozen=True)
class StepRecord:
    message: str
    rule: RuleName
    cells: Tuple[Tuple[int, ...], ...]  # cells[y][x]
    changed: FrozenSet[Coord]
    failed_guesses: int
    failed_coords: FrozenSet[Coord]
    timestamp: float

    @property
    def width(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    @property
    def height(self) -> int:
        return len(self.cells)


@dataclass
class Region:
    # Each region is black, white, or numbered. A white region that touches
    # a numbered region is absorbed by it, so the whole island is numbered.
    state: int
    coords: Set[Coord]
    unknowns: Set[Coord]  # frontier: unknown cells adjacent to any member

    def __post_init__(self) -> None:
        if self.state == UNKNOWN:
            raise InvariantError("Region state must be known.")

    @property
    def white(self) -> bool:
        return self.state == WHITE

    @property
    def black(self) -> bool:
        return self.state == BLACK

    @property
    def numbered(self) -> bool:
        return self.state > 0

    @property
    def number(self) -> int:
        if not self.numbered:
            raise InvariantError("This region is not numbered.")
        return self.state

    @property
    def size(self) -> int:
        return len(self.coords)

    @property
    def complete(self) -> bool:
        return self.numbered and self.size == self.state

    def copy(self) -> "Region":
        return Region(self.state, set(self.coords), set(self.unknowns))


# ----------------------------
# Parsing
# ----------------------------

_CLUE_STRING_TOKEN = re.compile(r"(\d+)|( )|(\n)|[^\d \n]")


def tokenize_clue_string(s: str) -> List[int]:
    """Compact format: a run of digits is one clue, a space is one blank cell.

    Newlines are ignored, so the row width must be supplied separately.
    """
    tokens: List[int] = []
    for m in _CLUE_STRING_TOKEN.finditer(s):
        if m.group(1) is not None:
            tokens.append(int(m.group(1)))
        elif m.group(2) is not None:
            tokens.append(0)
        elif m.group(3) is not None:
            continue
        else:
            raise PuzzleError("Clue string must contain only digits, spaces, and newlines.")
    return tokens


def _split_rows(text: str) -> List[List[str]]:
    rows: List[List[str]] = []
    for ln in text.splitlines():
        if ln.strip() == "":
            continue
        if " " in ln.strip():
            rows.append(ln.split())
        else:
            rows.append(list(ln.strip()))
    if not rows:
        raise PuzzleError("Empty input.")
    cols = len(rows[0])
    if any(len(r) != cols for r in rows):
        raise PuzzleError("Ragged rows: all rows must have the same number of columns.")
    return rows


def parse_puzzle_text(text: str) -> Tuple[int, int, List[int]]:
    """Parse a puzzle file into (width, height, row-major clues).

    Rows with spaces are tokenized ('.' or '0' for blanks, integers for clues),
    rows without spaces are read one character per cell.
    """
    rows = _split_rows(text)
    clues: List[int] = []
    for row in rows:
        for tok in row:
            if tok in (".", "0"):
                clues.append(0)
                continue
            try:
                v = int(tok)
            except ValueError:
                raise PuzzleError(f"Bad token: {tok}") from None
            if v < 0:
                raise PuzzleError("Negative clue not allowed.")
            clues.append(v)
    return len(rows[0]), len(rows), clues


def parse_state_text(text: str) -> Tuple[int, int, List[int]]:
    """Parse a rendered grid state: '?' unknown, '.' white, '#' black, ints numbered."""
    rows = _split_rows(text)
    states: List[int] = []
    symbols = {"?": UNKNOWN, ".": WHITE, "#": BLACK}
    for row in rows:
        for tok in row:
            if tok in symbols:
                states.append(symbols[tok])
            elif tok.isdigit() and int(tok) > 0:
                states.append(int(tok))
            else:
                raise PuzzleError(f"Bad state token: {tok}")
    return len(rows[0]), len(rows), states


# ----------------------------
# Grid
# ----------------------------

class NurikabeModel:
    def __init__(self, width: int, height: int, clues: Sequence[Optional[int]],
                 seed: int = DEFAULT_SEED) -> None:
        if width < 1:
            raise PuzzleError("Width must be at least 1.")
        if height < 1:
            raise PuzzleError("Height must be at least 1.")
        if len(clues) != width * height:
            raise PuzzleError(
                f"Expected width * height = {width * height} cells, got {len(clues)}.")

        self.width = width
        self.height = height
        # The number of black cells in the solution. Knowing it lets a simple
        # size test tell partial black regions from complete ones.
        self.total_black = width * height

        # cells[y][x] is the state; owner[y][x] the id of the owning region (None if unknown).
        self.cells: List[List[int]] = [[UNKNOWN] * width for _ in range(height)]
        self.owner: List[List[Optional[int]]] = [[None] * width for _ in range(height)]
        self.regions: Dict[int, Region] = {}
        self._next_region_id = 0

        # Guesses are made in a deterministic but pseudorandomized order.
        self.rng = random.Random(seed)

        for y in range(height):
            for x in range(width):
                n = clues[x + y * width] or 0
                if n < 0:
                    raise PuzzleError("Negative clue not allowed.")
                if n == 0:
                    continue
                # Scanning row-major, a number above or to the left was already placed.
                if (self.valid(x, y - 1) and self.cells[y - 1][x] > 0) or \
                        (self.valid(x - 1, y) and self.cells[y][x - 1] > 0):
                    raise PuzzleError(f"Clue at ({x},{y}) is orthogonally adjacent to another clue.")
                self.cells[y][x] = n
                self.add_region(x, y)
                self.total_black -= n

    @classmethod
    def from_text(cls, text: str, seed: int = DEFAULT_SEED) -> "NurikabeModel":
        width, height, clues = parse_puzzle_text(text)
        return cls(width, height, clues, seed=seed)

    @classmethod
    def from_clue_string(cls, width: int, height: int, s: str,
                         seed: int = DEFAULT_SEED) -> "NurikabeModel":
        return cls(width, height, tokenize_clue_string(s), seed=seed)

    @classmethod
    def from_state_text(cls, text: str, seed: int = DEFAULT_SEED) -> "NurikabeModel":
        width, height, states = parse_state_text(text)
        model = cls(width, height, [max(s, 0) for s in states], seed=seed)
        model.restore(states)
        return model

    def restore(self, states: Sequence[int]) -> None:
        """Replay known white/black cells (row-major) on top of the clues."""
        if len(states) != self.width * self.height:
            raise PuzzleError("State does not match the grid dimensions.")
        for y in range(self.height):
            for x in range(self.width):
                s = states[x + y * self.width]
                if s > 0:
                    if self.cells[y][x] != s:
                        raise PuzzleError(f"State disagrees with the clue at ({x},{y}).")
                elif s in (WHITE, BLACK):
                    if self.mark(s, x, y) is SitRep.CONTRADICTION_FOUND:
                        raise PuzzleError(f"State is contradictory at ({x},{y}).")
                elif s != UNKNOWN:
                    raise PuzzleError(f"Bad cell state {s} at ({x},{y}).")

    def copy(self) -> "NurikabeModel":
        """Fully independent copy: cells, regions and generator state."""
        other = NurikabeModel.__new__(NurikabeModel)
        other.width = self.width
        other.height = self.height
        other.total_black = self.total_black
        other.cells = [row[:] for row in self.cells]
        other.owner = [row[:] for row in self.owner]
        other.regions = {rid: r.copy() for rid, r in self.regions.items()}
        other._next_region_id = self._next_region_id
        other.rng = random.Random()
        other.rng.setstate(self.rng.getstate())
        return other

    # ----------------------------
    # Accessors
    # ----------------------------

    @property
    def area(self) -> int:
        return self.width * self.height

    def valid(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> int:
        return self.cells[y][x]

    def region_id(self, x: int, y: int) -> Optional[int]:
        return self.owner[y][x]

    def region_at(self, x: int, y: int) -> Optional[Region]:
        rid = self.owner[y][x]
        return None if rid is None else self.regions[rid]

    def neighbors(self, x: int, y: int) -> List[Coord]:
        out = []
        if x > 0:
            out.append((x - 1, y))
        if x + 1 < self.width:
            out.append((x + 1, y))
        if y > 0:
            out.append((x, y - 1))
        if y + 1 < self.height:
            out.append((x, y + 1))
        return out

    def unknown_neighbors(self, x: int, y: int) -> Set[Coord]:
        return {(a, b) for a, b in self.neighbors(x, y) if self.cells[b][a] == UNKNOWN}

    def known(self) -> int:
        return sum(1 for row in self.cells for s in row if s != UNKNOWN)

    def unknown_cells(self) -> List[Coord]:
        return [(x, y) for x in range(self.width) for y in range(self.height)
                if self.cells[y][x] == UNKNOWN]

    def black_count(self) -> int:
        return sum(1 for row in self.cells for s in row if s == BLACK)

    def snapshot(self) -> Tuple[Tuple[int, ...], ...]:
        return tuple(tuple(row) for row in self.cells)

    # ----------------------------
    # Marking and fusion
    # ----------------------------

    def add_region(self, x: int, y: int) -> int:
        rid = self._next_region_id
        self._next_region_id += 1
        self.regions[rid] = Region(self.cells[y][x], {(x, y)}, self.unknown_neighbors(x, y))
        self.owner[y][x] = rid
        return rid

    def mark(self, color: int, x: int, y: int) -> SitRep:
        if color not in (WHITE, BLACK):
            raise InvariantError("Cells can only be marked white or black.")

        # Marking an already known cell means the current line of reasoning is wrong.
        if self.cells[y][x] != UNKNOWN:
            return SitRep.CONTRADICTION_FOUND

        self.cells[y][x] = color

        # Only regions touching (x, y) can have it on their frontier.
        for a, b in self.neighbors(x, y):
            rid = self.owner[b][a]
            if rid is not None:
                self.regions[rid].unknowns.discard((x, y))

        # Give the cell its own region, then fuse it with each compatible neighbor.
        # The cell's region may change after every fusion, so look it up each time.
        self.add_region(x, y)
        for a, b in self.neighbors(x, y):
            if self.fuse_regions(self.owner[y][x], self.owner[b][a]) is SitRep.CONTRADICTION_FOUND:
                return SitRep.CONTRADICTION_FOUND
        return SitRep.KEEP_GOING

    def fuse_regions(self, id1: Optional[int], id2: Optional[int]) -> SitRep:
        if id1 is None or id2 is None or id1 == id2:
            return SitRep.KEEP_GOING

        r1 = self.regions[id1]
        r2 = self.regions[id2]

        if r1.numbered and r2.numbered:
            return SitRep.CONTRADICTION_FOUND

        if r1.black != r2.black:
            return SitRep.KEEP_GOING

        # Absorb the smaller region, unless that would swallow a numbered one:
        # a numbered region always survives and claims the white cells.
        if r2.size > r1.size:
            id1, id2, r1, r2 = id2, id1, r2, r1
        if r2.numbered:
            id1, id2, r1, r2 = id2, id1, r2, r1

        r1.coords |= r2.coords
        r1.unknowns |= r2.unknowns
        for x, y in r2.coords:
            self.owner[y][x] = id1
        del self.regions[id2]
        return SitRep.KEEP_GOING
