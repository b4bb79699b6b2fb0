"""Core rules engine for the Net rotating-pipe puzzle."""

from __future__ import annotations

from dataclasses import dataclass
import random
from typing import Iterator, List, Optional, Sequence, Tuple

EMPTY = 0
ENDPOINT = 1
SEGMENT = 2
CORNER = 3
TEE = 4
CROSS = 5
NB_SHAPES = 6

NORTH = 0
EAST = 1
SOUTH = 2
WEST = 3
NB_DIRS = 4

DEFAULT_SIZE = 5
ROTATE_CLOCKWISE = 1
ROTATE_COUNTER_CLOCKWISE = -1

NOEDGE = 0
MATCH = 1
MISMATCH = 2

DIR_OFFSETS: Tuple[Tuple[int, int], ...] = (
    (-1, 0),
    (0, 1),
    (1, 0),
    (0, -1),
)

# Connector masks at orientation 0, bit (1 << direction).
CANONICAL: Tuple[int, ...] = (
    0b0000,
    0b0001,
    0b0101,
    0b0011,
    0b1011,
    0b1111,
)

GLYPHS: Tuple[Tuple[str, ...], ...] = (
    (" ", " ", " ", " "),
    ("^", ">", "v", "<"),
    ("|", "-", "|", "-"),
    ("└", "┌", "┐", "┘"),
    ("┴", "├", "┬", "┤"),
    ("+", "+", "+", "+"),
)


def opposite(direction: int) -> int:
    return (direction + 2) % NB_DIRS


def rotate_mask(mask: int, quarter_turns: int) -> int:
    k = quarter_turns % NB_DIRS
    return ((mask << k) | (mask >> (NB_DIRS - k))) & 0b1111


CONNECTORS: Tuple[Tuple[int, ...], ...] = tuple(
    tuple(rotate_mask(mask, o) for o in range(NB_DIRS)) for mask in CANONICAL
)


def _build_decode() -> dict[int, Tuple[int, int]]:
    decode: dict[int, Tuple[int, int]] = {}
    for shape in range(NB_SHAPES):
        for orientation in range(NB_DIRS):
            decode.setdefault(CONNECTORS[shape][orientation], (shape, orientation))
    return decode


# Every 4-bit mask maps to exactly one shape; symmetric shapes keep the smallest orientation.
DECODE = _build_decode()


def connectors(shape: int, orientation: int) -> int:
    return CONNECTORS[shape][orientation]


def decode_connectors(mask: int) -> Tuple[int, int]:
    """Return the (shape, orientation) whose open connectors are exactly ``mask``."""
    if mask < 0 or mask > 0b1111:
        raise ValueError("connector mask must be 0..15")
    return DECODE[mask]


def mask_directions(mask: int) -> List[int]:
    return [d for d in range(NB_DIRS) if mask & (1 << d)]


class OutOfBoundsError(IndexError):
    """Raised when a (row, col) coordinate lies outside the grid."""

    def __init__(self, row: int, col: int, rows: int, cols: int) -> None:
        super().__init__(f"square ({row},{col}) is outside the {rows}x{cols} grid")
        self.row = row
        self.col = col


class Board:
    def __init__(
        self,
        rows: int,
        cols: int,
        wrapping: bool = False,
        shapes: Optional[Sequence[int]] = None,
        orientations: Optional[Sequence[int]] = None,
    ) -> None:
        if rows < 1 or cols < 1:
            raise ValueError("board needs at least one row and one column")
        self.rows = rows
        self.cols = cols
        self.wrapping = bool(wrapping)
        size = rows * cols
        self._shapes: List[int] = [EMPTY] * size
        self._orientations: List[int] = [NORTH] * size

        if shapes is not None:
            if len(shapes) != size:
                raise ValueError(f"expected {size} shapes, got {len(shapes)}")
            for index, shape in enumerate(shapes):
                self._shapes[index] = _check_shape(shape)
        if orientations is not None:
            if len(orientations) != size:
                raise ValueError(f"expected {size} orientations, got {len(orientations)}")
            for index, orientation in enumerate(orientations):
                self._orientations[index] = _check_orientation(orientation)

    def __repr__(self) -> str:
        return f"Board(rows={self.rows}, cols={self.cols}, wrapping={self.wrapping})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # type: ignore[assignment]

    @property
    def shapes(self) -> Tuple[int, ...]:
        return tuple(self._shapes)

    @property
    def orientations(self) -> Tuple[int, ...]:
        return tuple(self._orientations)

    def index(self, row: int, col: int) -> int:
        if row < 0 or row >= self.rows or col < 0 or col >= self.cols:
            raise OutOfBoundsError(row, col, self.rows, self.cols)
        return row * self.cols + col

    def cells(self) -> Iterator[Tuple[int, int]]:
        for row in range(self.rows):
            for col in range(self.cols):
                yield row, col

    def get_shape(self, row: int, col: int) -> int:
        return self._shapes[self.index(row, col)]

    def get_orientation(self, row: int, col: int) -> int:
        return self._orientations[self.index(row, col)]

    def set_shape(self, row: int, col: int, shape: int) -> None:
        self._shapes[self.index(row, col)] = _check_shape(shape)

    def set_orientation(self, row: int, col: int, orientation: int) -> None:
        self._orientations[self.index(row, col)] = _check_orientation(orientation)

    def rotate(self, row: int, col: int, delta: int) -> None:
        i = self.index(row, col)
        if self._shapes[i] == EMPTY:
            return
        self._orientations[i] = (self._orientations[i] + delta) % NB_DIRS

    def connectors_at(self, row: int, col: int) -> int:
        i = self.index(row, col)
        return CONNECTORS[self._shapes[i]][self._orientations[i]]

    def has_half_edge(self, row: int, col: int, direction: int) -> bool:
        _check_direction(direction)
        return bool(self.connectors_at(row, col) & (1 << direction))

    def neighbor(self, row: int, col: int, direction: int) -> Optional[Tuple[int, int]]:
        self.index(row, col)
        _check_direction(direction)
        dr, dc = DIR_OFFSETS[direction]
        r = row + dr
        c = col + dc
        if self.wrapping:
            return r % self.rows, c % self.cols
        if r < 0 or r >= self.rows or c < 0 or c >= self.cols:
            return None
        return r, c

    def nb_pieces(self) -> int:
        return sum(1 for shape in self._shapes if shape != EMPTY)

    def copy(self) -> "Board":
        return Board(self.rows, self.cols, self.wrapping, self._shapes, self._orientations)

    def equals(self, other: "Board", ignore_orientation: bool = False) -> bool:
        if (self.rows, self.cols, self.wrapping) != (other.rows, other.cols, other.wrapping):
            return False
        if self._shapes != other._shapes:
            return False
        return ignore_orientation or self._orientations == other._orientations

    def restore_orientations(self, orientations: Sequence[int]) -> None:
        if len(orientations) != len(self._orientations):
            raise ValueError("orientation snapshot does not match the board size")
        self._orientations = [_check_orientation(o) for o in orientations]

    def reset_orientation(self) -> None:
        self._orientations = [NORTH] * (self.rows * self.cols)

    def shuffle_orientation(self, rng: Optional[random.Random] = None) -> None:
        rng = rng or random.Random()
        for i, shape in enumerate(self._shapes):
            self._orientations[i] = NORTH if shape == EMPTY else rng.randrange(NB_DIRS)


def _check_shape(shape: int) -> int:
    if not isinstance(shape, int) or shape < EMPTY or shape >= NB_SHAPES:
        raise ValueError(f"invalid shape code: {shape!r}")
    return shape


def _check_orientation(orientation: int) -> int:
    if not isinstance(orientation, int) or orientation < NORTH or orientation >= NB_DIRS:
        raise ValueError(f"invalid orientation: {orientation!r}")
    return orientation


def _check_direction(direction: int) -> int:
    if not isinstance(direction, int) or direction < NORTH or direction >= NB_DIRS:
        raise ValueError(f"invalid direction: {direction!r}")
    return direction


def check_edge(board: Board, row: int, col: int, direction: int) -> int:
    here = board.has_half_edge(row, col, direction)
    nxt = board.neighbor(row, col, direction)
    there = nxt is not None and board.has_half_edge(nxt[0], nxt[1], opposite(direction))
    if here and there:
        return MATCH
    if here or there:
        return MISMATCH
    return NOEDGE


def is_well_paired(board: Board) -> bool:
    for row, col in board.cells():
        mask = board.connectors_at(row, col)
        for direction in mask_directions(mask):
            if check_edge(board, row, col, direction) != MATCH:
                return False
    return True


def is_connected(board: Board) -> bool:
    start: Optional[Tuple[int, int]] = None
    for row, col in board.cells():
        if board.get_shape(row, col) != EMPTY:
            start = (row, col)
            break
    if start is None:
        return True

    visited = {start}
    stack = [start]
    while stack:
        row, col = stack.pop()
        for direction in mask_directions(board.connectors_at(row, col)):
            if check_edge(board, row, col, direction) != MATCH:
                continue
            nxt = board.neighbor(row, col, direction)
            if nxt is not None and nxt not in visited:
                visited.add(nxt)
                stack.append(nxt)
    return len(visited) == board.nb_pieces()


def is_won(board: Board) -> bool:
    return is_well_paired(board) and is_connected(board)


def count_edges(board: Board) -> int:
    """Number of matched connector pairs on the board."""
    total = 0
    for row, col in board.cells():
        for direction in mask_directions(board.connectors_at(row, col)):
            if check_edge(board, row, col, direction) == MATCH:
                total += 1
    return total // 2


@dataclass(frozen=True)
class Move:
    row: int
    col: int
    delta: int

    def inverse(self) -> "Move":
        return Move(self.row, self.col, -self.delta)


class History:
    """Linear undo/redo over a single list with a cursor."""

    def __init__(self) -> None:
        self._moves: List[Move] = []
        self._cursor = 0

    def __len__(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._moves)

    def apply(self, board: Board, move: Move) -> None:
        board.rotate(move.row, move.col, move.delta)
        del self._moves[self._cursor:]
        self._moves.append(move)
        self._cursor += 1

    def undo(self, board: Board) -> bool:
        if not self.can_undo:
            return False
        self._cursor -= 1
        move = self._moves[self._cursor]
        board.rotate(move.row, move.col, -move.delta)
        return True

    def redo(self, board: Board) -> bool:
        if not self.can_redo:
            return False
        move = self._moves[self._cursor]
        board.rotate(move.row, move.col, move.delta)
        self._cursor += 1
        return True

    def clear(self) -> None:
        self._moves.clear()
        self._cursor = 0


def pretty_print(board: Board) -> str:
    """
    Text rendering of the grid, one glyph per square.

         0 1 2 3 4
         ----------
      0 |┘ ^ < └ v |
      1 |┬ ┤ ┴ ├ ├ |
         ----------
    """
    width = len(str(max(board.rows, board.cols) - 1))
    rule = " " * (width + 3) + "-" * (board.cols * (width + 1))
    header = " " * (width + 3) + " ".join(f"{c:<{width}d}" for c in range(board.cols))
    lines = [header, rule]
    for row in range(board.rows):
        glyphs = " ".join(
            f"{GLYPHS[board.get_shape(row, col)][board.get_orientation(row, col)]:<{width}}"
            for col in range(board.cols)
        )
        lines.append(f" {row:>{width}d} |{glyphs} |")
    lines.append(rule)
    if board.wrapping:
        lines.append("(wrapping)")
    return "\n".join(lines)
