"""Handle-based boundary operations for front-ends.

Each function takes the ``Game`` returned by ``new_default``/``new_random``.
Coordinates outside the grid raise ``OutOfBoundsError`` and change nothing.
"""

from __future__ import annotations

import random
from typing import Optional

from net_engine import ROTATE_CLOCKWISE
from net_game import Game

GameHandle = Game


def new_default() -> GameHandle:
    return Game.default()


def new_random(
    rows: int,
    cols: int,
    wrapping: bool,
    nb_empty: int,
    nb_extra: int,
    rng: Optional[random.Random] = None,
) -> GameHandle:
    return Game.random(rows, cols, bool(wrapping), nb_empty, nb_extra, rng)


def nb_rows(handle: GameHandle) -> int:
    return handle.rows


def nb_cols(handle: GameHandle) -> int:
    return handle.cols


def is_wrapping(handle: GameHandle) -> bool:
    return handle.wrapping


def get_piece_shape(handle: GameHandle, row: int, col: int) -> int:
    return handle.board.get_shape(row, col)


def get_piece_orientation(handle: GameHandle, row: int, col: int) -> int:
    return handle.board.get_orientation(row, col)


def play_move(handle: GameHandle, row: int, col: int, rotation_delta: int = ROTATE_CLOCKWISE) -> None:
    handle.play_move(row, col, rotation_delta)


def won(handle: GameHandle) -> bool:
    return handle.won()


def solve(handle: GameHandle) -> bool:
    return handle.solve()


def undo(handle: GameHandle) -> None:
    handle.undo()


def redo(handle: GameHandle) -> None:
    handle.redo()


def restart(handle: GameHandle) -> None:
    handle.restart()
