"""Game session: a board, its move history and where it started from."""

from __future__ import annotations

import random
from typing import Optional

from net_engine import ROTATE_CLOCKWISE, Board, History, Move, is_won
from net_generator import default_board, generate
from net_solver import solve
from net_telemetry import TelemetrySink


class Game:
    def __init__(self, board: Board) -> None:
        self.board = board
        self.history = History()
        self._initial = board.orientations

    @classmethod
    def default(cls) -> "Game":
        return cls(default_board())

    @classmethod
    def random(
        cls,
        rows: int,
        cols: int,
        wrapping: bool = False,
        nb_empty: int = 0,
        nb_extra: int = 0,
        rng: Optional[random.Random] = None,
    ) -> "Game":
        return cls(generate(rows, cols, wrapping, nb_empty, nb_extra, rng))

    @property
    def rows(self) -> int:
        return self.board.rows

    @property
    def cols(self) -> int:
        return self.board.cols

    @property
    def wrapping(self) -> bool:
        return self.board.wrapping

    def play_move(self, row: int, col: int, delta: int = ROTATE_CLOCKWISE) -> None:
        self.board.index(row, col)
        self.history.apply(self.board, Move(row, col, delta))

    def undo(self) -> bool:
        return self.history.undo(self.board)

    def redo(self) -> bool:
        return self.history.redo(self.board)

    def won(self) -> bool:
        return is_won(self.board)

    def restart(self) -> None:
        """Back to the orientations the puzzle was handed out with; history is dropped."""
        self.board.restore_orientations(self._initial)
        self.history.clear()

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        self.board.shuffle_orientation(rng)
        self._initial = self.board.orientations
        self.history.clear()

    def solve(self, telemetry_sink: Optional[TelemetrySink] = None) -> bool:
        before = self.board.orientations
        solved = solve(self.board, telemetry_sink=telemetry_sink)
        if self.board.orientations != before:
            # Recorded deltas no longer describe how the board got here.
            self.history.clear()
        return solved
