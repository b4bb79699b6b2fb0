"""Terminal front-end for the Net puzzle."""

from __future__ import annotations

import argparse
import random
from typing import List, Optional, Tuple

from net_engine import (
    DEFAULT_SIZE,
    ROTATE_CLOCKWISE,
    ROTATE_COUNTER_CLOCKWISE,
    OutOfBoundsError,
    pretty_print,
)
from net_game import Game
from net_solver import count_solutions
from net_telemetry import ListTelemetrySink


def print_help() -> None:
    print("Controls: c <i> <j> = rotate clockwise, a <i> <j> = rotate anti-clockwise,")
    print("          z = undo, y = redo, r = restart, n = new scramble, s = solve,")
    print("          h = help, q = quit.")


def read_command(prompt: str) -> str:
    while True:
        try:
            raw = input(prompt).strip().lower()
        except EOFError:
            print()
            return "q"
        if raw == "":
            print("Please enter a command (h for help).")
            continue
        return raw


def parse_square(parts: List[str]) -> Optional[Tuple[int, int]]:
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


def print_stats(sink: ListTelemetrySink) -> None:
    end = sink.last("solve_end")
    if end is None:
        return
    data = end.data
    print(
        f"Search: solved={data['solved']} nodes={data['nodes']} "
        f"backtracks={data['backtracks']} elapsed_ms={data['elapsed_ms']} reason={data['reason']}"
    )


def build_game(args: argparse.Namespace) -> Game:
    random_flags = (
        args.rows is not None,
        args.cols is not None,
        args.wrapping,
        args.empty > 0,
        args.extra > 0,
        args.seed is not None,
    )
    if not any(random_flags):
        return Game.default()
    rng = random.Random(args.seed) if args.seed is not None else None
    rows = args.rows if args.rows is not None else DEFAULT_SIZE
    cols = args.cols if args.cols is not None else DEFAULT_SIZE
    return Game.random(rows, cols, args.wrapping, args.empty, args.extra, rng)


def run_solve(game: Game, show_stats: bool) -> int:
    sink = ListTelemetrySink()
    if game.solve(telemetry_sink=sink):
        print("> A solution to the game:")
        print(pretty_print(game.board))
        rc = 0
    else:
        print("> The game has no solution.")
        rc = 1
    if show_stats:
        print_stats(sink)
    return rc


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Net rotating-pipe puzzle")
    parser.add_argument("--rows", type=int, default=None, help="rows of a random puzzle (default: 5)")
    parser.add_argument("--cols", type=int, default=None, help="columns of a random puzzle (default: 5)")
    parser.add_argument("--wrapping", action="store_true", help="random puzzle with wrap-around edges")
    parser.add_argument("--empty", type=int, default=0, help="empty squares in a random puzzle")
    parser.add_argument("--extra", type=int, default=0, help="extra connections (loops) in a random puzzle")
    parser.add_argument("--seed", type=int, default=None, help="seed for reproducible puzzles")
    parser.add_argument("--solve", action="store_true", help="print a solution and exit")
    parser.add_argument("--count", action="store_true", help="print the number of solutions and exit")
    parser.add_argument("--stats", action="store_true", help="report solver statistics")
    args = parser.parse_args(argv)

    if (args.rows is not None and args.rows < 1) or (args.cols is not None and args.cols < 1):
        print("--rows and --cols must be at least 1")
        return 2
    if args.empty < 0 or args.extra < 0:
        print("--empty and --extra must be non-negative")
        return 2

    game = build_game(args)

    if args.count:
        print(pretty_print(game.board))
        print(f"> The game has {count_solutions(game.board)} solutions")
        return 0
    if args.solve:
        print(pretty_print(game.board))
        return run_solve(game, args.stats)

    while not game.won():
        print()
        print(pretty_print(game.board))
        raw = read_command("> ? [h for help]: ")
        parts = raw.split()
        command = parts[0]

        if command in {"q", "quit"}:
            print("> Shame !")
            return 0
        if command in {"h", "help"}:
            print_help()
            continue
        if command == "z":
            if not game.undo():
                print("Nothing to undo.")
            continue
        if command == "y":
            if not game.redo():
                print("Nothing to redo.")
            continue
        if command == "r":
            game.restart()
            continue
        if command == "n":
            game.shuffle()
            continue
        if command == "s":
            run_solve(game, args.stats)
            continue
        if command in {"c", "a"}:
            square = parse_square(parts[1:])
            if square is None:
                print("Usage: c <i> <j> or a <i> <j>.")
                continue
            delta = ROTATE_CLOCKWISE if command == "c" else ROTATE_COUNTER_CLOCKWISE
            try:
                game.play_move(square[0], square[1], delta)
            except OutOfBoundsError as exc:
                print(str(exc))
            continue
        print("Unknown command (h for help).")

    print()
    print(pretty_print(game.board))
    print("> Congratulations !")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
