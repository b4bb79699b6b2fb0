"""Deterministic benchmark harness for the puzzle generator and solver."""

from __future__ import annotations

import argparse
import gc
import math
import platform
import random
import statistics
import sys
import time
from typing import Dict, List, Optional, Sequence

from net_engine import NB_SHAPES, Board, count_edges, is_won
from net_generator import generate, shape_histogram
from net_solver import search


def _generate_puzzles(
    *,
    puzzles: int,
    rows: int,
    cols: int,
    wrapping: bool,
    nb_empty: int,
    nb_extra: int,
    seed: int,
) -> List[Board]:
    rng = random.Random(seed)
    return [generate(rows, cols, wrapping, nb_empty, nb_extra, rng) for _ in range(puzzles)]


def _percentile(values: Sequence[float], percentile: float) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    if len(ordered) == 1:
        return float(ordered[0])
    rank = (len(ordered) - 1) * percentile
    lo = math.floor(rank)
    hi = math.ceil(rank)
    if lo == hi:
        return float(ordered[lo])
    frac = rank - lo
    return float(ordered[lo] * (1.0 - frac) + ordered[hi] * frac)


def _run_single_solve(board: Board, count: bool) -> Dict[str, object]:
    result = search(board, limit=None if count else 1)
    edges: Optional[int] = None
    if result.solved and result.orientations is not None:
        solved = Board(board.rows, board.cols, board.wrapping, board.shapes, result.orientations)
        edges = count_edges(solved) if is_won(solved) else None
    return {
        "solved": result.solved,
        "solutions": result.solutions,
        "nodes": result.nodes,
        "backtracks": result.backtracks,
        "elapsed_ms": result.elapsed_ms,
        "edges": edges,
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Deterministic generator/solver benchmark")
    parser.add_argument("--puzzles", type=int, default=20, help="number of puzzles (default: 20)")
    parser.add_argument("--rows", type=int, default=8, help="rows per puzzle (default: 8)")
    parser.add_argument("--cols", type=int, default=8, help="columns per puzzle (default: 8)")
    parser.add_argument("--wrapping", action="store_true", help="generate wrapping puzzles")
    parser.add_argument("--empty", type=int, default=0, help="empty squares per puzzle")
    parser.add_argument("--extra", type=int, default=0, help="extra connections per puzzle")
    parser.add_argument("--seed", type=int, default=12345, help="random seed for puzzle generation")
    parser.add_argument("--count", action="store_true", help="count every solution instead of stopping at one")
    parser.add_argument("--repeat", type=int, default=1, help="benchmark repeats for p50/p95 summaries")
    parser.add_argument("--no-gc", action="store_true", help="disable GC during benchmark loop")
    args = parser.parse_args(argv)

    if args.puzzles <= 0:
        print("--puzzles must be > 0")
        return 2
    if args.rows <= 0 or args.cols <= 0:
        print("--rows and --cols must be > 0")
        return 2
    if args.empty < 0 or args.extra < 0:
        print("--empty and --extra must be >= 0")
        return 2
    if args.repeat <= 0:
        print("--repeat must be > 0")
        return 2

    puzzles = _generate_puzzles(
        puzzles=args.puzzles,
        rows=args.rows,
        cols=args.cols,
        wrapping=args.wrapping,
        nb_empty=args.empty,
        nb_extra=args.extra,
        seed=args.seed,
    )
    histogram = [0] * NB_SHAPES
    for board in puzzles:
        for shape, n in enumerate(shape_histogram(board)):
            histogram[shape] += n

    print(
        f"python={sys.version.split()[0]} platform={platform.platform()} "
        f"size={args.rows}x{args.cols} wrapping={args.wrapping} repeats={args.repeat} count={args.count}"
    )
    print(f"shapes empty/endpoint/segment/corner/tee/cross = {'/'.join(str(n) for n in histogram)}")
    print(f"rep idx solved solutions nodes backtracks solver_ms wall_ms edges (puzzles={len(puzzles)} seed={args.seed})")

    gc_was_enabled = gc.isenabled()
    repeat_summaries: List[Dict[str, float]] = []
    if args.no_gc and gc_was_enabled:
        gc.disable()
    try:
        for rep in range(1, args.repeat + 1):
            total_nodes = 0
            total_solver_ms = 0
            solved_count = 0
            wall_start_ns = time.perf_counter_ns()

            for idx, board in enumerate(puzzles, start=1):
                start_ns = time.perf_counter_ns()
                result = _run_single_solve(board, args.count)
                wall_ms = (time.perf_counter_ns() - start_ns) // 1_000_000
                total_nodes += int(result["nodes"])
                total_solver_ms += int(result["elapsed_ms"])
                if result["solved"]:
                    solved_count += 1
                print(
                    f"{rep:>3d} {idx:03d} {str(result['solved']):>6} {int(result['solutions']):>9d} "
                    f"{int(result['nodes']):>5d} {int(result['backtracks']):>10d} "
                    f"{int(result['elapsed_ms']):>9d} {int(wall_ms):>7d} {result['edges']}"
                )

            total_wall_ms = max(1, (time.perf_counter_ns() - wall_start_ns) // 1_000_000)
            avg_solver_ms = total_solver_ms / len(puzzles)
            avg_nodes = total_nodes / len(puzzles)
            repeat_summaries.append(
                {
                    "solved": float(solved_count),
                    "total_wall_ms": float(total_wall_ms),
                    "avg_solver_ms": float(avg_solver_ms),
                    "avg_nodes": float(avg_nodes),
                }
            )
            print(
                "summary "
                f"rep={rep} puzzles={len(puzzles)} solved={solved_count} total_nodes={total_nodes} "
                f"total_solver_ms={total_solver_ms} total_wall_ms={total_wall_ms} "
                f"avg_solver_ms={avg_solver_ms:.1f} avg_nodes={avg_nodes:.1f}"
            )
    finally:
        if args.no_gc and gc_was_enabled:
            gc.enable()

    if args.repeat > 1:
        for name in ("avg_solver_ms", "avg_nodes", "total_wall_ms"):
            values = [summary[name] for summary in repeat_summaries]
            print(
                f"dist {name} min={min(values):.2f} p50={_percentile(values, 0.50):.2f} "
                f"p95={_percentile(values, 0.95):.2f} max={max(values):.2f} mean={statistics.fmean(values):.2f}"
            )

    return 0 if all(summary["solved"] == len(puzzles) for summary in repeat_summaries) else 1


if __name__ == "__main__":
    raise SystemExit(main())
