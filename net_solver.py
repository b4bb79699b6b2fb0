"""Constraint-propagation solver with explicit-stack backtracking."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import math
import time
from typing import Deque, Dict, List, Optional, Tuple

from net_engine import (
    CONNECTORS,
    EMPTY,
    ENDPOINT,
    NB_DIRS,
    Board,
    is_won,
    opposite,
)
from net_telemetry import (
    NodeBatchEvent,
    SolveEndEvent,
    SolveStartEvent,
    TelemetrySink,
    emit_dataclass_event,
)

TELEMETRY_NODE_MASK = 0x3FF

Domains = List[Tuple[int, ...]]


@dataclass(frozen=True)
class SolveResult:
    solved: bool
    solutions: int
    orientations: Optional[Tuple[int, ...]]
    nodes: int
    backtracks: int
    elapsed_ms: int


@dataclass
class _Stats:
    nodes: int = 0
    backtracks: int = 0
    propagations: int = 0
    max_stack: int = 0
    solutions: int = 0


class _Problem:
    """Static view of a board: neighbors, shapes and per-square candidate masks."""

    def __init__(self, board: Board) -> None:
        self.board = board
        self.rows = board.rows
        self.cols = board.cols
        self.size = board.rows * board.cols
        self.shapes: List[int] = list(board.shapes)
        self.current: List[int] = list(board.orientations)
        self.pieces = sum(1 for s in self.shapes if s != EMPTY)

        self.neighbors: List[Tuple[int, ...]] = []
        for row, col in board.cells():
            row_nbrs = []
            for direction in range(NB_DIRS):
                nxt = board.neighbor(row, col, direction)
                row_nbrs.append(-1 if nxt is None else nxt[0] * self.cols + nxt[1])
            self.neighbors.append(tuple(row_nbrs))

        # Smallest orientation first; symmetric shapes keep one orientation per mask.
        self.orientation_of: List[Dict[int, int]] = []
        for shape in self.shapes:
            table: Dict[int, int] = {}
            for orientation in range(NB_DIRS):
                table.setdefault(CONNECTORS[shape][orientation], orientation)
            self.orientation_of.append(table)

    def initial_domains(self) -> Domains:
        domains: Domains = []
        for i, shape in enumerate(self.shapes):
            candidates = []
            for mask in self.orientation_of[i]:
                if self._statically_allowed(i, shape, mask):
                    candidates.append(mask)
            domains.append(tuple(candidates))
        return domains

    def _statically_allowed(self, i: int, shape: int, mask: int) -> bool:
        for direction in range(NB_DIRS):
            bit = mask & (1 << direction)
            j = self.neighbors[i][direction]
            if j == -1 or self.shapes[j] == EMPTY:
                if bit:
                    return False
                continue
            if j == i:
                if bool(bit) != bool(mask & (1 << opposite(direction))):
                    return False
                continue
            # Two endpoints facing each other close off a two-piece island.
            if bit and shape == ENDPOINT and self.shapes[j] == ENDPOINT and self.pieces > 2:
                return False
        return True

    def supported(self, i: int, domains: Domains) -> Tuple[int, ...]:
        allowed: List[Optional[Tuple[bool, ...]]] = []
        for direction in range(NB_DIRS):
            j = self.neighbors[i][direction]
            if j == -1 or j == i:
                allowed.append(None)
                continue
            back = 1 << opposite(direction)
            allowed.append(tuple({bool(m & back) for m in domains[j]}))

        kept = []
        for mask in domains[i]:
            ok = True
            for direction in range(NB_DIRS):
                options = allowed[direction]
                if options is not None and bool(mask & (1 << direction)) not in options:
                    ok = False
                    break
            if ok:
                kept.append(mask)
        return tuple(kept)

    def propagate(self, domains: Domains, queue: Deque[int], stats: _Stats) -> bool:
        queued = set(queue)
        while queue:
            i = queue.popleft()
            queued.discard(i)
            stats.propagations += 1
            narrowed = self.supported(i, domains)
            if narrowed == domains[i]:
                continue
            if not narrowed:
                return False
            domains[i] = narrowed
            for j in self.neighbors[i]:
                if j != -1 and j != i and j not in queued:
                    queued.add(j)
                    queue.append(j)
        return True

    def has_closed_island(self, domains: Domains) -> bool:
        """True when some fully fixed group of pieces is sealed off from the rest."""
        seen = set()
        for start in range(self.size):
            if start in seen or self.shapes[start] == EMPTY or len(domains[start]) != 1:
                continue
            group = 0
            is_open = False
            stack = [start]
            seen.add(start)
            while stack:
                i = stack.pop()
                group += 1
                mask = domains[i][0]
                for direction in range(NB_DIRS):
                    if not mask & (1 << direction):
                        continue
                    j = self.neighbors[i][direction]
                    if j == -1 or j in seen:
                        continue
                    if len(domains[j]) != 1:
                        is_open = True
                        continue
                    seen.add(j)
                    stack.append(j)
            if not is_open and group < self.pieces:
                return True
        return False

    def pick_branch(self, domains: Domains) -> int:
        best = -1
        best_len = NB_DIRS + 1
        for i, domain in enumerate(domains):
            n = len(domain)
            if 1 < n < best_len:
                best = i
                best_len = n
                if n == 2:
                    break
        return best

    def orientations_for(self, domains: Domains) -> Tuple[int, ...]:
        out = []
        for i, domain in enumerate(domains):
            mask = domain[0]
            shape = self.shapes[i]
            if CONNECTORS[shape][self.current[i]] == mask:
                out.append(self.current[i])
            else:
                out.append(self.orientation_of[i][mask])
        return tuple(out)

    def wins(self, orientations: Tuple[int, ...]) -> bool:
        candidate = Board(self.rows, self.cols, self.board.wrapping, self.shapes, orientations)
        return is_won(candidate)


def _emit_batch(sink: Optional[TelemetrySink], stats: _Stats, start: float) -> None:
    emit_dataclass_event(
        sink,
        "node_batch",
        NodeBatchEvent(
            nodes_total=stats.nodes,
            backtracks=stats.backtracks,
            propagations=stats.propagations,
            max_stack=stats.max_stack,
            solutions=stats.solutions,
            elapsed_ms=int((time.perf_counter() - start) * 1000),
        ),
    )


def search(
    board: Board,
    limit: Optional[int] = 1,
    telemetry_sink: Optional[TelemetrySink] = None,
) -> SolveResult:
    """
    Look for winning orientation assignments without touching ``board``.

    Stops after ``limit`` solutions (``None`` explores the whole space). The
    returned orientations are those of the first solution found.
    """
    start = time.perf_counter()
    problem = _Problem(board)
    stats = _Stats()
    domains = problem.initial_domains()

    if telemetry_sink is not None:
        free = sum(1 for d in domains if len(d) > 1)
        space = sum(math.log2(len(d)) for d in domains if d)
        emit_dataclass_event(
            telemetry_sink,
            "solve_start",
            SolveStartEvent(
                rows=board.rows,
                cols=board.cols,
                wrapping=board.wrapping,
                pieces=problem.pieces,
                free_cells=free,
                search_space_log2=round(space, 3),
            ),
        )

    def _finish(first: Optional[Tuple[int, ...]], reason: str) -> SolveResult:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        result = SolveResult(
            solved=first is not None,
            solutions=stats.solutions,
            orientations=first,
            nodes=stats.nodes,
            backtracks=stats.backtracks,
            elapsed_ms=elapsed_ms,
        )
        if telemetry_sink is not None:
            _emit_batch(telemetry_sink, stats, start)
            emit_dataclass_event(
                telemetry_sink,
                "solve_end",
                SolveEndEvent(
                    solved=result.solved,
                    solutions=result.solutions,
                    nodes=result.nodes,
                    backtracks=result.backtracks,
                    elapsed_ms=result.elapsed_ms,
                    reason=reason,
                ),
            )
        return result

    if limit == 1 and is_won(board):
        stats.solutions = 1
        return _finish(board.orientations, "already_won")

    if any(not d for d in domains) or not problem.propagate(domains, deque(range(problem.size)), stats):
        return _finish(None, "exhausted")

    first: Optional[Tuple[int, ...]] = None
    stack: List[Domains] = [domains]
    while stack:
        stats.max_stack = max(stats.max_stack, len(stack))
        current = stack.pop()
        stats.nodes += 1
        if telemetry_sink is not None and (stats.nodes & TELEMETRY_NODE_MASK) == 0:
            _emit_batch(telemetry_sink, stats, start)

        if problem.has_closed_island(current):
            stats.backtracks += 1
            continue

        cell = problem.pick_branch(current)
        if cell == -1:
            orientations = problem.orientations_for(current)
            if not problem.wins(orientations):
                stats.backtracks += 1
                continue
            stats.solutions += 1
            if first is None:
                first = orientations
            if limit is not None and stats.solutions >= limit:
                return _finish(first, "limit")
            continue

        children: List[Domains] = []
        for mask in current[cell]:
            child = list(current)
            child[cell] = (mask,)
            touched = deque(j for j in problem.neighbors[cell] if j != -1 and j != cell)
            if problem.propagate(child, touched, stats):
                children.append(child)
            else:
                stats.backtracks += 1
        stack.extend(reversed(children))

    return _finish(first, "exhausted")


def solve(board: Board, telemetry_sink: Optional[TelemetrySink] = None) -> bool:
    """Rotate ``board`` into a winning state. On failure the board is left as it was."""
    result = search(board, limit=1, telemetry_sink=telemetry_sink)
    if result.solved and result.orientations is not None:
        board.restore_orientations(result.orientations)
    return result.solved


def count_solutions(
    board: Board,
    limit: Optional[int] = None,
    telemetry_sink: Optional[TelemetrySink] = None,
) -> int:
    return search(board, limit=limit, telemetry_sink=telemetry_sink).solutions
