"""Level generation: the built-in level and random solvable puzzles."""

from __future__ import annotations

import random
from typing import Dict, List, Optional, Set, Tuple

from net_engine import (
    CORNER,
    DEFAULT_SIZE,
    EAST,
    ENDPOINT,
    NB_SHAPES,
    NORTH,
    SEGMENT,
    SOUTH,
    TEE,
    WEST,
    Board,
    decode_connectors,
    opposite,
)

Cell = Tuple[int, int]
# An edge is stored from the side that owns it: (cell, EAST) or (cell, SOUTH).
Edge = Tuple[Cell, int]

_C, _N, _S, _T = CORNER, ENDPOINT, SEGMENT, TEE
_DN, _DE, _DS, _DW = NORTH, EAST, SOUTH, WEST

DEFAULT_SHAPES = (
    _C, _N, _N, _C, _N,
    _T, _T, _T, _T, _T,
    _N, _N, _T, _N, _S,
    _N, _T, _T, _C, _S,
    _N, _T, _N, _N, _N,
)

DEFAULT_ORIENTATIONS = (
    _DW, _DN, _DW, _DN, _DS,
    _DS, _DW, _DN, _DE, _DE,
    _DE, _DN, _DW, _DW, _DE,
    _DS, _DS, _DN, _DW, _DN,
    _DE, _DW, _DS, _DE, _DS,
)

DEFAULT_SOLUTION = (
    _DE, _DW, _DE, _DS, _DS,
    _DE, _DS, _DS, _DN, _DW,
    _DN, _DN, _DE, _DW, _DS,
    _DE, _DS, _DN, _DS, _DN,
    _DE, _DN, _DW, _DN, _DN,
)


def default_board() -> Board:
    return Board(DEFAULT_SIZE, DEFAULT_SIZE, False, DEFAULT_SHAPES, DEFAULT_ORIENTATIONS)


def default_solution() -> Board:
    return Board(DEFAULT_SIZE, DEFAULT_SIZE, False, DEFAULT_SHAPES, DEFAULT_SOLUTION)


def grid_edges(rows: int, cols: int, wrapping: bool) -> List[Edge]:
    """Every grid adjacency once, seen from its north/west cell."""
    edges: List[Edge] = []
    for row in range(rows):
        for col in range(cols):
            if col + 1 < cols or (wrapping and cols > 1):
                edges.append(((row, col), EAST))
            if row + 1 < rows or (wrapping and rows > 1):
                edges.append(((row, col), SOUTH))
    return edges


def edge_target(edge: Edge, rows: int, cols: int) -> Cell:
    (row, col), direction = edge
    if direction == EAST:
        return row, (col + 1) % cols
    return (row + 1) % rows, col


class _DisjointSet:
    def __init__(self, items: List[Cell]) -> None:
        self._parent: Dict[Cell, Cell] = {item: item for item in items}

    def find(self, item: Cell) -> Cell:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: Cell, b: Cell) -> bool:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False
        self._parent[root_a] = root_b
        return True


def spanning_tree(rows: int, cols: int, edges: List[Edge], rng: random.Random) -> List[Edge]:
    shuffled = list(edges)
    rng.shuffle(shuffled)
    forest = _DisjointSet([(r, c) for r in range(rows) for c in range(cols)])
    tree: List[Edge] = []
    for edge in shuffled:
        if forest.union(edge[0], edge_target(edge, rows, cols)):
            tree.append(edge)
    return tree


def _prune_leaves(
    rows: int,
    cols: int,
    tree: List[Edge],
    nb_empty: int,
    rng: random.Random,
) -> Tuple[List[Edge], Set[Cell]]:
    # Only leaves are removed, so the remaining tree still spans every occupied square.
    incident: Dict[Cell, List[Edge]] = {(r, c): [] for r in range(rows) for c in range(cols)}
    for edge in tree:
        incident[edge[0]].append(edge)
        incident[edge_target(edge, rows, cols)].append(edge)

    kept = set(tree)
    emptied: Set[Cell] = set()
    for _ in range(nb_empty):
        leaves = sorted(cell for cell, adj in incident.items() if cell not in emptied and len(adj) == 1)
        if not leaves:
            break
        leaf = rng.choice(leaves)
        (edge,) = incident[leaf]
        other = edge_target(edge, rows, cols) if edge[0] == leaf else edge[0]
        incident[leaf] = []
        incident[other].remove(edge)
        kept.discard(edge)
        emptied.add(leaf)
    return [edge for edge in tree if edge in kept], emptied


def generate_solution(
    rows: int,
    cols: int,
    wrapping: bool = False,
    nb_empty: int = 0,
    nb_extra: int = 0,
    rng: Optional[random.Random] = None,
) -> Board:
    """Build a solved board from a random spanning tree plus optional loops and holes."""
    rng = rng or random.Random()
    board = Board(rows, cols, wrapping)
    size = rows * cols
    nb_empty = min(max(0, nb_empty), max(0, size - 2))
    nb_extra = max(0, nb_extra)

    edges = grid_edges(rows, cols, wrapping)
    tree = spanning_tree(rows, cols, edges, rng)
    used, emptied = _prune_leaves(rows, cols, tree, nb_empty, rng)

    in_use = set(used)
    spare = [
        edge
        for edge in edges
        if edge not in in_use
        and edge[0] not in emptied
        and edge_target(edge, rows, cols) not in emptied
    ]
    used.extend(rng.sample(spare, min(nb_extra, len(spare))))

    masks: Dict[Cell, int] = {}
    for edge in used:
        source, direction = edge
        target = edge_target(edge, rows, cols)
        masks[source] = masks.get(source, 0) | (1 << direction)
        masks[target] = masks.get(target, 0) | (1 << opposite(direction))

    for (row, col), mask in masks.items():
        shape, orientation = decode_connectors(mask)
        board.set_shape(row, col, shape)
        board.set_orientation(row, col, orientation)
    return board


def generate(
    rows: int,
    cols: int,
    wrapping: bool = False,
    nb_empty: int = 0,
    nb_extra: int = 0,
    rng: Optional[random.Random] = None,
) -> Board:
    """A scrambled puzzle; its solved layout is discarded."""
    rng = rng or random.Random()
    board = generate_solution(rows, cols, wrapping, nb_empty, nb_extra, rng)
    board.shuffle_orientation(rng)
    return board


def shape_histogram(board: Board) -> List[int]:
    counts = [0] * NB_SHAPES
    for row, col in board.cells():
        counts[board.get_shape(row, col)] += 1
    return counts
