import random
import unittest

from net_engine import (
    CONNECTORS,
    CORNER,
    CROSS,
    EAST,
    EMPTY,
    ENDPOINT,
    MATCH,
    MISMATCH,
    NOEDGE,
    NORTH,
    SEGMENT,
    SOUTH,
    TEE,
    WEST,
    Board,
    History,
    Move,
    OutOfBoundsError,
    check_edge,
    connectors,
    count_edges,
    decode_connectors,
    is_connected,
    is_well_paired,
    is_won,
    pretty_print,
    rotate_mask,
)
from net_generator import default_board, default_solution


def make_board(rows, cols, shapes, orientations, wrapping=False):
    return Board(rows, cols, wrapping, shapes, orientations)


def two_endpoints_facing_away():
    return make_board(1, 2, [ENDPOINT, ENDPOINT], [WEST, EAST])


class TestConnectorTables(unittest.TestCase):
    def test_canonical_patterns(self):
        self.assertEqual(connectors(EMPTY, NORTH), 0)
        self.assertEqual(connectors(ENDPOINT, NORTH), 0b0001)
        self.assertEqual(connectors(SEGMENT, NORTH), 0b0101)
        self.assertEqual(connectors(CORNER, NORTH), 0b0011)
        self.assertEqual(connectors(TEE, NORTH), 0b1011)
        self.assertEqual(connectors(CROSS, NORTH), 0b1111)

    def test_clockwise_rotation(self):
        self.assertEqual(connectors(ENDPOINT, EAST), 1 << EAST)
        self.assertEqual(connectors(CORNER, SOUTH), (1 << SOUTH) | (1 << WEST))
        # A tee points away from the direction opposite its orientation.
        self.assertEqual(connectors(TEE, EAST), 0b1111 & ~(1 << WEST))
        self.assertEqual(rotate_mask(0b1000, 1), 0b0001)

    def test_symmetric_shapes(self):
        self.assertEqual(CONNECTORS[SEGMENT][NORTH], CONNECTORS[SEGMENT][SOUTH])
        self.assertEqual(len(set(CONNECTORS[CROSS])), 1)
        self.assertEqual(len(set(CONNECTORS[EMPTY])), 1)

    def test_decode_every_mask(self):
        for mask in range(16):
            shape, orientation = decode_connectors(mask)
            self.assertEqual(connectors(shape, orientation), mask)
        self.assertEqual(decode_connectors(0b0101), (SEGMENT, NORTH))
        self.assertEqual(decode_connectors(0b1010), (SEGMENT, EAST))
        with self.assertRaises(ValueError):
            decode_connectors(16)


class TestBoard(unittest.TestCase):
    def test_new_board_is_empty(self):
        board = Board(3, 4)
        self.assertEqual(board.rows, 3)
        self.assertEqual(board.cols, 4)
        self.assertFalse(board.wrapping)
        for row, col in board.cells():
            self.assertEqual(board.get_shape(row, col), EMPTY)
            self.assertEqual(board.get_orientation(row, col), NORTH)

    def test_invalid_sizes(self):
        with self.assertRaises(ValueError):
            Board(0, 3)
        with self.assertRaises(ValueError):
            Board(3, 0)
        with self.assertRaises(ValueError):
            Board(2, 2, shapes=[EMPTY])

    def test_invalid_values(self):
        board = Board(2, 2)
        with self.assertRaises(ValueError):
            board.set_shape(0, 0, 6)
        with self.assertRaises(ValueError):
            board.set_orientation(0, 0, 4)

    def test_out_of_bounds(self):
        board = default_board()
        with self.assertRaises(OutOfBoundsError):
            board.get_shape(board.rows, 0)
        with self.assertRaises(OutOfBoundsError):
            board.get_orientation(0, board.cols)
        with self.assertRaises(IndexError):
            board.get_shape(-1, 0)
        with self.assertRaises(OutOfBoundsError):
            board.rotate(5, 5, 1)
        with self.assertRaises(OutOfBoundsError):
            board.neighbor(-1, 2, NORTH)

    def test_invalid_direction(self):
        board = default_board()
        for direction in (-1, 4, 7):
            with self.assertRaises(ValueError):
                board.neighbor(1, 1, direction)
            with self.assertRaises(ValueError):
                board.has_half_edge(1, 1, direction)
            with self.assertRaises(ValueError):
                check_edge(board, 1, 1, direction)

    def test_rotation_is_cyclic(self):
        board = default_board()
        for delta in (1, 2, 3, -1, 5):
            for row, col in board.cells():
                before = board.get_orientation(row, col)
                for _ in range(4):
                    board.rotate(row, col, delta)
                self.assertEqual(board.get_orientation(row, col), before)

    def test_rotate_negative_delta(self):
        board = make_board(1, 1, [CORNER], [NORTH])
        board.rotate(0, 0, -1)
        self.assertEqual(board.get_orientation(0, 0), WEST)

    def test_rotate_empty_is_noop(self):
        board = Board(2, 2)
        board.rotate(1, 1, 1)
        self.assertEqual(board.get_orientation(1, 1), NORTH)

    def test_neighbor_without_wrapping(self):
        board = Board(3, 3)
        self.assertIsNone(board.neighbor(0, 0, NORTH))
        self.assertIsNone(board.neighbor(0, 0, WEST))
        self.assertIsNone(board.neighbor(2, 2, SOUTH))
        self.assertEqual(board.neighbor(1, 1, EAST), (1, 2))
        self.assertEqual(board.neighbor(1, 1, NORTH), (0, 1))

    def test_neighbor_with_wrapping(self):
        board = Board(3, 4, wrapping=True)
        self.assertEqual(board.neighbor(0, 0, NORTH), (2, 0))
        self.assertEqual(board.neighbor(0, 0, WEST), (0, 3))
        self.assertEqual(board.neighbor(2, 3, SOUTH), (0, 3))
        self.assertEqual(board.neighbor(2, 3, EAST), (2, 0))

    def test_copy_and_equality(self):
        board = default_board()
        clone = board.copy()
        self.assertEqual(board, clone)
        clone.rotate(0, 0, 1)
        self.assertNotEqual(board, clone)
        self.assertTrue(board.equals(clone, ignore_orientation=True))
        self.assertTrue(default_board().equals(default_solution(), ignore_orientation=True))
        self.assertFalse(Board(2, 2).equals(Board(2, 2, wrapping=True)))

    def test_reset_and_shuffle(self):
        board = default_board()
        board.reset_orientation()
        self.assertEqual(set(board.orientations), {NORTH})
        board.shuffle_orientation(random.Random(3))
        self.assertEqual(board.shapes, default_board().shapes)
        for o in board.orientations:
            self.assertIn(o, range(4))

    def test_pretty_print(self):
        text = pretty_print(default_solution())
        lines = text.splitlines()
        self.assertEqual(len(lines), 2 + 5 + 1)
        self.assertIn("0 1 2 3 4", lines[0])
        self.assertTrue(lines[2].startswith(" 0 |┌ < > ┐ v"))


class TestEvaluator(unittest.TestCase):
    def test_endpoints_facing_away_then_each_other(self):
        board = two_endpoints_facing_away()
        self.assertFalse(is_won(board))
        board.rotate(0, 0, 2)
        self.assertFalse(is_won(board))
        board.rotate(0, 1, 2)
        self.assertTrue(is_won(board))

    def test_check_edge_status(self):
        board = make_board(1, 2, [ENDPOINT, ENDPOINT], [EAST, NORTH])
        self.assertEqual(check_edge(board, 0, 0, EAST), MISMATCH)
        self.assertEqual(check_edge(board, 0, 1, WEST), MISMATCH)
        self.assertEqual(check_edge(board, 0, 0, SOUTH), NOEDGE)
        board.set_orientation(0, 1, WEST)
        self.assertEqual(check_edge(board, 0, 0, EAST), MATCH)

    def test_connector_into_empty_square_dangles(self):
        board = make_board(1, 2, [ENDPOINT, EMPTY], [EAST, NORTH])
        self.assertFalse(is_well_paired(board))
        self.assertFalse(is_won(board))

    def test_well_paired_but_split(self):
        board = make_board(1, 4, [ENDPOINT] * 4, [EAST, WEST, EAST, WEST])
        self.assertTrue(is_well_paired(board))
        self.assertFalse(is_connected(board))
        self.assertFalse(is_won(board))

    def test_empty_board_is_won(self):
        self.assertTrue(is_won(Board(3, 3)))

    def test_wrapping_match(self):
        board = make_board(1, 2, [ENDPOINT, ENDPOINT], [WEST, EAST], wrapping=True)
        self.assertTrue(is_won(board))
        self.assertFalse(is_won(make_board(1, 2, [ENDPOINT, ENDPOINT], [WEST, EAST])))

    def test_default_level(self):
        self.assertFalse(is_won(default_board()))
        solution = default_solution()
        self.assertTrue(is_won(solution))
        self.assertEqual(count_edges(solution), 24)

    def test_full_turns_keep_verdict(self):
        for board in (default_board(), default_solution()):
            verdict = is_won(board)
            for row, col in board.cells():
                board.rotate(row, col, 4)
            self.assertEqual(is_won(board), verdict)


class TestHistory(unittest.TestCase):
    def test_undo_restores_previous_board(self):
        board = default_board()
        history = History()
        before = board.copy()
        history.apply(board, Move(2, 3, 1))
        after = board.copy()
        self.assertNotEqual(board, before)
        self.assertTrue(history.undo(board))
        self.assertEqual(board, before)
        self.assertTrue(history.redo(board))
        self.assertEqual(board, after)

    def test_nothing_to_undo_or_redo(self):
        board = default_board()
        history = History()
        self.assertFalse(history.undo(board))
        self.assertFalse(history.redo(board))
        self.assertEqual(board, default_board())

    def test_new_move_discards_redo_tail(self):
        board = default_board()
        history = History()
        history.apply(board, Move(0, 0, 1))
        history.apply(board, Move(0, 1, 1))
        history.undo(board)
        self.assertTrue(history.can_redo)
        history.apply(board, Move(4, 4, -1))
        self.assertFalse(history.can_redo)
        self.assertEqual(len(history), 2)
        history.undo(board)
        history.undo(board)
        self.assertEqual(board, default_board())

    def test_random_walk_unwinds(self):
        rng = random.Random(7)
        board = default_board()
        history = History()
        for _ in range(60):
            history.apply(board, Move(rng.randrange(5), rng.randrange(5), rng.choice([1, -1, 2])))
        while history.undo(board):
            pass
        self.assertEqual(board, default_board())

    def test_move_inverse(self):
        self.assertEqual(Move(1, 2, 3).inverse(), Move(1, 2, -3))


if __name__ == "__main__":
    unittest.main()
