#!/usr/bin/env python
"""
Tests for the NoGo rules and game flow.

These cover the game collaborator the search engine relies on: legal move
enumeration, move application, end-of-game detection and the Game driver.
"""
import unittest

import numpy as np

from nogo_mcts.core.actions import Place, all_placements
from nogo_mcts.core.board import Board
from nogo_mcts.core.constants import Piece, Legality
from nogo_mcts.core.game import Game, GameResult, simulate_random_game


class TestPieces(unittest.TestCase):
    """Test colours, roles and placements."""

    def test_opponent(self):
        self.assertIs(Piece.BLACK.opponent(), Piece.WHITE)
        self.assertIs(Piece.WHITE.opponent(), Piece.BLACK)
        with self.assertRaises(ValueError):
            Piece.EMPTY.opponent()

    def test_from_role(self):
        self.assertIs(Piece.from_role("black"), Piece.BLACK)
        self.assertIs(Piece.from_role(" White "), Piece.WHITE)
        with self.assertRaises(ValueError):
            Piece.from_role("red")
        with self.assertRaises(ValueError):
            Piece.from_role("empty")

    def test_place_validation(self):
        with self.assertRaises(ValueError):
            Place(-1, Piece.BLACK)
        with self.assertRaises(ValueError):
            Place(3, Piece.EMPTY)

    def test_place_serialization(self):
        move = Place(12, Piece.WHITE)
        self.assertEqual(move.to_dict(), {"position": 12, "piece": "WHITE"})
        self.assertEqual(Place.from_dict(move.to_dict()), move)

    def test_place_coordinate(self):
        self.assertEqual(Place(0, Piece.BLACK).coordinate(9), "A9")
        self.assertEqual(Place(80, Piece.BLACK).coordinate(9), "J1")

    def test_all_placements(self):
        moves = all_placements(3, Piece.BLACK)
        self.assertEqual(len(moves), 9)
        self.assertEqual(moves[4], Place(4, Piece.BLACK))


class TestBoard(unittest.TestCase):
    """Test NoGo placement rules."""

    def test_empty_board(self):
        board = Board()
        self.assertEqual(board.size, 9)
        self.assertIs(board.to_move, Piece.BLACK)
        self.assertEqual(len(board.get_legal_moves()), 81)
        self.assertTrue(board.has_legal_move(Piece.WHITE))

    def test_invalid_sizes(self):
        with self.assertRaises(ValueError):
            Board(size=1)
        with self.assertRaises(ValueError):
            Board(size=20)
        with self.assertRaises(ValueError):
            Board(size=3, cells=np.zeros(8, dtype=np.int8))

    def test_from_string(self):
        board = Board.from_string("""
            X . .
            . O .
            . . .
        """, to_move=Piece.WHITE)
        self.assertEqual(board.size, 3)
        self.assertIs(board[0], Piece.BLACK)
        self.assertIs(board[4], Piece.WHITE)
        self.assertIs(board.to_move, Piece.WHITE)
        self.assertEqual(len(board.empty_cells()), 7)

    def test_from_string_rejects_bad_layouts(self):
        with self.assertRaises(ValueError):
            Board.from_string("X .\n. . .")
        with self.assertRaises(ValueError):
            Board.from_string("X ?\n. .")

    def test_suicide_is_illegal(self):
        board = Board.from_string("""
            . X .
            X . X
            . X .
        """, to_move=Piece.WHITE)
        white_moves = board.get_legal_moves(Piece.WHITE)
        self.assertNotIn(Place(4, Piece.WHITE), white_moves)
        self.assertIs(board.apply_move(Place(4, Piece.WHITE)), Legality.ILLEGAL)

        # The same cell joins the black stones into a group with liberties
        self.assertIn(Place(4, Piece.BLACK), board.get_legal_moves(Piece.BLACK))

    def test_capture_is_illegal(self):
        board = Board.from_string("""
            O X .
            . . .
            . . .
        """, to_move=Piece.BLACK)
        self.assertNotIn(Place(3, Piece.BLACK), board.get_legal_moves())
        self.assertIn(Place(4, Piece.BLACK), board.get_legal_moves())

    def test_illegal_move_leaves_board_untouched(self):
        board = Board.from_string("""
            O X .
            . . .
            . . .
        """, to_move=Piece.BLACK)
        before = board.clone()
        self.assertIs(board.apply_move(Place(3, Piece.BLACK)), Legality.ILLEGAL)
        self.assertIs(board.apply_move(Place(0, Piece.BLACK)), Legality.ILLEGAL)
        self.assertIs(board.apply_move(Place(4, Piece.WHITE)), Legality.ILLEGAL)
        self.assertIs(board.apply_move(Place(9, Piece.BLACK)), Legality.ILLEGAL)
        self.assertEqual(board, before)

    def test_apply_passes_the_turn(self):
        board = Board(size=5)
        self.assertIs(board.apply_move(Place(12, Piece.BLACK)), Legality.LEGAL)
        self.assertIs(board[12], Piece.BLACK)
        self.assertIs(board.to_move, Piece.WHITE)
        self.assertIs(board.apply_move(Place(0, Piece.WHITE)), Legality.LEGAL)
        self.assertIs(board[0], Piece.WHITE)
        self.assertIs(board.to_move, Piece.BLACK)

    def test_no_legal_move(self):
        board = Board.from_string("""
            X .
            . X
        """, to_move=Piece.WHITE)
        self.assertFalse(board.has_legal_move())
        self.assertEqual(board.get_legal_moves(), [])
        self.assertTrue(board.has_legal_move(Piece.BLACK))

    def test_clone_is_independent(self):
        board = Board(size=4)
        copy = board.clone()
        self.assertEqual(board, copy)
        copy.apply_move(Place(5, Piece.BLACK))
        self.assertNotEqual(board, copy)
        self.assertIs(board[5], Piece.EMPTY)

    def test_equality_includes_side_to_move(self):
        self.assertNotEqual(Board(size=4, to_move=Piece.BLACK), Board(size=4, to_move=Piece.WHITE))

    def test_cells_view_is_read_only(self):
        board = Board(size=3)
        with self.assertRaises(ValueError):
            board.cells()[0] = Piece.BLACK.value


class TestGame(unittest.TestCase):
    """Test the game driver."""

    def test_random_game_ends_with_stuck_loser(self):
        final_board, winner = simulate_random_game(board_size=5, random_seed=7)
        self.assertIsNotNone(winner)
        self.assertFalse(final_board.has_legal_move())
        self.assertIs(winner, final_board.to_move.opponent())

    def test_illegal_move_raises(self):
        game = Game(board_size=3)
        game.step(Place(4, Piece.BLACK))
        with self.assertRaises(ValueError):
            game.step(Place(4, Piece.WHITE))

    def test_step_without_agent_raises(self):
        game = Game(board_size=3)
        with self.assertRaises(ValueError):
            game.step()

    def test_forfeit(self):
        game = Game(board_size=3)
        game.register_agent(Piece.BLACK, lambda board, side: None)
        board, over = game.step()
        self.assertTrue(over)
        self.assertIs(game.result, GameResult.FORFEIT)
        self.assertIs(game.get_winner(), Piece.WHITE)

    def test_run_game_requires_both_agents(self):
        game = Game(board_size=3)
        game.register_agent(Piece.BLACK, lambda board, side: board.get_legal_moves(side)[0])
        with self.assertRaises(ValueError):
            game.run_game()

    def test_statistics(self):
        game = Game(board_size=4)
        for side in (Piece.BLACK, Piece.WHITE):
            game.register_agent(side, lambda board, piece: board.get_legal_moves(piece)[0])
        game.run_game()
        stats = game.get_game_statistics()
        self.assertEqual(stats["result"], "WINNER")
        self.assertEqual(stats["turns"], len(game.moves))
        self.assertIn(stats["winner"], ("BLACK", "WHITE"))

        game.reset()
        self.assertFalse(game.game_over)
        self.assertEqual(game.turn_count, 0)


if __name__ == "__main__":
    unittest.main()
