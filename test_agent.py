#!/usr/bin/env python
"""
Tests for the NoGo agents and the match runner.

The MCTSAgent tests drive whole moves: reconciling the tree with the
observed board, the time budget, early stopping and leaf parallelism.
"""
import io
import json
import os
import tempfile
import unittest
from unittest import mock

from nogo_mcts import play
from nogo_mcts.core.actions import Place
from nogo_mcts.core.board import Board
from nogo_mcts.core.constants import Piece, Legality
from nogo_mcts.core.game import Game
from nogo_mcts.mcts.agent import MCTSAgent, RandomAgent, MCTSAgentFactory, create_agent
from nogo_mcts.mcts.config import MCTSConfig
from nogo_mcts.mcts.tree import RootRoleMismatchError


class PlacementBoard:
    """
    Minimal game with the board interface the engine needs.

    Every empty cell that is not blocked is a legal placement for either
    side; a side with no legal placement loses.
    """

    def __init__(self, size, to_move, cells=None, blocked=()):
        self.size = size
        self.to_move = to_move
        self.cells = dict(cells or {})
        self.blocked = frozenset(blocked)

    def clone(self):
        return PlacementBoard(self.size, self.to_move, self.cells, self.blocked)

    def get_legal_moves(self, side=None):
        if side is None:
            side = self.to_move
        return [Place(p, side) for p in range(self.size * self.size)
                if p not in self.cells and p not in self.blocked]

    def has_legal_move(self, side=None):
        return bool(self.get_legal_moves(side))

    def apply_move(self, move):
        if move.piece is not self.to_move or move not in self.get_legal_moves():
            return Legality.ILLEGAL
        self.cells[move.position] = move.piece
        self.to_move = self.to_move.opponent()
        return Legality.LEGAL

    def __eq__(self, other):
        if not isinstance(other, PlacementBoard):
            return NotImplemented
        return (self.size == other.size and self.to_move is other.to_move
                and self.cells == other.cells)

    def __str__(self):
        return f"PlacementBoard({self.size}, {self.to_move.name}, {sorted(self.cells)})"


class FakeClock:
    """Clock that advances by a fixed step on every reading."""

    def __init__(self, step):
        self.step = step
        self.now = 0.0

    def __call__(self):
        current = self.now
        self.now += self.step
        return current

    def advance(self, seconds):
        self.now += seconds


def stuck_for_white():
    return Board.from_string("""
        X .
        . X
    """, to_move=Piece.WHITE)


class TestAgentConstruction(unittest.TestCase):
    """Test names, roles and the factory functions."""

    def test_invalid_names(self):
        for name in ("", "my agent", "mcts[1]", "a:b", "x;y", "f(x)"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    MCTSAgent("black", name=name)

    def test_invalid_role(self):
        with self.assertRaises(ValueError):
            MCTSAgent("red")
        with self.assertRaises(ValueError):
            RandomAgent(Piece.EMPTY)

    def test_create_agent(self):
        self.assertIsInstance(create_agent("MCTS", "white"), MCTSAgent)
        self.assertIsInstance(create_agent("random", "black", seed=1), RandomAgent)
        with self.assertRaises(ValueError):
            create_agent("alphabeta", "black")

    def test_factory(self):
        self.assertEqual(MCTSAgentFactory.create_fast("black").config.sim_count, 50)
        timed = MCTSAgentFactory.create_timed("white", initial_time=60.0)
        self.assertTrue(timed.config.use_time_management)
        self.assertEqual(timed.remaining_time, 60.0)
        self.assertEqual(timed.role, "white")

    def test_callback_checks_side(self):
        agent = RandomAgent("black", seed=0)
        callback = agent.get_action_callback()
        with self.assertRaises(ValueError):
            callback(Board(size=3, to_move=Piece.WHITE), Piece.WHITE)


class TestRandomAgent(unittest.TestCase):
    """Test the random player."""

    def test_returns_legal_move(self):
        agent = RandomAgent("black", seed=3)
        board = Board(size=3)
        for _ in range(5):
            move = agent.choose_move(board)
            self.assertIn(move, board.get_legal_moves())

    def test_no_legal_move(self):
        self.assertIsNone(RandomAgent("white", seed=0).choose_move(stuck_for_white()))


class TestMCTSAgent(unittest.TestCase):
    """Test move selection, tree reuse and time management."""

    def test_single_legal_winning_move(self):
        # 3x3: everything filled except the blocked corner and the centre
        cells = {p: (Piece.BLACK if p % 2 else Piece.WHITE) for p in range(9) if p not in (0, 4)}
        board = PlacementBoard(3, Piece.BLACK, cells, blocked={0})
        agent = MCTSAgent("black", config=MCTSConfig(sim_count=5, seed=0))

        move = agent.choose_move(board)
        self.assertEqual(move, Place(4, Piece.BLACK))
        self.assertTrue(agent.tree.root.is_terminal)
        self.assertIs(agent.tree.root.side_to_move, Piece.WHITE)

    def test_single_iteration(self):
        agent = MCTSAgent("black", config=MCTSConfig(sim_count=1, seed=0))
        board = Board(size=5)
        move = agent.choose_move(board)
        self.assertIn(move, board.get_legal_moves())
        self.assertEqual(agent.last_stats["iterations"], 1)
        self.assertEqual(agent.tree.root.incoming_move, move)
        self.assertEqual(agent.turn, 1)

    def test_unreachable_board_resets_tree(self):
        agent = MCTSAgent("black", config=MCTSConfig(sim_count=20, seed=0))
        agent.choose_move(Board(size=5))

        self.assertTrue(agent.reconcile(Board(size=5)))
        self.assertEqual(agent.tree.root.visit_count, 0)
        self.assertIs(agent.tree.root.side_to_move, Piece.BLACK)
        self.assertEqual(agent.turn, 0)
        self.assertIsNone(agent.last_board)

    def test_opponent_reply_advances_root(self):
        agent = MCTSAgent("black", config=MCTSConfig(sim_count=50, seed=0))
        board = Board(size=4)
        move = agent.choose_move(board)
        board.apply_move(move)

        reply = board.get_legal_moves()[0]
        expected_root = agent.tree.root.children.get(reply)
        board.apply_move(reply)

        self.assertEqual(agent.find_opponent_move(board), reply)
        self.assertFalse(agent.reconcile(board))
        self.assertIs(agent.tree.root.side_to_move, Piece.BLACK)
        self.assertEqual(agent.tree.root.incoming_move, reply)
        if expected_root is not None:
            self.assertIs(agent.tree.root, expected_root)

    def test_two_moves_in_a_row_reuse_tree(self):
        agent = MCTSAgent("black", config=MCTSConfig(sim_count=30, seed=1))
        board = Board(size=4)
        board.apply_move(agent.choose_move(board))
        board.apply_move(board.get_legal_moves()[0])

        with mock.patch.object(agent, "reset_for_new_game") as reset:
            move = agent.choose_move(board)
        reset.assert_not_called()
        self.assertIn(move, board.get_legal_moves())
        self.assertEqual(agent.turn, 2)

    def test_wrong_side_to_move(self):
        agent = MCTSAgent("white", config=MCTSConfig(sim_count=1))
        with self.assertRaises(ValueError):
            agent.choose_move(Board(size=3))

    def test_root_role_mismatch(self):
        agent = MCTSAgent("black", config=MCTSConfig(sim_count=1))
        agent.tree.reset(Piece.WHITE)
        with mock.patch.object(agent, "reconcile", return_value=False):
            with self.assertRaises(RootRoleMismatchError):
                agent.choose_move(Board(size=3))

    def test_time_budget(self):
        config = MCTSConfig(basic_const=30, initial_time=3.0, seed=0)
        agent = MCTSAgent("black", config=config, clock=FakeClock(0.01))

        move = agent.choose_move(Board(size=5))
        stats = agent.last_stats
        self.assertIsNotNone(move)
        self.assertTrue(stats["timed_out"])
        self.assertGreater(stats["iterations"], 0)
        self.assertAlmostEqual(stats["thinking_time"], 0.1)
        self.assertLess(agent.remaining_time, 3.0)
        self.assertAlmostEqual(agent.remaining_time, 3.0 - stats["total_time"])

    def test_opponent_move_lookup_is_charged(self):
        clock = FakeClock(0.0)
        config = MCTSConfig(basic_const=30, initial_time=300.0, sim_count=3, seed=0)
        agent = MCTSAgent("black", config=config, clock=clock)

        def slow_reconcile(board):
            clock.advance(5.0)
            return False

        with mock.patch.object(agent, "reconcile", side_effect=slow_reconcile):
            agent.choose_move(Board(size=4))
        self.assertAlmostEqual(agent.last_stats["total_time"], 5.0)
        self.assertAlmostEqual(agent.remaining_time, 295.0)

    def test_desync_reset_keeps_move_start(self):
        clock = FakeClock(0.0)
        config = MCTSConfig(basic_const=30, initial_time=300.0, sim_count=3, seed=0)
        agent = MCTSAgent("black", config=config, clock=clock)

        def slow_lookup(board):
            clock.advance(2.0)
            return None

        with mock.patch.object(agent, "find_opponent_move", side_effect=slow_lookup):
            agent.choose_move(Board(size=4))
        self.assertAlmostEqual(agent.last_stats["total_time"], 2.0)
        self.assertAlmostEqual(agent.remaining_time, 298.0)
        self.assertEqual(agent.turn, 1)

    def test_ratio_early_stop_keeps_searching_on_later_moves(self):
        config = MCTSConfig(sim_count=100, basic_const=30, early_ratio=0.5, seed=0)
        agent = MCTSAgent("black", config=config, clock=FakeClock(1e-6))
        board = Board(size=5)

        iterations = []
        for _ in range(4):
            move = agent.choose_move(board)
            iterations.append(agent.last_stats["iterations"])
            self.assertFalse(agent.last_stats["stopped_early"])
            board.apply_move(move)
            board.apply_move(board.get_legal_moves()[0])

        self.assertEqual(iterations, [100, 100, 100, 100])

    def test_early_stop_before_search(self):
        config = MCTSConfig(sim_count=50, early_stop=True, early_threshold=1)
        agent = MCTSAgent("black", config=config)
        root = agent.tree.root
        root.new_child(Place(0, Piece.BLACK)).record(20, 10)
        root.new_child(Place(1, Piece.BLACK)).record(2, 1)
        root.record(22, 11)

        with mock.patch.object(agent, "reconcile", return_value=False):
            move = agent.choose_move(Board(size=5))
        self.assertEqual(move, Place(0, Piece.BLACK))
        self.assertTrue(agent.last_stats["stopped_early"])
        self.assertEqual(agent.last_stats["iterations"], 0)
        self.assertEqual(agent.tree.root.visit_count, 10)

    def test_leaf_parallel(self):
        config = MCTSConfig(sim_count=4, leaf_parallel=3, seed=0)
        agent = MCTSAgent("black", config=config)
        agent.choose_move(Board(size=4))
        stats = agent.last_stats
        self.assertEqual(sum(stats["action_visits"].values()), 12)
        self.assertEqual(stats["rollouts"], 12)

    def test_verbose_output(self):
        agent = MCTSAgent("black", config=MCTSConfig(sim_count=5, seed=0), verbose=True)
        with mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            agent.choose_move(Board(size=4))
        self.assertIn("rollout count: 5", out.getvalue())

    def test_full_game_against_random(self):
        game = Game(board_size=4, random_seed=3)
        mcts = MCTSAgent("black", config=MCTSConfig(sim_count=10, seed=1))
        opponent = RandomAgent("white", seed=2)
        mcts.register_with_game(game)
        opponent.register_with_game(game)

        mcts.open_episode()
        game.run_game()

        self.assertTrue(game.game_over)
        self.assertIsNotNone(game.get_winner())
        black_moves = sum(1 for move in game.moves if move.piece is Piece.BLACK)
        self.assertEqual(mcts.turn, black_moves)
        self.assertEqual(len(mcts.action_history), black_moves)

    def test_save_statistics(self):
        agent = MCTSAgent("black", config=MCTSConfig(sim_count=5, seed=0))
        agent.choose_move(Board(size=4))

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "stats.json")
            agent.save_statistics(path)
            with open(path) as f:
                data = json.load(f)

        self.assertEqual(data["agent_name"], "mcts")
        self.assertEqual(data["role"], "black")
        self.assertEqual(data["total_moves"], 1)
        self.assertEqual(data["config"]["sim_count"], 5)
        self.assertEqual(data["history"][0]["stats"]["iterations"], 5)


class TestPlay(unittest.TestCase):
    """Test the command-line match runner."""

    def test_match(self):
        argv = ["--black", "mcts", "--white", "random", "--games", "2",
                "--board-size", "4", "--sim-count", "5", "--seed", "1"]
        with mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            self.assertEqual(play.main(argv), 0)
        self.assertIn("wins", out.getvalue())

    def test_invalid_arguments(self):
        with mock.patch("sys.stdout", new_callable=io.StringIO):
            self.assertEqual(play.main(["--games", "0"]), 1)
            self.assertEqual(play.main(["--leaf-parallel", "0"]), 1)
            self.assertEqual(play.main(["--early-ratio", "0.5", "--sim-count", "200"]), 1)

    def test_match_opens_and_closes_episodes(self):
        black = MCTSAgent("black", config=MCTSConfig(sim_count=3, seed=0))
        white = RandomAgent("white", seed=0)
        with mock.patch.object(black, "open_episode", wraps=black.open_episode) as opened, \
                mock.patch.object(black, "close_episode", wraps=black.close_episode) as closed:
            wins = play.play_match(black, white, games=2, board_size=4)
        self.assertEqual(opened.call_count, 2)
        self.assertEqual(closed.call_count, 2)
        self.assertEqual(sum(wins.values()), 2)
        self.assertIsNone(black.last_board)


if __name__ == "__main__":
    unittest.main()
