"""
Agents for playing NoGo.

This module provides the MCTSAgent class, a player that keeps one search tree
for a whole game: before each move it works out the opponent's reply from the
board it is shown and advances the tree to it, then searches under the
per-move time allowance and advances the tree again past its own move.

A RandomAgent (uniformly random legal placement) and a small factory are
provided as well.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import json

import numpy as np

from nogo_mcts.core.actions import Place, all_placements
from nogo_mcts.core.board import Board
from nogo_mcts.core.constants import Piece, Legality, FORBIDDEN_NAME_CHARS, WIN_WEIGHT
from nogo_mcts.core.game import Game
from nogo_mcts.mcts.config import MCTSConfig
from nogo_mcts.mcts.search import (
    mcts_search, get_action_statistics, get_principal_variation
)
from nogo_mcts.mcts.timing import Clock, TimeManager
from nogo_mcts.mcts.tree import SearchTree


def _parse_role(role: Union[str, Piece]) -> Piece:
    if isinstance(role, Piece):
        if role is Piece.EMPTY:
            raise ValueError(f"invalid role: {role.name}")
        return role
    return Piece.from_role(role)


class Agent:
    """
    Base class for NoGo players.

    The name and the role are validated once here, so a misconfigured agent
    is never constructed.
    """

    def __init__(self, role: Union[str, Piece], name: str):
        """
        Initialize an agent.

        Args:
            role: "black"/"white" or a Piece
            name: Display name (no brackets, parentheses, colons, semicolons or spaces)
        """
        if not name or any(ch in FORBIDDEN_NAME_CHARS for ch in name):
            raise ValueError(f"invalid name: {name!r}")
        self.name = name
        self.own_side = _parse_role(role)

    @property
    def role(self) -> str:
        return self.own_side.name.lower()

    def open_episode(self) -> None:
        """Called by the game driver before a game starts."""

    def close_episode(self) -> None:
        """Called by the game driver after a game ends."""

    def choose_move(self, board: Board) -> Optional[Place]:
        raise NotImplementedError

    def get_action_callback(self) -> Callable[[Board, Piece], Optional[Place]]:
        """
        Get a callback function for selecting moves.

        This is useful for registering the agent with a Game object.

        Returns:
            Callback function that takes a board and a colour and returns a move
        """
        def callback(board: Board, side: Piece) -> Optional[Place]:
            if side is not self.own_side:
                raise ValueError(f"{self.name} plays {self.own_side.name}, asked to move for {side.name}")
            return self.choose_move(board)
        return callback

    def register_with_game(self, game: Game) -> None:
        """
        Register this agent with a game for its own colour.

        Args:
            game: Game object
        """
        game.register_agent(self.own_side, self.get_action_callback())

    def __str__(self) -> str:
        return f"{self.name} ({self.role})"


class RandomAgent(Agent):
    """
    Places a stone on a random legal cell.
    """

    def __init__(self, role: Union[str, Piece], name: str = "random", seed: Optional[int] = None):
        super().__init__(role, name)
        self.rng = np.random.default_rng(seed)
        self.space: List[Place] = []

    def choose_move(self, board: Board) -> Optional[Place]:
        """
        Try every placement in random order and return the first legal one.

        Args:
            board: Current position

        Returns:
            A legal placement, or None if there is none
        """
        if len(self.space) != board.num_cells:
            self.space = all_placements(board.size, self.own_side)
        self.rng.shuffle(self.space)
        for move in self.space:
            after = board.clone()
            if after.apply_move(move) is Legality.LEGAL:
                return move
        return None


class MCTSAgent(Agent):
    """
    Monte Carlo Tree Search agent for playing NoGo.

    The agent reuses its tree across the moves of a game and treats any board
    it cannot reach from its last move with one legal opponent placement as
    the start of a new game.
    """

    def __init__(
        self,
        role: Union[str, Piece],
        config: Optional[MCTSConfig] = None,
        name: str = "mcts",
        verbose: bool = False,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize an MCTS agent.

        Args:
            role: "black"/"white" or a Piece
            config: MCTS configuration parameters
            name: Name of the agent
            verbose: Whether to print search information after every move
            clock: Monotonic clock for time management (defaults to time.monotonic)
        """
        super().__init__(role, name)
        self.config = config or MCTSConfig()
        self.verbose = verbose
        self.win_weight = WIN_WEIGHT

        self.rng = np.random.default_rng(self.config.seed)
        self.tree = SearchTree(self.own_side)
        self.time_manager = TimeManager(self.config, clock=clock)

        # Board after our last move
        self.last_board: Optional[Board] = None
        # Search throughput measured on the previous move
        self.iterations_per_second = 0.0

        # Statistics from the most recent search
        self.last_stats: Dict[str, Any] = {}

        # History of all moves and their statistics in the current game
        self.action_history: List[Tuple[Optional[Place], Dict[str, Any]]] = []

    @property
    def opponent(self) -> Piece:
        return self.own_side.opponent()

    @property
    def remaining_time(self) -> float:
        return self.time_manager.remaining_time

    @property
    def turn(self) -> int:
        return self.time_manager.turn

    def reset_for_new_game(self, side: Optional[Union[str, Piece]] = None) -> None:
        """
        Start a new game: fresh tree, full time budget, no known board.

        Args:
            side: Optional new colour for the agent
        """
        if side is not None:
            self.own_side = _parse_role(side)
        if self.verbose:
            print(f"game reset, remain time: {self.time_manager.remaining_time:.3f}")
        self.tree.reset(self.own_side)
        self.time_manager.reset()
        self.last_board = None
        self.action_history = []

    def open_episode(self) -> None:
        self.reset_for_new_game()

    def close_episode(self) -> None:
        self.last_board = None

    def find_opponent_move(self, board: Board) -> Optional[Place]:
        """
        Find the opponent placement that turns our last board into `board`.

        Args:
            board: Observed position

        Returns:
            The placement, or None if no single legal placement explains `board`
        """
        if self.last_board is None:
            return None
        for move in self.last_board.get_legal_moves(self.opponent):
            after = self.last_board.clone()
            if after.apply_move(move) is Legality.LEGAL and after == board:
                return move
        return None

    def reconcile(self, board: Board) -> bool:
        """
        Bring the tree root in line with the observed board.

        Args:
            board: Observed position (we are to move)

        Returns:
            True if the tree had to be reset
        """
        move = self.find_opponent_move(board)
        if move is None:
            self.reset_for_new_game()
            return True
        self.tree.move_root(move)
        return False

    def choose_move(self, board: Board) -> Optional[Place]:
        """
        Select a move using Monte Carlo Tree Search.

        Args:
            board: Current position, with this agent to move

        Returns:
            Selected placement, or None if the agent has no legal move
        """
        if board.to_move is not self.own_side:
            raise ValueError(f"{self.name} plays {self.own_side.name} but {board.to_move.name} is to move")
        started = self.time_manager.start_move()
        if self.reconcile(board):
            # The reset cleared the move start
            self.time_manager.start_move(started)
        self.tree.check_root_side(self.own_side, board)

        move, stats = mcts_search(
            self.tree, board, self.own_side, self.config, self.rng,
            self.time_manager,
            iterations_per_second=self.iterations_per_second,
            win_weight=self.win_weight,
        )

        if stats.get("iterations_per_second"):
            self.iterations_per_second = stats["iterations_per_second"]

        if move is not None:
            after = board.clone()
            outcome = after.apply_move(move)
            assert outcome is Legality.LEGAL, f"search returned illegal move {move}"
            self.tree.move_root(move)
            self.last_board = after

        stats["total_time"] = self.time_manager.end_move()
        stats["remaining_time"] = self.time_manager.remaining_time

        self.last_stats = stats
        self.action_history.append((move, stats))

        if self.verbose:
            self._print_search_info(move, stats, board.size)

        return move

    def _print_search_info(self, move: Optional[Place], stats: Dict[str, Any], size: int) -> None:
        """
        Print information about the search.

        Args:
            move: Selected move
            stats: Search statistics
            size: Board side length
        """
        shown = move.coordinate(size) if move is not None else "none"
        print(f"\n{self.name} selected: {shown}")
        print(f"leaf parallelization: {self.config.leaf_parallel}")
        print(f"rollout count: {stats['rollouts']}")
        print(f"Time: {stats['time_elapsed']:.3f}s of {stats['thinking_time']:.3f}s "
              f"({stats.get('iterations_per_second', 0.0):.1f} it/s)")
        print(f"Remaining: {stats['remaining_time']:.3f}s")
        print(f"Nodes: {stats['node_count']}")
        if stats["stopped_early"]:
            print("Stopped early")
        if stats["instability_passes"]:
            print(f"Instability passes: {stats['instability_passes']}")

        if stats["action_visits"]:
            print("\nTop moves:")
            by_visits = sorted(stats["action_visits"].items(), key=lambda x: x[1], reverse=True)
            for i, (move_str, visits) in enumerate(by_visits[:5]):
                value = stats["action_rewards"].get(move_str, 0.0)
                print(f"{i+1}. {move_str} - {visits} visits, {value / self.win_weight:.3f} win rate")
        print("--------------")

    def get_last_statistics(self) -> Dict[str, Any]:
        return self.last_stats

    def get_principal_variation(self) -> List[Tuple[Place, float]]:
        """
        Get the expected continuation from the current root.

        Returns:
            List of (move, engine win rate) pairs
        """
        return get_principal_variation(self.tree.root)

    def get_action_statistics(self) -> Dict[str, Dict[str, float]]:
        """
        Get statistics for all moves from the current root.

        Returns:
            Dictionary mapping move strings to statistics
        """
        return get_action_statistics(self.tree.root, self.own_side, self.config, self.win_weight)

    def save_statistics(self, filename: str) -> None:
        """
        Save the move history of the current game to a JSON file.

        Args:
            filename: Name of the file to save to
        """
        history = []
        for move, stats in self.action_history:
            history.append({
                "move": move.to_dict() if move is not None else None,
                "stats": {k: v for k, v in stats.items() if not isinstance(v, dict)}
            })

        data = {
            "agent_name": self.name,
            "role": self.role,
            "config": self.config.to_dict(),
            "history": history,
            "total_moves": len(self.action_history)
        }

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def __str__(self) -> str:
        limit = self.config.max_iterations
        budget = f"{limit} iterations" if limit is not None else "time-managed"
        return f"{self.name} ({self.role}, MCTS, {budget})"


def create_agent(search: str, role: Union[str, Piece], **kwargs: Any) -> Agent:
    """
    Create an agent by search strategy.

    Args:
        search: "mcts" or "random"
        role: "black"/"white" or a Piece
        **kwargs: Extra arguments for the agent constructor

    Returns:
        Agent instance
    """
    strategy = search.strip().lower()
    if strategy == "mcts":
        return MCTSAgent(role, **kwargs)
    if strategy == "random":
        return RandomAgent(role, **kwargs)
    raise ValueError(f"invalid search strategy: {search!r}")


class MCTSAgentFactory:
    """
    Factory for creating MCTS agents with different configurations.
    """

    @staticmethod
    def create_fast(role: Union[str, Piece]) -> MCTSAgent:
        """Create a fast MCTS agent with a small fixed iteration count."""
        return MCTSAgent(role, config=MCTSConfig.fast(), name="fast-mcts")

    @staticmethod
    def create_standard(role: Union[str, Piece]) -> MCTSAgent:
        """Create a standard MCTS agent with the default iteration count."""
        return MCTSAgent(role, config=MCTSConfig.default(), name="mcts")

    @staticmethod
    def create_timed(role: Union[str, Piece], initial_time: float = 300.0) -> MCTSAgent:
        """
        Create a time-managed MCTS agent for a whole-game budget.

        Args:
            role: "black"/"white" or a Piece
            initial_time: Thinking time for the whole game in seconds

        Returns:
            MCTSAgent
        """
        config = MCTSConfig.timed()
        config.initial_time = initial_time
        return MCTSAgent(role, config=config, name="timed-mcts")
