"""
Game flow management for NoGo.

This module defines:
- GameResult: Outcome of a finished game
- Game: Manager for turn order, agent callbacks and the end-of-game rule
- Helper functions for creating games and simulating random ones

A game ends when the side to move has no legal placement; that side loses.
"""
from __future__ import annotations
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple
import random
import time

import numpy as np

from nogo_mcts.core.actions import Place
from nogo_mcts.core.board import Board
from nogo_mcts.core.constants import Piece, Legality, DEFAULT_BOARD_SIZE


AgentCallback = Callable[[Board, Piece], Optional[Place]]


class GameResult(Enum):
    """Enum representing possible game results."""
    IN_PROGRESS = auto()
    WINNER = auto()  # Opponent ran out of moves
    FORFEIT = auto()  # An agent returned no move while it still had one


class Game:
    """
    Manager for NoGo game flow.

    Each side is driven by an agent callback that receives the current board
    (a copy) and its colour, and returns a placement or None.
    """

    def __init__(
        self,
        board_size: int = DEFAULT_BOARD_SIZE,
        random_seed: Optional[int] = None
    ):
        """
        Initialize a new NoGo game.

        Args:
            board_size: Side length of the board
            random_seed: Random seed for reproducibility
        """
        self.board_size = board_size

        if random_seed is not None:
            random.seed(random_seed)
            np.random.seed(random_seed)

        self.board = Board(size=board_size)
        self.agent_callbacks: Dict[Piece, AgentCallback] = {}

        self.result = GameResult.IN_PROGRESS
        self.winner: Optional[Piece] = None
        self.moves: List[Place] = []
        self.start_time = time.time()
        self.end_time: Optional[float] = None

    @property
    def game_over(self) -> bool:
        return self.result is not GameResult.IN_PROGRESS

    @property
    def turn_count(self) -> int:
        return len(self.moves)

    def reset(self) -> Board:
        """
        Reset the game to an empty board with black to move.

        Returns:
            New board
        """
        self.board = Board(size=self.board_size)
        self.result = GameResult.IN_PROGRESS
        self.winner = None
        self.moves = []
        self.start_time = time.time()
        self.end_time = None
        return self.board

    def register_agent(self, side: Piece, agent_callback: AgentCallback) -> None:
        """
        Register an agent for a side.

        Args:
            side: Colour the agent plays
            agent_callback: Function that selects a placement given the board and colour
        """
        if side is Piece.EMPTY:
            raise ValueError("agents must play BLACK or WHITE")
        self.agent_callbacks[side] = agent_callback

    def _end_game(self, result: GameResult, winner: Piece) -> None:
        self.result = result
        self.winner = winner
        self.end_time = time.time()

    def step(self, move: Optional[Place] = None) -> Tuple[Board, bool]:
        """
        Advance the game by one placement.

        If no move is provided, the registered agent of the side to move is
        asked for one.

        Args:
            move: Optional placement to apply

        Returns:
            Tuple of (board, whether the game is over)
        """
        if self.game_over:
            return self.board, True

        side = self.board.to_move
        if not self.board.has_legal_move(side):
            self._end_game(GameResult.WINNER, side.opponent())
            return self.board, True

        if move is None:
            if side not in self.agent_callbacks:
                raise ValueError(f"No move provided and no agent registered for {side.name}")
            move = self.agent_callbacks[side](self.board.clone(), side)

        if move is None:
            self._end_game(GameResult.FORFEIT, side.opponent())
            return self.board, True

        if self.board.apply_move(move) is not Legality.LEGAL:
            raise ValueError(f"Illegal move {move} for {side.name}")
        self.moves.append(move)

        if not self.board.has_legal_move():
            self._end_game(GameResult.WINNER, side)
            return self.board, True

        return self.board, False

    def run_game(self, max_turns: Optional[int] = None) -> Board:
        """
        Run the game until completion or max turns.

        Both sides must have agent callbacks registered.

        Args:
            max_turns: Optional maximum number of placements

        Returns:
            Final board
        """
        for side in (Piece.BLACK, Piece.WHITE):
            if side not in self.agent_callbacks:
                raise ValueError(f"No agent registered for {side.name}")

        while not self.game_over:
            if max_turns is not None and self.turn_count >= max_turns:
                break
            self.step()

        return self.board

    def get_winner(self) -> Optional[Piece]:
        """Get the winning colour, or None while the game is running."""
        return self.winner

    def get_game_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the game.

        Returns:
            Dictionary of game statistics
        """
        end = self.end_time if self.end_time is not None else time.time()
        stats: Dict[str, Any] = {
            "turns": self.turn_count,
            "duration": end - self.start_time,
            "result": self.result.name,
        }
        if self.winner is not None:
            stats["winner"] = self.winner.name
        return stats

    def __str__(self) -> str:
        status = f"NoGo {self.board_size}x{self.board_size} (Turn: {self.turn_count})"
        if self.game_over and self.winner is not None:
            status += f" - {self.winner.name} wins ({self.result.name.lower()})"
        return f"{status}\n{self.board}"


def create_game(board_size: int = DEFAULT_BOARD_SIZE, random_seed: Optional[int] = None) -> Game:
    """Create a new NoGo game."""
    return Game(board_size=board_size, random_seed=random_seed)


def simulate_random_game(
    board_size: int = DEFAULT_BOARD_SIZE,
    random_seed: Optional[int] = None
) -> Tuple[Board, Optional[Piece]]:
    """
    Simulate a game between two uniformly random players.

    Args:
        board_size: Side length of the board
        random_seed: Random seed for reproducibility

    Returns:
        Tuple of (final board, winning colour)
    """
    game = create_game(board_size=board_size, random_seed=random_seed)

    for side in (Piece.BLACK, Piece.WHITE):
        game.register_agent(side, lambda board, piece: random.choice(board.get_legal_moves(piece)))

    final_board = game.run_game()
    return final_board, game.get_winner()
