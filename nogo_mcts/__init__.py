"""
NoGo MCTS - A Monte Carlo Tree Search engine for the game NoGo.

This package provides the NoGo rules and a time-managed MCTS player that
reuses its search tree across the moves of a game.
"""

__version__ = "0.1.0"
__author__ = "NoGo MCTS Team"

# Make key components available at package level
from nogo_mcts.core.board import Board
from nogo_mcts.core.game import Game
from nogo_mcts.core.actions import Place
from nogo_mcts.core.constants import Piece

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))
