"""
NoGo AI Core Package

This package contains the game collaborator used by the search engine:
- Board representation and NoGo placement rules
- Placement actions
- Game flow management
- Constants and enums

All core components can be imported directly from this package.
"""

# Game
from nogo_mcts.core.game import (
    Game, GameResult,
    create_game, simulate_random_game
)

# Board
from nogo_mcts.core.board import Board

# Actions
from nogo_mcts.core.actions import Place, all_placements

# Constants
from nogo_mcts.core.constants import (
    Piece, Legality,
    DEFAULT_BOARD_SIZE, WIN_WEIGHT
)

__all__ = [
    # Game
    'Game', 'GameResult',
    'create_game', 'simulate_random_game',

    # Board
    'Board',

    # Actions
    'Place', 'all_placements',

    # Constants
    'Piece', 'Legality',
    'DEFAULT_BOARD_SIZE', 'WIN_WEIGHT'
]
