"""
Constants for the NoGo game.

This module defines the constants shared by the board, the moves and the
search engine: stone colours, legality outcomes, board dimensions and the
reward magnitude used by random playouts.
"""
from enum import Enum
from typing import Dict, Final


class Piece(Enum):
    """Enum representing the content of a board cell (and the side to move)."""
    EMPTY = 0
    BLACK = 1
    WHITE = 2

    def opponent(self) -> 'Piece':
        """Return the other colour. EMPTY has no opponent."""
        if self is Piece.BLACK:
            return Piece.WHITE
        if self is Piece.WHITE:
            return Piece.BLACK
        raise ValueError("EMPTY has no opponent")

    @classmethod
    def from_role(cls, role: str) -> 'Piece':
        """
        Parse a role name into a playing colour.

        Args:
            role: "black" (first player) or "white" (second player)

        Returns:
            The corresponding Piece

        Raises:
            ValueError: If the role is not a playing colour
        """
        try:
            return ROLE_NAMES[role.strip().lower()]
        except (KeyError, AttributeError):
            raise ValueError(f"invalid role: {role!r}") from None


class Legality(Enum):
    """Outcome of applying a move to a board."""
    LEGAL = 0
    ILLEGAL = 1


# Playing colours by role name
ROLE_NAMES: Final[Dict[str, Piece]] = {
    "black": Piece.BLACK,
    "white": Piece.WHITE,
}

# Characters for board rendering
PIECE_SYMBOLS: Final[Dict[Piece, str]] = {
    Piece.EMPTY: ".",
    Piece.BLACK: "X",
    Piece.WHITE: "O",
}

# Board limits
DEFAULT_BOARD_SIZE: Final[int] = 9
MIN_BOARD_SIZE: Final[int] = 2
MAX_BOARD_SIZE: Final[int] = 19

# Column letters skip "I" like Go coordinates do
COLUMN_LETTERS: Final[str] = "ABCDEFGHJKLMNOPQRST"

# Reward of a single won playout
WIN_WEIGHT: Final[int] = 2

# Characters not allowed in agent names
FORBIDDEN_NAME_CHARS: Final[str] = "[]():; "
