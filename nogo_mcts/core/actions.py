"""
Actions for the NoGo game.

NoGo only has one kind of action: placing a stone of the mover's colour on an
empty cell. There is no pass; a player without a legal placement loses.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from nogo_mcts.core.constants import Piece, PIECE_SYMBOLS, COLUMN_LETTERS


@dataclass(frozen=True)
class Place:
    """
    Place a stone of colour `piece` at the flat index `position`.

    Positions are row-major indices into a square board.
    """
    position: int
    piece: Piece

    def __post_init__(self):
        if self.position < 0:
            raise ValueError(f"position must be non-negative, got {self.position}")
        if self.piece is Piece.EMPTY:
            raise ValueError("cannot place an EMPTY piece")

    def coordinate(self, size: int) -> str:
        """
        Render the position in Go notation (e.g. "C3") for a board of `size`.

        Args:
            size: Board side length

        Returns:
            Coordinate string
        """
        row, col = divmod(self.position, size)
        return f"{COLUMN_LETTERS[col]}{size - row}"

    def to_dict(self) -> Dict:
        """Convert the action to a dictionary for serialization."""
        return {"position": self.position, "piece": self.piece.name}

    @classmethod
    def from_dict(cls, data: Dict) -> Place:
        """Create an action from a dictionary representation."""
        return cls(position=int(data["position"]), piece=Piece[data["piece"]])

    def __str__(self) -> str:
        return f"{PIECE_SYMBOLS[self.piece]}@{self.position}"


def all_placements(size: int, piece: Piece) -> List[Place]:
    """
    Get every placement of `piece` on a board of `size`, legal or not.

    Args:
        size: Board side length
        piece: Colour to place

    Returns:
        List of placements in position order
    """
    return [Place(position, piece) for position in range(size * size)]
