"""
Board state and rules for NoGo.

NoGo is played like Go on a square board, but capturing is forbidden: a
placement is illegal if it leaves its own group without liberties or if it
takes the last liberty of an adjacent opponent group. The first player unable
to place a stone loses.

The board is the game-state collaborator of the search engine. The engine only
relies on `get_legal_moves`, `apply_move`, `has_legal_move`, `clone` and
equality.
"""
from __future__ import annotations
from functools import lru_cache
from typing import List, Optional, Sequence

import numpy as np

from nogo_mcts.core.actions import Place
from nogo_mcts.core.constants import (
    Piece, Legality, PIECE_SYMBOLS, COLUMN_LETTERS,
    DEFAULT_BOARD_SIZE, MIN_BOARD_SIZE, MAX_BOARD_SIZE,
)


class Board:
    """
    A NoGo position: stone layout plus the colour to move.

    Cells are stored row-major in a flat numpy array of Piece values.
    """

    def __init__(
        self,
        size: int = DEFAULT_BOARD_SIZE,
        to_move: Piece = Piece.BLACK,
        cells: Optional[np.ndarray] = None,
    ):
        """
        Initialize a board.

        Args:
            size: Board side length
            to_move: Colour to move
            cells: Optional flat array of Piece values (copied)
        """
        if size < MIN_BOARD_SIZE or size > MAX_BOARD_SIZE:
            raise ValueError(f"board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}")
        if to_move is Piece.EMPTY:
            raise ValueError("to_move must be BLACK or WHITE")

        self.size = size
        self.to_move = to_move
        if cells is None:
            self._cells = np.full(size * size, Piece.EMPTY.value, dtype=np.int8)
        else:
            cells = np.asarray(cells, dtype=np.int8).reshape(-1)
            if cells.shape[0] != size * size:
                raise ValueError(f"expected {size * size} cells, got {cells.shape[0]}")
            self._cells = cells.copy()
        self._neighbours = _neighbour_table(size)

    @classmethod
    def from_string(cls, layout: str, to_move: Piece = Piece.BLACK) -> Board:
        """
        Build a board from rows of "X" (black), "O" (white) and "." (empty).

        Whitespace inside rows is ignored; blank lines are skipped.
        """
        rows = ["".join(line.split()) for line in layout.strip().splitlines()]
        rows = [row for row in rows if row]
        size = len(rows)
        if any(len(row) != size for row in rows):
            raise ValueError("board layout must be square")

        lookup = {symbol: piece.value for piece, symbol in PIECE_SYMBOLS.items()}
        try:
            cells = [lookup[ch] for row in rows for ch in row]
        except KeyError as e:
            raise ValueError(f"unknown board symbol {e.args[0]!r}") from None
        return cls(size=size, to_move=to_move, cells=np.array(cells, dtype=np.int8))

    @property
    def num_cells(self) -> int:
        return self.size * self.size

    def __getitem__(self, position: int) -> Piece:
        return Piece(int(self._cells[position]))

    def cells(self) -> np.ndarray:
        """Get a read-only view of the flat cell array."""
        view = self._cells.view()
        view.flags.writeable = False
        return view

    def empty_cells(self) -> List[int]:
        """Get the positions of all empty cells."""
        return np.flatnonzero(self._cells == Piece.EMPTY.value).tolist()

    def get_legal_moves(self, side: Optional[Piece] = None) -> List[Place]:
        """
        Get all legal placements for `side` (defaults to the side to move).

        Legality is judged as if it were `side`'s turn.

        Args:
            side: Colour to enumerate placements for

        Returns:
            Legal placements in position order
        """
        if side is None:
            side = self.to_move
        cells = self._cells.tolist()
        return [
            Place(position, side)
            for position, value in enumerate(cells)
            if value == Piece.EMPTY.value and self._is_legal(cells, position, side.value)
        ]

    def has_legal_move(self, side: Optional[Piece] = None) -> bool:
        """Check whether `side` (defaults to the side to move) can place anywhere."""
        if side is None:
            side = self.to_move
        cells = self._cells.tolist()
        return any(
            value == Piece.EMPTY.value and self._is_legal(cells, position, side.value)
            for position, value in enumerate(cells)
        )

    def apply_move(self, move: Place) -> Legality:
        """
        Apply a placement and pass the turn to the opponent.

        The board is left untouched when the placement is illegal.

        Args:
            move: Placement to apply

        Returns:
            Legality.LEGAL if the move was applied, Legality.ILLEGAL otherwise
        """
        if move.piece is not self.to_move or move.position >= self.num_cells:
            return Legality.ILLEGAL
        cells = self._cells.tolist()
        if cells[move.position] != Piece.EMPTY.value:
            return Legality.ILLEGAL
        if not self._is_legal(cells, move.position, move.piece.value):
            return Legality.ILLEGAL

        self._cells[move.position] = move.piece.value
        self.to_move = self.to_move.opponent()
        return Legality.LEGAL

    def _is_legal(self, cells: List[int], position: int, colour: int) -> bool:
        # Caller guarantees the cell is empty
        cells[position] = colour
        try:
            if not self._has_liberty(cells, position):
                return False
            opponent = Piece.WHITE.value if colour == Piece.BLACK.value else Piece.BLACK.value
            for neighbour in self._neighbours[position]:
                if cells[neighbour] == opponent and not self._has_liberty(cells, neighbour):
                    return False
            return True
        finally:
            cells[position] = Piece.EMPTY.value

    def _has_liberty(self, cells: List[int], start: int) -> bool:
        colour = cells[start]
        seen = {start}
        stack = [start]
        while stack:
            position = stack.pop()
            for neighbour in self._neighbours[position]:
                value = cells[neighbour]
                if value == Piece.EMPTY.value:
                    return True
                if value == colour and neighbour not in seen:
                    seen.add(neighbour)
                    stack.append(neighbour)
        return False

    def clone(self) -> Board:
        """Create a deep copy of the board."""
        return Board(size=self.size, to_move=self.to_move, cells=self._cells)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (
            self.size == other.size
            and self.to_move is other.to_move
            and np.array_equal(self._cells, other._cells)
        )

    def __str__(self) -> str:
        lines = []
        for row in range(self.size):
            symbols = " ".join(PIECE_SYMBOLS[self[row * self.size + col]] for col in range(self.size))
            lines.append(f"{self.size - row:>2} {symbols}")
        lines.append("   " + " ".join(COLUMN_LETTERS[: self.size]))
        lines.append(f"{self.to_move.name} to move")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Board(size={self.size}, to_move={self.to_move.name}, stones={self.num_cells - len(self.empty_cells())})"


@lru_cache(maxsize=None)
def _neighbour_table(size: int) -> Sequence[Sequence[int]]:
    table = []
    for position in range(size * size):
        row, col = divmod(position, size)
        neighbours = []
        if row > 0:
            neighbours.append(position - size)
        if row < size - 1:
            neighbours.append(position + size)
        if col > 0:
            neighbours.append(position - 1)
        if col < size - 1:
            neighbours.append(position + 1)
        table.append(tuple(neighbours))
    return tuple(table)
