"""
Search tree with root advancing for NoGo MCTS.

The tree owns a single root node. Advancing the root drops the tree's reference
to the old root, so the old root and its other subtrees are released.
"""
from __future__ import annotations
from typing import Optional

from nogo_mcts.core.actions import Place
from nogo_mcts.core.board import Board
from nogo_mcts.core.constants import Piece
from nogo_mcts.mcts.node import TreeNode


class RootRoleMismatchError(RuntimeError):
    """
    The root does not represent a position where the engine moves.

    Raised after reconciling the tree with an observed board. Continuing would
    score every move from the wrong side, so this is not recoverable.
    """

    def __init__(self, expected: Piece, actual: Piece, board: Optional[Board] = None):
        self.expected = expected
        self.actual = actual
        self.board = board
        message = f"wrong role at root: expected {expected.name}, found {actual.name}"
        if board is not None:
            message += f"\n\ncurrent board:\n{board}"
        super().__init__(message)


class SearchTree:
    """
    A rooted tree of TreeNode statistics, reused from move to move.
    """

    def __init__(self, side: Piece):
        """
        Initialize a tree with a single root.

        Args:
            side: Colour to move at the root
        """
        self.root = TreeNode(side)

    def reset(self, side: Piece) -> None:
        """
        Replace the whole tree with a fresh root.

        Args:
            side: Colour to move at the new root
        """
        self.root = TreeNode(side)

    def move_root(self, move: Place) -> TreeNode:
        """
        Make the child reached by `move` the new root.

        The child is created (with no statistics) when `move` was never
        explored, e.g. an opponent reply the search did not consider.

        Args:
            move: Move actually played from the current root

        Returns:
            The new root
        """
        if not self.root.has_child(move):
            self.root.new_child(move)
        self.root = self.root.child(move)
        return self.root

    def check_root_side(self, side: Piece, board: Optional[Board] = None) -> None:
        """
        Ensure the engine moves at the root.

        Raises:
            RootRoleMismatchError: If the root's side to move is not `side`
        """
        if self.root.side_to_move is not side:
            raise RootRoleMismatchError(side, self.root.side_to_move, board)

    def node_count(self) -> int:
        return count_nodes(self.root)


def count_nodes(node: TreeNode) -> int:
    """
    Count the total number of nodes in a subtree.

    Args:
        node: Root node of the subtree

    Returns:
        Total number of nodes
    """
    count = 0
    stack = [node]
    while stack:
        current = stack.pop()
        count += 1
        stack.extend(current.children.values())
    return count
