"""
Monte Carlo Tree Search node for NoGo.

This module defines the TreeNode class, a node of the search tree. A node
stands for a position reached by `move` from its parent and records who moves
next, how often backpropagation passed through it and the reward collected.

Rewards are always stored from the engine's point of view; the sign is
applied when a score is read for the side that moves at the parent.
Children are owned exclusively by their parent and nodes keep no reference
back up the tree.
"""
from __future__ import annotations
from typing import Dict, Optional, Tuple
import math

from nogo_mcts.core.actions import Place
from nogo_mcts.core.constants import Piece
from nogo_mcts.mcts.config import MCTSConfig


class TreeNode:
    """
    A node in the Monte Carlo search tree.
    """

    __slots__ = ("side_to_move", "incoming_move", "visit_count", "win_score", "is_terminal", "children")

    def __init__(self, side_to_move: Piece, move: Optional[Place] = None):
        """
        Initialize a tree node.

        Args:
            side_to_move: Colour to move from this position
            move: The move that led here (None for the root)
        """
        self.side_to_move = side_to_move
        self.incoming_move = move

        # Node statistics
        self.visit_count = 0
        self.win_score = 0.0
        self.is_terminal = False
        self.children: Dict[Place, TreeNode] = {}

    def has_child(self, move: Place) -> bool:
        return move in self.children

    def child(self, move: Place) -> TreeNode:
        return self.children[move]

    def new_child(self, move: Place) -> TreeNode:
        """
        Create the child reached by `move`; the opponent moves next there.

        Args:
            move: Move leading to the child

        Returns:
            The new child node
        """
        assert not self.is_terminal, "terminal nodes cannot have children"
        child = TreeNode(self.side_to_move.opponent(), move)
        self.children[move] = child
        return child

    def record(self, result: float, rollouts: int = 1) -> None:
        """
        Fold a backpropagated result into the statistics.

        Args:
            result: Summed reward of the rollouts
            rollouts: Number of rollouts the result aggregates
        """
        assert rollouts > 0
        self.win_score += result
        self.visit_count += rollouts

    def mark_terminal(self, reward_per_rollout: float, rollouts: int = 1) -> None:
        """
        Mark the node as a proven end of game and record a visit.

        The win score is reset to match the proven outcome on every visit.

        Args:
            reward_per_rollout: Engine reward of the outcome for one rollout
            rollouts: Number of rollouts this visit counts for
        """
        assert not self.children, "terminal nodes have no children"
        self.is_terminal = True
        self.visit_count += rollouts
        self.win_score = reward_per_rollout * self.visit_count

    def terminal_value(self, win_weight: float) -> float:
        """
        Signed proven outcome: +win_weight if the engine wins, -win_weight otherwise.
        """
        assert self.is_terminal and self.visit_count > 0
        return win_weight if self.win_score > 0 else -win_weight

    def ucb_score(
        self,
        move: Place,
        own_side: Piece,
        config: MCTSConfig,
        win_weight: float,
    ) -> float:
        """
        Calculate the upper-confidence score of playing `move` from this node.

        UCB = sign * win_score / visits + C * sqrt(ln(parent_visits) / visits)

        where sign is +1 when the engine moves here and -1 otherwise.
        Unexplored moves get a fixed score depending on who moves; proven
        results get a score that dominates every other one.

        Args:
            move: Candidate move
            own_side: The engine's colour
            config: MCTS configuration parameters
            win_weight: Reward of a single won rollout

        Returns:
            UCB score
        """
        sign = 1 if self.side_to_move is own_side else -1

        child = self.children.get(move)
        if child is None:
            if self.side_to_move is own_side:
                return config.UNTRIED_SCORE
            return config.opponent_untried_score

        if child.is_terminal:
            return sign * child.terminal_value(win_weight) * config.TERMINAL_SCALE

        assert child.visit_count > 0, "expanded children always carry a visit"
        exploitation = sign * child.win_score / child.visit_count
        exploration = config.exploration_weight * math.sqrt(
            math.log(max(self.visit_count, 1)) / child.visit_count
        )
        return exploitation + exploration

    def most_visited_move(self) -> Optional[Place]:
        """
        Get the move of the most visited child (first one on ties).

        Returns:
            The move, or None if the node has no children
        """
        if not self.children:
            return None
        return max(self.children.items(), key=lambda item: item[1].visit_count)[0]

    def highest_win_rate_move(self) -> Optional[Place]:
        """
        Get the move of the child with the best engine-side win rate.

        Returns:
            The move, or None if the node has no visited children
        """
        visited = [(move, child) for move, child in self.children.items() if child.visit_count > 0]
        if not visited:
            return None
        return max(visited, key=lambda item: item[1].win_score / item[1].visit_count)[0]

    def top_two_visits(self) -> Tuple[Optional[Place], int, int]:
        """
        Get the most visited move with its visit count and the runner-up's count.

        Returns:
            Tuple of (leading move, leading visits, second visits)
        """
        most_move: Optional[Place] = None
        most = second = 0
        for move, child in self.children.items():
            if child.visit_count > most:
                second = most
                most = child.visit_count
                most_move = move
            elif child.visit_count > second:
                second = child.visit_count
        return most_move, most, second

    def __str__(self) -> str:
        return (f"TreeNode(side={self.side_to_move.name}, "
                f"move={self.incoming_move}, "
                f"visits={self.visit_count}, "
                f"score={self.win_score:.2f}, "
                f"terminal={self.is_terminal}, "
                f"children={len(self.children)})")
