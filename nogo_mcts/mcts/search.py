"""
Monte Carlo Tree Search (MCTS) algorithm for NoGo.

This module implements one search episode on a reusable tree:
1. Selection: descend from the root picking the best UCB score at every node
2. Expansion: create exactly one new child per iteration
3. Simulation: random playouts from the new child's position
4. Backpropagation: fold the playout reward into every node on the path

Iterations stop at the iteration cap, when the thinking time is used up, when
the root is proven, or when the early-stop heuristic declares the leading move
unbeatable. Optional instability passes keep searching while the most visited
move is not the one with the best win rate.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import itertools

import numpy as np

from nogo_mcts.core.actions import Place
from nogo_mcts.core.board import Board
from nogo_mcts.core.constants import Piece, Legality, WIN_WEIGHT
from nogo_mcts.mcts.config import MCTSConfig
from nogo_mcts.mcts.node import TreeNode
from nogo_mcts.mcts.rollout import simulate
from nogo_mcts.mcts.timing import TimeManager
from nogo_mcts.mcts.tree import SearchTree, count_nodes


@dataclass
class LoopReport:
    """Outcome of one run of the iteration loop."""
    iterations: int = 0
    elapsed: float = 0.0
    timed_out: bool = False
    root_terminal: bool = False
    early_move: Optional[Place] = None


def search(
    board: Board,
    node: TreeNode,
    own_side: Piece,
    config: MCTSConfig,
    rng: np.random.Generator,
    win_weight: float = WIN_WEIGHT,
) -> Tuple[Optional[Place], float]:
    """
    Run one selection / expansion / simulation / backpropagation pass.

    `board` is the position of `node` and is advanced in place, so callers
    pass a private copy.

    Args:
        board: Position at `node`
        node: Node to search from
        own_side: The engine's colour (perspective of all rewards)
        config: MCTS configuration parameters
        rng: Random generator for the rollouts
        win_weight: Reward of a single won rollout

    Returns:
        Tuple of (move chosen at `node`, summed reward folded into `node`)
    """
    assert board.to_move is node.side_to_move, "board and node disagree on the side to move"
    rollouts = config.leaf_parallel

    # Selection: first strictly greater score wins
    best_move: Optional[Place] = None
    best_score = float("-inf")
    for move in board.get_legal_moves(node.side_to_move):
        score = node.ucb_score(move, own_side, config, win_weight)
        if score > best_score:
            best_move = move
            best_score = score

    # No legal move: the side to move loses here
    if best_move is None:
        reward = win_weight if node.side_to_move is not own_side else 0
        node.mark_terminal(reward, rollouts)
        return None, reward * rollouts

    outcome = board.apply_move(best_move)
    assert outcome is Legality.LEGAL, f"selected move {best_move} was rejected"

    if node.has_child(best_move):
        _, result = search(board, node.child(best_move), own_side, config, rng, win_weight)
    else:
        # Expansion and simulation
        child = node.new_child(best_move)
        result = simulate(board, own_side, rng, rollouts, win_weight)
        child.record(result, rollouts)

    # Backpropagation
    node.record(result, rollouts)
    return best_move, result


def early_stop_move(
    root: TreeNode,
    config: MCTSConfig,
    remaining_thinking: float = 0.0,
    iterations_per_second: float = 0.0,
) -> Optional[Place]:
    """
    Return the leading move if its visit margin cannot be caught up.

    The required margin is `early_threshold` rollouts, or, when `early_ratio`
    is set, the number of rollouts the remaining thinking time is expected to
    produce scaled by `early_ratio`.

    Args:
        root: Root of the search tree
        config: MCTS configuration parameters
        remaining_thinking: Thinking time left for this move, in seconds
        iterations_per_second: Measured search throughput

    Returns:
        The leading move, or None to keep searching
    """
    most_move, most, second = root.top_two_visits()
    if most_move is None:
        return None

    if config.early_ratio is None:
        threshold = config.early_threshold * config.leaf_parallel
    else:
        if iterations_per_second <= 0:
            return None
        threshold = (
            max(remaining_thinking, 0.0) * iterations_per_second
            * config.early_ratio * config.leaf_parallel
        )

    if most - threshold >= second:
        return most_move
    return None


def is_unstable(root: TreeNode) -> bool:
    """
    Check whether the most visited move differs from the best win-rate move.

    Args:
        root: Root of the search tree

    Returns:
        True if the two disagree
    """
    most_visited = root.most_visited_move()
    if most_visited is None:
        return False
    return root.highest_win_rate_move() != most_visited


def run_iterations(
    tree: SearchTree,
    board: Board,
    own_side: Piece,
    config: MCTSConfig,
    rng: np.random.Generator,
    time_manager: TimeManager,
    budget: float,
    check_early: bool = False,
    iterations_per_second: float = 0.0,
    win_weight: float = WIN_WEIGHT,
) -> LoopReport:
    """
    Run search passes from the tree root until a stop condition holds.

    Args:
        tree: Search tree (its root is the position of `board`)
        board: Position at the root (not modified)
        own_side: The engine's colour
        config: MCTS configuration parameters
        rng: Random generator for the rollouts
        time_manager: Source of the clock
        budget: Thinking time for this loop (ignored without time management)
        check_early: Whether to apply the early-stop heuristic after each pass
        iterations_per_second: Throughput used by the ratio early-stop
        win_weight: Reward of a single won rollout

    Returns:
        LoopReport describing why the loop ended
    """
    report = LoopReport()
    start = time_manager.now()
    limit = config.max_iterations
    counter = range(limit) if limit is not None else itertools.count()

    for _ in counter:
        elapsed = time_manager.elapsed(start)
        if config.use_time_management and elapsed >= budget:
            report.timed_out = True
            break
        if tree.root.is_terminal:
            report.root_terminal = True
            break

        search(board.clone(), tree.root, own_side, config, rng, win_weight)
        report.iterations += 1

        if check_early:
            move = early_stop_move(tree.root, config, budget - elapsed, iterations_per_second)
            if move is not None:
                report.early_move = move
                break

    report.elapsed = time_manager.elapsed(start)
    return report


def mcts_search(
    tree: SearchTree,
    board: Board,
    own_side: Piece,
    config: MCTSConfig,
    rng: np.random.Generator,
    time_manager: TimeManager,
    iterations_per_second: float = 0.0,
    win_weight: float = WIN_WEIGHT,
) -> Tuple[Optional[Place], Dict[str, Any]]:
    """
    Run a full search episode and pick the most visited move.

    The tree is grown in place; advancing the root is left to the caller.

    Args:
        tree: Search tree whose root is the position of `board`
        board: Current position (the engine is to move)
        own_side: The engine's colour
        config: MCTS configuration parameters
        rng: Random generator for the rollouts
        time_manager: Per-game time budget
        iterations_per_second: Throughput measured on the previous move
        win_weight: Reward of a single won rollout

    Returns:
        Tuple of (best move or None if the engine cannot move, search statistics)
    """
    thinking_time = time_manager.thinking_time()
    start = time_manager.now()

    stats: Dict[str, Any] = {
        "iterations": 0,
        "thinking_time": thinking_time,
        "stopped_early": False,
        "timed_out": False,
        "instability_passes": 0,
    }

    move: Optional[Place] = None
    if config.early_stop:
        move = early_stop_move(tree.root, config, thinking_time, iterations_per_second)

    if move is None:
        report = run_iterations(
            tree, board, own_side, config, rng, time_manager,
            budget=thinking_time,
            check_early=config.early_stop and time_manager.turn >= config.early_min_turn,
            iterations_per_second=iterations_per_second,
            win_weight=win_weight,
        )
        stats["iterations"] = report.iterations
        stats["timed_out"] = report.timed_out
        stats["iterations_per_second"] = (
            report.iterations / report.elapsed if report.elapsed > 0 else 0.0
        )
        move = report.early_move

    if move is not None:
        stats["stopped_early"] = True
    else:
        # Instability re-search on half budgets
        passes = 0
        while passes < config.instability_passes and is_unstable(tree.root):
            report = run_iterations(
                tree, board, own_side, config, rng, time_manager,
                budget=thinking_time / 2,
                win_weight=win_weight,
            )
            stats["iterations"] += report.iterations
            passes += 1
        stats["instability_passes"] = passes
        move = tree.root.most_visited_move()

    if move is None and not tree.root.is_terminal:
        # Nothing was explored (e.g. no time left): fall back to a random legal move
        legal = board.get_legal_moves(own_side)
        if legal:
            move = legal[int(rng.integers(len(legal)))]
            stats["used_fallback"] = True

    stats["rollouts"] = stats["iterations"] * config.leaf_parallel
    stats["time_elapsed"] = time_manager.elapsed(start)
    stats["root_terminal"] = tree.root.is_terminal
    stats["node_count"] = count_nodes(tree.root)
    stats["action_visits"] = {str(m): c.visit_count for m, c in tree.root.children.items()}
    stats["action_rewards"] = {
        str(m): c.win_score / c.visit_count
        for m, c in tree.root.children.items() if c.visit_count > 0
    }
    return move, stats


def get_principal_variation(root: TreeNode, max_depth: int = 10) -> List[Tuple[Place, float]]:
    """
    Get the principal variation (most visited path) from the root.

    This is useful for analysis and debugging.

    Args:
        root: Root node of the MCTS tree
        max_depth: Maximum depth to explore

    Returns:
        List of (move, engine win rate) pairs
    """
    result = []
    current = root

    while current.children and len(result) < max_depth:
        move = current.most_visited_move()
        current = current.child(move)
        result.append((move, current.win_score / max(1, current.visit_count)))

    return result


def get_action_statistics(
    root: TreeNode,
    own_side: Piece,
    config: MCTSConfig,
    win_weight: float = WIN_WEIGHT,
) -> Dict[str, Dict[str, float]]:
    """
    Get statistics for all moves from the root.

    This is useful for analysis and debugging.

    Args:
        root: Root node of the MCTS tree
        own_side: The engine's colour
        config: MCTS configuration parameters
        win_weight: Reward of a single won rollout

    Returns:
        Dictionary mapping move strings to statistics
    """
    result = {}

    for move, child in root.children.items():
        result[str(move)] = {
            "visits": child.visit_count,
            "score": child.win_score,
            "value": child.win_score / max(1, child.visit_count),
            "ucb": root.ucb_score(move, own_side, config, win_weight),
            "terminal": child.is_terminal,
        }

    return result
