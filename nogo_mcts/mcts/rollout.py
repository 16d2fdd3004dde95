"""
Random playouts (the simulation phase of MCTS).

A rollout copies the board and lets both sides place uniformly random legal
stones until one of them cannot move. The side that ran out of moves loses.

With leaf parallelism, several rollouts start from the same position at once.
Each worker gets its own random generator and pushes its reward into a
collector guarded by a lock local to the fan-out call. All workers are joined
before the summed reward is returned.
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence
import threading

import numpy as np

from nogo_mcts.core.board import Board
from nogo_mcts.core.constants import Piece, Legality, WIN_WEIGHT


def rollout(
    board: Board,
    own_side: Piece,
    rng: np.random.Generator,
    win_weight: float = WIN_WEIGHT,
) -> float:
    """
    Play random moves from `board` until the side to move is stuck.

    The caller's board is never modified.

    Args:
        board: Starting position (its side to move plays first)
        own_side: Colour whose reward is reported
        rng: Random generator driving the move choices
        win_weight: Reward of a win

    Returns:
        win_weight if `own_side` wins the playout, 0 otherwise
    """
    state = board.clone()
    while True:
        moves = state.get_legal_moves()
        if not moves:
            break
        move = moves[int(rng.integers(len(moves)))]
        outcome = state.apply_move(move)
        assert outcome is Legality.LEGAL, f"enumerated move {move} was rejected"

    loser = state.to_move
    return win_weight if loser is not own_side else 0


def parallel_rollouts(
    board: Board,
    own_side: Piece,
    rngs: Sequence[np.random.Generator],
    win_weight: float = WIN_WEIGHT,
) -> float:
    """
    Run one rollout per generator concurrently and sum the rewards.

    Args:
        board: Starting position shared (read-only) by all workers
        own_side: Colour whose reward is reported
        rngs: One independent generator per rollout
        win_weight: Reward of a win

    Returns:
        Sum of the rollout rewards
    """
    results: List[float] = []
    lock = threading.Lock()

    def worker(rng: np.random.Generator) -> None:
        outcome = rollout(board, own_side, rng, win_weight)
        with lock:
            results.append(outcome)

    with ThreadPoolExecutor(max_workers=len(rngs)) as executor:
        futures = [executor.submit(worker, rng) for rng in rngs]
        for future in futures:
            # Re-raises worker exceptions
            future.result()

    assert len(results) == len(rngs)
    return sum(results)


def spawn_generators(rng: np.random.Generator, count: int) -> List[np.random.Generator]:
    """
    Derive `count` independent generators from `rng`.

    Args:
        rng: Parent generator (advanced by the call)
        count: Number of generators

    Returns:
        List of new generators
    """
    seeds = rng.integers(0, 2**63 - 1, size=count, dtype=np.int64)
    return [np.random.default_rng(int(seed)) for seed in seeds]


def simulate(
    board: Board,
    own_side: Piece,
    rng: np.random.Generator,
    leaf_parallel: int = 1,
    win_weight: float = WIN_WEIGHT,
) -> float:
    """
    Estimate a position with `leaf_parallel` rollouts.

    Args:
        board: Position to estimate
        own_side: Colour whose reward is reported
        rng: Random generator of the search
        leaf_parallel: Number of rollouts
        win_weight: Reward of a win

    Returns:
        Summed reward of all rollouts
    """
    if leaf_parallel <= 1:
        return rollout(board, own_side, rng, win_weight)
    return parallel_rollouts(board, own_side, spawn_generators(rng, leaf_parallel), win_weight)
