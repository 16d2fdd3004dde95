#!/usr/bin/env python
"""
Command-line match runner for NoGo agents.

Plays a series of games between two agents and prints the results.

Example usage:
    # MCTS (black) against a random player, 10 games on 9x9
    nogo-play --black mcts --white random --games 10

    # Two time-managed engines with the enhanced schedule
    nogo-play --black mcts --white mcts --basic-const 30 --enhanced-peak 15 --early-ratio 0.5

    # Leaf parallelism with 4 rollouts per expansion
    nogo-play --black mcts --leaf-parallel 4 --sim-count 200
"""
import argparse
import random
import sys
from collections import Counter
from typing import Dict, Optional

import numpy as np
from tqdm import tqdm

from nogo_mcts.core.constants import Piece, DEFAULT_BOARD_SIZE
from nogo_mcts.core.game import Game
from nogo_mcts.mcts.agent import Agent, create_agent
from nogo_mcts.mcts.config import MCTSConfig


def parse_args(argv=None):
    """Parse command-line arguments for the match configuration."""
    parser = argparse.ArgumentParser(description="Play NoGo matches between agents")

    # Players
    parser.add_argument("--black", type=str, default="mcts", choices=["mcts", "random"],
                        help="Search strategy of the black player")
    parser.add_argument("--white", type=str, default="random", choices=["mcts", "random"],
                        help="Search strategy of the white player")
    parser.add_argument("--games", type=int, default=1,
                        help="Number of games to play")
    parser.add_argument("--board-size", type=int, default=DEFAULT_BOARD_SIZE,
                        help="Board side length")

    # MCTS configuration
    parser.add_argument("--C", dest="exploration_weight", type=float, default=1.44,
                        help="UCB exploration constant")
    parser.add_argument("--sim-count", type=int, default=None,
                        help="Fixed number of iterations per move")
    parser.add_argument("--basic-const", type=int, default=None,
                        help="Flat time schedule divisor (enables time management)")
    parser.add_argument("--enhanced-peak", type=int, default=None,
                        help="Enhanced time schedule peak ply (enables time management)")
    parser.add_argument("--time-bonus", type=float, default=1.0,
                        help="Multiplier for every per-move allowance")
    parser.add_argument("--initial-time", type=float, default=300.0,
                        help="Thinking time per game in seconds")
    parser.add_argument("--early", action="store_true",
                        help="Stop once the leading move has an absolute visit margin")
    parser.add_argument("--early-ratio", type=float, default=None,
                        help="Stop once the leading move cannot be caught up at the measured speed "
                             "(needs --basic-const or --enhanced-peak)")
    parser.add_argument("--unstable", type=int, default=0,
                        help="Maximum number of instability re-search passes")
    parser.add_argument("--leaf-parallel", type=int, default=1,
                        help="Concurrent rollouts per expansion")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed")

    parser.add_argument("--verbose", action="store_true",
                        help="Print search information for every move")
    parser.add_argument("--show-board", action="store_true",
                        help="Print the final board of every game")

    return parser.parse_args(argv)


def build_config(args, seed: Optional[int]) -> MCTSConfig:
    """Create the MCTS configuration from command-line arguments."""
    return MCTSConfig(
        exploration_weight=args.exploration_weight,
        sim_count=args.sim_count,
        basic_const=args.basic_const,
        enhanced_peak=args.enhanced_peak,
        time_bonus=args.time_bonus,
        initial_time=args.initial_time,
        early_stop=args.early,
        early_ratio=args.early_ratio,
        instability_passes=args.unstable,
        leaf_parallel=args.leaf_parallel,
        seed=seed,
    )


def create_player(args, strategy: str, side: Piece) -> Agent:
    """Create the agent for one side."""
    seed = None if args.seed is None else args.seed + side.value
    if strategy == "mcts":
        return create_agent(
            "mcts", side,
            config=build_config(args, seed),
            name=f"mcts-{side.name.lower()}",
            verbose=args.verbose,
        )
    return create_agent("random", side, name=f"random-{side.name.lower()}", seed=seed)


def play_match(black: Agent, white: Agent, games: int, board_size: int,
               show_board: bool = False) -> Dict[str, int]:
    """
    Play a series of games and count the winners.

    Args:
        black: Agent playing black
        white: Agent playing white
        games: Number of games
        board_size: Board side length
        show_board: Whether to print every final board

    Returns:
        Mapping from winning colour name to number of wins
    """
    wins: Counter = Counter()
    game = Game(board_size=board_size)
    black.register_with_game(game)
    white.register_with_game(game)

    for _ in tqdm(range(games), desc="Games", disable=games < 2):
        game.reset()
        black.open_episode()
        white.open_episode()

        game.run_game()

        black.close_episode()
        white.close_episode()

        winner = game.get_winner()
        wins[winner.name if winner is not None else "NONE"] += 1
        if show_board:
            print(game)

    return dict(wins)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.games <= 0:
        print("Error: --games must be positive")
        return 1

    if args.seed is not None:
        random.seed(args.seed)
        np.random.seed(args.seed)

    try:
        black = create_player(args, args.black, Piece.BLACK)
        white = create_player(args, args.white, Piece.WHITE)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    wins = play_match(black, white, args.games, args.board_size, args.show_board)

    print(f"\n{black} vs {white} on {args.board_size}x{args.board_size}")
    for side, agent in ((Piece.BLACK, black), (Piece.WHITE, white)):
        count = wins.get(side.name, 0)
        print(f"  {agent.name}: {count}/{args.games} wins ({100.0 * count / args.games:.1f}%)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
