"""
Monte Carlo Tree Search (MCTS) engine for NoGo.

This package provides an MCTS agent that plays NoGo from random playouts
alone. Every iteration:

1. Selection: Starting from the root, pick the move with the best UCB score
   until reaching a move that has not been tried yet.
2. Expansion: Create the child node for that move.
3. Simulation: Play random games from the new position (several at once with
   leaf parallelism).
4. Backpropagation: Add the reward to every node on the path.

The tree is kept between moves, the thinking time is spread over the whole
game, and optional early-stop and instability heuristics decide when to stop.
"""

from nogo_mcts.mcts.node import TreeNode
from nogo_mcts.mcts.tree import SearchTree, RootRoleMismatchError, count_nodes
from nogo_mcts.mcts.agent import (
    Agent,
    MCTSAgent,
    RandomAgent,
    MCTSAgentFactory,
    create_agent
)
from nogo_mcts.mcts.search import (
    mcts_search,
    search,
    run_iterations,
    early_stop_move,
    is_unstable
)
from nogo_mcts.mcts.rollout import rollout, parallel_rollouts, simulate
from nogo_mcts.mcts.timing import TimeManager
from nogo_mcts.mcts.config import MCTSConfig

# Default configuration
DEFAULT_CONFIG = MCTSConfig(
    exploration_weight=1.44,  # UCB exploration constant
    sim_count=100,            # Iterations per move without time management
    leaf_parallel=1,          # Rollouts per expansion
)

__all__ = [
    'Agent',
    'MCTSAgent',
    'RandomAgent',
    'MCTSAgentFactory',
    'create_agent',
    'TreeNode',
    'SearchTree',
    'RootRoleMismatchError',
    'count_nodes',
    'MCTSConfig',
    'TimeManager',
    'mcts_search',
    'search',
    'run_iterations',
    'early_stop_move',
    'is_unstable',
    'rollout',
    'parallel_rollouts',
    'simulate',
    'DEFAULT_CONFIG'
]
