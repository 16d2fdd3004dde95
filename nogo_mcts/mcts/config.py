"""
Configuration for Monte Carlo Tree Search (MCTS).

This module defines the tunable parameters of the search engine: the UCB
exploration constant, the iteration cap, the time-management schedule, the
early-stop and instability heuristics, and leaf parallelism.
"""
from dataclasses import dataclass
from typing import Optional, ClassVar
import math


@dataclass
class MCTSConfig:
    """
    Configuration parameters for Monte Carlo Tree Search.

    Time management is enabled as soon as `basic_const` or `enhanced_peak` is
    set. In that mode the iteration cap defaults to unbounded, so the clock is
    what ends the search.
    """
    # Search parameters
    exploration_weight: float = 1.44
    """UCB exploration constant C"""

    sim_count: Optional[int] = None
    """Iteration cap per move (None = 100, or unbounded when time-managed)"""

    opponent_untried_score: float = 0.0
    """UCB score of an unexplored reply at a node where the opponent moves"""

    # Time management
    basic_const: Optional[int] = None
    """Flat schedule divisor: thinking_time = remaining_time / basic_const"""

    enhanced_peak: Optional[int] = None
    """Enhanced schedule peak ply; adds max(enhanced_peak - 2*turn, 0) to the divisor"""

    time_bonus: float = 1.0
    """Multiplier applied to every per-move allowance"""

    initial_time: float = 300.0
    """Thinking-time budget in seconds for a whole game"""

    # Early stop
    early_stop: bool = False
    """Whether to stop once the leading move cannot be caught up"""

    early_threshold: int = 5000
    """Absolute visit margin (per rollout) used when early_ratio is None"""

    early_ratio: Optional[float] = None
    """Scale the margin by measured throughput and remaining thinking time (time-managed only)"""

    early_min_turn: int = 2
    """In-loop early checks only start after this many of our own moves"""

    # Instability re-search
    instability_passes: int = 0
    """Extra half-budget passes while most-visited and best-win-rate moves disagree"""

    # Parallelization
    leaf_parallel: int = 1
    """Number of concurrent rollouts per expansion (1 = single rollout)"""

    seed: Optional[int] = None
    """Seed of the rollout random generator (None = nondeterministic)"""

    # Constants
    DEFAULT_SIM_COUNT: ClassVar[int] = 100
    """Iteration cap when neither sim_count nor time management is configured"""

    UNTRIED_SCORE: ClassVar[float] = 999.0
    """UCB score of an unexplored move at a node where we move"""

    TERMINAL_SCALE: ClassVar[float] = 1000.0
    """Scale applied to a proven result so it dominates every other score"""

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.exploration_weight < 0 or not math.isfinite(self.exploration_weight):
            raise ValueError("exploration_weight must be a non-negative finite number")

        if self.sim_count is not None and self.sim_count <= 0:
            raise ValueError("sim_count must be positive or None")

        if self.basic_const is not None and self.basic_const <= 0:
            raise ValueError("basic_const must be positive or None")

        if self.enhanced_peak is not None and self.enhanced_peak < 0:
            raise ValueError("enhanced_peak must be non-negative or None")

        if self.time_bonus <= 0:
            raise ValueError("time_bonus must be positive")

        if self.initial_time <= 0:
            raise ValueError("initial_time must be positive")

        if self.early_threshold < 0:
            raise ValueError("early_threshold must be non-negative")

        if self.early_ratio is not None and self.early_ratio <= 0:
            raise ValueError("early_ratio must be positive or None")

        if self.early_min_turn < 0:
            raise ValueError("early_min_turn must be non-negative")

        if self.instability_passes < 0:
            raise ValueError("instability_passes must be non-negative")

        if self.leaf_parallel <= 0:
            raise ValueError("leaf_parallel must be positive")

        # Enhanced schedule shares the flat divisor
        if self.enhanced_peak is not None and self.basic_const is None:
            self.basic_const = 30

        # Throughput-scaled early stop needs a time schedule
        if self.early_ratio is not None:
            if self.basic_const is None:
                raise ValueError("early_ratio requires basic_const or enhanced_peak")
            self.early_stop = True

    @property
    def use_time_management(self) -> bool:
        """Whether the wall clock bounds the search."""
        return self.basic_const is not None

    @property
    def max_iterations(self) -> Optional[int]:
        """Iteration cap per move, or None when only the clock bounds the search."""
        if self.sim_count is not None:
            return self.sim_count
        if self.use_time_management:
            return None
        return self.DEFAULT_SIM_COUNT

    @classmethod
    def default(cls) -> 'MCTSConfig':
        """
        Get the default configuration.

        Returns:
            Default MCTSConfig object
        """
        return cls()

    @classmethod
    def fast(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for speed (few iterations, no clock).

        Returns:
            Fast MCTSConfig object
        """
        return cls(sim_count=50)

    @classmethod
    def timed(cls) -> 'MCTSConfig':
        """
        Get a tournament configuration: enhanced time schedule, throughput-based
        early stop and one instability pass.

        Returns:
            Timed MCTSConfig object
        """
        return cls(
            basic_const=30,
            enhanced_peak=15,
            time_bonus=1.0,
            early_ratio=0.5,
            instability_passes=1,
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'MCTSConfig':
        """
        Create a configuration from a dictionary.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            MCTSConfig object
        """
        # Filter out any keys that aren't valid parameters
        valid_params = {k: v for k, v in config_dict.items()
                        if k in cls.__dataclass_fields__}
        return cls(**valid_params)

    def to_dict(self) -> dict:
        """
        Convert the configuration to a dictionary.

        Returns:
            Dictionary of configuration parameters
        """
        return {name: getattr(self, name) for name in self.__dataclass_fields__}

    def __str__(self) -> str:
        params = [f"{name}={value}" for name, value in self.to_dict().items()]
        return f"MCTSConfig({', '.join(params)})"
