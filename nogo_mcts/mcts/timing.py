"""
Time management for MCTS over a whole game.

The manager holds the thinking time left for the game and hands out a share of
it for each move:

    flat:      remaining_time / basic_const
    enhanced:  remaining_time / (basic_const + max(enhanced_peak - 2 * turn, 0))

Both are multiplied by `time_bonus`. The enhanced schedule spends more in the
opening and midgame and settles on the flat share once `turn` passes
`enhanced_peak / 2`. After each move the measured elapsed time is charged to
the budget, which may go negative.
"""
from __future__ import annotations
from typing import Callable, Optional
import time

from nogo_mcts.mcts.config import MCTSConfig


Clock = Callable[[], float]


class TimeManager:
    """
    Per-game thinking-time budget.

    The clock is injectable so tests can drive elapsed time deterministically.
    """

    def __init__(self, config: MCTSConfig, clock: Optional[Clock] = None):
        """
        Initialize the manager with a full budget.

        Args:
            config: MCTS configuration parameters
            clock: Monotonic clock in seconds (defaults to time.monotonic)
        """
        self.config = config
        self.clock = clock or time.monotonic
        self.remaining_time = config.initial_time
        self.turn = 0
        self._move_start: Optional[float] = None

    def reset(self) -> None:
        """Restore the full budget for a new game."""
        self.remaining_time = self.config.initial_time
        self.turn = 0
        self._move_start = None

    def thinking_time(self, turn: Optional[int] = None) -> float:
        """
        Get the allowance for a move.

        Args:
            turn: Number of our moves already made this game (defaults to the current turn)

        Returns:
            Allowance in seconds (0 when time management is off)
        """
        config = self.config
        if not config.use_time_management:
            return 0.0
        if turn is None:
            turn = self.turn

        divisor = float(config.basic_const)
        if config.enhanced_peak is not None:
            divisor += max(config.enhanced_peak - 2 * turn, 0)
        return self.remaining_time / divisor * config.time_bonus

    def now(self) -> float:
        return self.clock()

    def start_move(self, at: Optional[float] = None) -> float:
        """
        Record the start of a move and return the start timestamp.

        Args:
            at: Timestamp to use instead of the current clock reading
        """
        self._move_start = self.clock() if at is None else at
        return self._move_start

    def elapsed(self, since: Optional[float] = None) -> float:
        """Seconds since `since` (defaults to the start of the current move)."""
        if since is None:
            since = self._move_start
        if since is None:
            return 0.0
        return self.clock() - since

    def end_move(self) -> float:
        """
        Charge the elapsed time of the current move to the budget.

        Returns:
            Elapsed seconds for the move
        """
        cost = self.elapsed()
        self.remaining_time -= cost
        self.turn += 1
        self._move_start = None
        return cost
