"""
Minimum Turn Strategy - Keeps the heading as straight as possible.
"""

from typing import Optional

from ..base import NextTileStrategy, StrategyKind
from ..factory import register_strategy


@register_strategy
class MinTurnStrategy(NextTileStrategy):
    """
    Minimum-turn strategy.

    Picks the unused tile whose bearing deviates least from the previous
    move. Until two tiles are visited there is no heading, every turn
    costs 0 and the first candidate (lowest index) wins. Distance is
    ignored, so the walk can jump far to stay straight.
    """
    kind = StrategyKind.MIN_TURN
    description = "Minimum turn - smallest change of direction"

    def select(self, cur_idx, prev_angle, centers, unused, k, tiles) -> Optional[int]:
        best = None
        best_turn = float("inf")
        for cand in self.iter_candidates(cur_idx, prev_angle, centers, unused, k, tiles):
            if cand.turn_cost < best_turn:
                best_turn = cand.turn_cost
                best = cand.index
        return best
