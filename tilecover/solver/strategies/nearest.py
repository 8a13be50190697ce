"""
Nearest Strategy - Always steps to the closest unused tile.
"""

from typing import Optional

from ..base import NextTileStrategy, StrategyKind
from ..factory import register_strategy


@register_strategy
class NearestStrategy(NextTileStrategy):
    """
    Nearest-neighbour strategy.

    Picks the unused tile whose center is closest to the current one,
    adjacent or not. Ties go to the lowest index. Fast and local, but the
    resulting tours tend to zig-zag.
    """
    kind = StrategyKind.NEAREST
    description = "Nearest - closest unused tile by center distance"

    def select(self, cur_idx, prev_angle, centers, unused, k, tiles) -> Optional[int]:
        best = None
        best_d = float("inf")
        for cand in self.iter_candidates(cur_idx, prev_angle, centers, unused, k, tiles):
            if cand.distance < best_d:
                best_d = cand.distance
                best = cand.index
        return best
