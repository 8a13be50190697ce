"""
Prefer Close Strategy - Smallest turn among the immediate neighbours.
"""

import logging
import math
from typing import Optional

from ..base import NextTileStrategy, StrategyKind
from ..factory import register_strategy

logger = logging.getLogger(__name__)

# One diagonal tile step, in tile widths
DIAGONAL_STEP = math.sqrt(2)
_REACH_TOLERANCE = 1e-9


@register_strategy
class PreferCloseStrategy(NextTileStrategy):
    """
    Prefer-small-turn-if-close strategy.

    Considers touching tiles no further than one diagonal tile step
    (edge and corner neighbours) and picks the smallest turn, breaking
    ties by distance. With no such neighbour it falls back to the closest
    touching tile, like the weighted strategy.

    Args:
        reach: Maximum tile-normalized distance of a "close" neighbour
    """
    kind = StrategyKind.PREFER_CLOSE
    description = "Prefer close - smallest turn among edge/corner neighbours"

    def __init__(self, reach: float = DIAGONAL_STEP):
        self._check_params(reach=reach)
        self.reach = reach

    def select(self, cur_idx, prev_angle, centers, unused, k, tiles) -> Optional[int]:
        best = None
        best_key = (float("inf"), float("inf"))

        for cand in self.iter_candidates(cur_idx, prev_angle, centers, unused, k, tiles):
            if not cand.adjacent or cand.tile_distance > self.reach + _REACH_TOLERANCE:
                continue
            key = (cand.turn_cost, cand.distance)
            if key < best_key:
                best_key = key
                best = cand.index

        if best is None:
            best = self.closest_adjacent(cur_idx, centers, unused, k, tiles)
            if best is not None:
                logger.debug(f"Fallback to closest adjacent tile at {tiles[best]}")
        return best
