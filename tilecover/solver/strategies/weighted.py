"""
Weighted Strategy - Trades distance against turning, within a reach cutoff.
"""

import logging
from typing import Optional

from ..base import NextTileStrategy, StrategyKind
from ..factory import register_strategy

logger = logging.getLogger(__name__)


@register_strategy
class WeightedStrategy(NextTileStrategy):
    """
    Weighted distance + turn strategy with a maximum reach.

    Only touching tiles within max_dist (in tile widths) are scored:

        score = w_dist * tile_distance + w_turn * turn

    and the lowest score wins (first found on ties). When no touching
    tile is within reach, falls back to the closest touching tile
    regardless of distance and turn, so the walk keeps going while any
    touching tile is left.

    Args:
        w_dist: Weight of the tile-normalized center distance
        w_turn: Weight of the turn angle in degrees
        max_dist: Reach cutoff in tile widths
    """
    kind = StrategyKind.WEIGHTED
    description = "Weighted (default) - distance + turn score with reach cutoff"

    def __init__(self, w_dist: float = 1.0, w_turn: float = 2.5, max_dist: float = 2.5):
        self._check_params(w_dist=w_dist, w_turn=w_turn, max_dist=max_dist)
        self.w_dist = w_dist
        self.w_turn = w_turn
        self.max_dist = max_dist

    def select(self, cur_idx, prev_angle, centers, unused, k, tiles) -> Optional[int]:
        best = None
        best_score = float("inf")

        for cand in self.iter_candidates(cur_idx, prev_angle, centers, unused, k, tiles):
            if not cand.adjacent or cand.tile_distance > self.max_dist:
                continue
            score = self.w_dist * cand.tile_distance + self.w_turn * cand.turn_cost
            if score < best_score:
                best_score = score
                best = cand.index

        if best is None:
            best = self.closest_adjacent(cur_idx, centers, unused, k, tiles)
            if best is not None:
                logger.debug(f"Fallback to closest adjacent tile at {tiles[best]}")
        return best
