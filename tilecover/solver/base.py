"""
Base Strategy Module - Abstract base class for next-tile strategies.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Iterator, Optional, Sequence

from .adjacency import touches
from .errors import ConfigurationError
from .geometry import Point, bearing, distance, tile_distance, turn_angle
from .placement import Tile

# Turns up to this many degrees are flagged as "preferred" candidates.
PREFERRED_TURN_DEG = 45.0


class StrategyKind(Enum):
    """Closed set of next-tile strategies."""
    NEAREST = "nearest"
    MIN_TURN = "min_turn"
    WEIGHTED = "weighted"
    PREFER_CLOSE = "prefer_close"

    @classmethod
    def parse(cls, value) -> 'StrategyKind':
        """
        Convert a name (or StrategyKind) to a StrategyKind.

        Raises:
            ConfigurationError: If the name is unknown
        """
        if isinstance(value, StrategyKind):
            return value
        try:
            return cls(str(value).strip().lower().replace("-", "_"))
        except ValueError:
            available = ", ".join(kind.value for kind in cls)
            raise ConfigurationError(f"Unknown strategy: {value}. Available: {available}") from None


@dataclass(frozen=True)
class Candidate:
    """
    A possible next tile, seen from the current tile.

    Attributes:
        index: Index into the tile list
        tile: The candidate tile
        distance: Center distance in cells
        tile_distance: Center distance in tile widths
        bearing: Direction from the current tile (degrees)
        turn: Turn from the previous bearing, None while undetermined
        adjacent: Whether the candidate touches the current tile
    """
    index: int
    tile: Tile
    distance: float
    tile_distance: float
    bearing: float
    turn: Optional[float]
    adjacent: bool

    @property
    def turn_cost(self) -> float:
        """Turn used for scoring: 0 while the direction is undetermined."""
        return 0.0 if self.turn is None else self.turn

    @property
    def is_preferred(self) -> bool:
        """True when the turn is known and at most PREFERRED_TURN_DEG."""
        return self.turn is not None and self.turn <= PREFERRED_TURN_DEG


def candidate_info(
    cur_idx: int,
    index: int,
    centers: Sequence[Point],
    tiles: Sequence[Tile],
    k: int,
    prev_angle: Optional[float],
) -> Candidate:
    """
    Annotate a tile with distance, bearing and turn relative to the current tile.

    Args:
        cur_idx: Current tile index
        index: Candidate tile index
        centers: Tile centers aligned with tiles
        tiles: Tile list
        k: Tile side length
        prev_angle: Bearing of the previous move, or None

    Returns:
        Candidate
    """
    a, b = centers[cur_idx], centers[index]
    ang = bearing(a, b)
    return Candidate(
        index=index,
        tile=tiles[index],
        distance=distance(a, b),
        tile_distance=tile_distance(a, b, k),
        bearing=ang,
        turn=None if prev_angle is None else turn_angle(prev_angle, ang),
        adjacent=touches(tiles[cur_idx], tiles[index], k),
    )


class NextTileStrategy(ABC):
    """
    Abstract base class for all next-tile strategies.

    A strategy is a pure function of the walk state: it receives the
    current tile, the previous bearing and the unused tile indices, and
    returns the index of the tile to visit next, or None. It keeps no
    state between calls and may only return members of `unused`.

    Subclasses implement select() and define kind and description
    class attributes.

    Attributes:
        kind: StrategyKind this class implements
        description: Human-readable description for CLI/help output
    """
    kind: StrategyKind = None
    description: str = "Base strategy"

    @property
    def name(self) -> str:
        """Short identifier for the strategy."""
        return self.kind.value if self.kind else "base"

    def __call__(self, cur_idx, prev_angle, centers, unused, k, tiles) -> Optional[int]:
        return self.select(cur_idx, prev_angle, centers, unused, k, tiles)

    @abstractmethod
    def select(
        self,
        cur_idx: int,
        prev_angle: Optional[float],
        centers: Sequence[Point],
        unused: AbstractSet[int],
        k: int,
        tiles: Sequence[Tile],
    ) -> Optional[int]:
        """
        Pick the next tile.

        Args:
            cur_idx: Index of the current tile
            prev_angle: Bearing of the previous move, None while undetermined
            centers: Tile centers aligned with tiles
            unused: Indices that may be visited
            k: Tile side length
            tiles: Tile list

        Returns:
            Index of the next tile (a member of unused), or None
        """
        pass

    def iter_candidates(self, cur_idx, prev_angle, centers, unused, k, tiles) -> Iterator[Candidate]:
        """
        Annotated candidates in ascending index order.

        Sorting makes "first found" tie-breaking independent of set order.
        """
        for index in sorted(unused):
            yield candidate_info(cur_idx, index, centers, tiles, k, prev_angle)

    def closest_adjacent(self, cur_idx, centers, unused, k, tiles) -> Optional[int]:
        """
        Closest unused tile touching the current tile.

        Used as the fallback when scoring rejects every candidate, so the
        walk keeps moving as long as any touching tile is left.

        Returns:
            Index of the closest touching tile, or None
        """
        best = None
        best_d = float("inf")
        for cand in self.iter_candidates(cur_idx, None, centers, unused, k, tiles):
            if cand.adjacent and cand.distance < best_d:
                best_d = cand.distance
                best = cand.index
        return best

    @staticmethod
    def _check_params(**params: float) -> None:
        for key, value in params.items():
            if value is None or value < 0:
                raise ConfigurationError(f"{key} must be a non-negative number, got {value!r}")

