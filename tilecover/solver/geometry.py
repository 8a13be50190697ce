"""
Geometry Module - Tile centers, bearings and turn angles.

Coordinates are (x, y) = (column, row). Bearings are Cartesian degrees:
0° points east and angles grow counter-clockwise, so the row axis is
inverted (rows grow downward on screen, "up" is +y here).
"""

import math
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .placement import Tile

# Angle comparisons treat differences below this as equal.
ANGLE_EPSILON = 1e-9


class Point(NamedTuple):
    x: float
    y: float


class CompassPoint(NamedTuple):
    degrees: int
    name: str
    arrow: str


COMPASS_POINTS: Tuple[CompassPoint, ...] = (
    CompassPoint(0, "E", "→"),
    CompassPoint(45, "NE", "↗"),
    CompassPoint(90, "N", "↑"),
    CompassPoint(135, "NW", "↖"),
    CompassPoint(180, "W", "←"),
    CompassPoint(225, "SW", "↙"),
    CompassPoint(270, "S", "↓"),
    CompassPoint(315, "SE", "↘"),
)


def tile_center(tile: Tile, k: int) -> Point:
    """
    Center of a k×k tile in (x=column, y=row) space.

    Args:
        tile: Tile anchor
        k: Tile side length

    Returns:
        Center point
    """
    half = (k - 1) / 2
    return Point(tile.c + half, tile.r + half)


def bearing(a: Point, b: Point) -> float:
    """
    Direction of travel from center a to center b.

    Args:
        a: Start center
        b: End center

    Returns:
        Degrees in [0, 360), 0 = east, counter-clockwise
    """
    dx = b.x - a.x
    dy = a.y - b.y
    deg = math.degrees(math.atan2(dy, dx))
    if deg < 0:
        deg += 360.0
    # atan2 of a tiny negative dy can round up to exactly 360
    if deg >= 360.0:
        deg -= 360.0
    return deg


def turn_angle(deg1: float, deg2: float) -> float:
    """Unsigned circular difference between two bearings, in [0, 180]."""
    d = abs(deg2 - deg1) % 360.0
    return min(d, 360.0 - d)


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two centers."""
    return math.hypot(b.x - a.x, b.y - a.y)


def tile_distance(a: Point, b: Point, k: int) -> float:
    """Center distance measured in tile widths."""
    return distance(a, b) / k


def compass(deg: float) -> CompassPoint:
    """
    Nearest of the eight compass bearings.

    For labelling only; ordering decisions never use this.

    Args:
        deg: Bearing in degrees

    Returns:
        CompassPoint with degrees, short name and arrow glyph
    """
    best = COMPASS_POINTS[0]
    best_diff = float("inf")
    for point in COMPASS_POINTS:
        diff = turn_angle(deg, point.degrees)
        if diff < best_diff:
            best_diff = diff
            best = point
    return best


def arrow(deg: Optional[float]) -> str:
    """Arrow glyph for a bearing, or "·" when undetermined."""
    if deg is None:
        return "·"
    return compass(deg).arrow


def direction_series(tiles: Sequence[Tile], k: int) -> Tuple[List[float], List[float]]:
    """
    Bearings between consecutive tiles and the turns between them.

    Args:
        tiles: Tiles in visiting order
        k: Tile side length

    Returns:
        (bearings, turns): len(tiles)-1 bearings and len(tiles)-2 turns,
        both empty for fewer than two tiles
    """
    if len(tiles) < 2:
        return [], []

    centers = [tile_center(t, k) for t in tiles]
    bearings = [bearing(centers[i], centers[i + 1]) for i in range(len(centers) - 1)]
    turns = [turn_angle(bearings[i], bearings[i + 1]) for i in range(len(bearings) - 1)]
    return bearings, turns


def mean_angle(angles: Sequence[float]) -> Optional[float]:
    """Arithmetic mean of bearings, or None for an empty sequence."""
    if not angles:
        return None
    return sum(angles) / len(angles)


@dataclass
class TileGroup:
    """
    A run of tiles travelling in roughly one direction.

    Attributes:
        tiles: Tiles of the run (consecutive groups share a boundary tile)
        angles: Bearings between consecutive tiles of the run
        mean_angle: Mean of angles, None for a single-tile group
    """
    tiles: List[Tile] = field(default_factory=list)
    angles: List[float] = field(default_factory=list)
    mean_angle: Optional[float] = None

    @property
    def arrow(self) -> str:
        return arrow(self.mean_angle)


def group_by_angle(tiles: Sequence[Tile], k: int, threshold: float = 45.0) -> List[TileGroup]:
    """
    Split a tour into runs of similar direction.

    A new run starts at the move whose bearing differs from the mean
    bearing of the current run by more than threshold degrees. The tile
    where the split happens ends one run and starts the next.

    Args:
        tiles: Tiles in visiting order
        k: Tile side length
        threshold: Maximum deviation from the running mean (degrees)

    Returns:
        Groups in tour order; a single tile gives one group without angles
    """
    if not tiles:
        return []
    if len(tiles) == 1:
        return [TileGroup(tiles=list(tiles))]

    bearings, _ = direction_series(tiles, k)

    split_points = [0]
    for i in range(1, len(bearings)):
        current = bearings[split_points[-1]:i]
        if turn_angle(mean_angle(current), bearings[i]) > threshold + ANGLE_EPSILON:
            split_points.append(i)

    groups = []
    for g, start in enumerate(split_points):
        end = split_points[g + 1] if g + 1 < len(split_points) else len(bearings)
        angles = bearings[start:end]
        groups.append(TileGroup(
            tiles=list(tiles[start:end + 1]),
            angles=angles,
            mean_angle=mean_angle(angles),
        ))
    return groups
