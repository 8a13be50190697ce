"""
Placement Enumerator Module - Finds every fully active k×k square.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .board import GridMask
from .errors import ConfigurationError
from .placement import Placement, Tile

logger = logging.getLogger(__name__)

SUPPORTED_TILE_SIZES = (2, 3)

TileLike = Union[Tile, Tuple[int, int]]


def as_anchor(tile: TileLike) -> Tuple[int, int]:
    """Return the (r, c) anchor of a Tile, Placement or (r, c) tuple."""
    if isinstance(tile, Tile):
        return (tile.r, tile.c)
    r, c = tile
    return (int(r), int(c))


@dataclass(frozen=True)
class PlacementSet:
    """
    Result of placement enumeration.

    Read-only after construction; several sessions may share one
    instance.

    Attributes:
        grid: Source grid mask
        k: Tile side length
        placements: Valid placements in row-major anchor order
        active_mask: Flat bitset of the grid's active cells
        active_count: Number of active cells in the grid
    """
    grid: GridMask
    k: int
    placements: Tuple[Placement, ...] = ()
    active_mask: np.ndarray = field(default=None, compare=False, repr=False)
    active_count: int = 0
    _index: Dict[Tuple[int, int], int] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        if not self._index:
            for i, p in enumerate(self.placements):
                self._index[(p.r, p.c)] = i

    @property
    def rows(self) -> int:
        return self.grid.rows

    @property
    def cols(self) -> int:
        return self.grid.cols

    @property
    def tiles(self) -> List[Placement]:
        """Placements as a list (the tile list tours index into)."""
        return list(self.placements)

    @property
    def is_empty(self) -> bool:
        return len(self.placements) == 0

    def __len__(self) -> int:
        return len(self.placements)

    def __iter__(self):
        return iter(self.placements)

    def __getitem__(self, index: int) -> Placement:
        return self.placements[index]

    def index_of(self, tile: TileLike) -> Optional[int]:
        """
        Find the placement index of an anchor.

        Args:
            tile: Tile, Placement or (r, c) tuple

        Returns:
            Index into placements, or None if no placement has this anchor
        """
        return self._index.get(as_anchor(tile))

    def summary(self) -> Dict[str, Any]:
        """Diagnostics for logging/reporting."""
        return {
            "rows": self.rows,
            "cols": self.cols,
            "k": self.k,
            "placements": len(self.placements),
            "active_cells": self.active_count,
        }


def nearest_tile_index(tiles: Sequence[Tile], tile: TileLike) -> Optional[int]:
    """
    Index of the tile whose anchor is closest (Euclidean) to an anchor.

    Args:
        tiles: Candidate tiles
        tile: Target anchor

    Returns:
        Index of the closest tile (first on ties), or None if tiles is empty
    """
    r, c = as_anchor(tile)
    best = None
    best_d2 = float("inf")
    for i, t in enumerate(tiles):
        d2 = (t.r - r) ** 2 + (t.c - c) ** 2
        if d2 < best_d2:
            best_d2 = d2
            best = i
    return best


def validate_tile_size(k: Any) -> int:
    """
    Check a tile size.

    Raises:
        ConfigurationError: If k is not 2 or 3
    """
    if isinstance(k, bool) or k not in SUPPORTED_TILE_SIZES:
        raise ConfigurationError(f"k must be 2 or 3, got {k!r}")
    return int(k)


def enumerate_placements(grid: Union[GridMask, Sequence[Sequence[int]]], k: int = 2) -> PlacementSet:
    """
    Find every k×k square whose cells are all active.

    Slides a k×k window over every anchor (0 <= r <= H-k, 0 <= c <= W-k),
    counts the active cells under it, and keeps the anchor when the count
    equals k². Deterministic; placements come out in row-major anchor
    order.

    Args:
        grid: GridMask or 2D list of 0/1 values
        k: Tile side length (2 or 3)

    Returns:
        PlacementSet, empty when the grid has no fully active square

    Raises:
        ConfigurationError: If the grid is malformed or k is invalid
    """
    k = validate_tile_size(k)
    mask = grid if isinstance(grid, GridMask) else GridMask.from_2d_list(grid)

    active_count = mask.count_active()
    if active_count == 0:
        logger.info("No active cells (all 0)")
        return PlacementSet(grid=mask, k=k, active_mask=mask.active_mask, active_count=0)

    placements: List[Placement] = []
    if mask.rows >= k and mask.cols >= k:
        windows = sliding_window_view(mask.cells, (k, k))
        counts = windows.sum(axis=(2, 3))
        for r, c in zip(*np.nonzero(counts == k * k)):
            r, c = int(r), int(c)
            placements.append(Placement(r=r, c=c, k=k, mask=mask.square_mask(r, c, k)))

    if not placements:
        logger.info(f"No {k}x{k} placements found ({active_count} active cells)")
    else:
        logger.info(f"Found {len(placements)} possible {k}x{k} tile placements")
        logger.debug(f"Total active cells: {active_count}")

    return PlacementSet(
        grid=mask,
        k=k,
        placements=tuple(placements),
        active_mask=mask.active_mask,
        active_count=active_count,
    )


def outermost_tiles(tiles: Sequence[Tile]) -> List[Tile]:
    """
    Tiles lying on the outer boundary of a tile collection.

    A tile is outermost when its anchor row is the minimum or maximum row,
    or its anchor column is the minimum or maximum column, of the
    collection. Order of the input is kept and duplicates are dropped.

    Args:
        tiles: Tiles to inspect

    Returns:
        Outermost tiles
    """
    if not tiles:
        return []

    min_r = min(t.r for t in tiles)
    max_r = max(t.r for t in tiles)
    min_c = min(t.c for t in tiles)
    max_c = max(t.c for t in tiles)

    seen = set()
    outermost = []
    for t in tiles:
        if (t.r, t.c) in seen:
            continue
        if t.r in (min_r, max_r) or t.c in (min_c, max_c):
            seen.add((t.r, t.c))
            outermost.append(t)
    return outermost
