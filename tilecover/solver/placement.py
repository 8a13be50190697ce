"""
Placement Module - A k×k tile anchored on the grid.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True)
class Tile:
    """
    Anchor of a k×k placement.

    Tiles are identified by (r, c) alone; the tile size lives with the
    PlacementSet or OrderingState that owns the tile.

    Attributes:
        r: Top row index
        c: Left column index
    """
    r: int
    c: int

    @property
    def anchor(self) -> Tuple[int, int]:
        return (self.r, self.c)

    def __str__(self) -> str:
        return f"({self.r},{self.c})"


@dataclass(frozen=True)
class Placement(Tile):
    """
    A Tile plus the bitset of grid cells it covers.

    The mask is computed once by the enumerator and excluded from
    equality and hashing, so two placements compare equal when they
    share anchor and size.

    Attributes:
        k: Tile side length
        mask: Flat row-major boolean bitset over the whole grid
    """
    k: int = 2
    mask: np.ndarray = field(default=None, compare=False, hash=False, repr=False)

    @property
    def tile(self) -> Tile:
        """The bare anchor of this placement."""
        return Tile(self.r, self.c)

    @property
    def cell_count(self) -> int:
        """Number of cells set in the mask (k² for a valid placement)."""
        if self.mask is None:
            return 0
        return int(np.count_nonzero(self.mask))

    @property
    def cells(self) -> List[Tuple[int, int]]:
        """(row, col) of every covered cell in row-major order."""
        return [
            (self.r + dr, self.c + dc)
            for dr in range(self.k)
            for dc in range(self.k)
        ]
