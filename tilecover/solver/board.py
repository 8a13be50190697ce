"""
Grid Mask Module - Immutable active-cell mask for the tile cover puzzle.
"""

from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError


@dataclass(frozen=True, eq=False)
class GridMask:
    """
    Immutable H×W mask of active cells.

    The grid is held as a read-only numpy boolean array so it can be
    shared between runs without copying. Flattened row-major, the same
    array doubles as the fixed-width bitset used for placement masks
    (bit index = r * cols + c).

    Attributes:
        cells: 2D boolean array, True where the source grid holds 1
    """
    cells: np.ndarray

    @classmethod
    def from_2d_list(cls, grid: Sequence[Sequence[Any]]) -> 'GridMask':
        """
        Create GridMask from a 2D list of 0/1 values.

        Args:
            grid: Rows of 0/1 values (lists, tuples or a numpy array).
                  Booleans are accepted as 1/0.

        Returns:
            GridMask instance

        Raises:
            ConfigurationError: If the grid is empty, ragged or holds
                values other than 0 and 1
        """
        if grid is None or len(grid) == 0:
            raise ConfigurationError("grid is empty")

        rows = []
        width = None
        for r, row in enumerate(grid):
            try:
                values = list(row)
            except TypeError:
                raise ConfigurationError(f"grid row {r} is not a sequence") from None
            if width is None:
                width = len(values)
            if len(values) == 0:
                raise ConfigurationError("grid is empty")
            if len(values) != width:
                raise ConfigurationError(
                    f"grid is not rectangular: row {r} has {len(values)} cells, expected {width}"
                )
            for c, value in enumerate(values):
                if value not in (0, 1):
                    raise ConfigurationError(
                        f"grid cell ({r},{c}) is {value!r}, expected 0 or 1"
                    )
            rows.append(values)

        cells = np.array(rows, dtype=bool)
        cells.setflags(write=False)
        return cls(cells=cells)

    @classmethod
    def from_text(cls, text: str) -> 'GridMask':
        """
        Create GridMask from text with one row of 0/1 characters per line.

        Blank lines are skipped; spaces and commas between digits are ignored.

        Args:
            text: Grid text

        Returns:
            GridMask instance
        """
        grid: List[List[int]] = []
        for line in text.splitlines():
            digits = [ch for ch in line if ch not in " \t,"]
            if not digits:
                continue
            try:
                grid.append([int(ch) for ch in digits])
            except ValueError:
                raise ConfigurationError(f"grid line {line!r} is not made of 0/1 digits") from None
        return cls.from_2d_list(grid)

    @property
    def rows(self) -> int:
        """Get number of rows in grid."""
        return int(self.cells.shape[0])

    @property
    def cols(self) -> int:
        """Get number of columns in grid."""
        return int(self.cells.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.cols

    @property
    def active_mask(self) -> np.ndarray:
        """Flat row-major bitset of active cells (length rows * cols)."""
        return self.cells.reshape(-1)

    def count_active(self) -> int:
        """
        Count active cells on the grid.

        Returns:
            Number of cells holding 1
        """
        return int(np.count_nonzero(self.cells))

    def is_active(self, row: int, col: int) -> bool:
        """
        Check whether a cell is active.

        Args:
            row: Row index
            col: Column index

        Returns:
            True if the cell is inside the grid and holds 1
        """
        if 0 <= row < self.rows and 0 <= col < self.cols:
            return bool(self.cells[row, col])
        return False

    def square_is_active(self, row: int, col: int, k: int) -> bool:
        """
        Check whether the k×k square anchored at (row, col) is fully active.

        Args:
            row: Anchor row (top)
            col: Anchor column (left)
            k: Square side length

        Returns:
            True if the square lies inside the grid and every cell is active
        """
        if row < 0 or col < 0 or row + k > self.rows or col + k > self.cols:
            return False
        return bool(self.cells[row:row + k, col:col + k].all())

    def square_mask(self, row: int, col: int, k: int) -> np.ndarray:
        """
        Build the flat bitset of the cells covered by a k×k square.

        Args:
            row: Anchor row
            col: Anchor column
            k: Square side length

        Returns:
            Read-only boolean array of length rows * cols
        """
        mask = np.zeros(self.cells.shape, dtype=bool)
        mask[row:row + k, col:col + k] = True
        flat = mask.reshape(-1)
        flat.setflags(write=False)
        return flat

    def __hash__(self):
        """Enable using GridMask as dict key or in sets."""
        return hash((self.cells.shape, self.cells.tobytes()))

    def __eq__(self, other):
        """Enable grid equality comparison."""
        if not isinstance(other, GridMask):
            return False
        return self.cells.shape == other.cells.shape and bool(np.array_equal(self.cells, other.cells))

    def to_list(self) -> List[List[int]]:
        """
        Convert to mutable 2D list of 0/1 ints.

        Returns:
            2D list representation of the grid
        """
        return self.cells.astype(int).tolist()
