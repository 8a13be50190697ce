"""
Adjacency Module - Overlap and touch predicates between k×k tiles.

Both predicates look only at the anchors and the tile size, so they work
for Tile, Placement, or anything else with `r` and `c` attributes.
"""

from .placement import Tile


def overlaps(a: Tile, b: Tile, k: int) -> bool:
    """
    Check whether two k×k squares share at least one cell.

    A tile always overlaps itself.

    Args:
        a: First tile
        b: Second tile
        k: Tile side length

    Returns:
        True if the squares intersect on both axes
    """
    disjoint = (
        a.r + k <= b.r or b.r + k <= a.r or
        a.c + k <= b.c or b.c + k <= a.c
    )
    return not disjoint


def touches(a: Tile, b: Tile, k: int) -> bool:
    """
    Check whether a path may step directly from one tile to the other.

    Two tiles touch when
      - they share an edge: one tile's right (or bottom) boundary is
        directly next to the other's left (or top) boundary and their
        row (or column) ranges overlap, or
      - their anchors differ by exactly (±k, ±k), i.e. they meet at a
        single corner one tile-step away on the diagonal.

    Overlapping tiles never share an edge in this sense.

    Args:
        a: First tile
        b: Second tile
        k: Tile side length

    Returns:
        True if the tiles touch
    """
    a_bottom, a_right = a.r + k - 1, a.c + k - 1
    b_bottom, b_right = b.r + k - 1, b.c + k - 1

    rows_overlap = a.r <= b_bottom and b.r <= a_bottom
    cols_overlap = a.c <= b_right and b.c <= a_right

    side_by_side = rows_overlap and (a_right == b.c - 1 or b_right == a.c - 1)
    stacked = cols_overlap and (a_bottom == b.r - 1 or b_bottom == a.r - 1)
    corner = abs(a.r - b.r) == k and abs(a.c - b.c) == k

    return side_by_side or stacked or corner
