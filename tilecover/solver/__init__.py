"""
Solver Package - Tile placement enumeration and tour ordering.

This package finds every position where a k×k tile (k = 2 or 3) fits on
a binary grid with all cells active, and orders a subset of those
placements into a tour whose consecutive tiles touch and whose turns
stay within a tolerance. Next-tile strategies are pluggable.

Public API:
    - GridMask: Immutable active-cell mask
    - Tile / Placement: Tile anchor, and anchor plus covered-cell bitset
    - PlacementSet / enumerate_placements(): Enumeration result and scan
    - overlaps() / touches(): Adjacency predicates
    - tile_center(), bearing(), turn_angle(), compass(): Geometry helpers
    - NextTileStrategy / StrategyKind: Strategy framework
    - create_strategy(): Factory function
    - PathOrderer / order_tiles(): Automatic tour builder
    - OrderingOptions / OrderingState: Run options and walk state
    - TourResult / TourStatus: Outcome of a run

Usage:
    from tilecover.solver import enumerate_placements, PathOrderer, OrderingOptions

    placements = enumerate_placements(grid, k=2)
    orderer = PathOrderer(placements, options=OrderingOptions(strategy="weighted", max_angle_diff=45))
    result = orderer.run()

    for tile, arrow in zip(result.tiles, result.arrows):
        print(f"{tile} {arrow}")
"""

# Core data structures
from .errors import ConfigurationError, InvalidSelectionError
from .board import GridMask
from .placement import Tile, Placement
from .placements import PlacementSet, enumerate_placements, outermost_tiles
from .adjacency import overlaps, touches
from .geometry import (
    TileGroup,
    arrow,
    bearing,
    compass,
    direction_series,
    group_by_angle,
    tile_center,
    turn_angle,
)
from .context import OrderingOptions, OrderingState, StartRule
from .solution import TourMetrics, TourResult, TourStatus

# Strategy framework
from .base import Candidate, NextTileStrategy, StrategyKind, candidate_info
from .factory import (
    create_strategy,
    get_strategy_names,
    get_strategy_info,
    get_default_strategy_name,
    register_strategy,
)

# Import strategies to register them
from . import strategies

from .orderer import PathOrderer, order_tiles, select_start_tile

__all__ = [
    # Errors
    "ConfigurationError",
    "InvalidSelectionError",
    # Data structures
    "GridMask",
    "Tile",
    "Placement",
    "PlacementSet",
    "enumerate_placements",
    "outermost_tiles",
    # Adjacency and geometry
    "overlaps",
    "touches",
    "TileGroup",
    "arrow",
    "bearing",
    "compass",
    "direction_series",
    "group_by_angle",
    "tile_center",
    "turn_angle",
    # Ordering
    "OrderingOptions",
    "OrderingState",
    "StartRule",
    "TourMetrics",
    "TourResult",
    "TourStatus",
    "PathOrderer",
    "order_tiles",
    "select_start_tile",
    # Strategy framework
    "Candidate",
    "NextTileStrategy",
    "StrategyKind",
    "candidate_info",
    "create_strategy",
    "get_strategy_names",
    "get_strategy_info",
    "get_default_strategy_name",
    "register_strategy",
]
