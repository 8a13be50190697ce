"""
Test script for solver validation

Covers:
1. GridMask creation and validation
2. Placement enumeration
3. Overlap / touch predicates and geometry
4. Strategy factory, strategies and how each ranks neighbours
5. PathOrderer tours, stalls and resumption
6. Start rules and coercion of option values

Usage:
    python tests/test_solver.py
    pytest tests/
"""

import sys
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tilecover.solver import (
    ConfigurationError,
    GridMask,
    OrderingOptions,
    PathOrderer,
    Placement,
    StrategyKind,
    Tile,
    TourStatus,
    bearing,
    create_strategy,
    direction_series,
    enumerate_placements,
    get_default_strategy_name,
    get_strategy_names,
    group_by_angle,
    order_tiles,
    outermost_tiles,
    overlaps,
    tile_center,
    touches,
    turn_angle,
)
from tilecover.solver.geometry import Point, arrow


DEMO_GRID = [
    [1, 1, 1, 1, 1, 1, 1, 1],
    [1, 1, 1, 1, 0, 1, 1, 1],
    [1, 1, 1, 1, 1, 1, 1, 1],
    [1, 1, 1, 1, 1, 1, 1, 1],
    [0, 0, 0, 0, 1, 1, 1, 1],
    [0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0],
]

# 2 rows x 20 columns, all active
CORRIDOR = [[1] * 20 for _ in range(2)]


def l_shape_grid():
    """Rows 0-1 active across 12 columns, then columns 10-11 down to row 9."""
    grid = [[0] * 12 for _ in range(10)]
    for r in range(2):
        for c in range(12):
            grid[r][c] = 1
    for r in range(2, 10):
        grid[r][10] = 1
        grid[r][11] = 1
    return grid


def banner(title: str):
    print("\n" + "="*60)
    print(f"TEST: {title}")
    print("="*60)


def expect_error(fn, *args, **kwargs) -> str:
    """Call fn and return the ConfigurationError message it raises."""
    try:
        fn(*args, **kwargs)
    except ConfigurationError as e:
        return str(e)
    raise AssertionError(f"{fn.__name__} did not raise ConfigurationError")


def test_grid_mask():
    """Test GridMask creation and validation."""
    banner("GridMask")

    grid = GridMask.from_2d_list(DEMO_GRID)
    print(f"  Created grid: {grid.rows}x{grid.cols}, {grid.count_active()} active")
    assert grid.shape == (8, 8)
    assert grid.count_active() == 35
    assert not grid.is_active(1, 4)
    assert not grid.is_active(-1, 0)
    assert grid.square_is_active(0, 0, 2)
    assert not grid.square_is_active(0, 3, 2)

    # Equal content, equal hash
    assert grid == GridMask.from_2d_list(DEMO_GRID)
    assert hash(grid) == hash(GridMask.from_2d_list(DEMO_GRID))
    assert grid.to_list() == DEMO_GRID

    text_grid = GridMask.from_text("1 1 0\n\n0,1,1\n")
    assert text_grid.shape == (2, 3)
    assert text_grid.to_list() == [[1, 1, 0], [0, 1, 1]]

    # Cells are read-only
    try:
        grid.cells[0, 0] = False
    except ValueError:
        pass
    else:
        raise AssertionError("grid cells are writable")

    print(f"  Empty grid: {expect_error(GridMask.from_2d_list, [])}")
    print(f"  Ragged grid: {expect_error(GridMask.from_2d_list, [[1, 1], [1]])}")
    print(f"  Bad value: {expect_error(GridMask.from_2d_list, [[1, 2]])}")
    expect_error(GridMask.from_text, "1x1\n")

    print("  [PASS] GridMask tests")


def test_enumeration():
    """Test placement enumeration counts and properties."""
    banner("Placement Enumeration")

    placements = enumerate_placements(DEMO_GRID, k=2)
    print(f"  Demo grid, k=2: {len(placements)} placements")
    assert len(placements) == 20

    placements3 = enumerate_placements(DEMO_GRID, k=3)
    print(f"  Demo grid, k=3: {len(placements3)} placements")
    assert len(placements3) == 8

    grid = [[1] * 8 for _ in range(8)]
    for r in range(4, 8):
        for c in range(4):
            grid[r][c] = 0
    assert len(enumerate_placements(grid, k=2)) == 33

    # Every placement covers exactly k*k active cells, row-major order
    active = GridMask.from_2d_list(DEMO_GRID).active_mask
    for p in placements:
        assert p.cell_count == 4
        assert len(p.cells) == 4
        assert np.all(active[p.mask])
    anchors = [(p.r, p.c) for p in placements]
    assert anchors == sorted(anchors)
    assert placements.index_of((2, 6)) == anchors.index((2, 6))
    assert placements.index_of((0, 3)) is None

    # Enumeration is deterministic
    assert [p.anchor for p in enumerate_placements(DEMO_GRID, k=2)] == anchors

    # Placements compare by anchor and size only
    assert Placement(r=0, c=0, k=2) == placements[0]
    assert placements[0].tile == Tile(0, 0)

    # Edge cases
    assert enumerate_placements([[0, 0], [0, 0]], k=2).is_empty
    assert enumerate_placements([[1, 1, 1]], k=2).is_empty
    assert len(enumerate_placements([[1, 1], [1, 1]], k=2)) == 1

    message = expect_error(enumerate_placements, DEMO_GRID, k=4)
    print(f"  k=4: {message}")
    assert "k must be 2 or 3" in message
    expect_error(enumerate_placements, DEMO_GRID, k=True)

    summary = placements.summary()
    assert summary["placements"] == 20
    assert summary["active_cells"] == 35

    print("  [PASS] Enumeration tests")


def test_adjacency():
    """Test overlap and touch predicates."""
    banner("Adjacency")

    k = 2
    a = Tile(0, 0)
    assert overlaps(a, a, k)
    assert overlaps(a, Tile(1, 1), k)
    assert not overlaps(a, Tile(0, 2), k)

    assert touches(a, Tile(0, 2), k)          # side by side
    assert touches(a, Tile(2, 1), k)          # stacked, shifted
    assert touches(a, Tile(2, 2), k)          # diagonal corner
    assert touches(Tile(2, 2), Tile(0, 0), k)
    assert not touches(a, Tile(0, 3), k)      # gap
    assert not touches(a, Tile(2, 3), k)      # corner offset
    assert not touches(a, Tile(1, 1), k)      # overlapping
    assert not touches(a, a, k)

    placements = enumerate_placements(DEMO_GRID, k=2)
    for p in placements:
        for q in placements:
            assert touches(p, q, k) == touches(q, p, k)
            assert overlaps(p, q, k) == overlaps(q, p, k)
            if overlaps(p, q, k):
                assert not touches(p, q, k)

    # Two diagonal 2x2 blocks in a 4x4 grid
    diagonal = [[1, 1, 0, 0], [1, 1, 0, 0], [0, 0, 1, 1], [0, 0, 1, 1]]
    pair = enumerate_placements(diagonal, k=2)
    assert [p.anchor for p in pair] == [(0, 0), (2, 2)]
    assert touches(pair[0], pair[1], 2)

    outer = outermost_tiles([Tile(0, 0), Tile(1, 1), Tile(2, 2), Tile(0, 0)])
    assert outer == [Tile(0, 0), Tile(2, 2)]

    print("  [PASS] Adjacency tests")


def test_geometry():
    """Test centers, bearings, turns and grouping."""
    banner("Geometry")

    assert tile_center(Tile(0, 0), 2) == Point(0.5, 0.5)
    assert tile_center(Tile(1, 2), 3) == Point(3.0, 2.0)

    origin = Point(0, 1)
    assert bearing(origin, Point(1, 1)) == 0.0
    assert bearing(origin, Point(0, 0)) == 90.0       # up the screen
    assert bearing(origin, Point(-1, 1)) == 180.0
    assert bearing(origin, Point(0, 2)) == 270.0      # down the screen
    assert abs(bearing(origin, Point(1, 2)) - 315.0) < 1e-9

    assert turn_angle(350, 10) == 20
    assert turn_angle(0, 180) == 180
    assert turn_angle(90, 90) == 0

    assert arrow(None) == "·"
    assert arrow(0) == "→"
    assert arrow(44) == "↗"
    assert arrow(270) == "↓"
    assert arrow(359) == "→"

    bearings, turns = direction_series([Tile(0, 0), Tile(0, 2), Tile(2, 2)], 2)
    print(f"  Bearings: {bearings}, turns: {turns}")
    assert bearings == [0.0, 270.0]
    assert turns == [90.0]
    assert direction_series([Tile(0, 0)], 2) == ([], [])

    tour = [Tile(0, c) for c in range(0, 12, 2)] + [Tile(r, 10) for r in range(2, 10, 2)]
    groups = group_by_angle(tour, 2, threshold=45)
    print(f"  Groups: {[g.arrow for g in groups]}")
    assert len(groups) == 2
    assert groups[0].tiles == tour[:6]
    assert groups[1].tiles == tour[5:]
    assert groups[0].mean_angle == 0.0
    assert groups[1].mean_angle == 270.0
    assert len(group_by_angle(tour[:1], 2)) == 1
    assert group_by_angle([], 2) == []

    print("  [PASS] Geometry tests")


def test_strategy_factory():
    """Test the strategy registry."""
    banner("Strategy Factory")

    names = get_strategy_names()
    print(f"  Registered: {names}")
    assert set(names) == {"nearest", "min_turn", "weighted", "prefer_close"}
    assert get_default_strategy_name() == "weighted"

    assert create_strategy().name == "weighted"
    assert create_strategy("Min-Turn").kind is StrategyKind.MIN_TURN
    assert create_strategy(StrategyKind.NEAREST).name == "nearest"

    weighted = create_strategy("weighted", w_turn=1.0, max_dist=3)
    assert weighted.w_turn == 1.0
    assert weighted.max_dist == 3

    print(f"  Unknown: {expect_error(create_strategy, 'bogus')}")
    expect_error(create_strategy, "weighted", w_dist=-1)
    expect_error(create_strategy, "nearest", radius=2)

    print("  [PASS] Strategy factory tests")


def test_strategies_pick_members_of_unused():
    """Every strategy returns an unused index or None."""
    banner("Strategy Contract")

    placements = enumerate_placements(DEMO_GRID, k=2)
    tiles = placements.tiles
    centers = [tile_center(t, 2) for t in tiles]
    unused = set(range(1, len(tiles)))

    for name in get_strategy_names():
        strategy = create_strategy(name)
        choice = strategy.select(0, None, centers, unused, 2, tiles)
        print(f"  {name}: {tiles[choice]}")
        assert choice in unused
        assert strategy.select(0, 0.0, centers, set(), 2, tiles) is None

    # Weighted falls back to the closest touching tile beyond its reach
    far = create_strategy("weighted", max_dist=0.1)
    choice = far.select(0, None, centers, unused, 2, tiles)
    assert choice is not None and touches(tiles[0], tiles[choice], 2)

    # Nothing touching: weighted and prefer_close give up, nearest jumps
    lonely = {placements.index_of((3, 6))}
    assert create_strategy("weighted").select(0, None, centers, lonely, 2, tiles) is None
    assert create_strategy("prefer_close").select(0, None, centers, lonely, 2, tiles) is None
    assert create_strategy("nearest").select(0, None, centers, lonely, 2, tiles) in lonely

    print("  [PASS] Strategy contract tests")


def test_strategy_ranking():
    """Each strategy ranks the same neighbours by its own rule."""
    banner("Strategy Ranking")

    def pick(strategy, tiles, prev_angle, unused=None):
        centers = [tile_center(t, 2) for t in tiles]
        if unused is None:
            unused = set(range(1, len(tiles)))
        choice = strategy.select(0, prev_angle, centers, unused, 2, tiles)
        return None if choice is None else tiles[choice].anchor

    # A touching tile to the south and a far one straight east
    line = [Tile(0, 0), Tile(2, 0), Tile(0, 6)]
    min_turn = create_strategy("min_turn")
    assert pick(min_turn, line, None) == (2, 0)  # no heading yet: first candidate
    assert pick(min_turn, line, 0.0) == (0, 6)
    assert pick(create_strategy("nearest"), line, 0.0) == (2, 0)

    # Heading south from (0,0): east turns 90°, south-east 45°, south 0°
    square = [Tile(0, 0), Tile(0, 2), Tile(2, 2), Tile(2, 0)]
    east_or_diagonal = {1, 2}

    prefer_close = create_strategy("prefer_close")
    assert pick(prefer_close, square, 270.0) == (2, 0)
    assert pick(prefer_close, square, 270.0, east_or_diagonal) == (2, 2)
    assert pick(create_strategy("prefer_close", reach=1.0), square, 270.0, east_or_diagonal) == (0, 2)
    # Equal turns: the closer tile wins
    assert pick(prefer_close, [Tile(0, 0), Tile(2, 2), Tile(0, 2)], None) == (0, 2)

    weighted = create_strategy("weighted")
    assert pick(weighted, square, 270.0) == (2, 0)
    assert pick(weighted, square, 270.0, east_or_diagonal) == (2, 2)
    assert pick(create_strategy("weighted", w_turn=0), square, 270.0, east_or_diagonal) == (0, 2)
    assert pick(create_strategy("weighted", max_dist=1.2), square, 270.0, east_or_diagonal) == (0, 2)

    print("  [PASS] Strategy ranking tests")


def test_corridor_tour():
    """A straight corridor is covered left to right without overlaps."""
    banner("Corridor Tour")

    placements = enumerate_placements(CORRIDOR, k=2)
    assert len(placements) == 19

    result, _ = order_tiles(placements, OrderingOptions(strategy="nearest"))
    print(f"  {result.describe()}")
    assert result.status is TourStatus.COMPLETED
    assert result.visited == 10
    assert result.available == 10
    assert [t.anchor for t in result.tiles] == [(0, c) for c in range(0, 20, 2)]
    assert result.bearings == [0.0] * 9
    assert result.arrows == ["→"] * 9

    weighted, _ = order_tiles(placements, OrderingOptions(strategy="weighted", max_angle_diff=0))
    assert weighted.tiles == result.tiles

    west, _ = order_tiles(placements, OrderingOptions(strategy="nearest", start_rule="topright"))
    assert west.tiles[0].anchor == (0, 18)
    assert west.arrows == ["←"] * 9

    print("  [PASS] Corridor tour tests")


def test_angle_stall_and_resume():
    """A sharp corner stalls a strict tour, a relaxed resume finishes it."""
    banner("Angle Stall and Resume")

    placements = enumerate_placements(l_shape_grid(), k=2)
    assert len(placements) == 19

    orderer = PathOrderer(placements, options=OrderingOptions(strategy="nearest", max_angle_diff=10))
    result = orderer.run()
    print(f"  Strict: {result.describe()}")
    assert result.status is TourStatus.STALLED
    assert result.tiles[-1].anchor == (0, 10)
    assert result.visited == 6
    assert result.remaining == 7
    assert "angle diff" in result.stop_reason

    # A stalled orderer does not move on its own
    before = list(orderer.state.order_idx)
    assert orderer.step() is False
    assert orderer.state.order_idx == before
    expect_error(orderer.resume, max_angle_diff="wide")
    assert orderer.state.order_idx == before

    resumed = orderer.resume(max_angle_diff=90)
    print(f"  Resumed: {resumed.describe()}")
    assert resumed.status is TourStatus.COMPLETED
    assert resumed.tiles[:6] == result.tiles
    assert [t.anchor for t in resumed.tiles[6:]] == [(2, 10), (4, 10), (6, 10), (8, 10)]
    assert resumed.turns[4] == 90.0

    # Resuming a completed tour changes nothing
    assert orderer.resume(max_angle_diff=180).tiles == resumed.tiles

    print("  [PASS] Stall/resume tests")


def test_diagonal_tour():
    """Tiles meeting at one corner form a two-tile tour."""
    banner("Diagonal Tour")

    diagonal = [[1, 1, 0, 0], [1, 1, 0, 0], [0, 0, 1, 1], [0, 0, 1, 1]]
    placements = enumerate_placements(diagonal, k=2)

    for name in ("weighted", "nearest", "prefer_close"):
        result, _ = order_tiles(placements, OrderingOptions(strategy=name))
        assert result.is_complete, name
        assert [t.anchor for t in result.tiles] == [(0, 0), (2, 2)]
        assert result.arrows == ["↘"]

    print("  [PASS] Diagonal tour tests")


def test_tour_invariants():
    """Tours never repeat or overlap tiles; weighted steps always touch."""
    banner("Tour Invariants")

    placements = enumerate_placements(DEMO_GRID, k=2)
    for name in get_strategy_names():
        result, _ = order_tiles(placements, OrderingOptions(strategy=name))
        print(f"  {name}: {result.describe()} in {result.metrics.computation_time_ms:.2f}ms")
        assert len(set(result.order_idx)) == len(result.order_idx)
        for i, a in enumerate(result.tiles):
            for b in result.tiles[i + 1:]:
                assert not overlaps(a, b, 2)
        assert result.metrics.strategy_name == name

    weighted, _ = order_tiles(placements, OrderingOptions(strategy="weighted"))
    for a, b in zip(weighted.tiles, weighted.tiles[1:]):
        assert touches(a, b, 2)

    # Turn tolerance holds for every step that was taken
    strict, _ = order_tiles(placements, OrderingOptions(strategy="min_turn", max_angle_diff=45))
    assert all(turn <= 45 + 1e-9 for turn in strict.turns)

    print("  [PASS] Tour invariant tests")


def test_start_rules():
    """Test start tile selection and seeding."""
    banner("Start Rules")

    placements = enumerate_placements(CORRIDOR, k=2)

    custom = OrderingOptions(strategy="nearest", start_rule="custom", custom_start_tile=(5, 5))
    result, _ = order_tiles(placements, custom)
    print(f"  Custom (5,5) -> {result.tiles[0]}")
    assert result.tiles[0].anchor == (0, 5)

    exact = OrderingOptions(strategy="nearest", start_rule="custom", custom_start_tile=(0, 7))
    assert order_tiles(placements, exact)[0].tiles[0].anchor == (0, 7)

    picker = OrderingOptions(strategy="nearest", start_rule=lambda tiles: len(tiles) - 1)
    assert order_tiles(placements, picker)[0].tiles[0].anchor == (0, 18)

    seeded = OrderingOptions(strategy="nearest", fixed_tiles=[(0, 4), (0, 6)])
    result, orderer = order_tiles(placements, seeded)
    print(f"  Seeded: {' '.join(str(t) for t in result.tiles)}")
    assert [t.anchor for t in result.tiles[:3]] == [(0, 4), (0, 6), (0, 8)]
    assert result.is_complete
    assert result.visited == 10

    expect_error(OrderingOptions, start_rule="middle")
    expect_error(OrderingOptions, start_rule="custom")
    expect_error(OrderingOptions, max_angle_diff=-1)
    expect_error(order_tiles, placements, OrderingOptions(start_rule=lambda tiles: 99))

    options = OrderingOptions.from_settings(
        {"start_rule": "topright", "strategy_name": "min_turn", "max_angle_diff": None},
        max_angle_diff=30,
        strategy=None,
    )
    assert options.max_angle_diff == 30
    assert options.strategy == "min_turn"

    print("  [PASS] Start rule tests")


def test_option_coercion():
    """Settings values are coerced to the types the orderer needs."""
    banner("Option Coercion")

    options = OrderingOptions.from_settings({"max_angle_diff": "45", "custom_start_tile": ["1", 2]})
    assert options.max_angle_diff == 45.0
    assert options.custom_start_tile == (1, 2)
    assert OrderingOptions(start_angle="90").start_angle == 90.0

    message = expect_error(OrderingOptions.from_settings, {"max_angle_diff": "wide"})
    print(f"  Text: {message}")
    expect_error(OrderingOptions, max_angle_diff=float("nan"))
    expect_error(OrderingOptions, max_angle_diff=True)
    expect_error(OrderingOptions.from_settings, {"custom_start_tile": [1]})
    expect_error(OrderingOptions.from_settings, {"strategy_params": [1]})

    # Selectors may return any integer type
    placements = enumerate_placements(CORRIDOR, k=2)
    numpy_picker = OrderingOptions(strategy="nearest", start_rule=lambda tiles: np.int64(1))
    assert order_tiles(placements, numpy_picker)[0].tiles[0].anchor == (0, 1)
    expect_error(order_tiles, placements, OrderingOptions(start_rule=lambda tiles: True))
    expect_error(order_tiles, placements, OrderingOptions(start_rule=lambda tiles: 1.0))

    print("  [PASS] Option coercion tests")


def test_empty_input():
    """Ordering nothing completes immediately."""
    banner("Empty Input")

    empty = enumerate_placements([[0, 0, 0], [0, 0, 0]], k=2)
    result, _ = order_tiles(empty)
    assert result.status is TourStatus.COMPLETED
    assert result.tiles == []
    assert result.available == 0

    result, _ = order_tiles([Tile(0, 0)], k=2)
    assert result.is_complete
    assert result.bearings == []

    expect_error(PathOrderer, [Tile(0, 0)])

    print("  [PASS] Empty input tests")


def main():
    """Run all tests."""
    print("\n" + "#"*60)
    print("# SOLVER VALIDATION TESTS")
    print("#"*60)

    tests = [
        ("GridMask", test_grid_mask),
        ("Enumeration", test_enumeration),
        ("Adjacency", test_adjacency),
        ("Geometry", test_geometry),
        ("Strategy Factory", test_strategy_factory),
        ("Strategy Contract", test_strategies_pick_members_of_unused),
        ("Strategy Ranking", test_strategy_ranking),
        ("Corridor Tour", test_corridor_tour),
        ("Stall/Resume", test_angle_stall_and_resume),
        ("Diagonal Tour", test_diagonal_tour),
        ("Tour Invariants", test_tour_invariants),
        ("Start Rules", test_start_rules),
        ("Option Coercion", test_option_coercion),
        ("Empty Input", test_empty_input),
    ]

    results = []
    for name, test in tests:
        try:
            test()
            results.append((name, True))
        except AssertionError as e:
            print(f"  [FAIL] {e}")
            results.append((name, False))

    print("\n" + "="*60)
    print("SUMMARY")
    print("="*60)

    all_passed = True
    for name, passed in results:
        status = "PASS" if passed else "FAIL"
        print(f"  {name}: [{status}]")
        if not passed:
            all_passed = False

    print()
    if all_passed:
        print("All tests PASSED!")
        return 0
    else:
        print("Some tests FAILED!")
        return 1


if __name__ == "__main__":
    sys.exit(main())
