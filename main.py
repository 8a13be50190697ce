"""
Tile Cover Solver - Entry Point

Enumerates every k×k tile placement on a binary grid and orders the
placements into a tour, either automatically with a next-tile strategy
or interactively from the console.

Example:
    python main.py                          # Built-in demo grid
    python main.py grid.txt --k 3 --strategy min_turn
    python main.py grid.txt --max-angle 45 --relax-step 45
    python main.py grid.txt --interactive --auto-select
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from tilecover.session_manager import InteractiveSession
from tilecover.settings import SETTINGS_FILE, load_settings
from tilecover.solver import (
    Candidate,
    ConfigurationError,
    GridMask,
    OrderingOptions,
    PathOrderer,
    PlacementSet,
    TourResult,
    enumerate_placements,
    get_strategy_info,
    group_by_angle,
)
from tilecover.solver.geometry import arrow


# Configure logging - output to both console and file
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
    handlers=[
        logging.StreamHandler(),  # Console output
        logging.FileHandler("tilecover.log", mode='w', encoding='utf-8')  # File output
    ]
)
logger = logging.getLogger(__name__)

# 1 = active cell, 0 = inactive
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


def load_grid(path: Optional[str]) -> GridMask:
    """Read a grid file, or return the demo grid when no path is given."""
    if path is None:
        logger.info("No grid file given, using the built-in demo grid")
        return GridMask.from_2d_list(DEMO_GRID)
    return GridMask.from_text(Path(path).read_text(encoding='utf-8'))


def print_tour(result: TourResult, k: int, group_threshold: float) -> None:
    """Print the tour with compass arrows, then its direction groups."""
    print(f"\nTour ({result.describe()}):")
    for i, tile in enumerate(result.tiles):
        move = f"{result.arrows[i - 1]} {result.bearings[i - 1]:6.1f}°" if i > 0 else "start"
        print(f"  {i + 1:3d}. {str(tile):<8} {move}")

    for message in result.warnings:
        print(f"  warning: {message}")

    groups = group_by_angle(result.tiles, k, threshold=group_threshold)
    if len(groups) > 1:
        print(f"\n{len(groups)} direction groups:")
        for g, group in enumerate(groups, 1):
            tiles = " ".join(str(t) for t in group.tiles)
            print(f"  {g}. {group.arrow} {tiles}")


def run_automatic(placements: PlacementSet, options: OrderingOptions, relax_step: Optional[float]) -> TourResult:
    """
    Order placements with a strategy, relaxing the turn tolerance on stalls.

    Args:
        placements: Enumerated placements
        options: Run options
        relax_step: Degrees added to max_angle_diff after each angle stall
                    (None = report the stall and stop)

    Returns:
        Final TourResult
    """
    orderer = PathOrderer(placements, options=options)
    result = orderer.run()

    while result.is_stalled and relax_step and orderer.state.max_angle_diff < 180:
        if not (result.stop_reason or "").startswith("angle diff"):
            break
        relaxed = min(180.0, orderer.state.max_angle_diff + relax_step)
        print(f"Stalled after {result.visited} tiles ({result.stop_reason}), relaxing to {relaxed}°")
        result = orderer.resume(max_angle_diff=relaxed)

    return result


def console_chooser(candidates: List[Candidate]) -> str:
    """Show the candidates and read one answer from stdin."""
    print("\nAdjacent tiles:")
    for pos, cand in enumerate(candidates):
        turn = "  --  " if cand.turn is None else f"{cand.turn:5.1f}°"
        marker = "*" if cand.is_preferred else " "
        print(f"  [{pos}]{marker} {str(cand.tile):<8} {arrow(cand.bearing)} turn {turn}")
    print("Enter a number, 'stop', 'refresh' or 'truncate N':")
    try:
        return input("> ")
    except EOFError:
        return InteractiveSession.STOP


def ask(prompt: str) -> str:
    """Read one line from stdin; end of input reads as an empty answer."""
    try:
        return input(prompt).strip()
    except EOFError:
        return ""


def run_interactive(placements: PlacementSet, options: OrderingOptions, settings: dict) -> TourResult:
    """
    Build a tour from console input.

    After each halt the current group may be closed on an endpoint (tour
    tiles included, to close a cycle), then a new group may be started
    from a tour tile or an outermost free tile.

    Args:
        placements: Enumerated placements
        options: Start rule, tolerance and seed tiles
        settings: Loaded settings (auto-select flags)

    Returns:
        Final TourResult
    """
    session = InteractiveSession(
        placements,
        options=options,
        auto_select=settings.get("auto_select", False),
        auto_select_angle=settings.get("auto_select_angle", False),
    )

    while True:
        result = session.run(console_chooser)
        print(f"\n{session.get_state_string()}")
        print_tour(result, placements.k, settings.get("angle_group_threshold", 45.0))

        ends = session.endpoint_options()
        if ends:
            print("\nEnd this group on:")
            for pos, cand in enumerate(ends):
                used = " (in tour)" if cand.tile in result.tiles else ""
                print(f"  [{pos}] {str(cand.tile):<8} {arrow(cand.bearing)}{used}")
            answer = ask("Enter a number, or anything else to leave the group open: ")
            if answer.isdigit() and int(answer) < len(ends):
                closed = session.close_with_endpoint(int(answer))
                if closed.cycle_closed:
                    print(f"Cycle closed: {closed.endpoint} connects to {closed.connection}")
                else:
                    free = " ".join(str(t) for t in closed.open_neighbours) or "none"
                    print(f"Group ends at {closed.endpoint}, free tiles next to it: {free}")
                result = session.result()

        starts = session.new_group_options()
        if not starts:
            return result

        print("\nStart a new group from:")
        for pos, option in enumerate(starts):
            print(f"  [{pos}] {option}")
        answer = ask("Enter a number, or anything else to finish: ")
        if not answer.isdigit() or int(answer) >= len(starts):
            return result
        session.start_new_group(int(answer))


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    strategies = ", ".join(f"{info['name']} ({info['description']})" for info in get_strategy_info())
    parser = argparse.ArgumentParser(
        description="Tile Cover Solver - k×k tile placement and tour ordering",
        epilog=f"Strategies: {strategies}",
    )
    parser.add_argument(
        "grid_file",
        nargs="?",
        help="Text file with one row of 0/1 per line (default: demo grid)"
    )
    parser.add_argument("--k", type=int, help="Tile side length, 2 or 3")
    parser.add_argument("--strategy", "-s", help="Next-tile strategy name")
    parser.add_argument("--start", choices=["topleft", "topright", "custom"], help="Start rule")
    parser.add_argument(
        "--start-tile",
        nargs=2,
        type=int,
        metavar=("R", "C"),
        help="Anchor for --start custom"
    )
    parser.add_argument("--max-angle", type=float, help="Maximum turn in degrees (default: unbounded)")
    parser.add_argument(
        "--relax-step",
        type=float,
        help="Degrees to add to --max-angle each time the tour stalls on a turn"
    )
    parser.add_argument("--interactive", "-i", action="store_true", help="Choose every tile from the console")
    parser.add_argument("--auto-select", action="store_true", help="Interactive: take single candidates")
    parser.add_argument(
        "--auto-select-angle",
        action="store_true",
        help="Interactive: take the smallest turn within 45°"
    )
    parser.add_argument(
        "--config", "-c",
        default=str(SETTINGS_FILE),
        help=f"Settings file (default: {SETTINGS_FILE})"
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the tile cover solver from the command line."""
    args = parse_args(argv)

    # CLI flags override saved settings
    settings = load_settings(args.config)
    if args.auto_select:
        settings["auto_select"] = True
    if args.auto_select_angle:
        settings["auto_select_angle"] = True
    k = args.k if args.k is not None else settings.get("tile_size", 2)

    try:
        grid = load_grid(args.grid_file)
        placements = enumerate_placements(grid, k=k)
        start_rule = args.start or ("custom" if args.start_tile else None)
        options = OrderingOptions.from_settings(
            settings,
            start_rule=start_rule,
            custom_start_tile=tuple(args.start_tile) if args.start_tile else None,
            max_angle_diff=args.max_angle,
            strategy=args.strategy,
        )
    except (ConfigurationError, OSError) as e:
        logger.error(f"Cannot start: {e}")
        return 2

    print(f"Grid {grid.rows}x{grid.cols}, {grid.count_active()} active cells")
    print(f"Found {len(placements)} possible {k}x{k} tile placements")
    if placements.is_empty:
        return 0

    try:
        if args.interactive:
            result = run_interactive(placements, options, settings)
        else:
            logger.info(f"Ordering with strategy: {options.strategy}")
            result = run_automatic(placements, options, args.relax_step)
            print_tour(result, k, settings.get("angle_group_threshold", 45.0))
    except ConfigurationError as e:
        logger.error(f"Cannot order tiles: {e}")
        return 2

    # Stalled and stopped tours exit 0 too
    reason = f" ({result.stop_reason})" if result.stop_reason else ""
    print(f"\nStatus: {result.status.value}{reason}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
