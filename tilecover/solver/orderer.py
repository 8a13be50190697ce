"""
Path Orderer Module - Automatic tour builder driven by a next-tile strategy.

State Flow:
    NOT_STARTED -> WALKING -> COMPLETED   (no unused tile left)
                       |
                       +----> STALLED     (strategy found nothing, or the
                                           turn exceeded max_angle_diff)
    STALLED --resume(new tolerance)--> WALKING
"""

import logging
import operator
import time
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .adjacency import overlaps
from .base import NextTileStrategy
from .context import OrderingOptions, OrderingState, StartRule, as_degrees
from .errors import ConfigurationError
from .factory import create_strategy
from .geometry import ANGLE_EPSILON, arrow, direction_series, turn_angle
from .placement import Tile
from .placements import PlacementSet, as_anchor, nearest_tile_index
from .solution import TourMetrics, TourResult, TourStatus

logger = logging.getLogger(__name__)


def select_start_tile(
    tiles: Sequence[Tile],
    start_rule=StartRule.TOPLEFT,
    custom_start_tile: Optional[Tuple[int, int]] = None,
) -> int:
    """
    Choose the index of the first tile of a tour.

    Args:
        tiles: Non-empty tile list
        start_rule: StartRule (or its name), or a selector (tiles) -> index
        custom_start_tile: Anchor for StartRule.CUSTOM

    Returns:
        Start index

    Raises:
        ConfigurationError: If the rule is unknown or a selector returns an
            index outside the tile list
    """
    if callable(start_rule):
        returned = start_rule(tiles)
        try:
            start_idx = None if isinstance(returned, bool) else operator.index(returned)
        except TypeError:
            start_idx = None
        if start_idx is None or not 0 <= start_idx < len(tiles):
            raise ConfigurationError(
                f"start selector returned {returned!r}, expected an index in [0, {len(tiles)})"
            )
        return start_idx

    rule = StartRule.parse(start_rule)

    if rule is StartRule.TOPLEFT:
        return min(range(len(tiles)), key=lambda i: (tiles[i].r, tiles[i].c))

    if rule is StartRule.TOPRIGHT:
        return min(range(len(tiles)), key=lambda i: (tiles[i].r, -tiles[i].c))

    if custom_start_tile is None:
        raise ConfigurationError("start rule 'custom' needs custom_start_tile")
    anchor = as_anchor(custom_start_tile)
    for i, t in enumerate(tiles):
        if (t.r, t.c) == anchor:
            logger.info(f"Custom start tile found at {t}")
            return i
    start_idx = nearest_tile_index(tiles, anchor)
    logger.warning(
        f"Custom start tile {anchor} not found among placements, "
        f"using closest tile {tiles[start_idx]}"
    )
    return start_idx


class PathOrderer:
    """
    Builds a tour over a tile list with a next-tile strategy.

    The orderer owns its OrderingState. Each step() is transactional: it
    either appends one tile (and updates every piece of state that goes
    with it) or changes nothing. A stalled walk keeps its state and can
    be resumed with a relaxed turn tolerance.

    Example:
        placements = enumerate_placements(grid, k=2)
        orderer = PathOrderer(placements, options=OrderingOptions(max_angle_diff=45))
        result = orderer.run()
        if result.is_stalled:
            result = orderer.resume(max_angle_diff=90)
    """

    def __init__(
        self,
        tiles: Union[PlacementSet, Sequence[Tile]],
        k: Optional[int] = None,
        options: Optional[OrderingOptions] = None,
        strategy: Optional[NextTileStrategy] = None,
    ):
        """
        Initialize the orderer.

        Args:
            tiles: PlacementSet, or a tile list together with k
            k: Tile side length (taken from the PlacementSet when omitted)
            options: Run options (defaults: topleft start, unbounded turns,
                     weighted strategy)
            strategy: Strategy instance, overriding options.strategy
        """
        if isinstance(tiles, PlacementSet):
            k = tiles.k if k is None else k
            tile_list: List[Tile] = tiles.tiles
        else:
            tile_list = list(tiles)
        if k is None:
            raise ConfigurationError("k is required when ordering a plain tile list")

        self.options = options or OrderingOptions()
        self.strategy = strategy or create_strategy(self.options.strategy, **self.options.strategy_params)

        self._state = OrderingState(
            tiles=tile_list,
            k=k,
            max_angle_diff=self.options.max_angle_diff,
            start_angle=self.options.start_angle,
        )
        self._index: Dict[Tuple[int, int], int] = {(t.r, t.c): i for i, t in enumerate(tile_list)}
        self._status = TourStatus.NOT_STARTED
        self._stop_reason: Optional[str] = None
        self._metrics = TourMetrics(strategy_name=self.strategy.name)

    @property
    def state(self) -> OrderingState:
        """Current walk state (for inspection; mutate only through the orderer)."""
        return self._state

    @property
    def status(self) -> TourStatus:
        return self._status

    def start(self) -> TourStatus:
        """
        Pick the start tile (or seed sequence) and enter WALKING.

        Returns:
            New status (COMPLETED right away when nothing is left to visit)
        """
        if self._status is not TourStatus.NOT_STARTED:
            raise RuntimeError(f"Orderer already started (status: {self._status.value})")

        state = self._state
        if not state.tiles:
            logger.info("State[NOT_STARTED]: no tiles to order")
            return self._finish(TourStatus.COMPLETED, "no tiles")

        state.unused = set(range(len(state.tiles)))
        state.prev_angle = state.start_angle

        if self.options.fixed_tiles:
            self._seed(self.options.fixed_tiles)
        else:
            start_idx = select_start_tile(
                state.tiles, self.options.start_rule, self.options.custom_start_tile
            )
            self._visit(start_idx)
            logger.info(f"State[NOT_STARTED]: starting at {state.tiles[start_idx]}, direction undetermined")

        if not state.unused:
            return self._finish(TourStatus.COMPLETED, None)

        self._status = TourStatus.WALKING
        return self._status

    def step(self) -> bool:
        """
        Advance the walk by at most one tile.

        Returns:
            True if a tile was appended, False if the walk reached a
            terminal state instead
        """
        if self._status is TourStatus.NOT_STARTED:
            self.start()
        if self._status is not TourStatus.WALKING:
            return False

        state = self._state
        if not state.unused:
            self._finish(TourStatus.COMPLETED, None)
            return False

        step_start = time.perf_counter()
        self._metrics.steps += 1
        nxt = self.strategy.select(
            state.cur, state.prev_angle, state.centers, state.unused, state.k, state.tiles
        )
        self._metrics.computation_time_ms += (time.perf_counter() - step_start) * 1000

        if nxt is None:
            self._finish(TourStatus.STALLED, "no reachable tile")
            return False
        if nxt not in state.unused:
            raise RuntimeError(f"Strategy {self.strategy.name} returned {nxt}, which is not an unused tile")

        new_angle = state.bearing_to(nxt)
        if state.prev_angle is not None:
            turn = turn_angle(state.prev_angle, new_angle)
            if turn > state.max_angle_diff + ANGLE_EPSILON:
                self._finish(
                    TourStatus.STALLED,
                    f"angle diff {turn:.1f}° > {state.max_angle_diff}°",
                )
                return False

        self._visit(nxt, new_angle)

        if not state.unused:
            self._finish(TourStatus.COMPLETED, None)
        return True

    def run(self) -> TourResult:
        """
        Walk until COMPLETED or STALLED.

        Returns:
            TourResult for the current state
        """
        if self._status is TourStatus.NOT_STARTED:
            self.start()
        while self.step():
            pass
        return self.result()

    def resume(self, max_angle_diff: Optional[float] = None) -> TourResult:
        """
        Continue a stalled walk from exactly where it stopped.

        Args:
            max_angle_diff: New turn tolerance in degrees, or None to keep
                the current one

        Returns:
            TourResult after walking on
        """
        if self._status is TourStatus.NOT_STARTED:
            return self.run()
        if self._status is TourStatus.COMPLETED:
            logger.info("State[COMPLETED]: nothing left to resume")
            return self.result()

        state = self._state
        if max_angle_diff is not None:
            max_angle_diff = as_degrees("max_angle_diff", max_angle_diff)
            if max_angle_diff < 0:
                raise ConfigurationError(f"max_angle_diff must be >= 0, got {max_angle_diff}")
            state.max_angle_diff = max_angle_diff
            logger.info(f"Resuming tile ordering with new max angle difference: {max_angle_diff}°")
        else:
            logger.info(f"Resuming tile ordering with original max angle difference: {state.max_angle_diff}°")

        self._status = TourStatus.WALKING
        self._stop_reason = None
        return self.run()

    def result(self) -> TourResult:
        """Snapshot of the tour so far."""
        state = self._state
        tiles = state.ordered_tiles
        bearings, turns = direction_series(tiles, state.k)
        return TourResult(
            tiles=tiles,
            order_idx=list(state.order_idx),
            status=self._status,
            available=state.available,
            bearings=bearings,
            turns=turns,
            stop_reason=self._stop_reason,
            metrics=TourMetrics(
                computation_time_ms=self._metrics.computation_time_ms,
                steps=self._metrics.steps,
                strategy_name=self._metrics.strategy_name,
            ),
        )

    def _visit(self, index: int, new_angle: Optional[float] = None) -> None:
        """Append a tile and retire every unused tile it overlaps."""
        state = self._state
        tile = state.tiles[index]

        state.order_idx.append(index)
        state.unused.discard(index)
        for other in [i for i in state.unused if overlaps(tile, state.tiles[i], state.k)]:
            state.unused.discard(other)
            state.blocked.add(other)
        state.cur = index

        # Direction only exists once two tiles are on the path
        if new_angle is not None and len(state.order_idx) >= 2:
            state.prev_angle = new_angle
            if len(state.order_idx) == 2:
                logger.debug(f"Direction established: {new_angle:.1f}° {arrow(new_angle)}")

    def _seed(self, fixed_tiles: Sequence[Tuple[int, int]]) -> None:
        """Visit a caller-supplied sequence of anchors before walking."""
        state = self._state
        logger.info(f"Fixed tiles provided: {', '.join(str(as_anchor(t)) for t in fixed_tiles)}")

        for anchor in fixed_tiles:
            anchor = as_anchor(anchor)
            index = self._index.get(anchor)
            if index is None:
                index = nearest_tile_index(state.tiles, anchor)
                logger.warning(f"Fixed tile {anchor} not found, using closest tile {state.tiles[index]}")
            if index not in state.unused:
                logger.warning(f"Fixed tile {state.tiles[index]} already visited or overlapped, skipping")
                continue
            new_angle = state.bearing_to(index) if state.cur is not None else None
            self._visit(index, new_angle)

    def _finish(self, status: TourStatus, reason: Optional[str]) -> TourStatus:
        state = self._state
        self._status = status
        self._stop_reason = reason

        if status is TourStatus.STALLED:
            logger.info(
                f"State[STALLED]: stopped at tile {state.visited} ({reason}). "
                f"{len(state.unused)} tiles remain."
            )
        else:
            logger.info(f"State[COMPLETED]: {state.visited}/{state.available} tiles visited")
        return status


def order_tiles(
    placements: Union[PlacementSet, Sequence[Tile]],
    options: Optional[OrderingOptions] = None,
    k: Optional[int] = None,
) -> Tuple[TourResult, PathOrderer]:
    """
    Order tiles in one call.

    Args:
        placements: PlacementSet, or tile list with k
        options: Run options
        k: Tile side length for a plain tile list

    Returns:
        (result, orderer) - keep the orderer to resume a stalled tour
    """
    orderer = PathOrderer(placements, k=k, options=options)
    return orderer.run(), orderer
