"""
Session Manager Module - Interactive, resumable tour building.

Instead of asking a strategy for the next tile, the session offers the
tiles touching the current tile to an external actor (a person at a
console, a UI, a test) and waits for an answer. The actor may pick a
candidate, stop, or cut the tour back to an earlier tile and continue
from there.

State Flow:
    AWAITING_INPUT --candidate--> AWAITING_INPUT
           |     \\--truncate N--> AWAITING_INPUT (from tile N-1)
           |
           +--no candidates--> EXHAUSTED --start_new_group--> AWAITING_INPUT
           +--"stop"---------> STOPPED   --start_new_group--> AWAITING_INPUT

    EXHAUSTED/STOPPED --close_with_endpoint--> STOPPED

A new group either starts on a free outermost tile or branches off a tile
already in the tour. Closing a group with an endpoint (which may be a tour
tile) reports whether the walk has come back round into a cycle.

For the automatic builder, see tilecover.solver.PathOrderer.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Generator, List, Optional, Sequence, Tuple

from tilecover.solver import (
    Candidate,
    InvalidSelectionError,
    OrderingOptions,
    OrderingState,
    PlacementSet,
    Tile,
    TourMetrics,
    TourResult,
    TourStatus,
    candidate_info,
    direction_series,
    outermost_tiles,
    overlaps,
    select_start_tile,
    touches,
)
from tilecover.solver.geometry import ANGLE_EPSILON, arrow, bearing
from tilecover.solver.placements import as_anchor, nearest_tile_index

logger = logging.getLogger(__name__)


__all__ = [
    "SessionState",
    "InteractiveSession",
    "GroupStartOption",
    "EndpointResult",
    "Chooser",
]

# Answer accepted by apply()/prompts(): candidate position, "stop",
# "truncate N" (or "cut N"), "refresh"
Answer = Any
Chooser = Callable[[List[Candidate]], Answer]


class SessionState(Enum):
    """
    State machine states for the interactive session.

    States:
        AWAITING_INPUT: Candidates are on offer, waiting for a choice
        EXHAUSTED: No tile touches the current tile
        STOPPED: The actor ended the session
    """
    AWAITING_INPUT = auto()
    EXHAUSTED = auto()
    STOPPED = auto()


@dataclass(frozen=True)
class GroupStartOption:
    """
    A tile a new group may start from.

    Attributes:
        index: Index into the placement list
        tile: The tile
        used: Already in the tour; the new group branches off it
        outermost: On the outer boundary of the tiles still free
    """
    index: int
    tile: Tile
    used: bool
    outermost: bool

    def __str__(self) -> str:
        flag = "used" if self.used else "outermost"
        return f"{self.tile} ({flag})"


@dataclass(frozen=True)
class EndpointResult:
    """
    Outcome of closing the last group with an endpoint.

    Attributes:
        endpoint: Tile the group ends on
        bearing: Direction from the group's last tile to the endpoint
        cycle_closed: True when the endpoint is a tour tile, or touches a
            tour tile other than the one it was reached from
        connection: First tour tile (in tour order) closing the cycle
        open_neighbours: Free tiles touching the endpoint
    """
    endpoint: Tile
    bearing: float
    cycle_closed: bool
    connection: Optional[Tile] = None
    open_neighbours: List[Tile] = field(default_factory=list)


@dataclass
class _Group:
    """Group bookkeeping: first tour position, branch tile, endpoint tile."""
    start: int
    origin: Optional[int] = None
    endpoint: Optional[int] = None


class InteractiveSession:
    """
    Human-in-the-loop tour builder over an explicit PlacementSet.

    Candidates are the placements that touch the current tile, overlap
    no chosen tile, and are not chosen yet, in placement order. A turn
    above max_angle_diff is only a warning here: the tile is still
    appended, since a person is steering.

    Every public mutation (select, truncate, stop, start_new_group,
    close_with_endpoint) is applied completely or not at all; rejected
    input leaves the state as it was.

    Optional auto-selection:
        auto_select: take the only candidate when there is exactly one;
            switches itself off as soon as several are on offer
        auto_select_angle: take the smallest-turn "preferred" candidate
            (turn <= 45°); switches itself off when none is preferred
    """

    STOP = "stop"

    def __init__(
        self,
        placements: PlacementSet,
        options: Optional[OrderingOptions] = None,
        auto_select: bool = False,
        auto_select_angle: bool = False,
    ):
        """
        Initialize the session and choose the start tile.

        Args:
            placements: Enumeration result the session works on
            options: Start rule, custom start tile, seed tiles, turn
                     tolerance and start angle (the strategy is unused)
            auto_select: Enable single-candidate auto-selection
            auto_select_angle: Enable preferred-angle auto-selection
        """
        self.options = options or OrderingOptions()
        self.auto_select = auto_select
        self.auto_select_angle = auto_select_angle

        self._placements = placements
        self._state = OrderingState(
            tiles=placements.tiles,
            k=placements.k,
            max_angle_diff=self.options.max_angle_diff,
            start_angle=self.options.start_angle,
        )
        self._groups: List[_Group] = []
        self._stopped = False
        self._stop_reason = "stopped by user"
        self._warnings: List[str] = []
        self._selections = 0

        self._begin()

    @property
    def ordering_state(self) -> OrderingState:
        """Current walk state (for inspection)."""
        return self._state

    @property
    def placements(self) -> PlacementSet:
        return self._placements

    @property
    def state(self) -> SessionState:
        """Get current state machine state."""
        if self._stopped:
            return SessionState.STOPPED
        if self.candidates():
            return SessionState.AWAITING_INPUT
        return SessionState.EXHAUSTED

    @property
    def tour(self) -> List[Tile]:
        """Tiles chosen so far, in order."""
        return self._state.ordered_tiles

    @property
    def warnings(self) -> List[str]:
        return list(self._warnings)

    def candidates(self) -> List[Candidate]:
        """
        Tiles that may be chosen next.

        Returns:
            Candidates touching the current tile, in placement order;
            empty once stopped or when nothing touches the current tile
        """
        state = self._state
        if self._stopped or state.cur is None:
            return []

        current = state.tiles[state.cur]
        return [
            candidate_info(state.cur, i, state.centers, state.tiles, state.k, state.prev_angle)
            for i in sorted(state.unused)
            if touches(current, state.tiles[i], state.k)
        ]

    def select(self, position: int) -> Candidate:
        """
        Append the candidate at a position of the current candidate list.

        Args:
            position: 0-based position in candidates()

        Returns:
            The chosen candidate

        Raises:
            InvalidSelectionError: If the position is out of range or the
                session is not awaiting input
        """
        if self._stopped:
            raise InvalidSelectionError("session is stopped")

        cands = self.candidates()
        if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position < len(cands):
            raise InvalidSelectionError(
                f"{position!r} is not a candidate position (0..{len(cands) - 1})"
            )

        chosen = cands[position]
        state = self._state
        if chosen.turn is not None and chosen.turn > state.max_angle_diff + ANGLE_EPSILON:
            message = (
                f"Angle diff {chosen.turn:.1f}° > {state.max_angle_diff}° "
                f"at tile {state.visited + 1} {chosen.tile}"
            )
            logger.warning(message)
            self._warnings.append(message)

        self._visit(chosen.index, chosen.bearing)
        self._selections += 1
        logger.info(f"Selected tile at {chosen.tile} {arrow(chosen.bearing)}")
        return chosen

    def truncate(self, index: int) -> None:
        """
        Cut the tour back so that it keeps its first `index` tiles.

        The tile at position index-1 becomes current again, the previous
        bearing is restored from the last two kept tiles (or from the
        branch tile when the tail opens a branched group), and candidates
        are offered from there, exactly as when the tour first had
        `index` tiles. The endpoint of the last kept group is dropped.

        Args:
            index: Number of tiles to keep (0 < index < tour length)

        Raises:
            InvalidSelectionError: If index is out of range
        """
        state = self._state
        if isinstance(index, bool) or not isinstance(index, int) or not 0 < index < len(state.order_idx):
            raise InvalidSelectionError(
                f"cannot truncate at {index!r}: expected 1..{len(state.order_idx) - 1}"
                " (the first tile always stays)"
            )

        logger.info(f"Removing tiles from index {index} (inclusive)")
        state.order_idx = state.order_idx[:index]
        self._groups = [g for g in self._groups if g.start < index]
        state.cur = state.order_idx[-1]

        last = len(state.order_idx) - 1
        group = self._groups[-1]
        group.endpoint = None
        if group.start == last and group.origin is not None:
            state.prev_angle = bearing(state.centers[group.origin], state.centers[state.cur])
        elif last == 0:
            state.prev_angle = state.start_angle
        elif group.start == last:
            state.prev_angle = None
        else:
            state.prev_angle = bearing(
                state.centers[state.order_idx[-2]], state.centers[state.order_idx[-1]]
            )

        self._rebuild_pools()
        self._stopped = False
        self._stop_reason = "stopped by user"
        logger.info(
            f"Tiles removed. {len(state.order_idx)} tiles remaining. "
            f"You can continue selecting from tile {state.tiles[state.cur]}"
        )

    def stop(self) -> None:
        """Finish the tour at its current length."""
        self._stopped = True
        self._stop_reason = "stopped by user"
        logger.info(f"Stopped at tile {self._state.visited}.")

    def new_group_options(self) -> List[GroupStartOption]:
        """
        Tiles a new group may start from.

        Tiles already in the tour come first, in placement order: a group
        started there branches off the tour. The outermost tiles among the
        placements still free follow.

        Returns:
            Start options; empty once no free tile is left
        """
        state = self._state
        if not state.unused:
            return []

        used = set(state.order_idx)
        options = [
            GroupStartOption(index=i, tile=state.tiles[i], used=True, outermost=False)
            for i in range(len(state.tiles))
            if i in used
        ]
        for tile in outermost_tiles([state.tiles[i] for i in sorted(state.unused)]):
            index = self._placements.index_of(tile)
            options.append(GroupStartOption(index=index, tile=tile, used=False, outermost=True))
        return options

    def start_new_group(self, position: int) -> Tile:
        """
        Start a group from one of new_group_options().

        The direction is reset, so the first move of the new group is
        never checked against the old heading. A free tile is appended to
        the tour; a used tile only becomes current again and the group
        branches off it.

        Args:
            position: 0-based position in new_group_options()

        Returns:
            The new current tile

        Raises:
            InvalidSelectionError: If candidates are still on offer or the
                position is out of range
        """
        if not self._stopped and self.candidates():
            raise InvalidSelectionError("current group can still be extended")

        options = self.new_group_options()
        if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position < len(options):
            raise InvalidSelectionError(
                f"{position!r} is not a new-group position (0..{len(options) - 1})"
            )

        option = options[position]
        state = self._state
        state.prev_angle = None
        if option.used:
            self._groups.append(_Group(start=len(state.order_idx), origin=option.index))
            state.cur = option.index
        else:
            self._groups.append(_Group(start=len(state.order_idx)))
            self._visit(option.index, None)
        self._stopped = False
        logger.info(f"New group {len(self._groups)} started at {option}")
        return option.tile

    def endpoint_options(self) -> List[Candidate]:
        """
        Tiles the current group may end on.

        Unlike candidates(), tour tiles and tiles overlapping the tour are
        offered too, so the group can end on a tile it has already passed.

        Returns:
            Every tile touching the current tile, in placement order
        """
        state = self._state
        if state.cur is None:
            return []

        current = state.tiles[state.cur]
        return [
            candidate_info(state.cur, i, state.centers, state.tiles, state.k, state.prev_angle)
            for i in range(len(state.tiles))
            if i != state.cur and touches(current, state.tiles[i], state.k)
        ]

    def close_with_endpoint(self, position: int) -> EndpointResult:
        """
        End the last group on one of endpoint_options() and stop.

        The endpoint belongs to the group (see groups()) but is not
        appended to the tour. A cycle is closed when the endpoint is a
        tour tile itself, or touches a tour tile other than the current
        one. A new group may still be started afterwards.

        Args:
            position: 0-based position in endpoint_options()

        Returns:
            EndpointResult

        Raises:
            InvalidSelectionError: If the group can still be extended, it
                already has an endpoint, or the position is out of range
        """
        if self.state is SessionState.AWAITING_INPUT:
            raise InvalidSelectionError("current group can still be extended")
        if not self._groups:
            raise InvalidSelectionError("no group to close")
        group = self._groups[-1]
        if group.endpoint is not None:
            raise InvalidSelectionError("current group already has an endpoint")

        options = self.endpoint_options()
        if isinstance(position, bool) or not isinstance(position, int) or not 0 <= position < len(options):
            raise InvalidSelectionError(
                f"{position!r} is not an endpoint position (0..{len(options) - 1})"
            )

        state = self._state
        chosen = options[position]
        endpoint = chosen.tile

        if chosen.index in state.order_idx:
            connection = endpoint
        else:
            connection = next(
                (state.tiles[i] for i in state.order_idx
                 if i != state.cur and touches(endpoint, state.tiles[i], state.k)),
                None,
            )
        open_neighbours = [
            state.tiles[i] for i in sorted(state.unused)
            if i != chosen.index and touches(endpoint, state.tiles[i], state.k)
        ]

        group.endpoint = chosen.index
        self._stopped = True
        self._stop_reason = f"closed at endpoint {endpoint}"

        if connection is not None:
            logger.info(f"Cycle closed: endpoint {endpoint} {arrow(chosen.bearing)} connects to {connection}")
        else:
            logger.info(
                f"Group {len(self._groups)} ends at {endpoint} {arrow(chosen.bearing)}, "
                f"{len(open_neighbours)} free tiles touch it"
            )

        return EndpointResult(
            endpoint=endpoint,
            bearing=chosen.bearing,
            cycle_closed=connection is not None,
            connection=connection,
            open_neighbours=open_neighbours,
        )

    def groups(self) -> List[List[Tile]]:
        """
        Tour split into its groups, in order.

        A branched group starts with the tour tile it branches off, and a
        closed group ends with its endpoint.
        """
        state = self._state
        tiles = self.tour
        bounds = [g.start for g in self._groups] + [len(tiles)]
        result = []
        for g, group in enumerate(self._groups):
            members = tiles[bounds[g]:bounds[g + 1]]
            if group.origin is not None:
                members = [state.tiles[group.origin]] + members
            if group.endpoint is not None:
                members = members + [state.tiles[group.endpoint]]
            result.append(members)
        return result

    def apply(self, answer: Answer) -> SessionState:
        """
        Apply one answer from the external actor.

        Accepted answers:
            int or numeric string: candidate position
            "stop": finish the tour
            "truncate N" / "cut N": keep the first N tiles
            "refresh": re-offer the current candidates

        Args:
            answer: The actor's answer

        Returns:
            State after applying the answer

        Raises:
            InvalidSelectionError: If the answer cannot be applied
        """
        if isinstance(answer, int) and not isinstance(answer, bool):
            self.select(answer)
            return self.state

        text = str(answer).strip().lower() if answer is not None else ""
        if text == self.STOP:
            self.stop()
        elif text == "refresh":
            logger.debug("Refreshing tile selection")
        elif text.split(" ", 1)[0] in ("truncate", "cut"):
            _, _, arg = text.partition(" ")
            if not arg.strip().isdigit():
                raise InvalidSelectionError(f"unparseable truncation {answer!r}")
            self.truncate(int(arg))
        elif text.isdigit():
            self.select(int(text))
        else:
            raise InvalidSelectionError(f"unparseable selection {answer!r}")
        return self.state

    def prompts(self) -> Generator[List[Candidate], Answer, TourResult]:
        """
        Cooperative driver: yields candidate lists, receives answers.

        Each yield is the single outstanding "awaiting input" point; send()
        the answer to continue. Invalid answers are logged and the same
        candidates are offered again. The generator returns the TourResult
        (StopIteration.value) once the session is stopped or exhausted.

        Example:
            gen = session.prompts()
            cands = next(gen)
            cands = gen.send(0)
        """
        while True:
            cands = self.candidates()
            if not cands:
                if not self._stopped:
                    logger.info(f"No more adjacent tiles available. {self._state.visited} tiles selected.")
                break

            answer = self._auto_select(cands)
            if answer is None:
                answer = yield cands

            try:
                self.apply(answer)
            except InvalidSelectionError as e:
                logger.warning(f"Invalid selection: {e}. Please select a valid tile.")

        return self.result()

    def run(self, chooser: Chooser) -> TourResult:
        """
        Drive the session with a blocking chooser until it halts.

        Args:
            chooser: Called with the candidate list, returns an answer

        Returns:
            Final TourResult
        """
        gen = self.prompts()
        try:
            cands = next(gen)
            while True:
                cands = gen.send(chooser(cands))
        except StopIteration as done:
            return done.value

    def result(self) -> TourResult:
        """Snapshot of the tour so far."""
        state = self._state
        tiles = state.ordered_tiles
        bearings, turns = direction_series(tiles, state.k)

        if self._stopped:
            status, reason = TourStatus.STOPPED, self._stop_reason
        elif not state.unused:
            status, reason = TourStatus.COMPLETED, None
        elif self.candidates():
            status, reason = TourStatus.WALKING, None
        else:
            status, reason = TourStatus.STALLED, "no adjacent tile"

        return TourResult(
            tiles=tiles,
            order_idx=list(state.order_idx),
            status=status,
            available=state.available,
            bearings=bearings,
            turns=turns,
            stop_reason=reason,
            warnings=list(self._warnings),
            metrics=TourMetrics(steps=self._selections, strategy_name="interactive"),
        )

    def _begin(self) -> None:
        """Choose the start tile (or seed tiles)."""
        state = self._state
        if not state.tiles:
            logger.info("No placements, nothing to select")
            return

        state.unused = set(range(len(state.tiles)))
        state.prev_angle = state.start_angle
        self._groups = [_Group(start=0)]

        if self.options.fixed_tiles:
            self._seed(self.options.fixed_tiles)
        else:
            start_idx = select_start_tile(
                state.tiles, self.options.start_rule, self.options.custom_start_tile
            )
            self._visit(start_idx, None)

        logger.info(f"Starting with {state.visited} tile(s): {' '.join(str(t) for t in self.tour)}")

    def _seed(self, fixed_tiles: Sequence[Tuple[int, int]]) -> None:
        state = self._state
        for anchor in fixed_tiles:
            index = self._placements.index_of(anchor)
            if index is None:
                index = nearest_tile_index(state.tiles, anchor)
                logger.warning(f"Fixed tile {as_anchor(anchor)} not found, using closest tile {state.tiles[index]}")
            if index not in state.unused:
                logger.warning(f"Fixed tile {state.tiles[index]} already chosen or overlapped, skipping")
                continue
            new_angle = state.bearing_to(index) if state.cur is not None else None
            self._visit(index, new_angle)

    def _visit(self, index: int, new_angle: Optional[float]) -> None:
        state = self._state
        tile = state.tiles[index]

        state.order_idx.append(index)
        state.unused.discard(index)
        for other in [i for i in state.unused if overlaps(tile, state.tiles[i], state.k)]:
            state.unused.discard(other)
            state.blocked.add(other)
        state.cur = index

        if new_angle is not None and len(state.order_idx) >= 2:
            state.prev_angle = new_angle
            if len(state.order_idx) == 2:
                logger.info(f"Direction established: {new_angle:.1f}° {arrow(new_angle)} (after 2 tiles selected)")

    def _rebuild_pools(self) -> None:
        """Recompute unused/blocked from the chosen tiles."""
        state = self._state
        chosen = set(state.order_idx)
        chosen_tiles = [state.tiles[i] for i in state.order_idx]

        state.unused = set()
        state.blocked = set()
        for i, tile in enumerate(state.tiles):
            if i in chosen:
                continue
            if any(overlaps(tile, t, state.k) for t in chosen_tiles):
                state.blocked.add(i)
            else:
                state.unused.add(i)

    def _auto_select(self, cands: List[Candidate]) -> Optional[int]:
        """
        Pick a candidate without asking, when an auto mode allows it.

        Returns:
            Candidate position, or None when the actor has to choose
        """
        if self.auto_select and len(cands) == 1:
            logger.info(f"Auto-select: taking the only candidate {cands[0].tile}")
            return 0

        if self.auto_select_angle:
            preferred = [pos for pos, c in enumerate(cands) if c.is_preferred]
            if preferred:
                best = min(preferred, key=lambda pos: cands[pos].turn)
                logger.info(
                    f"Angle auto-select: {cands[best].tile} with turn {cands[best].turn:.1f}° "
                    f"({len(preferred)} preferred candidates)"
                )
                return best
            logger.info("Angle auto-select off: no candidate within 45°, waiting for manual choice")
            self.auto_select_angle = False

        if self.auto_select and len(cands) > 1:
            logger.info(f"Auto-select off: {len(cands)} candidates to choose from")
            self.auto_select = False

        return None

    def get_state_string(self) -> str:
        """Get human-readable state string for console display."""
        state_strings = {
            SessionState.AWAITING_INPUT: "Awaiting input",
            SessionState.EXHAUSTED: "No adjacent tiles",
            SessionState.STOPPED: "Stopped",
        }
        return f"{state_strings[self.state]} ({self._state.visited}/{self._state.available})"
