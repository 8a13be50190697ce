"""
Tour Result Module - Outcome of an ordering run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .geometry import arrow
from .placement import Tile


class TourStatus(Enum):
    """
    Terminal (and pre-terminal) states of a tour.

    States:
        NOT_STARTED: No start tile chosen yet
        WALKING: Walk in progress
        COMPLETED: Every available tile was visited
        STALLED: No next tile under the active constraints; resumable
        STOPPED: Ended by an explicit external "stop"
    """
    NOT_STARTED = "not_started"
    WALKING = "walking"
    COMPLETED = "completed"
    STALLED = "stalled"
    STOPPED = "stopped"


@dataclass
class TourMetrics:
    """
    Performance metrics for a tour computation.

    Attributes:
        computation_time_ms: Time taken in milliseconds
        steps: Next-tile decisions evaluated
        strategy_name: Strategy (or "interactive") that built the tour
    """
    computation_time_ms: float = 0.0
    steps: int = 0
    strategy_name: str = ""


@dataclass
class TourResult:
    """
    Ordered tour plus per-step direction data.

    Attributes:
        tiles: Tiles in visiting order
        order_idx: Indices of those tiles in the tile list
        status: COMPLETED, STALLED or STOPPED
        available: Tiles that could still be part of the tour
                   (visited + unvisited, excluding tiles blocked by overlap)
        bearings: Bearing of every move (len(tiles) - 1)
        turns: Turn between consecutive moves (len(tiles) - 2)
        stop_reason: Why the walk stopped, for logs and reports
        warnings: Advisory messages (e.g. tolerated angle violations)
        metrics: Computation statistics
    """
    tiles: List[Tile] = field(default_factory=list)
    order_idx: List[int] = field(default_factory=list)
    status: TourStatus = TourStatus.NOT_STARTED
    available: int = 0
    bearings: List[float] = field(default_factory=list)
    turns: List[float] = field(default_factory=list)
    stop_reason: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    metrics: TourMetrics = field(default_factory=TourMetrics)

    @property
    def visited(self) -> int:
        """Number of tiles in the tour."""
        return len(self.tiles)

    @property
    def remaining(self) -> int:
        """Available tiles the tour did not reach."""
        return max(0, self.available - self.visited)

    @property
    def is_complete(self) -> bool:
        return self.status == TourStatus.COMPLETED

    @property
    def is_stalled(self) -> bool:
        return self.status == TourStatus.STALLED

    @property
    def arrows(self) -> List[str]:
        """Compass arrow for every move."""
        return [arrow(b) for b in self.bearings]

    def describe(self) -> str:
        """One-line human-readable summary."""
        text = f"{self.status.value}: {self.visited}/{self.available} tiles visited"
        if self.stop_reason:
            text += f" ({self.stop_reason})"
        return text
