"""
Ordering Context Module - Run options and the mutable walk state.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

from .errors import ConfigurationError
from .geometry import Point, bearing, tile_center
from .placement import Tile

logger = logging.getLogger(__name__)


class StartRule(Enum):
    """
    How the first tile of a tour is chosen.

    TOPLEFT: smallest row, then smallest column
    TOPRIGHT: smallest row, then largest column
    CUSTOM: the caller's tile, or the nearest placement to it
    """
    TOPLEFT = "topleft"
    TOPRIGHT = "topright"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Union[str, 'StartRule']) -> 'StartRule':
        if isinstance(value, StartRule):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            available = ", ".join(r.value for r in cls)
            raise ConfigurationError(f"Unknown start rule: {value}. Available: {available}") from None


StartSelector = Callable[[Sequence[Tile]], int]


def as_degrees(name: str, value: Any) -> float:
    """Convert a configured angle to float, rejecting non-numbers and NaN."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number of degrees, got {value!r}")
    try:
        degrees = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number of degrees, got {value!r}") from None
    if math.isnan(degrees):
        raise ConfigurationError(f"{name} must be a number of degrees, got NaN")
    return degrees


@dataclass
class OrderingOptions:
    """
    Caller-facing options for an ordering run.

    Attributes:
        start_rule: StartRule, its string value, or a selector
                    function (tiles) -> start index
        custom_start_tile: (r, c) used by StartRule.CUSTOM
        max_angle_diff: Largest allowed turn in degrees (inf = unbounded)
        strategy: Strategy name or StrategyKind
        strategy_params: Extra keyword arguments for the strategy
        fixed_tiles: Seed sequence of anchors visited first, in order
        start_angle: Initial previous bearing (None = undetermined)
    """
    start_rule: Union[StartRule, str, StartSelector] = StartRule.TOPLEFT
    custom_start_tile: Optional[Tuple[int, int]] = None
    max_angle_diff: float = math.inf
    strategy: Any = "weighted"
    strategy_params: Dict[str, Any] = field(default_factory=dict)
    fixed_tiles: Optional[List[Tuple[int, int]]] = None
    start_angle: Optional[float] = None

    def __post_init__(self):
        if not callable(self.start_rule):
            self.start_rule = StartRule.parse(self.start_rule)
        if self.max_angle_diff is None:
            self.max_angle_diff = math.inf
        self.max_angle_diff = as_degrees("max_angle_diff", self.max_angle_diff)
        if self.start_angle is not None:
            self.start_angle = as_degrees("start_angle", self.start_angle)
        if self.max_angle_diff < 0:
            raise ConfigurationError(f"max_angle_diff must be >= 0, got {self.max_angle_diff}")
        if self.start_rule is StartRule.CUSTOM and self.custom_start_tile is None:
            raise ConfigurationError("start rule 'custom' needs custom_start_tile")

    @classmethod
    def from_settings(cls, settings: Dict[str, Any], **overrides: Any) -> 'OrderingOptions':
        """
        Build options from a settings dictionary (see tilecover.settings).

        Args:
            settings: Loaded settings
            **overrides: Values that win over the settings (None is ignored)

        Returns:
            OrderingOptions instance
        """
        values = {
            "start_rule": settings.get("start_rule", StartRule.TOPLEFT.value),
            "custom_start_tile": settings.get("custom_start_tile"),
            "max_angle_diff": settings.get("max_angle_diff"),
            "strategy": settings.get("strategy_name", "weighted"),
            "strategy_params": settings.get("strategy_params") or {},
        }
        values.update({key: value for key, value in overrides.items() if value is not None})

        if not isinstance(values["strategy_params"], dict):
            raise ConfigurationError(f"strategy_params must be an object, got {values['strategy_params']!r}")
        values["strategy_params"] = dict(values["strategy_params"])

        anchor = values["custom_start_tile"]
        if anchor is not None:
            try:
                r, c = anchor
                values["custom_start_tile"] = (int(r), int(c))
            except (TypeError, ValueError):
                raise ConfigurationError(f"custom_start_tile must be [row, col], got {anchor!r}") from None
        return cls(**values)


@dataclass
class OrderingState:
    """
    Walk state shared by the automatic orderer and the interactive session.

    Attributes:
        tiles: Tile list that indices refer to
        k: Tile side length
        max_angle_diff: Active turn tolerance in degrees
        order_idx: Visited tile indices, in order
        unused: Indices not visited yet and not blocked
        blocked: Indices overlapping a visited tile (never visitable)
        cur: Index of the current tile (None before the walk starts)
        prev_angle: Bearing of the last move, None while undetermined
        start_angle: Initial prev_angle, restored when the tour is cut back
        centers: Cached tile centers, aligned with tiles
    """
    tiles: List[Tile]
    k: int
    max_angle_diff: float = math.inf
    order_idx: List[int] = field(default_factory=list)
    unused: Set[int] = field(default_factory=set)
    blocked: Set[int] = field(default_factory=set)
    cur: Optional[int] = None
    prev_angle: Optional[float] = None
    start_angle: Optional[float] = None
    centers: List[Point] = field(default_factory=list)

    def __post_init__(self):
        if not self.centers:
            self.centers = [tile_center(t, self.k) for t in self.tiles]

    @property
    def visited(self) -> int:
        return len(self.order_idx)

    @property
    def available(self) -> int:
        """Visited tiles plus tiles that may still be visited."""
        return len(self.order_idx) + len(self.unused)

    @property
    def ordered_tiles(self) -> List[Tile]:
        return [self.tiles[i] for i in self.order_idx]

    def bearing_to(self, index: int) -> float:
        """Bearing from the current tile to another tile."""
        return bearing(self.centers[self.cur], self.centers[index])
