"""
Strategies Package - Concrete strategy implementations.

Import this module to register all built-in strategies.
"""

from .nearest import NearestStrategy
from .min_turn import MinTurnStrategy
from .weighted import WeightedStrategy
from .prefer_close import PreferCloseStrategy

__all__ = [
    "NearestStrategy",
    "MinTurnStrategy",
    "WeightedStrategy",
    "PreferCloseStrategy",
]
