"""
Strategy Factory Module - Registry and factory for strategy instantiation.
"""

from typing import Any, Dict, List, Type

from .base import NextTileStrategy, StrategyKind
from .errors import ConfigurationError


# Registry of strategies, one class per StrategyKind
_STRATEGIES: Dict[StrategyKind, Type[NextTileStrategy]] = {}

DEFAULT_STRATEGY = StrategyKind.WEIGHTED


def register_strategy(cls: Type[NextTileStrategy]) -> Type[NextTileStrategy]:
    """
    Decorator to register a strategy class.

    Usage:
        @register_strategy
        class MyStrategy(NextTileStrategy):
            kind = StrategyKind.NEAREST
            ...

    Args:
        cls: Strategy class to register

    Returns:
        The same class (for decorator chaining)

    Raises:
        TypeError: If the class does not declare a StrategyKind
    """
    if not isinstance(cls.kind, StrategyKind):
        raise TypeError(f"{cls.__name__}.kind must be a StrategyKind, got {cls.kind!r}")
    _STRATEGIES[cls.kind] = cls
    return cls


def create_strategy(kind: Any = DEFAULT_STRATEGY, **kwargs: Any) -> NextTileStrategy:
    """
    Create a strategy instance by kind or name.

    Args:
        kind: StrategyKind or its name (e.g. "weighted", "min_turn")
        **kwargs: Additional arguments passed to strategy constructor

    Returns:
        Strategy instance

    Raises:
        ConfigurationError: If the strategy is unknown or its parameters
            are rejected
    """
    kind = StrategyKind.parse(kind)
    if kind not in _STRATEGIES:
        available = ", ".join(k.value for k in _STRATEGIES)
        raise ConfigurationError(f"Strategy not registered: {kind.value}. Available: {available}")
    try:
        return _STRATEGIES[kind](**kwargs)
    except TypeError as e:
        raise ConfigurationError(f"Bad parameters for strategy {kind.value}: {e}") from e


def get_strategy_names() -> List[str]:
    """
    Get list of available strategy names.

    Returns:
        List of registered strategy names
    """
    return [kind.value for kind in _STRATEGIES]


def get_strategy_info() -> List[Dict[str, str]]:
    """
    Get name and description for all registered strategies.

    Returns:
        List of dicts with 'name' and 'description' keys
    """
    return [
        {"name": kind.value, "description": cls.description}
        for kind, cls in _STRATEGIES.items()
    ]


def get_default_strategy_name() -> str:
    """
    Get the default strategy name.

    Returns:
        Default strategy name ("weighted" if available, else first registered)
    """
    if DEFAULT_STRATEGY in _STRATEGIES:
        return DEFAULT_STRATEGY.value
    if _STRATEGIES:
        return next(iter(_STRATEGIES)).value
    return ""
