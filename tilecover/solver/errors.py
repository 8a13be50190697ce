"""
Errors Module - Exception types raised by the tile cover solver.
"""


class ConfigurationError(ValueError):
    """
    Raised for malformed input that cannot be solved at all.

    Covers a non-rectangular, empty or non-binary grid, a tile size
    outside {2, 3}, an unknown strategy or start rule, and a start
    selector returning an index outside the tile list.
    """
    pass


class InvalidSelectionError(ValueError):
    """
    Raised when an interactive answer does not name a valid candidate
    or truncation point. Session state is left untouched.
    """
    pass
