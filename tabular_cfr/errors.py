"""
Exception types shared by every layer.

Configuration problems are reported when an object is built or a function
is entered. Invariant violations are programming errors and are never
repaired by renormalising.
"""


class CFRError(Exception):
    """Base class for all package errors."""


class ConfigurationError(CFRError, ValueError):
    """Invalid solver switches, unsupported game or bad evaluation input."""


class InvariantViolationError(CFRError):
    """A probability distribution or game-tree invariant does not hold."""
