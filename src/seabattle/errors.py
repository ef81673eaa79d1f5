"""Exception types raised by the SeaBattle engine."""

from __future__ import annotations


class SeaBattleError(Exception):
    """Base class for every engine error."""


class InvalidPlacementError(SeaBattleError, ValueError):
    """A ship placement violates bounds, overlap, or adjacency rules."""


class OutOfRangeError(SeaBattleError, IndexError):
    """A ship part index does not exist on the ship."""


class MatchStateError(SeaBattleError, RuntimeError):
    """The match phase or turn does not allow the requested operation."""
