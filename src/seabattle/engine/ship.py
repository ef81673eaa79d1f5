"""Ship domain model for the SeaBattle engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union

from seabattle.errors import OutOfRangeError


@dataclass(frozen=True, order=True)
class Coordinate:
    """Immutable, zero-indexed board coordinate."""

    row: int
    col: int

    @classmethod
    def of(cls, value: CoordinateLike) -> Coordinate:
        """Accept either a Coordinate or a plain ``(row, col)`` pair."""
        if isinstance(value, Coordinate):
            return value
        row, col = value
        return cls(int(row), int(col))

    def offset(self, delta_row: int, delta_col: int) -> Coordinate:
        return Coordinate(self.row + delta_row, self.col + delta_col)

    def moore_neighbours(self) -> list[Coordinate]:
        """Return the eight surrounding cells, ignoring board bounds."""
        return [
            self.offset(delta_row, delta_col)
            for delta_row in (-1, 0, 1)
            for delta_col in (-1, 0, 1)
            if delta_row or delta_col
        ]

    def orthogonal_neighbours(self) -> list[Coordinate]:
        return [self.offset(-1, 0), self.offset(0, -1), self.offset(0, 1), self.offset(1, 0)]


CoordinateLike = Union[Coordinate, Tuple[int, int]]


class Orientation(Enum):
    """Axis along which a ship extends from its origin."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    def flipped(self) -> Orientation:
        return Orientation.VERTICAL if self is Orientation.HORIZONTAL else Orientation.HORIZONTAL


@dataclass(frozen=True)
class ShipPlacement:
    """Descriptor of a ship's position, returned when a ship leaves the board."""

    length: int
    origin: Coordinate
    orientation: Orientation


def footprint(length: int, origin: Coordinate, orientation: Orientation) -> list[Coordinate]:
    """Cells covered by a ship; list index equals the ship part index."""
    if orientation is Orientation.HORIZONTAL:
        return [Coordinate(origin.row, origin.col + offset) for offset in range(length)]
    return [Coordinate(origin.row + offset, origin.col) for offset in range(length)]


@dataclass
class Ship:
    """A single vessel and the hit state of each of its parts."""

    length: int
    origin: Coordinate
    orientation: Orientation
    hits: list[bool] = field(init=False)

    def __post_init__(self) -> None:
        if self.length < 1:
            raise ValueError("Ship length must be a positive integer.")
        self.hits = [False] * self.length

    def coordinates(self) -> list[Coordinate]:
        """Return the ordered list of coordinates occupied by this ship."""
        return footprint(self.length, self.origin, self.orientation)

    def part_index(self, coord: Coordinate) -> int:
        """Map a board coordinate to the index of the part it holds."""
        if self.orientation is Orientation.HORIZONTAL:
            return coord.col - self.origin.col
        return coord.row - self.origin.row

    def hit(self, part: int) -> None:
        """Mark a single part as hit."""
        if part < 0 or part >= self.length:
            raise OutOfRangeError(f"Part {part} does not exist on a ship of length {self.length}.")
        self.hits[part] = True

    def is_sunk(self) -> bool:
        """Determine whether every part of the ship has been hit."""
        return all(self.hits)

    def placement(self) -> ShipPlacement:
        return ShipPlacement(self.length, self.origin, self.orientation)
