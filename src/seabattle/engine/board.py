"""Single-player board management for the SeaBattle engine."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

import numpy as np
import numpy.typing as npt

from seabattle.errors import InvalidPlacementError
from seabattle.telemetry import get_meter, get_tracer

from .ship import Coordinate, CoordinateLike, Orientation, Ship, ShipPlacement, footprint

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.board")
meter = get_meter("seabattle.engine.board")

PLACEMENT_COUNTER = meter.create_counter(
    "seabattle_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

ATTACK_COUNTER = meter.create_counter(
    "seabattle_engine_attacks",
    unit="1",
    description="Attacks received by a board",
)

# Codes used by Board.to_array.
NOT_SHOT = 0
MISSED = 1
SHIP_NOT_HIT = 2
SHIP_HIT = 3


class CellKind(Enum):
    """What a single grid cell currently holds."""

    EMPTY = "empty"
    MISS = "miss"
    OCCUPIED = "occupied"


@dataclass(frozen=True)
class Cell:
    """Tagged cell content; occupied cells reference a ship by id and part."""

    kind: CellKind
    ship_id: int | None = None
    part: int | None = None

    @classmethod
    def occupied(cls, ship_id: int, part: int) -> Cell:
        return cls(CellKind.OCCUPIED, ship_id, part)


EMPTY_CELL = Cell(CellKind.EMPTY)
MISS_CELL = Cell(CellKind.MISS)


class AttackOutcome(Enum):
    """Result of resolving one attack against a board."""

    INVALID = "invalid"
    MISS = "miss"
    HIT = "hit"
    SUNK = "sunk"


@dataclass(frozen=True)
class BoardState:
    """Partition of every cell on a board, in row-major order."""

    ship_not_hit: tuple[Coordinate, ...]
    ship_hit: tuple[Coordinate, ...]
    missed: tuple[Coordinate, ...]
    not_shot: tuple[Coordinate, ...]


class Board:
    """An N×N grid holding one player's fleet and the attacks it received."""

    def __init__(self, size: int = 10, owner: str = "unknown") -> None:
        if size < 1:
            raise ValueError("Board size must be a positive integer.")
        self.size = size
        self.owner = owner
        self._cells: list[list[Cell]] = []
        self._ships: dict[int, Ship] = {}
        self._next_ship_id = 0
        self.reset()

    def reset(self) -> None:
        """Clear every ship and every attack."""
        self._cells = [[EMPTY_CELL] * self.size for _ in range(self.size)]
        self._ships = {}
        self._next_ship_id = 0

    @property
    def ships(self) -> list[Ship]:
        return list(self._ships.values())

    def is_within_board(self, coord: CoordinateLike) -> bool:
        """Check whether a coordinate lies inside the board boundaries."""
        coord = Coordinate.of(coord)
        return 0 <= coord.row < self.size and 0 <= coord.col < self.size

    def cell_at(self, coord: CoordinateLike) -> Cell:
        coord = Coordinate.of(coord)
        if not self.is_within_board(coord):
            raise IndexError(f"({coord.row}, {coord.col}) is outside the board.")
        return self._cells[coord.row][coord.col]

    def ship_at(self, coord: CoordinateLike) -> Ship | None:
        """Return the ship occupying a cell, if any."""
        coord = Coordinate.of(coord)
        if not self.is_within_board(coord):
            return None
        cell = self._cells[coord.row][coord.col]
        if cell.kind is not CellKind.OCCUPIED:
            return None
        return self._ships[cell.ship_id]

    # Placement

    def place_ship(
        self, length: int, origin: CoordinateLike, orientation: Orientation
    ) -> Ship:
        """Place a new ship or raise InvalidPlacementError without touching the board."""
        origin = Coordinate.of(origin)
        with tracer.start_as_current_span("board.place_ship") as span:
            span.set_attribute("ship.length", length)
            span.set_attribute("ship.origin.row", origin.row)
            span.set_attribute("ship.origin.col", origin.col)
            span.set_attribute("board.owner", self.owner)
            try:
                self._check_placement(length, origin, orientation)
            except InvalidPlacementError as exc:
                PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
                logger.debug(
                    "ship_placement_failed",
                    extra={
                        "owner": self.owner,
                        "length": length,
                        "orientation": orientation.name,
                        "row": origin.row,
                        "col": origin.col,
                        "reason": str(exc),
                    },
                )
                raise
            ship = Ship(length, origin, orientation)
            self._attach(ship, self._allocate_id())
            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
            logger.info(
                "ship_placed",
                extra={
                    "owner": self.owner,
                    "length": length,
                    "orientation": orientation.name,
                    "row": origin.row,
                    "col": origin.col,
                },
            )
            return ship

    def remove_ship(self, coord: CoordinateLike) -> ShipPlacement | None:
        """Remove the ship covering ``coord`` and return where it was."""
        ship_id = self._ship_id_at(Coordinate.of(coord))
        if ship_id is None:
            return None
        ship = self._detach(ship_id)
        logger.info(
            "ship_removed",
            extra={"owner": self.owner, "row": ship.origin.row, "col": ship.origin.col},
        )
        return ship.placement()

    def rotate_ship(self, coord: CoordinateLike) -> bool:
        """Flip the orientation of the ship at ``coord`` around its origin."""
        ship_id = self._ship_id_at(Coordinate.of(coord))
        if ship_id is None:
            return False
        ship = self._ships[ship_id]
        return self._relocate(ship_id, ship.origin, ship.orientation.flipped())

    def move_ship(self, from_: CoordinateLike, to: CoordinateLike) -> bool:
        """Move the ship at ``from_`` so that its origin lands on ``to``."""
        ship_id = self._ship_id_at(Coordinate.of(from_))
        if ship_id is None:
            return False
        return self._relocate(ship_id, Coordinate.of(to), self._ships[ship_id].orientation)

    def generate_random_ships(
        self, lengths: Iterable[int], rng: random.Random | None = None
    ) -> bool:
        """Randomly place ships of the given lengths, longest first.

        Each ship tries at most ``size ** 2`` distinct (origin, orientation)
        pairs. Ships that were placed stay on the board even when a later one
        fails.
        """
        rng = rng or random.Random()
        with tracer.start_as_current_span("board.generate_random_ships") as span:
            span.set_attribute("board.owner", self.owner)
            all_placed = True
            candidates = [
                (Coordinate(row, col), orientation)
                for row in range(self.size)
                for col in range(self.size)
                for orientation in Orientation
            ]
            for length in sorted(lengths, reverse=True):
                attempts = 0
                placed = False
                for origin, orientation in rng.sample(
                    candidates, k=min(len(candidates), self.size * self.size)
                ):
                    attempts += 1
                    try:
                        self.place_ship(length, origin, orientation)
                    except InvalidPlacementError:
                        continue
                    placed = True
                    break
                if not placed:
                    all_placed = False
                    logger.warning(
                        "random_ship_placement_exhausted",
                        extra={"length": length, "attempts": attempts, "owner": self.owner},
                    )
                else:
                    logger.debug(
                        "random_ship_placed",
                        extra={"length": length, "attempts": attempts, "owner": self.owner},
                    )
            span.set_attribute("placement.success", all_placed)
            return all_placed

    def valid_placement_origins(self) -> list[Coordinate]:
        """Empty cells whose whole Moore neighbourhood is empty or off the board."""
        valid: list[Coordinate] = []
        for row in range(self.size):
            for col in range(self.size):
                coord = Coordinate(row, col)
                if self._cells[row][col].kind is not CellKind.EMPTY:
                    continue
                if all(
                    self._cells[n.row][n.col].kind is CellKind.EMPTY
                    for n in coord.moore_neighbours()
                    if self.is_within_board(n)
                ):
                    valid.append(coord)
        return valid

    # Attacks

    def receive_attack(self, coord: CoordinateLike) -> bool:
        """Register an attack; False means it was rejected and nothing changed."""
        return self.resolve_attack(coord) is not AttackOutcome.INVALID

    def resolve_attack(self, coord: CoordinateLike) -> AttackOutcome:
        """Register an attack and report what it did."""
        coord = Coordinate.of(coord)
        with tracer.start_as_current_span("board.receive_attack") as span:
            span.set_attribute("attack.row", coord.row)
            span.set_attribute("attack.col", coord.col)
            span.set_attribute("board.owner", self.owner)
            outcome = self._apply_attack(coord)
            span.set_attribute("attack.outcome", outcome.value)
            ATTACK_COUNTER.add(1, attributes={"outcome": outcome.value, "owner": self.owner})
            if outcome is AttackOutcome.INVALID:
                logger.warning(
                    "attack_rejected",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
            else:
                logger.info(
                    f"attack_{outcome.value}",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
            return outcome

    def all_sunk(self) -> bool:
        """Check whether the fleet on this board has been destroyed."""
        return all(ship.is_sunk() for ship in self._ships.values())

    # Derived state

    def derived_state(self) -> BoardState:
        """Split the grid into unhit parts, hit parts, misses and untouched cells."""
        ship_not_hit: list[Coordinate] = []
        ship_hit: list[Coordinate] = []
        missed: list[Coordinate] = []
        not_shot: list[Coordinate] = []
        for row in range(self.size):
            for col in range(self.size):
                cell = self._cells[row][col]
                coord = Coordinate(row, col)
                if cell.kind is CellKind.EMPTY:
                    not_shot.append(coord)
                elif cell.kind is CellKind.MISS:
                    missed.append(coord)
                elif self._ships[cell.ship_id].hits[cell.part]:
                    ship_hit.append(coord)
                else:
                    ship_not_hit.append(coord)
        return BoardState(
            ship_not_hit=tuple(ship_not_hit),
            ship_hit=tuple(ship_hit),
            missed=tuple(missed),
            not_shot=tuple(not_shot),
        )

    def to_array(self, hide_ships: bool = False) -> npt.NDArray[np.int8]:
        """Encode the board as an int8 grid, optionally as the opponent sees it."""
        grid = np.full((self.size, self.size), NOT_SHOT, dtype=np.int8)
        state = self.derived_state()
        for coords, code in (
            (state.missed, MISSED),
            (state.ship_hit, SHIP_HIT),
            (state.ship_not_hit, NOT_SHOT if hide_ships else SHIP_NOT_HIT),
        ):
            for coord in coords:
                grid[coord.row, coord.col] = code
        return grid

    # Internals

    def _allocate_id(self) -> int:
        ship_id = self._next_ship_id
        self._next_ship_id += 1
        return ship_id

    def _ship_id_at(self, coord: Coordinate) -> int | None:
        if not self.is_within_board(coord):
            return None
        cell = self._cells[coord.row][coord.col]
        return cell.ship_id if cell.kind is CellKind.OCCUPIED else None

    def _check_placement(self, length: int, origin: Coordinate, orientation: Orientation) -> None:
        if length < 1:
            raise InvalidPlacementError("Ship length must be positive.")
        targets = footprint(length, origin, orientation)
        for coord in targets:
            if not self.is_within_board(coord):
                raise InvalidPlacementError("Ship does not fit on the board.")
            if self._cells[coord.row][coord.col].kind is not CellKind.EMPTY:
                raise InvalidPlacementError("Target cell is not empty.")
            for neighbour in coord.moore_neighbours():
                if not self.is_within_board(neighbour):
                    continue
                if self._cells[neighbour.row][neighbour.col].kind is CellKind.OCCUPIED:
                    raise InvalidPlacementError("Ship would touch another ship.")

    def _attach(self, ship: Ship, ship_id: int) -> None:
        for part, coord in enumerate(ship.coordinates()):
            self._cells[coord.row][coord.col] = Cell.occupied(ship_id, part)
        self._ships[ship_id] = ship

    def _detach(self, ship_id: int) -> Ship:
        ship = self._ships.pop(ship_id)
        for coord in ship.coordinates():
            self._cells[coord.row][coord.col] = EMPTY_CELL
        return ship

    def _relocate(self, ship_id: int, origin: Coordinate, orientation: Orientation) -> bool:
        """Re-place an existing ship, restoring it untouched if the new spot is invalid."""
        ship = self._detach(ship_id)
        try:
            self._check_placement(ship.length, origin, orientation)
        except InvalidPlacementError as exc:
            self._attach(ship, ship_id)
            logger.info(
                "ship_relocation_rejected",
                extra={
                    "owner": self.owner,
                    "row": origin.row,
                    "col": origin.col,
                    "orientation": orientation.name,
                    "reason": str(exc),
                },
            )
            return False
        ship.origin = origin
        ship.orientation = orientation
        self._attach(ship, ship_id)
        logger.info(
            "ship_relocated",
            extra={
                "owner": self.owner,
                "row": origin.row,
                "col": origin.col,
                "orientation": orientation.name,
            },
        )
        return True

    def _apply_attack(self, coord: Coordinate) -> AttackOutcome:
        if not self.is_within_board(coord):
            return AttackOutcome.INVALID
        cell = self._cells[coord.row][coord.col]
        if cell.kind is CellKind.MISS:
            return AttackOutcome.INVALID
        if cell.kind is CellKind.EMPTY:
            self._cells[coord.row][coord.col] = MISS_CELL
            return AttackOutcome.MISS
        ship = self._ships[cell.ship_id]
        if ship.hits[cell.part]:
            return AttackOutcome.INVALID
        ship.hit(ship.part_index(coord))
        if not ship.is_sunk():
            return AttackOutcome.HIT
        self._mark_around(ship)
        return AttackOutcome.SUNK

    def _mark_around(self, ship: Ship) -> None:
        """Turn every untouched cell around a sunk ship into a miss."""
        for coord in ship.coordinates():
            for neighbour in coord.moore_neighbours():
                if not self.is_within_board(neighbour):
                    continue
                if self._cells[neighbour.row][neighbour.col].kind is CellKind.EMPTY:
                    self._cells[neighbour.row][neighbour.col] = MISS_CELL


def snapshot_ships(ships: Sequence[Ship]) -> tuple[tuple[ShipPlacement, tuple[bool, ...]], ...]:
    """Hashable view of a fleet, used for state comparisons."""
    return tuple((ship.placement(), tuple(ship.hits)) for ship in ships)
