"""Human-versus-computer match controller."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from seabattle.errors import MatchStateError
from seabattle.telemetry import get_meter, get_tracer

from .board import AttackOutcome, Board, BoardState, snapshot_ships
from .player import Player
from .ship import Coordinate, CoordinateLike, Orientation, Ship, ShipPlacement

if TYPE_CHECKING:  # pragma: no cover - typing only
    from seabattle.config import GameConfig

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.match")
meter = get_meter("seabattle.engine.match")

TURN_COUNTER = meter.create_counter(
    "seabattle_engine_turns",
    unit="1",
    description="Number of resolved attacks in a Match",
)

HUMAN = 0
COMPUTER = 1


class MatchPhase(Enum):
    """High-level lifecycle of a match."""

    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass(frozen=True)
class MoveRecord:
    """One resolved attack."""

    player_index: int
    coordinate: Coordinate
    outcome: AttackOutcome


@dataclass(frozen=True)
class BoardSnapshot:
    """Read-only view of a board for state queries."""

    ships: tuple[tuple[ShipPlacement, tuple[bool, ...]], ...]
    state: BoardState


@dataclass(frozen=True)
class MatchState:
    """Immutable snapshot of the current match."""

    phase: MatchPhase
    initialized: bool
    current_player_index: int
    winner: int | None
    boards: tuple[BoardSnapshot, BoardSnapshot]


class Match:
    """Coordinates turns between the human player and the computer."""

    def __init__(
        self,
        ship_lengths: Iterable[int],
        board_size: int = 10,
        *,
        rng: random.Random | None = None,
        auto_deploy: bool = True,
        names: tuple[str, str] = ("Player", "Computer"),
    ) -> None:
        self.ship_lengths: list[int] = sorted(ship_lengths, reverse=True)
        self._rng = rng or random.Random()
        self.players: tuple[Player, Player] = (
            Player(Board(board_size, owner=names[HUMAN]), names[HUMAN], self._rng),
            Player(Board(board_size, owner=names[COMPUTER]), names[COMPUTER], self._rng),
        )
        self.phase = MatchPhase.SETUP
        self.current_player_index = HUMAN
        self.winner: int | None = None
        self.history: list[MoveRecord] = []

        if not self.players[COMPUTER].board.generate_random_ships(self.ship_lengths, self._rng):
            logger.warning("computer_fleet_incomplete", extra={"board_size": board_size})
        if auto_deploy:
            self.players[HUMAN].board.generate_random_ships(self.ship_lengths, self._rng)

    @classmethod
    def from_config(cls, config: GameConfig, **kwargs) -> Match:
        """Build a match from a validated GameConfig."""
        kwargs.setdefault("rng", random.Random(config.seed))
        return cls(config.ship_lengths, config.board_size, **kwargs)

    @property
    def initialized(self) -> bool:
        return self.phase is not MatchPhase.SETUP

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    @property
    def opponent(self) -> Player:
        return self.players[1 - self.current_player_index]

    @property
    def last_move(self) -> MoveRecord | None:
        return self.history[-1] if self.history else None

    def get_player(self, index: int) -> Player:
        return self.players[index]

    # Setup

    def start(self) -> bool:
        """Lock the human fleet and begin play once it is complete."""
        if self.phase is not MatchPhase.SETUP:
            return False
        placed = len(self.players[HUMAN].board.ships)
        if placed != len(self.ship_lengths):
            logger.info(
                "match_start_deferred",
                extra={"placed": placed, "required": len(self.ship_lengths)},
            )
            return False
        self.phase = MatchPhase.IN_PROGRESS
        self.current_player_index = HUMAN
        logger.info("match_started", extra={"ships": len(self.ship_lengths)})
        return True

    def place_ship(self, length: int, origin: CoordinateLike, orientation: Orientation) -> Ship:
        self._require_phase(MatchPhase.SETUP)
        return self.players[HUMAN].board.place_ship(length, origin, orientation)

    def rotate_ship(self, coord: CoordinateLike) -> bool:
        self._require_phase(MatchPhase.SETUP)
        return self.players[HUMAN].board.rotate_ship(coord)

    def move_ship(self, from_: CoordinateLike, to: CoordinateLike) -> bool:
        self._require_phase(MatchPhase.SETUP)
        return self.players[HUMAN].board.move_ship(from_, to)

    def randomize_fleet(self) -> bool:
        """Replace the human fleet with a fresh random deployment."""
        self._require_phase(MatchPhase.SETUP)
        board = self.players[HUMAN].board
        board.reset()
        return board.generate_random_ships(self.ship_lengths, self._rng)

    # Play

    def advance_turn(self) -> None:
        self.current_player_index = 1 - self.current_player_index

    def submit_attack(self, coord: CoordinateLike) -> bool:
        """Apply the human's attack and, if play continues, the computer's reply."""
        coord = Coordinate.of(coord)
        with tracer.start_as_current_span("match.submit_attack") as span:
            span.set_attribute("row", coord.row)
            span.set_attribute("col", coord.col)
            self._require_phase(MatchPhase.IN_PROGRESS)
            if self.current_player_index != HUMAN:
                logger.error(
                    "attack_rejected_wrong_player",
                    extra={"current": self.current_player.name},
                )
                raise MatchStateError("It is not the human player's turn.")

            if not self._attack(coord):
                return False
            if self.phase is MatchPhase.IN_PROGRESS:
                self.advance_turn()
                self.computer_turn()
            return True

    def computer_turn(self) -> Coordinate | None:
        """Let the computer attack until one attack resolves, then hand back the turn."""
        with tracer.start_as_current_span("match.computer_turn") as span:
            self._require_phase(MatchPhase.IN_PROGRESS)
            if self.current_player_index != COMPUTER:
                raise MatchStateError("It is not the computer's turn.")

            computer = self.current_player
            target_board = self.opponent.board
            for _ in range(target_board.size * target_board.size):
                coord = computer.choose_attack(target_board)
                if coord is None:
                    break
                if self._attack(coord):
                    span.set_attribute("row", coord.row)
                    span.set_attribute("col", coord.col)
                    if self.phase is MatchPhase.IN_PROGRESS:
                        self.advance_turn()
                    return coord

            logger.error("computer_turn_without_attack", extra={"player": computer.name})
            self.advance_turn()
            return None

    def check_winner(self) -> int | None:
        """Return the current player's index if the opponent has no ships left."""
        return self.current_player_index if self.opponent.board.all_sunk() else None

    def get_state(self) -> MatchState:
        """Return an immutable view of the current match."""
        boards = tuple(
            BoardSnapshot(ships=snapshot_ships(player.board.ships), state=player.board.derived_state())
            for player in self.players
        )
        return MatchState(
            phase=self.phase,
            initialized=self.initialized,
            current_player_index=self.current_player_index,
            winner=self.winner,
            boards=boards,
        )

    # Internals

    def _require_phase(self, phase: MatchPhase) -> None:
        if self.phase is not phase:
            logger.error(
                "operation_rejected_wrong_phase",
                extra={"phase": self.phase.value, "required": phase.value},
            )
            raise MatchStateError(f"Match is {self.phase.value}, expected {phase.value}.")

    def _attack(self, coord: Coordinate) -> bool:
        """Resolve one attack for the current player and check for a winner."""
        attacker = self.current_player_index
        outcome = self.opponent.board.resolve_attack(coord)
        if outcome is AttackOutcome.INVALID:
            return False

        self.history.append(MoveRecord(attacker, coord, outcome))
        TURN_COUNTER.add(1, attributes={"outcome": outcome.value, "player": self.current_player.name})
        winner = self.check_winner()
        if winner is not None:
            self._declare_winner(winner)
        return True

    def _declare_winner(self, index: int) -> None:
        if self.winner is not None:
            return
        self.winner = index
        self.phase = MatchPhase.FINISHED
        logger.info(
            "match_finished",
            extra={"winner": self.players[index].name, "moves": len(self.history)},
        )
