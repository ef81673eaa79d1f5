"""SeaBattle: a human-versus-computer naval combat engine."""

from __future__ import annotations

import random
from typing import Iterable

from seabattle.config import GameConfig, load_game_config
from seabattle.engine.board import AttackOutcome, Board, BoardState, Cell, CellKind
from seabattle.engine.match import Match, MatchPhase, MatchState
from seabattle.engine.player import Player
from seabattle.engine.ship import Coordinate, Orientation, Ship, ShipPlacement
from seabattle.errors import (
    InvalidPlacementError,
    MatchStateError,
    OutOfRangeError,
    SeaBattleError,
)

__all__ = [
    "AttackOutcome",
    "Board",
    "BoardState",
    "Cell",
    "CellKind",
    "Coordinate",
    "GameConfig",
    "InvalidPlacementError",
    "Match",
    "MatchPhase",
    "MatchState",
    "MatchStateError",
    "Orientation",
    "OutOfRangeError",
    "Player",
    "SeaBattleError",
    "Ship",
    "ShipPlacement",
    "load_game_config",
    "new_board",
    "new_match",
    "new_player",
]


def new_board(size: int) -> Board:
    return Board(size)


def new_player(board: Board, name: str, rng: random.Random | None = None) -> Player:
    return Player(board, name, rng)


def new_match(ship_lengths: Iterable[int], board_size: int, **kwargs) -> Match:
    """Create a match; the computer fleet is deployed immediately."""
    config = GameConfig(board_size=board_size, ship_lengths=list(ship_lengths))
    return Match.from_config(config, **kwargs)
