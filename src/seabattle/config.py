"""Game configuration: board size, fleet and random seed."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

DEFAULT_BOARD_SIZE = 10
DEFAULT_SHIP_LENGTHS = (5, 4, 3, 3, 2)


class GameConfig(BaseModel):
    """Settings used to build a Match."""

    board_size: int = Field(default=DEFAULT_BOARD_SIZE, gt=0)
    ship_lengths: list[int] = Field(default_factory=lambda: list(DEFAULT_SHIP_LENGTHS))
    seed: int | None = None

    @field_validator("ship_lengths")
    @classmethod
    def _check_lengths(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("At least one ship is required.")
        if any(length < 1 for length in value):
            raise ValueError("Ship lengths must be positive integers.")
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameConfig":
        """Construct config from `SEABATTLE_*` env vars; overrides win."""

        data: Dict[str, Any] = {}
        board_size = os.getenv("SEABATTLE_BOARD_SIZE")
        if board_size:
            data["board_size"] = int(board_size)
        lengths = os.getenv("SEABATTLE_SHIP_LENGTHS")
        if lengths:
            data["ship_lengths"] = [int(part) for part in lengths.split(",") if part.strip()]
        seed = os.getenv("SEABATTLE_SEED")
        if seed:
            data["seed"] = int(seed)
        data.update(overrides)
        return cls(**data)


@lru_cache(maxsize=1)
def load_game_config() -> GameConfig:
    """Load and cache the game config from the environment."""

    return GameConfig.from_env()
