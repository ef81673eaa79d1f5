"""Players and the computer's hunt/search targeting heuristic."""

from __future__ import annotations

import logging
import random

from .board import Board, CellKind
from .ship import Coordinate

logger = logging.getLogger(__name__)


class Player:
    """A named participant owning exactly one board."""

    def __init__(self, board: Board, name: str, rng: random.Random | None = None) -> None:
        self.board = board
        self.name = name
        self._rng = rng or random.Random()

    def __repr__(self) -> str:
        return f"Player(name={self.name!r}, board_size={self.board.size})"

    def choose_attack(self, opponent_board: Board) -> Coordinate | None:
        """Pick the next cell to attack on the opponent's board.

        Untouched cells orthogonally next to a hit on a ship that is still
        afloat are preferred (hunt mode). Without such cells the choice falls
        back to any cell that has not been attacked yet (search mode).
        """
        state = opponent_board.derived_state()
        candidates = self._hunt_candidates(opponent_board, state.ship_hit)
        mode = "hunt"
        if not candidates:
            candidates = [*state.ship_not_hit, *state.not_shot]
            mode = "search"
        if not candidates:
            logger.warning("no_attack_candidates", extra={"player": self.name})
            return None
        choice = self._rng.choice(candidates)
        logger.debug(
            "attack_chosen",
            extra={"player": self.name, "mode": mode, "row": choice.row, "col": choice.col},
        )
        return choice

    @staticmethod
    def _hunt_candidates(board: Board, ship_hit: tuple[Coordinate, ...]) -> list[Coordinate]:
        candidates: list[Coordinate] = []
        seen: set[Coordinate] = set()
        for hit in ship_hit:
            ship = board.ship_at(hit)
            if ship is None or ship.is_sunk():
                continue
            for neighbour in hit.orthogonal_neighbours():
                if neighbour in seen or not board.is_within_board(neighbour):
                    continue
                if board.cell_at(neighbour).kind is CellKind.EMPTY:
                    seen.add(neighbour)
                    candidates.append(neighbour)
        return candidates
