"""Match with match-level telemetry hooks."""

from __future__ import annotations

import time

from seabattle.engine.match import Match, MatchPhase
from seabattle.engine.ship import Coordinate, CoordinateLike
from seabattle.telemetry import get_logger, get_tracer, record_match_metric


class InstrumentedMatch(Match):
    """Wraps Match with a span per match plus tracing, metrics and logging per turn."""

    def __init__(self, *args, **kwargs) -> None:
        self._logger = get_logger("seabattle.engine")
        self._tracer = get_tracer("seabattle.engine")
        self._match_span_cm = None
        self._match_span = None
        self._match_start_time: float | None = None
        super().__init__(*args, **kwargs)

    def start(self) -> bool:
        started = super().start()
        # The match span must be current before any per-turn span opens.
        if started:
            self._open_match_span()
        with self._tracer.start_as_current_span("seabattle.engine.start") as span:
            span.set_attribute("started", started)
            if not started:
                record_match_metric("seabattle_match_start_deferred_total", 1)
                return False
            record_match_metric(
                "seabattle_match_started_total",
                1,
                {"board_size": self.players[0].board.size, "ships": len(self.ship_lengths)},
            )
            self._logger.info("Match started with fleet %s", self.ship_lengths)
            return True

    def submit_attack(self, coord: CoordinateLike) -> bool:
        coord = Coordinate.of(coord)
        with self._tracer.start_as_current_span("seabattle.engine.submit_attack") as span:
            span.set_attribute("coord.row", coord.row)
            span.set_attribute("coord.col", coord.col)
            accepted = super().submit_attack(coord)
            span.set_attribute("accepted", accepted)
            if not accepted:
                record_match_metric("seabattle_invalid_attacks_total", 1, {"player": "human"})
                self._logger.warning("Rejected attack at (%d,%d)", coord.row, coord.col)
                return False

            record_match_metric("seabattle_attacks_total", 1, {"player": "human"})
        # Runs after the turn span has ended.
        if self.phase is MatchPhase.FINISHED:
            self._finish_match()
        return True

    def computer_turn(self) -> Coordinate | None:
        with self._tracer.start_as_current_span("seabattle.engine.computer_turn") as span:
            coord = super().computer_turn()
            span.set_attribute("resolved", coord is not None)
            if coord is not None:
                record_match_metric("seabattle_attacks_total", 1, {"player": "computer"})
                self._logger.info(
                    "computer_turn coord=(%d,%d) outcome=%s",
                    coord.row,
                    coord.col,
                    self.history[-1].outcome.name,
                )
            return coord

    def _open_match_span(self) -> None:
        self._close_match_span()
        self._match_start_time = time.perf_counter()
        self._match_span_cm = self._tracer.start_as_current_span("seabattle.engine.match")
        self._match_span = self._match_span_cm.__enter__()
        self._match_span.set_attribute("board_size", self.players[0].board.size)

    def _finish_match(self) -> None:
        duration = (time.perf_counter() - self._match_start_time) if self._match_start_time else 0.0
        winner = self.players[self.winner].name if self.winner is not None else "unknown"
        moves = len(self.history)

        record_match_metric("seabattle_match_completed_total", 1, {"winner": winner})
        record_match_metric("seabattle_match_duration_seconds", duration, {"winner": winner})

        with self._tracer.start_as_current_span("seabattle.engine.match_complete") as span:
            span.set_attribute("winner", winner)
            span.set_attribute("moves", moves)
            span.set_attribute("duration_ms", duration * 1000)

        if self._match_span is not None:
            self._match_span.set_attribute("winner", winner)
            self._match_span.set_attribute("moves", moves)

        self._logger.info("Match finished. Winner=%s moves=%d duration_s=%.3f", winner, moves, duration)
        self._close_match_span()

    def _close_match_span(self) -> None:
        if self._match_span_cm is not None:
            self._match_span_cm.__exit__(None, None, None)
            self._match_span_cm = None
            self._match_span = None
