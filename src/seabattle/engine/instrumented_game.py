"""Instrumented Battleship game with telemetry hooks."""

from __future__ import annotations

import time
from functools import partial
from typing import Callable

from seabattle.engine.attack import AttackOutcome
from seabattle.engine.game import BattleshipGame, GamePhase, MoveRecord, Side
from seabattle.engine.ship import Coordinate
from seabattle.telemetry import (
    get_logger,
    get_tracer,
    record_game_histogram,
    record_game_metric,
)


class InstrumentedBattleshipGame(BattleshipGame):
    """Wraps BattleshipGame with tracing, metrics, and logging."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("seabattle.engine")
        self._tracer = get_tracer("seabattle.engine")
        self._game_start_time: float | None = None

    def start(self) -> None:
        with self._tracer.start_as_current_span("seabattle.engine.start") as span:
            self._logger.info("Game start requested")
            super().start()
            self._game_start_time = time.perf_counter()
            span.set_attribute("player_ships", len(self.fleets[Side.PLAYER]))
            span.set_attribute("opponent_ships", len(self.fleets[Side.OPPONENT]))
            record_game_metric(
                "seabattle_game_started_total",
                1,
                {"ships": len(self.fleets[Side.OPPONENT])},
            )

    def player_attack(self, coord: Coordinate) -> MoveRecord:
        with self._tracer.start_as_current_span("seabattle.engine.player_attack") as span:
            return self._observe(span, Side.PLAYER, partial(super().player_attack, coord))

    def opponent_attack(self) -> MoveRecord:
        with self._tracer.start_as_current_span("seabattle.engine.opponent_attack") as span:
            return self._observe(span, Side.OPPONENT, super().opponent_attack)

    def _observe(self, span, attacker: Side, attack: Callable[[], MoveRecord]) -> MoveRecord:
        span.set_attribute("attacker", attacker.value)
        try:
            record = attack()
        except (RuntimeError, ValueError) as exc:
            record_game_metric(
                "seabattle_game_invalid_moves_total",
                1,
                {"attacker": attacker.value, "reason": type(exc).__name__},
            )
            span.record_exception(exc)
            span.set_attribute("error", True)
            self._logger.error("Invalid move from %s: %s", attacker.value, exc)
            raise

        span.set_attribute("coord.row", record.coord.row)
        span.set_attribute("coord.col", record.coord.col)
        span.set_attribute("outcome", record.outcome.value)
        span.set_attribute("sunk", record.sunk_ship is not None)

        if record.outcome is not AttackOutcome.ALREADY_ATTACKED:
            record_game_metric("seabattle_shots_total", 1, {"attacker": attacker.value})
            record_game_metric(
                "seabattle_shots_by_result_total",
                1,
                {"attacker": attacker.value, "result": record.outcome.value},
            )
        if record.sunk_ship is not None:
            record_game_metric(
                "seabattle_ships_sunk_total",
                1,
                {"attacker": attacker.value, "ship_class": record.sunk_ship.ship_class.name},
            )

        self._logger.info(
            "attack attacker=%s coord=(%d,%d) outcome=%s",
            attacker.value,
            record.coord.row,
            record.coord.col,
            record.outcome.value,
        )

        if self.phase is GamePhase.GAME_OVER and record.game_over:
            self._finish_game()
        return record

    def _finish_game(self) -> None:
        duration = (time.perf_counter() - self._game_start_time) if self._game_start_time else 0.0
        winner = self.winner.value if self.winner else "unknown"

        record_game_metric("seabattle_game_completed_total", 1, {"winner": winner})
        record_game_histogram("seabattle_game_duration_seconds", duration, {"winner": winner})

        with self._tracer.start_as_current_span("seabattle.engine.game_complete") as span:
            span.set_attribute("winner", winner)
            span.set_attribute("turns", len(self.moves))
            span.set_attribute("duration_ms", duration * 1000)

        self._logger.info(
            "Game finished. Winner=%s turns=%d duration_s=%.3f", winner, len(self.moves), duration
        )
