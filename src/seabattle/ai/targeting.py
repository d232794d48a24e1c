"""Hunt/target opponent that picks cells to attack on the player's grid."""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from seabattle.engine.attack import AttackOutcome, AttackResult
from seabattle.engine.board import Grid
from seabattle.engine.ship import Coordinate
from seabattle.telemetry import get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.ai.targeting")


class TargetingMode(Enum):
    HUNT = "hunt"
    TARGET = "target"


@dataclass
class TargetingMemory:
    """Everything the opponent remembers between its moves."""

    mode: TargetingMode = TargetingMode.HUNT
    candidates: deque[Coordinate] = field(default_factory=deque)
    confirmed_hits: list[Coordinate] = field(default_factory=list)
    last_move: AttackResult | None = None

    def reset(self) -> None:
        self.mode = TargetingMode.HUNT
        self.candidates.clear()
        self.confirmed_hits.clear()
        self.last_move = None


def _is_open(grid: Grid, coord: Coordinate) -> bool:
    return grid.in_bounds(coord) and not grid.is_attacked(coord)


def directional_candidates(grid: Grid, confirmed_hits: Sequence[Coordinate]) -> list[Coordinate]:
    """Cells that extend a line of two or more hits by one at either end.

    The axis comes from the first two hits: same row means horizontal.
    Off-grid and already attacked cells are dropped.
    """
    if len(confirmed_hits) < 2:
        return []

    horizontal = confirmed_hits[0].row == confirmed_hits[1].row
    if horizontal:
        ordered = sorted(confirmed_hits, key=lambda coord: coord.col)
        first, last = ordered[0], ordered[-1]
        candidates = [Coordinate(first.row, first.col - 1), Coordinate(last.row, last.col + 1)]
    else:
        ordered = sorted(confirmed_hits, key=lambda coord: coord.row)
        first, last = ordered[0], ordered[-1]
        candidates = [Coordinate(first.row - 1, first.col), Coordinate(last.row + 1, last.col)]

    return [coord for coord in candidates if _is_open(grid, coord)]


class HuntTargetAI:
    """Random hunting until a hit, then works outward from the hits.

    Once the targeted queue runs dry without a usable cell the mode drops
    back to HUNT and the move is drawn at random from the open cells.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.memory = TargetingMemory()

    @property
    def mode(self) -> TargetingMode:
        return self.memory.mode

    def reset(self) -> None:
        self.memory.reset()

    def choose_move(self, grid: Grid) -> Coordinate | None:
        """Return the next cell to attack, or None once every cell is attacked."""
        with tracer.start_as_current_span("ai.choose_move") as span:
            memory = self.memory
            span.set_attribute("ai.mode", memory.mode.value)
            if memory.mode is TargetingMode.TARGET:
                directional = directional_candidates(grid, memory.confirmed_hits)
                if directional:
                    span.set_attribute("ai.source", "directional")
                    return directional[0]

                while memory.candidates:
                    candidate = memory.candidates.popleft()
                    if _is_open(grid, candidate):
                        span.set_attribute("ai.source", "queue")
                        return candidate

                memory.mode = TargetingMode.HUNT
                logger.debug("targeting_queue_exhausted", extra={"owner": grid.owner})

            span.set_attribute("ai.source", "hunt")
            return self._hunt(grid)

    def _hunt(self, grid: Grid) -> Coordinate | None:
        available = grid.untargeted()
        if not available:
            logger.warning("no_untargeted_cells", extra={"owner": grid.owner})
            return None
        return self.rng.choice(available)

    def record_result(self, grid: Grid, result: AttackResult) -> None:
        """Fold the outcome of our own attack on ``grid`` into memory."""
        memory = self.memory
        if result.outcome is AttackOutcome.ALREADY_ATTACKED:
            return

        if result.sunk_ship is not None:
            memory.reset()
            memory.last_move = result
            logger.debug(
                "targeting_reset_after_sink",
                extra={"ship_class": result.sunk_ship.ship_class.name},
            )
            return

        memory.last_move = result
        if result.is_hit:
            memory.confirmed_hits.append(result.coord)
            memory.mode = TargetingMode.TARGET
            for neighbour in result.coord.neighbours():
                if _is_open(grid, neighbour) and neighbour not in memory.candidates:
                    memory.candidates.append(neighbour)
