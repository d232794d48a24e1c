"""Attack resolution and fleet status checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from seabattle.telemetry import get_meter, get_tracer

from .board import CellState, Grid
from .ship import Coordinate, Ship

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.attack")
meter = get_meter("seabattle.engine.attack")

ATTACK_COUNTER = meter.create_counter(
    "seabattle_engine_attacks",
    unit="1",
    description="Attacks resolved against a grid",
)


class AttackOutcome(Enum):
    HIT = "hit"
    MISS = "miss"
    ALREADY_ATTACKED = "already_attacked"


@dataclass(frozen=True)
class AttackResult:
    """Outcome of one attack; ``sunk_ship`` is set only on the sinking shot."""

    coord: Coordinate
    outcome: AttackOutcome
    sunk_ship: Ship | None = None

    @property
    def is_hit(self) -> bool:
        return self.outcome is AttackOutcome.HIT


def _owner_of(fleet: Sequence[Ship], coord: Coordinate) -> Ship | None:
    for ship in fleet:
        if ship.occupies(coord):
            return ship
    return None


def resolve_attack(grid: Grid, fleet: Sequence[Ship], coord: Coordinate) -> AttackResult:
    """Apply an attack at ``coord`` to ``grid`` and its ``fleet``.

    Attacking a cell that is already HIT or MISS returns ALREADY_ATTACKED and
    leaves the grid untouched. A ship is reported as sunk only by the shot
    that hits its last unhit cell.
    """
    with tracer.start_as_current_span("attack.resolve") as span:
        span.set_attribute("attack.row", coord.row)
        span.set_attribute("attack.col", coord.col)
        span.set_attribute("board.owner", grid.owner)
        if not grid.in_bounds(coord):
            logger.error(
                "attack_out_of_bounds",
                extra={"row": coord.row, "col": coord.col, "owner": grid.owner},
            )
            raise ValueError("Attack out of bounds.")

        state = grid.state(coord)
        if state is CellState.HIT or state is CellState.MISS:
            result = AttackResult(coord, AttackOutcome.ALREADY_ATTACKED)
        elif state is CellState.SHIP:
            grid.mark(coord, CellState.HIT)
            result = AttackResult(coord, AttackOutcome.HIT, _check_sunk(grid, fleet, coord))
        elif state is CellState.EMPTY:
            grid.mark(coord, CellState.MISS)
            result = AttackResult(coord, AttackOutcome.MISS)
        else:  # pragma: no cover - every CellState is handled above
            raise ValueError(f"Unhandled cell state {state!r}.")

        span.set_attribute("attack.outcome", result.outcome.value)
        span.set_attribute("attack.sunk", result.sunk_ship is not None)
        ATTACK_COUNTER.add(
            1, attributes={"outcome": result.outcome.value, "owner": grid.owner}
        )
        logger.debug(
            "attack_resolved",
            extra={
                "row": coord.row,
                "col": coord.col,
                "owner": grid.owner,
                "outcome": result.outcome.value,
                "sunk": result.sunk_ship.ship_class.name if result.sunk_ship else None,
            },
        )
        return result


def _check_sunk(grid: Grid, fleet: Sequence[Ship], coord: Coordinate) -> Ship | None:
    ship = _owner_of(fleet, coord)
    if ship is None:
        logger.warning(
            "hit_without_owner", extra={"row": coord.row, "col": coord.col, "owner": grid.owner}
        )
        return None
    if ship.sunk:
        return None
    if all(grid.state(cell) is CellState.HIT for cell in ship.cells()):
        ship.mark_sunk()
        logger.info(
            "ship_sunk", extra={"owner": grid.owner, "ship_class": ship.ship_class.name}
        )
        return ship
    return None


def is_fleet_destroyed(fleet: Sequence[Ship]) -> bool:
    """True when the fleet is non-empty and every ship is sunk."""
    return len(fleet) > 0 and all(ship.sunk for ship in fleet)
