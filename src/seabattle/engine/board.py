"""Grid model and ship placement for the Seabattle engine."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Sequence

import numpy as np
import numpy.typing as npt

from seabattle.telemetry import get_meter, get_tracer

from .ship import Coordinate, Orientation, Ship, ShipClass

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.board")
meter = get_meter("seabattle.engine.board")

PLACEMENT_COUNTER = meter.create_counter(
    "seabattle_engine_ship_placements",
    unit="1",
    description="Ships placed on a grid",
)

FLEET_RESTART_COUNTER = meter.create_counter(
    "seabattle_engine_fleet_restarts",
    unit="1",
    description="Full-board restarts during random fleet placement",
)

DEFAULT_SIZE = 10
DEFAULT_PLACEMENT_ATTEMPTS = 200
DEFAULT_PLACEMENT_RESTARTS = 10


class CellState(IntEnum):
    """State of one grid cell, stored as ``int8`` in the grid matrix."""

    EMPTY = 0
    SHIP = 1
    HIT = 2
    MISS = 3

    @property
    def attacked(self) -> bool:
        return self is CellState.HIT or self is CellState.MISS


class FleetPlacementError(RuntimeError):
    """Random placement could not fit the whole fleet within its restart budget."""


@dataclass
class Grid:
    """One side's square matrix of cell states."""

    size: int = DEFAULT_SIZE
    owner: str = "unknown"
    cells: npt.NDArray[np.int8] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("Grid size must be positive.")
        self.cells = np.full((self.size, self.size), CellState.EMPTY, dtype=np.int8)

    def in_bounds(self, coord: Coordinate) -> bool:
        """Check both lower and upper bounds; negative indices never wrap."""
        return 0 <= coord.row < self.size and 0 <= coord.col < self.size

    def state(self, coord: Coordinate) -> CellState:
        if not self.in_bounds(coord):
            raise ValueError(f"Coordinate ({coord.row}, {coord.col}) is off the grid.")
        return CellState(int(self.cells[coord.row, coord.col]))

    def mark(self, coord: Coordinate, state: CellState) -> None:
        if not self.in_bounds(coord):
            raise ValueError(f"Coordinate ({coord.row}, {coord.col}) is off the grid.")
        self.cells[coord.row, coord.col] = state

    def is_attacked(self, coord: Coordinate) -> bool:
        return self.in_bounds(coord) and self.state(coord).attacked

    def untargeted(self) -> list[Coordinate]:
        """Every in-bounds cell that has not been hit or missed yet, row-major."""
        open_cells = (self.cells != CellState.HIT) & (self.cells != CellState.MISS)
        return [Coordinate(int(row), int(col)) for row, col in np.argwhere(open_cells)]

    def count(self, state: CellState) -> int:
        return int(np.count_nonzero(self.cells == state))

    def can_place(
        self, length: int, start: Coordinate, orientation: Orientation
    ) -> bool:
        """Return True when every cell of the run is on the grid and EMPTY."""
        if length <= 0:
            return False
        for coord in orientation.cells(start, length):
            if not self.in_bounds(coord):
                return False
            if self.state(coord) is not CellState.EMPTY:
                return False
        return True

    def place(
        self, ship_class: ShipClass, start: Coordinate, orientation: Orientation
    ) -> Ship:
        """Mark the run as SHIP and return the new record.

        Callers confirm :meth:`can_place` first.
        """
        ship = Ship(ship_class, start, orientation)
        for coord in ship.cells():
            self.mark(coord, CellState.SHIP)
        PLACEMENT_COUNTER.add(1, attributes={"owner": self.owner})
        logger.debug(
            "ship_placed",
            extra={
                "owner": self.owner,
                "ship_class": ship_class.name,
                "orientation": orientation.name,
                "row": start.row,
                "col": start.col,
            },
        )
        return ship

    def remove(self, ship: Ship) -> None:
        """Reset a ship's cells back to EMPTY."""
        for coord in ship.cells():
            self.mark(coord, CellState.EMPTY)
        logger.debug(
            "ship_removed", extra={"owner": self.owner, "ship_class": ship.ship_class.name}
        )

    def clear(self) -> None:
        self.cells.fill(CellState.EMPTY)

    def to_array(self) -> npt.NDArray[np.int8]:
        """Return a copy of the raw state matrix."""
        return self.cells.copy()


def create_empty_grid(size: int = DEFAULT_SIZE, owner: str = "unknown") -> Grid:
    """Return a ``size`` x ``size`` grid with every cell EMPTY."""
    return Grid(size=size, owner=owner)


def _try_place_fleet(
    grid: Grid,
    catalog: Sequence[ShipClass],
    rng: random.Random,
    attempts_per_ship: int,
) -> list[Ship] | None:
    ships: list[Ship] = []
    orientations = list(Orientation)
    for ship_class in catalog:
        for _ in range(attempts_per_ship):
            orientation = rng.choice(orientations)
            start = Coordinate(rng.randrange(grid.size), rng.randrange(grid.size))
            if grid.can_place(ship_class.length, start, orientation):
                ships.append(grid.place(ship_class, start, orientation))
                break
        else:
            logger.info(
                "ship_placement_exhausted",
                extra={
                    "owner": grid.owner,
                    "ship_class": ship_class.name,
                    "attempts": attempts_per_ship,
                },
            )
            return None
    return ships


def place_fleet_randomly(
    grid: Grid,
    catalog: Sequence[ShipClass],
    rng: random.Random | None = None,
    attempts_per_ship: int = DEFAULT_PLACEMENT_ATTEMPTS,
    max_restarts: int = DEFAULT_PLACEMENT_RESTARTS,
) -> list[Ship]:
    """Randomly place one ship per catalog entry on an emptied ``grid``.

    Each ship gets ``attempts_per_ship`` uniformly random tries. If any ship
    runs out, the grid is cleared and the whole fleet starts over, up to
    ``max_restarts`` full passes. The result always covers the full catalog;
    exhausting every pass raises :class:`FleetPlacementError`.
    """
    rng = rng or random.Random()
    with tracer.start_as_current_span("board.place_fleet_randomly") as span:
        span.set_attribute("board.owner", grid.owner)
        span.set_attribute("fleet.size", len(catalog))
        for attempt in range(1, max_restarts + 1):
            grid.clear()
            ships = _try_place_fleet(grid, catalog, rng, attempts_per_ship)
            if ships is not None:
                span.set_attribute("fleet.passes", attempt)
                logger.debug(
                    "fleet_placed", extra={"owner": grid.owner, "passes": attempt}
                )
                return ships
            FLEET_RESTART_COUNTER.add(1, attributes={"owner": grid.owner})
            logger.warning(
                "fleet_placement_restart",
                extra={"owner": grid.owner, "pass": attempt, "max_restarts": max_restarts},
            )

        grid.clear()
        logger.error(
            "fleet_placement_failed",
            extra={"owner": grid.owner, "max_restarts": max_restarts},
        )
        raise FleetPlacementError(
            f"Could not place {len(catalog)} ships on a {grid.size}x{grid.size} grid "
            f"after {max_restarts} full passes."
        )
