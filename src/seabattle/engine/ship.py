"""Ship domain model for the Seabattle engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class Coordinate:
    """Immutable zero-based (row, col) grid address."""

    row: int
    col: int

    def neighbours(self) -> tuple[Coordinate, ...]:
        """Return the orthogonal neighbours in up/down/left/right order."""
        return (
            Coordinate(self.row - 1, self.col),
            Coordinate(self.row + 1, self.col),
            Coordinate(self.row, self.col - 1),
            Coordinate(self.row, self.col + 1),
        )


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    def toggled(self) -> Orientation:
        """Return the other orientation."""
        if self is Orientation.HORIZONTAL:
            return Orientation.VERTICAL
        return Orientation.HORIZONTAL

    def cells(self, start: Coordinate, length: int) -> list[Coordinate]:
        """Return ``length`` consecutive cells from ``start`` along this axis."""
        if self is Orientation.HORIZONTAL:
            return [Coordinate(start.row, start.col + offset) for offset in range(length)]
        return [Coordinate(start.row + offset, start.col) for offset in range(length)]


class ShipClass(Enum):
    """Ship catalog. Members stay distinct even where lengths repeat."""

    CARRIER = ("carrier", 5)
    BATTLESHIP = ("battleship", 4)
    CRUISER = ("cruiser", 3)
    SUBMARINE = ("submarine", 3)
    DESTROYER = ("destroyer", 2)

    def __init__(self, label: str, length: int) -> None:
        self.label = label
        self.length = length


STANDARD_FLEET: tuple[ShipClass, ...] = tuple(ShipClass)


@dataclass
class Ship:
    """A placed ship and the cells it occupies.

    ``sunk`` only ever moves from False to True; attack resolution owns that
    transition.
    """

    ship_class: ShipClass
    start: Coordinate
    orientation: Orientation
    sunk: bool = False
    _cells: tuple[Coordinate, ...] = field(init=False, repr=False)
    _cell_set: frozenset[Coordinate] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        cells = self.orientation.cells(self.start, self.ship_class.length)
        self._cells = tuple(cells)
        self._cell_set = frozenset(cells)

    @property
    def length(self) -> int:
        return self.ship_class.length

    def cells(self) -> list[Coordinate]:
        """Return the ordered list of coordinates occupied by this ship."""
        return list(self._cells)

    def occupies(self, coord: Coordinate) -> bool:
        return coord in self._cell_set

    def overlaps(self, other: Ship) -> bool:
        """Return True if any coordinate overlaps with another ship."""
        return bool(self._cell_set & other._cell_set)

    def mark_sunk(self) -> None:
        self.sunk = True
