"""Tests for attack resolution and fleet status."""

import pytest
from seabattle.engine.attack import AttackOutcome, is_fleet_destroyed, resolve_attack
from seabattle.engine.board import CellState, create_empty_grid
from seabattle.engine.ship import Coordinate, Orientation, Ship, ShipClass


@pytest.fixture
def destroyer_grid():
    grid = create_empty_grid(10)
    ship = grid.place(ShipClass.DESTROYER, Coordinate(0, 0), Orientation.HORIZONTAL)
    return grid, [ship]


def test_hit_then_sink_then_already_attacked(destroyer_grid) -> None:
    grid, fleet = destroyer_grid
    ship = fleet[0]

    first = resolve_attack(grid, fleet, Coordinate(0, 0))
    assert first.outcome is AttackOutcome.HIT
    assert first.sunk_ship is None

    second = resolve_attack(grid, fleet, Coordinate(0, 1))
    assert second.outcome is AttackOutcome.HIT
    assert second.sunk_ship is ship
    assert ship.sunk is True

    third = resolve_attack(grid, fleet, Coordinate(0, 1))
    assert third.outcome is AttackOutcome.ALREADY_ATTACKED
    assert third.sunk_ship is None
    assert grid.state(Coordinate(0, 1)) is CellState.HIT


def test_miss_is_idempotent(destroyer_grid) -> None:
    grid, fleet = destroyer_grid
    target = Coordinate(5, 5)
    assert resolve_attack(grid, fleet, target).outcome is AttackOutcome.MISS
    before = grid.to_array()
    for _ in range(3):
        result = resolve_attack(grid, fleet, target)
        assert result.outcome is AttackOutcome.ALREADY_ATTACKED
        assert result.sunk_ship is None
    assert (grid.to_array() == before).all()
    assert grid.state(target) is CellState.MISS


def test_sunk_is_reported_exactly_once() -> None:
    grid = create_empty_grid(10)
    carrier = grid.place(ShipClass.CARRIER, Coordinate(4, 2), Orientation.VERTICAL)
    fleet = [carrier]

    reports = []
    for cell in carrier.cells():
        reports.append(resolve_attack(grid, fleet, cell).sunk_ship)
        reports.append(resolve_attack(grid, fleet, cell).sunk_ship)
    assert [report for report in reports if report is not None] == [carrier]
    assert reports[-2] is carrier


def test_already_sunk_ship_is_not_reported_again() -> None:
    grid = create_empty_grid(10)
    ship = grid.place(ShipClass.CRUISER, Coordinate(1, 1), Orientation.HORIZONTAL)
    ship.mark_sunk()
    for cell in ship.cells():
        result = resolve_attack(grid, [ship], cell)
        assert result.outcome is AttackOutcome.HIT
        assert result.sunk_ship is None


def test_only_the_owning_ship_sinks() -> None:
    grid = create_empty_grid(10)
    destroyer = grid.place(ShipClass.DESTROYER, Coordinate(0, 0), Orientation.HORIZONTAL)
    cruiser = grid.place(ShipClass.CRUISER, Coordinate(1, 0), Orientation.HORIZONTAL)
    fleet = [destroyer, cruiser]

    resolve_attack(grid, fleet, Coordinate(0, 0))
    resolve_attack(grid, fleet, Coordinate(1, 0))
    result = resolve_attack(grid, fleet, Coordinate(0, 1))
    assert result.sunk_ship is destroyer
    assert cruiser.sunk is False


def test_out_of_bounds_attack_raises(destroyer_grid) -> None:
    grid, fleet = destroyer_grid
    with pytest.raises(ValueError):
        resolve_attack(grid, fleet, Coordinate(-1, 0))
    with pytest.raises(ValueError):
        resolve_attack(grid, fleet, Coordinate(10, 10))


def test_fleet_destroyed_requires_every_ship_sunk() -> None:
    ships = [
        Ship(ShipClass.DESTROYER, Coordinate(0, 0), Orientation.HORIZONTAL),
        Ship(ShipClass.CRUISER, Coordinate(2, 0), Orientation.HORIZONTAL),
    ]
    assert is_fleet_destroyed(ships) is False
    ships[0].mark_sunk()
    assert is_fleet_destroyed(ships) is False
    ships[1].mark_sunk()
    assert is_fleet_destroyed(ships) is True


def test_empty_fleet_is_never_destroyed() -> None:
    assert is_fleet_destroyed([]) is False
