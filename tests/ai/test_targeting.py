"""Tests for the hunt/target opponent."""

import random

from seabattle.ai.targeting import HuntTargetAI, TargetingMode, directional_candidates
from seabattle.engine.attack import AttackOutcome, AttackResult, resolve_attack
from seabattle.engine.board import CellState, create_empty_grid
from seabattle.engine.ship import Coordinate, Orientation, Ship, ShipClass


def _hit(grid, coord: Coordinate, sunk_ship: Ship | None = None) -> AttackResult:
    grid.mark(coord, CellState.HIT)
    return AttackResult(coord, AttackOutcome.HIT, sunk_ship)


def test_directional_candidates_extend_a_horizontal_line() -> None:
    grid = create_empty_grid(10)
    hits = [Coordinate(3, 4), Coordinate(3, 5)]
    assert directional_candidates(grid, hits) == [Coordinate(3, 3), Coordinate(3, 6)]


def test_directional_candidates_extend_a_vertical_line_in_any_hit_order() -> None:
    grid = create_empty_grid(10)
    hits = [Coordinate(5, 2), Coordinate(4, 2), Coordinate(6, 2)]
    assert directional_candidates(grid, hits) == [Coordinate(3, 2), Coordinate(7, 2)]


def test_directional_candidates_drop_attacked_and_off_grid_cells() -> None:
    grid = create_empty_grid(10)
    grid.mark(Coordinate(3, 3), CellState.MISS)
    assert directional_candidates(grid, [Coordinate(3, 4), Coordinate(3, 5)]) == [
        Coordinate(3, 6)
    ]
    assert directional_candidates(grid, [Coordinate(0, 0), Coordinate(0, 1)]) == [
        Coordinate(0, 2)
    ]
    assert directional_candidates(grid, [Coordinate(0, 0)]) == []


def test_hunt_only_picks_open_cells() -> None:
    grid = create_empty_grid(4)
    open_cell = Coordinate(2, 1)
    for row in range(4):
        for col in range(4):
            if Coordinate(row, col) != open_cell:
                grid.mark(Coordinate(row, col), CellState.MISS)
    ai = HuntTargetAI(random.Random(0))
    assert ai.choose_move(grid) == open_cell


def test_no_move_when_every_cell_is_attacked() -> None:
    grid = create_empty_grid(2)
    grid.cells.fill(CellState.MISS)
    assert HuntTargetAI(random.Random(0)).choose_move(grid) is None


def test_hit_enters_target_mode_and_queues_open_neighbours() -> None:
    grid = create_empty_grid(10)
    ai = HuntTargetAI(random.Random(1))
    grid.mark(Coordinate(1, 0), CellState.MISS)

    ai.record_result(grid, _hit(grid, Coordinate(0, 0)))
    assert ai.mode is TargetingMode.TARGET
    assert ai.memory.confirmed_hits == [Coordinate(0, 0)]
    assert list(ai.memory.candidates) == [Coordinate(0, 1)]
    assert ai.choose_move(grid) == Coordinate(0, 1)


def test_queue_skips_duplicates() -> None:
    grid = create_empty_grid(10)
    ai = HuntTargetAI(random.Random(1))
    ai.record_result(grid, _hit(grid, Coordinate(4, 4)))
    ai.record_result(grid, _hit(grid, Coordinate(5, 5)))
    candidates = list(ai.memory.candidates)
    assert len(candidates) == len(set(candidates))
    assert candidates == [
        Coordinate(3, 4),
        Coordinate(5, 4),
        Coordinate(4, 3),
        Coordinate(4, 5),
        Coordinate(6, 5),
        Coordinate(5, 6),
    ]


def test_directional_candidates_are_preferred_over_the_queue() -> None:
    grid = create_empty_grid(10)
    ai = HuntTargetAI(random.Random(1))
    ai.record_result(grid, _hit(grid, Coordinate(3, 4)))
    ai.record_result(grid, _hit(grid, Coordinate(3, 5)))
    assert ai.choose_move(grid) == Coordinate(3, 3)

    grid.mark(Coordinate(3, 3), CellState.MISS)
    assert ai.choose_move(grid) == Coordinate(3, 6)


def test_sink_resets_memory() -> None:
    grid = create_empty_grid(10)
    ship = grid.place(ShipClass.DESTROYER, Coordinate(2, 2), Orientation.HORIZONTAL)
    ai = HuntTargetAI(random.Random(1))

    first = resolve_attack(grid, [ship], Coordinate(2, 2))
    ai.record_result(grid, first)
    assert ai.mode is TargetingMode.TARGET

    second = resolve_attack(grid, [ship], Coordinate(2, 3))
    assert second.sunk_ship is ship
    ai.record_result(grid, second)
    assert ai.mode is TargetingMode.HUNT
    assert not ai.memory.candidates
    assert not ai.memory.confirmed_hits
    assert ai.memory.last_move is second


def test_exhausted_queue_falls_back_to_a_random_open_cell() -> None:
    grid = create_empty_grid(10)
    ai = HuntTargetAI(random.Random(3))
    ai.record_result(grid, _hit(grid, Coordinate(5, 5)))
    for neighbour in Coordinate(5, 5).neighbours():
        grid.mark(neighbour, CellState.MISS)

    move = ai.choose_move(grid)
    assert move is not None
    assert not grid.is_attacked(move)
    assert ai.mode is TargetingMode.HUNT
    assert not ai.memory.candidates


def test_miss_keeps_target_mode() -> None:
    grid = create_empty_grid(10)
    ai = HuntTargetAI(random.Random(3))
    ai.record_result(grid, _hit(grid, Coordinate(5, 5)))
    move = ai.choose_move(grid)
    grid.mark(move, CellState.MISS)
    ai.record_result(grid, AttackResult(move, AttackOutcome.MISS))
    assert ai.mode is TargetingMode.TARGET
    assert ai.memory.last_move.coord == move


def test_reset_clears_everything() -> None:
    grid = create_empty_grid(10)
    ai = HuntTargetAI(random.Random(3))
    ai.record_result(grid, _hit(grid, Coordinate(5, 5)))
    ai.reset()
    assert ai.mode is TargetingMode.HUNT
    assert not ai.memory.candidates
    assert not ai.memory.confirmed_hits
    assert ai.memory.last_move is None


def test_ai_never_repeats_or_leaves_the_grid() -> None:
    grid = create_empty_grid(10)
    ai = HuntTargetAI(random.Random(99))
    fleet = [
        grid.place(ShipClass.CARRIER, Coordinate(0, 0), Orientation.HORIZONTAL),
        grid.place(ShipClass.BATTLESHIP, Coordinate(2, 9), Orientation.VERTICAL),
        grid.place(ShipClass.CRUISER, Coordinate(9, 0), Orientation.HORIZONTAL),
        grid.place(ShipClass.SUBMARINE, Coordinate(5, 5), Orientation.VERTICAL),
        grid.place(ShipClass.DESTROYER, Coordinate(4, 4), Orientation.HORIZONTAL),
    ]
    seen: set[Coordinate] = set()
    while (move := ai.choose_move(grid)) is not None:
        assert move not in seen
        assert grid.in_bounds(move)
        seen.add(move)
        result = resolve_attack(grid, fleet, move)
        assert result.outcome is not AttackOutcome.ALREADY_ATTACKED
        ai.record_result(grid, result)
        if result.sunk_ship is not None:
            assert not ai.memory.candidates and not ai.memory.confirmed_hits
    assert len(seen) == 100
    assert all(ship.sunk for ship in fleet)
