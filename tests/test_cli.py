"""Tests for the terminal front end."""

import pytest
from seabattle import cli
from seabattle.engine.attack import AttackOutcome
from seabattle.engine.board import create_empty_grid
from seabattle.engine.config import GameConfig
from seabattle.engine.game import MoveRecord, Side
from seabattle.engine.ship import Coordinate, Orientation, Ship, ShipClass


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("A1", Coordinate(0, 0)),
        ("j10", Coordinate(9, 9)),
        (" c5 ", Coordinate(2, 4)),
        ("3 7", Coordinate(3, 7)),
    ],
)
def test_parse_coordinate(text: str, expected: Coordinate) -> None:
    assert cli.parse_coordinate(text) == expected


@pytest.mark.parametrize("text", ["", "K1", "A0", "A11", "Ax", "1 2 3", "10 0"])
def test_parse_coordinate_rejects_bad_input(text: str) -> None:
    with pytest.raises(ValueError):
        cli.parse_coordinate(text)


def test_format_grid_hides_enemy_ships() -> None:
    grid = create_empty_grid(3)
    grid.place(ShipClass.DESTROYER, Coordinate(0, 0), Orientation.HORIZONTAL)
    assert "S" in cli.format_grid(grid, show_ships=True)
    assert "S" not in cli.format_grid(grid, show_ships=False)


def test_describe_move_mentions_sunk_ship() -> None:
    ship = Ship(ShipClass.DESTROYER, Coordinate(0, 0), Orientation.HORIZONTAL)
    record = MoveRecord(Side.OPPONENT, Coordinate(0, 1), AttackOutcome.HIT, ship, False, None)
    assert cli.describe_move(record) == "Enemy attack A2: HIT and sank the destroyer!"
    assert cli.coordinate_label(Coordinate(9, 9)) == "J10"


def test_play_game_runs_to_completion(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    answers = iter(
        [cli.coordinate_label(Coordinate(row, col)) for row in range(10) for col in range(10)]
    )
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    monkeypatch.setattr(cli.time, "sleep", lambda seconds: None)

    winner = cli.play_game(GameConfig(rng_seed=21, opponent_delay=0.0), manual=False)
    assert winner in {Side.PLAYER, Side.OPPONENT}
    output = capsys.readouterr().out
    assert "Welcome to Seabattle!" in output
    assert "Enemy attack" in output
