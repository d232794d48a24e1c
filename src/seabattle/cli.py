"""Simple command-line driver for playing Seabattle against the hunt/target AI."""

from __future__ import annotations

import argparse
import logging
import string
import time

from seabattle.engine.attack import AttackOutcome
from seabattle.engine.board import CellState, Grid
from seabattle.engine.config import GameConfig
from seabattle.engine.game import BattleshipGame, GamePhase, MoveRecord, Side
from seabattle.engine.scheduling import ManualScheduler
from seabattle.engine.session import GameSession
from seabattle.engine.ship import Coordinate, Orientation, ShipClass
from seabattle.telemetry import init_telemetry
from seabattle.telemetry.logger import configure_console_logging

ROW_LABELS = string.ascii_uppercase


def coordinate_label(coord: Coordinate) -> str:
    return f"{ROW_LABELS[coord.row]}{coord.col + 1}"


def parse_coordinate(text: str, size: int = 10) -> Coordinate:
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    last_row = ROW_LABELS[size - 1]
    if cleaned[0].isalpha():
        if cleaned[0] not in ROW_LABELS[:size]:
            raise ValueError(f"Row must be between A and {last_row}.")
        row = ROW_LABELS.index(cleaned[0])
        try:
            col = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError(f"Column must be a number between 1 and {size}.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '3 7'.")
        try:
            row, col = map(int, parts)
        except ValueError as exc:
            raise ValueError("Both parts must be numbers.") from exc
    if row not in range(size) or col not in range(size):
        raise ValueError(f"Coordinates must be within the {size}x{size} board.")
    return Coordinate(row, col)


def format_grid(grid: Grid, show_ships: bool) -> str:
    symbols = {
        CellState.EMPTY: ".",
        CellState.SHIP: "S" if show_ships else ".",
        CellState.HIT: "X",
        CellState.MISS: "o",
    }
    header = "    " + " ".join(f"{col + 1:>2}" for col in range(grid.size))
    rows = [header]
    for row in range(grid.size):
        cells = [f"{symbols[grid.state(Coordinate(row, col))]:>2}" for col in range(grid.size)]
        rows.append(f"{ROW_LABELS[row]} |" + " ".join(cells))
    return "\n".join(rows)


def describe_move(record: MoveRecord) -> str:
    who = "You" if record.attacker is Side.PLAYER else "Enemy"
    label = coordinate_label(record.coord)
    if record.outcome is AttackOutcome.ALREADY_ATTACKED:
        return f"{label} has already been targeted."
    if record.outcome is AttackOutcome.MISS:
        return f"{who} attack {label}: MISS"
    if record.sunk_ship is not None:
        return f"{who} attack {label}: HIT and sank the {record.sunk_ship.ship_class.label}!"
    return f"{who} attack {label}: HIT"


def _prompt_orientation(ship_class: ShipClass) -> Orientation:
    while True:
        raw = (
            input(
                f"Place your {ship_class.label.title()} (length {ship_class.length}). "
                "Orientation [H/V]: "
            )
            .strip()
            .upper()
        )
        if raw in {"H", "HOR", "HORIZONTAL"}:
            return Orientation.HORIZONTAL
        if raw in {"V", "VER", "VERTICAL"}:
            return Orientation.VERTICAL
        print("Please enter H for horizontal or V for vertical.")


def _manual_ship_placement(game: BattleshipGame) -> None:
    size = game.config.board_size
    while game.remaining_ships():
        ship_class = game.remaining_ships()[0]
        print("\nCurrent layout:")
        print(format_grid(game.grids[Side.PLAYER], show_ships=True))
        orientation = _prompt_orientation(ship_class)
        start_raw = input("Enter starting coordinate (e.g., A1): ")
        try:
            start = parse_coordinate(start_raw, size)
        except ValueError as exc:
            print(f"Invalid coordinate: {exc}")
            continue
        if game.place_ship(ship_class, start, orientation) is None:
            print("Invalid placement (out of bounds or overlaps). Try again.")


def _prompt_manual_setup() -> bool:
    while True:
        raw = input("Would you like to place your ships manually? [Y/n]: ").strip().lower()
        if raw in {"", "y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def _prompt_for_target(game: BattleshipGame) -> Coordinate:
    size = game.config.board_size
    while True:
        raw = input("Enter target coordinate (e.g., A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            return parse_coordinate(raw, size)
        except ValueError as exc:
            print(f"Invalid input: {exc}")


def play_game(config: GameConfig, manual: bool | None = None) -> Side | None:
    scheduler = ManualScheduler()
    session = GameSession(
        config=config,
        scheduler=scheduler,
        on_opponent_move=lambda record: print(describe_move(record)),
    )
    game = session.game
    print("Welcome to Seabattle!\n")

    if manual is None:
        manual = _prompt_manual_setup()
    if manual:
        _manual_ship_placement(game)
    else:
        game.randomize_fleet()
        print("\nYour ships have been positioned automatically.")

    session.start_game()

    while game.phase is GamePhase.PLAYING:
        print("\nYour Board:")
        print(format_grid(game.grids[Side.PLAYER], show_ships=True))
        print("\nEnemy Waters:")
        print(format_grid(game.grids[Side.OPPONENT], show_ships=False))

        record = session.fire(_prompt_for_target(game))
        print(describe_move(record))
        if session.opponent_move_pending:
            print("Enemy is thinking...")
            time.sleep(config.opponent_delay)
            scheduler.advance(config.opponent_delay)

    if game.winner is Side.PLAYER:
        print("\nCongratulations, you sank the entire enemy fleet!")
    else:
        print("\nAll your ships have been destroyed. Better luck next battle!")
    return game.winner


def main() -> None:
    parser = argparse.ArgumentParser(description="Play Seabattle via the CLI.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--delay", type=float, default=None, help="Seconds the opponent spends thinking."
    )
    parser.add_argument(
        "--random-fleet", action="store_true", help="Skip manual placement."
    )
    parser.add_argument("--verbose", action="store_true", help="Log engine events.")
    args = parser.parse_args()

    configure_console_logging(logging.INFO if args.verbose else logging.WARNING)
    init_telemetry()

    overrides = {}
    if args.seed is not None:
        overrides["rng_seed"] = args.seed
    if args.delay is not None:
        overrides["opponent_delay"] = args.delay
    config = GameConfig.from_env(**overrides)
    play_game(config, manual=False if args.random_fleet else None)


if __name__ == "__main__":
    main()
