"""Single-player Battleship game against the hunt/target opponent."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from seabattle.ai.targeting import HuntTargetAI
from seabattle.telemetry import get_meter, get_tracer

from .attack import AttackOutcome, is_fleet_destroyed, resolve_attack
from .board import CellState, Grid, create_empty_grid, place_fleet_randomly
from .config import GameConfig
from .ship import Coordinate, Orientation, Ship, ShipClass

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.game")
meter = get_meter("seabattle.engine.game")

MOVE_COUNTER = meter.create_counter(
    "seabattle_engine_moves",
    unit="1",
    description="Number of moves made in BattleshipGame",
)


class GamePhase(Enum):
    """Lifecycle of one game instance. Only ever moves forward."""

    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


class Side(Enum):
    """The two sides of a game."""

    PLAYER = "player"
    OPPONENT = "opponent"

    def opponent(self) -> Side:
        """Return the opposing side."""
        return Side.OPPONENT if self is Side.PLAYER else Side.PLAYER


@dataclass(frozen=True)
class MoveRecord:
    """What one resolved attack did, as reported to the presentation layer."""

    attacker: Side
    coord: Coordinate
    outcome: AttackOutcome
    sunk_ship: Ship | None
    game_over: bool
    winner: Side | None


@dataclass(frozen=True)
class GridSnapshot:
    """Serializable view of one side's grid."""

    cells: tuple[tuple[CellState, ...], ...]
    ships: tuple[tuple[Coordinate, ...], ...]
    sunk: tuple[bool, ...]


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the current game."""

    phase: GamePhase
    current_turn: Side
    winner: Side | None
    grids: Mapping[Side, GridSnapshot]
    moves: tuple[MoveRecord, ...]


class BattleshipGame:
    """Owns both grids, both fleets and the opponent's memory for one game.

    Restarting means building a new instance; nothing here rolls back.
    """

    def __init__(self, config: GameConfig | None = None, rng_seed: int | None = None) -> None:
        self.config = config or GameConfig()
        seed = rng_seed if rng_seed is not None else self.config.rng_seed
        self._rng = random.Random(seed)
        self.grids: dict[Side, Grid] = {
            side: create_empty_grid(self.config.board_size, owner=side.value) for side in Side
        }
        self.fleets: dict[Side, list[Ship]] = {side: [] for side in Side}
        self.phase: GamePhase = GamePhase.SETUP
        self.current_turn: Side = Side.PLAYER
        self.winner: Side | None = None
        self.moves: list[MoveRecord] = []
        self.ai = HuntTargetAI(self._rng)

    # ------------------------------------------------------------------ #
    # Setup
    # ------------------------------------------------------------------ #
    def _require_phase(self, phase: GamePhase, action: str) -> None:
        if self.phase is not phase:
            logger.error(
                "action_rejected_wrong_phase",
                extra={"action": action, "phase": self.phase.value},
            )
            raise RuntimeError(f"Cannot {action} during the {self.phase.value} phase.")

    def _find_player_ship(self, ship_class: ShipClass) -> int:
        for index, ship in enumerate(self.fleets[Side.PLAYER]):
            if ship.ship_class is ship_class:
                return index
        raise ValueError(f"No {ship_class.label} has been placed.")

    def remaining_ships(self) -> list[ShipClass]:
        """Catalog entries the player still has to place, in catalog order."""
        placed = {ship.ship_class for ship in self.fleets[Side.PLAYER]}
        return [ship_class for ship_class in self.config.fleet if ship_class not in placed]

    def is_fleet_complete(self) -> bool:
        return len(self.fleets[Side.PLAYER]) == len(self.config.fleet)

    def ship_at(self, side: Side, coord: Coordinate) -> Ship | None:
        for ship in self.fleets[side]:
            if ship.occupies(coord):
                return ship
        return None

    def can_place_ship(
        self, ship_class: ShipClass, start: Coordinate, orientation: Orientation
    ) -> bool:
        return self.grids[Side.PLAYER].can_place(ship_class.length, start, orientation)

    def place_ship(
        self, ship_class: ShipClass, start: Coordinate, orientation: Orientation
    ) -> Ship | None:
        """Place one of the player's remaining ships; None leaves the grid as it was."""
        self._require_phase(GamePhase.SETUP, "place ships")
        if ship_class not in self.remaining_ships():
            raise ValueError(f"The {ship_class.label} is not waiting to be placed.")
        if not self.can_place_ship(ship_class, start, orientation):
            logger.info(
                "ship_placement_rejected",
                extra={
                    "ship_class": ship_class.name,
                    "orientation": orientation.name,
                    "row": start.row,
                    "col": start.col,
                },
            )
            return None
        ship = self.grids[Side.PLAYER].place(ship_class, start, orientation)
        self.fleets[Side.PLAYER].append(ship)
        return ship

    def remove_ship(self, ship_class: ShipClass) -> Ship:
        """Take a placed ship off the player's grid so it can be placed again."""
        self._require_phase(GamePhase.SETUP, "remove ships")
        ship = self.fleets[Side.PLAYER].pop(self._find_player_ship(ship_class))
        self.grids[Side.PLAYER].remove(ship)
        return ship

    def move_ship(
        self, ship_class: ShipClass, start: Coordinate, orientation: Orientation
    ) -> bool:
        """Reposition a placed ship, keeping the old position if the new one is invalid."""
        self._require_phase(GamePhase.SETUP, "move ships")
        grid = self.grids[Side.PLAYER]
        fleet = self.fleets[Side.PLAYER]
        index = self._find_player_ship(ship_class)
        original = fleet[index]

        grid.remove(original)
        if grid.can_place(ship_class.length, start, orientation):
            fleet[index] = grid.place(ship_class, start, orientation)
            return True

        fleet[index] = grid.place(ship_class, original.start, original.orientation)
        logger.info(
            "ship_move_rejected",
            extra={"ship_class": ship_class.name, "row": start.row, "col": start.col},
        )
        return False

    def rotate_ship(self, ship_class: ShipClass) -> bool:
        """Flip a placed ship's orientation about its first cell."""
        self._require_phase(GamePhase.SETUP, "rotate ships")
        index = self._find_player_ship(ship_class)
        ship = self.fleets[Side.PLAYER][index]
        return self.move_ship(ship_class, ship.start, ship.orientation.toggled())

    def randomize_fleet(self) -> list[Ship]:
        """Replace the player's layout with a random full fleet."""
        self._require_phase(GamePhase.SETUP, "randomize the fleet")
        self.fleets[Side.PLAYER] = self._random_fleet(Side.PLAYER)
        return list(self.fleets[Side.PLAYER])

    def _random_fleet(self, side: Side) -> list[Ship]:
        return place_fleet_randomly(
            self.grids[side],
            self.config.fleet,
            self._rng,
            attempts_per_ship=self.config.placement_attempts,
            max_restarts=self.config.placement_restarts,
        )

    def start(self) -> None:
        """Deploy the opponent's fleet and hand the first turn to the player."""
        with tracer.start_as_current_span("game.start"):
            self._require_phase(GamePhase.SETUP, "start the game")
            if not self.is_fleet_complete():
                raise RuntimeError(
                    f"Place all {len(self.config.fleet)} ships first "
                    f"({len(self.remaining_ships())} remaining)."
                )
            self.fleets[Side.OPPONENT] = self._random_fleet(Side.OPPONENT)
            self.ai.reset()
            self.phase = GamePhase.PLAYING
            self.current_turn = Side.PLAYER
            self.winner = None
            logger.info(
                "game_started",
                extra={"phase": self.phase.value, "current_turn": self.current_turn.value},
            )

    # ------------------------------------------------------------------ #
    # Turns
    # ------------------------------------------------------------------ #
    def player_attack(self, coord: Coordinate) -> MoveRecord:
        """Fire at the opponent's grid on the player's turn."""
        return self._attack(Side.PLAYER, coord)

    def opponent_attack(self) -> MoveRecord:
        """Let the opponent choose and fire one shot at the player's grid."""
        self._require_turn(Side.OPPONENT)
        target = self.ai.choose_move(self.grids[Side.PLAYER])
        if target is None:
            raise RuntimeError("The opponent has no cells left to attack.")
        return self._attack(Side.OPPONENT, target)

    def _require_turn(self, attacker: Side) -> None:
        self._require_phase(GamePhase.PLAYING, "attack")
        if attacker is not self.current_turn:
            logger.error(
                "move_rejected_wrong_side",
                extra={"side": attacker.value, "current": self.current_turn.value},
            )
            raise RuntimeError(f"It is not the {attacker.value}'s turn.")

    def _attack(self, attacker: Side, coord: Coordinate) -> MoveRecord:
        with tracer.start_as_current_span("game.attack") as span:
            span.set_attribute("attacker", attacker.value)
            span.set_attribute("row", coord.row)
            span.set_attribute("col", coord.col)
            self._require_turn(attacker)

            defender = attacker.opponent()
            grid = self.grids[defender]
            fleet = self.fleets[defender]
            result = resolve_attack(grid, fleet, coord)
            if attacker is Side.OPPONENT:
                self.ai.record_result(grid, result)

            if result.outcome is AttackOutcome.ALREADY_ATTACKED:
                # The shot is refused without using up the turn.
                return MoveRecord(attacker, coord, result.outcome, None, False, None)

            if is_fleet_destroyed(fleet):
                self.winner = attacker
                self.phase = GamePhase.GAME_OVER
                span.set_attribute("game.winner", attacker.value)
                logger.info("game_finished", extra={"winner": attacker.value})
            else:
                self.current_turn = defender
                span.set_attribute("next_turn", defender.value)

            record = MoveRecord(
                attacker=attacker,
                coord=coord,
                outcome=result.outcome,
                sunk_ship=result.sunk_ship,
                game_over=self.phase is GamePhase.GAME_OVER,
                winner=self.winner,
            )
            self.moves.append(record)
            MOVE_COUNTER.add(
                1, attributes={"outcome": result.outcome.value, "attacker": attacker.value}
            )
            return record

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    def get_state(self) -> GameState:
        """Return an immutable view of the current match."""
        grid_views = {
            side: GridSnapshot(
                cells=tuple(
                    tuple(CellState(int(value)) for value in row) for row in grid.cells
                ),
                ships=tuple(tuple(ship.cells()) for ship in self.fleets[side]),
                sunk=tuple(ship.sunk for ship in self.fleets[side]),
            )
            for side, grid in self.grids.items()
        }
        return GameState(
            phase=self.phase,
            current_turn=self.current_turn,
            winner=self.winner,
            grids=MappingProxyType(grid_views),
            moves=tuple(self.moves),
        )

    def valid_moves(self, attacker: Side) -> list[Coordinate]:
        """Return all coordinates ``attacker`` can still target."""
        if self.phase is not GamePhase.PLAYING:
            return []
        return self.grids[attacker.opponent()].untargeted()
