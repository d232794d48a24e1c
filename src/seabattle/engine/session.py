"""Turn controller that paces the opponent and owns the live game instance."""

from __future__ import annotations

import logging
import random
from functools import partial
from typing import Callable

from .attack import AttackOutcome
from .config import GameConfig, load_game_config
from .game import BattleshipGame, GamePhase, MoveRecord, Side
from .instrumented_game import InstrumentedBattleshipGame
from .scheduling import AsyncioScheduler, ScheduledTask, Scheduler
from .ship import Coordinate

logger = logging.getLogger(__name__)

GameFactory = Callable[..., BattleshipGame]
MoveListener = Callable[[MoveRecord], None]


class GameSession:
    """Runs one game at a time and schedules the opponent's reply to each shot.

    At most one opponent move is ever pending, and it is bound to the game
    instance that scheduled it. :meth:`restart` cancels it before the old
    game is dropped, so a late timer can never touch the new game.

    The default scheduler binds to the running asyncio loop. Code without one
    passes its own scheduler, as the CLI does with :class:`ManualScheduler`.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        scheduler: Scheduler | None = None,
        game_factory: GameFactory = InstrumentedBattleshipGame,
        on_opponent_move: MoveListener | None = None,
    ) -> None:
        self.config = config or load_game_config()
        self.scheduler = scheduler or AsyncioScheduler()
        self.on_opponent_move = on_opponent_move
        self._game_factory = game_factory
        self._rng = random.Random(self.config.rng_seed)
        self._pending: ScheduledTask | None = None
        self.games_created = 0
        self.game = self._new_game()

    def _new_game(self) -> BattleshipGame:
        self.games_created += 1
        game = self._game_factory(config=self.config, rng_seed=self._rng.randrange(2**32))
        logger.info("game_created", extra={"game_number": self.games_created})
        return game

    @property
    def opponent_move_pending(self) -> bool:
        return self._pending is not None and self._pending.pending

    def start_game(self) -> None:
        self.game.start()

    def fire(self, coord: Coordinate) -> MoveRecord:
        """Resolve the player's shot and, unless it ended the game, queue the reply."""
        if self.opponent_move_pending:
            raise RuntimeError("The opponent is still taking its turn.")
        record = self.game.player_attack(coord)
        if record.outcome is not AttackOutcome.ALREADY_ATTACKED and not record.game_over:
            self._schedule_opponent_move()
        return record

    def _schedule_opponent_move(self) -> None:
        if self.opponent_move_pending:
            raise RuntimeError("An opponent move is already scheduled.")
        game = self.game
        task = ScheduledTask(
            partial(self._run_opponent_move, game), owner=game, name="opponent_move"
        )
        self._pending = task.schedule(self.scheduler, self.config.opponent_delay)
        logger.debug("opponent_move_scheduled", extra={"delay": self.config.opponent_delay})

    def _run_opponent_move(self, game: BattleshipGame) -> None:
        if game is not self.game:
            logger.warning("stale_opponent_move_skipped")
            return
        self._pending = None
        if game.phase is not GamePhase.PLAYING or game.current_turn is not Side.OPPONENT:
            logger.warning(
                "opponent_move_skipped",
                extra={"phase": game.phase.value, "current_turn": game.current_turn.value},
            )
            return
        record = game.opponent_attack()
        if self.on_opponent_move is not None:
            self.on_opponent_move(record)

    def cancel_pending(self) -> bool:
        """Cancel the scheduled opponent move, if any."""
        task, self._pending = self._pending, None
        if task is None:
            return False
        cancelled = task.cancel()
        if cancelled:
            logger.info("opponent_move_cancelled")
        return cancelled

    def restart(self) -> BattleshipGame:
        """Cancel any pending opponent move and replace the game with a fresh one."""
        self.cancel_pending()
        self.game = self._new_game()
        return self.game
