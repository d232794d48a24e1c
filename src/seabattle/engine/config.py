"""Game rule and pacing configuration."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator, model_validator

from .ship import STANDARD_FLEET, ShipClass


class GameConfig(BaseModel):
    """Tunable parameters for one game instance."""

    board_size: int = Field(default=10, ge=2, le=26)
    fleet: tuple[ShipClass, ...] = STANDARD_FLEET
    placement_attempts: int = Field(default=200, ge=1)
    placement_restarts: int = Field(default=10, ge=1)
    opponent_delay: float = Field(default=0.8, ge=0.0)
    rng_seed: int | None = None

    @field_validator("fleet", mode="before")
    @classmethod
    def _parse_fleet(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple)):
            parsed = []
            for item in value:
                if isinstance(item, str):
                    try:
                        item = ShipClass[item.strip().upper()]
                    except KeyError as exc:
                        raise ValueError(f"Unknown ship class {item!r}.") from exc
                parsed.append(item)
            return tuple(parsed)
        return value

    @model_validator(mode="after")
    def _fleet_fits(self) -> "GameConfig":
        if not self.fleet:
            raise ValueError("The fleet needs at least one ship.")
        if len(set(self.fleet)) != len(self.fleet):
            raise ValueError("Each ship class may appear once in the fleet.")
        longest = max(ship_class.length for ship_class in self.fleet)
        if longest > self.board_size:
            raise ValueError(f"A ship of length {longest} does not fit a {self.board_size} grid.")
        if sum(ship_class.length for ship_class in self.fleet) >= self.board_size**2:
            raise ValueError("The fleet must leave at least one open cell on the grid.")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameConfig":
        """Construct config from `SEABATTLE_*` env vars."""

        data: Dict[str, Any] = {}
        env_fields = {
            "board_size": "SEABATTLE_BOARD_SIZE",
            "fleet": "SEABATTLE_FLEET",
            "placement_attempts": "SEABATTLE_PLACEMENT_ATTEMPTS",
            "placement_restarts": "SEABATTLE_PLACEMENT_RESTARTS",
            "opponent_delay": "SEABATTLE_OPPONENT_DELAY",
            "rng_seed": "SEABATTLE_SEED",
        }
        for field, env_name in env_fields.items():
            value = os.getenv(env_name)
            if value is not None and value.strip():
                data[field] = value.strip()
        data.update(overrides)
        return cls(**data)


@lru_cache(maxsize=1)
def load_game_config() -> GameConfig:
    """Load and cache game config from the environment."""

    return GameConfig.from_env()
