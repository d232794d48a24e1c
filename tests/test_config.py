"""Tests for game configuration."""

import pytest
from pydantic import ValidationError
from seabattle.engine import config as config_module
from seabattle.engine.config import GameConfig
from seabattle.engine.ship import STANDARD_FLEET, ShipClass


def test_defaults_match_the_standard_rules() -> None:
    config = GameConfig()
    assert config.board_size == 10
    assert config.fleet == STANDARD_FLEET
    assert config.placement_attempts == 200
    assert config.placement_restarts == 10
    assert config.opponent_delay == pytest.approx(0.8)
    assert config.rng_seed is None


def test_from_env_reads_seabattle_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEABATTLE_BOARD_SIZE", "8")
    monkeypatch.setenv("SEABATTLE_FLEET", "carrier, destroyer")
    monkeypatch.setenv("SEABATTLE_OPPONENT_DELAY", "0")
    monkeypatch.setenv("SEABATTLE_SEED", "42")

    config = GameConfig.from_env(placement_restarts=3)
    assert config.board_size == 8
    assert config.fleet == (ShipClass.CARRIER, ShipClass.DESTROYER)
    assert config.opponent_delay == 0
    assert config.rng_seed == 42
    assert config.placement_restarts == 3


def test_unknown_ship_class_is_rejected() -> None:
    with pytest.raises(ValidationError):
        GameConfig(fleet="carrier,frigate")


def test_fleet_must_fit_the_board() -> None:
    with pytest.raises(ValidationError):
        GameConfig(board_size=4, fleet=(ShipClass.CARRIER,))
    with pytest.raises(ValidationError):
        GameConfig(board_size=2, fleet=(ShipClass.DESTROYER, ShipClass.DESTROYER))
    with pytest.raises(ValidationError):
        GameConfig(fleet=())


def test_load_game_config_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    config_module.load_game_config.cache_clear()
    calls = {"count": 0}

    def fake_from_env(cls, **overrides):
        calls["count"] += 1
        return GameConfig(rng_seed=7)

    monkeypatch.setattr(GameConfig, "from_env", classmethod(fake_from_env))

    first = config_module.load_game_config()
    second = config_module.load_game_config()
    assert first is second
    assert calls["count"] == 1
    config_module.load_game_config.cache_clear()
