"""Public telemetry helpers for Seabattle."""

from __future__ import annotations

from .config import TelemetryConfig, init_telemetry, load_telemetry_config
from .logger import get_logger, init_logging
from .metrics import get_meter, init_metrics, record_game_histogram, record_game_metric
from .tracer import get_tracer, init_tracing

__all__ = [
    "TelemetryConfig",
    "get_logger",
    "get_tracer",
    "get_meter",
    "record_game_metric",
    "record_game_histogram",
    "init_logging",
    "init_tracing",
    "init_metrics",
    "load_telemetry_config",
    "init_telemetry",
]
