"""Metrics helper utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Union

from opentelemetry import metrics as otel_metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import Counter, Histogram, Meter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

if TYPE_CHECKING:  # pragma: no cover
    from .config import TelemetryConfig

GAME_METER_NAME = "seabattle.game"

_METER_PROVIDER: MeterProvider | None = None
_METERS: dict[str, Meter] = {}
_INSTRUMENTS: dict[str, Union[Counter, Histogram]] = {}

MetricAttributes = Mapping[str, str | bool | int | float]


def get_meter(name: str = "seabattle") -> Meter:
    """Return a named meter bound to the active provider."""
    meter = _METERS.get(name)
    if meter is None:
        if _METER_PROVIDER is not None:
            meter = _METER_PROVIDER.get_meter(name)
        else:
            # Proxy meters forward to a provider installed later on.
            meter = otel_metrics.get_meter(name)
        _METERS[name] = meter
    return meter


def init_metrics(config: TelemetryConfig) -> Meter:
    global _METER_PROVIDER

    readers = []
    if config.otlp_metrics_endpoint:
        exporter = OTLPMetricExporter(endpoint=config.otlp_metrics_endpoint, insecure=True)
        readers.append(PeriodicExportingMetricReader(exporter, export_interval_millis=5000))

    provider = MeterProvider(
        resource=Resource.create(config.resource_dict()), metric_readers=readers
    )
    otel_metrics.set_meter_provider(provider)

    _METER_PROVIDER = provider
    _METERS.clear()
    _INSTRUMENTS.clear()
    return get_meter(config.service_name)


def record_game_metric(name: str, value: float, attrs: MetricAttributes | None = None) -> None:
    """Add ``value`` to the counter called ``name``, creating it on first use."""
    instrument = _INSTRUMENTS.get(name)
    if instrument is None:
        instrument = get_meter(GAME_METER_NAME).create_counter(name)
        _INSTRUMENTS[name] = instrument
    instrument.add(value, attributes=attrs or {})


def record_game_histogram(
    name: str, value: float, attrs: MetricAttributes | None = None, unit: str = "s"
) -> None:
    """Record one observation of ``value`` in the histogram called ``name``."""
    instrument = _INSTRUMENTS.get(name)
    if instrument is None:
        instrument = get_meter(GAME_METER_NAME).create_histogram(name, unit=unit)
        _INSTRUMENTS[name] = instrument
    instrument.record(value, attributes=attrs or {})
