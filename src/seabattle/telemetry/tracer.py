"""Tracing helpers built on OpenTelemetry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.trace import Tracer

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import TelemetryConfig


_TRACER_PROVIDER: TracerProvider | None = None
_TRACERS: dict[str, Tracer] = {}


def get_tracer(name: str = "seabattle") -> Tracer:
    """Return a named tracer bound to the active provider."""
    tracer = _TRACERS.get(name)
    if tracer is None:
        if _TRACER_PROVIDER is not None:
            tracer = _TRACER_PROVIDER.get_tracer(name)
        else:
            # The API proxy tracer picks up a provider installed later on.
            tracer = trace.get_tracer(name)
        _TRACERS[name] = tracer
    return tracer


def init_tracing(config: TelemetryConfig) -> Tracer:
    """Initialise the TracerProvider according to the config."""
    global _TRACER_PROVIDER

    provider = TracerProvider(resource=Resource.create(config.resource_dict()))

    if config.otlp_traces_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.otlp_traces_endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
    else:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _TRACER_PROVIDER = provider
    _TRACERS.clear()
    return get_tracer(config.service_name)
