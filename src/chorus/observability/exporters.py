"""OTel provider setup (console and OTLP exporters)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    MetricExporter,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | None = None
_meter_provider: MeterProvider | None = None


@dataclass(frozen=True, slots=True)
class ObservabilityConfig:
    """Configuration for OTel exporters."""

    enabled: bool = False
    exporter: str = "console"  # console | otlp
    otlp_endpoint: str = "http://localhost:4317"
    service_name: str = "chorus"


def _exporters(config: ObservabilityConfig) -> tuple[SpanExporter, MetricExporter]:
    if config.exporter == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        except ImportError:
            logger.warning("OTLP exporter not installed; falling back to console export")
        else:
            return (
                OTLPSpanExporter(endpoint=config.otlp_endpoint),
                OTLPMetricExporter(endpoint=config.otlp_endpoint),
            )
    return ConsoleSpanExporter(), ConsoleMetricExporter()


def configure_exporters(config: ObservabilityConfig) -> bool:
    """Install tracer and meter providers. Returns True if OTel was configured."""
    global _tracer_provider, _meter_provider

    if not config.enabled or config.exporter == "none":
        return False

    resource = Resource.create({"service.name": config.service_name})
    span_exporter, metric_exporter = _exporters(config)

    tp = TracerProvider(resource=resource)
    tp.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(tp)
    _tracer_provider = tp

    reader = PeriodicExportingMetricReader(metric_exporter)
    mp = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(mp)
    _meter_provider = mp
    return True


def shutdown() -> None:
    """Flush and shut down installed providers."""
    global _tracer_provider, _meter_provider

    providers: list[Any] = [_tracer_provider, _meter_provider]
    for provider in providers:
        if provider is None:
            continue
        try:
            provider.shutdown()
        except Exception as exc:
            logger.warning("OTel shutdown failed: %s", exc)
    _tracer_provider = None
    _meter_provider = None
