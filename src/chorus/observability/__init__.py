"""OpenTelemetry-based observability for Chorus."""

from chorus.observability.exporters import ObservabilityConfig, configure_exporters, shutdown
from chorus.observability.metrics import record_agent_run, reset_instruments
from chorus.observability.tracing import get_tracer, mark_failed, span

__all__ = [
    "ObservabilityConfig",
    "configure_exporters",
    "get_tracer",
    "mark_failed",
    "record_agent_run",
    "reset_instruments",
    "shutdown",
    "span",
]
