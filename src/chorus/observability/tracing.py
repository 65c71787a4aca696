"""Tracing helpers."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode


def get_tracer(name: str = "chorus") -> trace.Tracer:
    """Return a tracer; a no-op one until an SDK provider is installed."""
    return trace.get_tracer(name)


@contextmanager
def span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Start a span as the current span for the duration of the block."""
    with get_tracer().start_as_current_span(name, attributes=attributes) as s:
        yield s


def mark_failed(s: Span, error: str | None) -> None:
    """Flag a span as failed without raising."""
    s.set_status(Status(StatusCode.ERROR, error or "failed"))
