"""Metrics recording: counters and histograms for agent runs."""

from __future__ import annotations

from typing import Any

from opentelemetry import metrics

from chorus.types.results import AgentResult

# Lazily-created instruments
_meter: Any = None
_run_counter: Any = None
_token_counter: Any = None
_cost_counter: Any = None
_latency_histogram: Any = None


def _ensure_instruments() -> None:
    """Create meter and instruments on first use."""
    global _meter, _run_counter, _token_counter, _cost_counter, _latency_histogram

    if _meter is not None:
        return

    _meter = metrics.get_meter("chorus")
    _run_counter = _meter.create_counter(
        "chorus.agent_runs",
        description="Agent invocations by outcome",
    )
    _token_counter = _meter.create_counter(
        "chorus.tokens",
        description="Total tokens consumed",
        unit="tokens",
    )
    _cost_counter = _meter.create_counter(
        "chorus.cost",
        description="Total cost in USD",
        unit="USD",
    )
    _latency_histogram = _meter.create_histogram(
        "chorus.agent_latency",
        description="Wall-clock time of one agent invocation",
        unit="ms",
    )


def record_agent_run(agent: str, result: AgentResult, latency_ms: float) -> None:
    """Record outcome, usage, cost and latency of one agent invocation."""
    _ensure_instruments()
    attrs = {"agent": agent}
    outcome = "success" if result.success else (result.error or "error")
    _run_counter.add(1, {**attrs, "outcome": outcome})
    _latency_histogram.record(latency_ms, attrs)
    if result.usage is not None:
        _token_counter.add(result.usage.input_tokens, {**attrs, "direction": "input"})
        _token_counter.add(result.usage.output_tokens, {**attrs, "direction": "output"})
    if result.total_cost_usd:
        _cost_counter.add(result.total_cost_usd, attrs)


def reset_instruments() -> None:
    """Reset module-level instruments between tests."""
    global _meter, _run_counter, _token_counter, _cost_counter, _latency_histogram
    _meter = None
    _run_counter = None
    _token_counter = None
    _cost_counter = None
    _latency_histogram = None
