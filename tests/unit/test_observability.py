"""Tests for chorus.observability -- spans and metrics around agent runs."""

from __future__ import annotations

from typing import Any

import pytest
from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from chorus.agents import Agent
from chorus.observability import (
    ObservabilityConfig,
    configure_exporters,
    get_tracer,
    record_agent_run,
    reset_instruments,
    shutdown,
    span,
)
from chorus.orchestration import AgentSpec, run_sequential_chain
from chorus.types import AgentConfig, AgentResult, TokenUsage
from tests.conftest import FakeEngine, Script


@pytest.fixture
def spans(monkeypatch) -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(trace, "get_tracer", lambda name, *a, **kw: provider.get_tracer(name))
    return exporter


@pytest.fixture
def reader(monkeypatch) -> InMemoryMetricReader:
    reader = InMemoryMetricReader()
    provider = MeterProvider(metric_readers=[reader])
    monkeypatch.setattr(metrics, "get_meter", lambda name, *a, **kw: provider.get_meter(name))
    reset_instruments()
    yield reader
    reset_instruments()


def _points(reader: InMemoryMetricReader) -> dict[str, list[Any]]:
    out: dict[str, list[Any]] = {}
    data = reader.get_metrics_data()
    for rm in data.resource_metrics:
        for sm in rm.scope_metrics:
            for metric in sm.metrics:
                out.setdefault(metric.name, []).extend(metric.data.data_points)
    return out


class TestTracing:
    def test_get_tracer_returns_something(self):
        assert get_tracer() is not None

    def test_span_context_manager(self, spans):
        with span("unit", {"key": "value"}) as s:
            assert s is not None
        [finished] = spans.get_finished_spans()
        assert finished.name == "unit"
        assert finished.attributes["key"] == "value"

    @pytest.mark.asyncio
    async def test_agent_run_span(self, spans):
        agent = Agent(AgentConfig(name="helper", system_prompt="p"), FakeEngine())
        await agent.run("go")
        [finished] = spans.get_finished_spans()
        assert finished.name == "chorus.agent.run"
        assert finished.attributes["chorus.agent"] == "helper"
        assert finished.status.status_code is not StatusCode.ERROR

    @pytest.mark.asyncio
    async def test_failed_run_marks_span(self, spans):
        engine = FakeEngine(default=Script(raises=ConnectionError("down")))
        await Agent(AgentConfig(name="helper", system_prompt="p"), engine).run("go")
        [finished] = spans.get_finished_spans()
        assert finished.status.status_code is StatusCode.ERROR
        assert finished.status.description == "down"

    @pytest.mark.asyncio
    async def test_strategy_span_wraps_agent_spans(self, spans):
        specs = [AgentSpec("a", "A."), AgentSpec("b", "B.")]
        await run_sequential_chain(specs, "go", engine=FakeEngine())
        names = [s.name for s in spans.get_finished_spans()]
        assert names == ["chorus.agent.run", "chorus.agent.run", "chorus.chain.sequential"]


class TestMetrics:
    def test_record_agent_run(self, reader):
        result = AgentResult(success=True, usage=TokenUsage(100, 20), total_cost_usd=0.25)
        record_agent_run("writer", result, 12.5)
        points = _points(reader)

        [run] = points["chorus.agent_runs"]
        assert run.value == 1
        assert dict(run.attributes) == {"agent": "writer", "outcome": "success"}
        tokens = {p.attributes["direction"]: p.value for p in points["chorus.tokens"]}
        assert tokens == {"input": 100, "output": 20}
        [cost] = points["chorus.cost"]
        assert cost.value == pytest.approx(0.25)
        [latency] = points["chorus.agent_latency"]
        assert latency.sum == pytest.approx(12.5)

    def test_failure_outcome_is_error(self, reader):
        record_agent_run("writer", AgentResult.failure("error_max_turns"), 1.0)
        [run] = _points(reader)["chorus.agent_runs"]
        assert run.attributes["outcome"] == "error_max_turns"
        assert "chorus.tokens" not in _points(reader)

    @pytest.mark.asyncio
    async def test_agent_run_records_metrics(self, reader):
        await Agent(AgentConfig(name="helper", system_prompt="p"), FakeEngine()).run("go")
        [run] = _points(reader)["chorus.agent_runs"]
        assert run.attributes["agent"] == "helper"


class TestObservabilityConfig:
    def test_default_config(self):
        config = ObservabilityConfig()
        assert not config.enabled
        assert config.exporter == "console"
        assert config.service_name == "chorus"

    def test_disabled_config_returns_false(self):
        assert configure_exporters(ObservabilityConfig(enabled=False)) is False

    def test_none_exporter_returns_false(self):
        assert configure_exporters(ObservabilityConfig(enabled=True, exporter="none")) is False

    def test_shutdown_noop(self):
        shutdown()
