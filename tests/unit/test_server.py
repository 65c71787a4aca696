"""Tests for chorus.server -- the FastAPI transport."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from chorus.server import AgentRequest, QuotaEntitlements, UnlimitedEntitlements, build_agent, create_app
from tests.conftest import FakeEngine, Script

USER = {"X-User-Id": "user-1"}


def _sse(body: str) -> list[str]:
    return [chunk[len("data: "):] for chunk in body.split("\n\n") if chunk]


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine(default=Script(text="Hello there", tools=("WebFetch",)))


@pytest.fixture
def entitlements() -> UnlimitedEntitlements:
    return UnlimitedEntitlements()


@pytest.fixture
def client(engine, entitlements) -> TestClient:
    return TestClient(create_app(engine, entitlements=entitlements))


class TestRunEndpoint:
    def test_success(self, client, engine, entitlements):
        resp = client.post("/api/agent", json={"prompt": "hi"}, headers=USER)
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["result"] == "Hello there"
        assert data["session_id"] == "sess-1"
        assert data["usage"] == {"input_tokens": 10, "output_tokens": 5}
        assert entitlements.usage["user-1"] == 1

        _, options = engine.submissions[0]
        assert options.system_prompt == "You are a helpful AI assistant."
        assert options.max_turns == 10
        assert options.allowed_tools == ()

    def test_missing_user(self, client, engine):
        resp = client.post("/api/agent", json={"prompt": "hi"})
        assert resp.status_code == 401
        assert engine.calls == 0

    def test_empty_prompt(self, client, engine):
        resp = client.post("/api/agent", json={"prompt": "  "}, headers=USER)
        assert resp.status_code == 400
        assert engine.calls == 0

    def test_quota_exhausted(self, engine):
        quota = QuotaEntitlements(limit=1)
        client = TestClient(create_app(engine, entitlements=quota))
        assert client.post("/api/agent", json={"prompt": "a"}, headers=USER).status_code == 200
        resp = client.post("/api/agent", json={"prompt": "b"}, headers=USER)
        assert resp.status_code == 403
        assert engine.calls == 1

    def test_pro_users_unlimited(self, engine):
        quota = QuotaEntitlements(limit=0, pro_users=frozenset({"user-1"}))
        client = TestClient(create_app(engine, entitlements=quota))
        assert client.post("/api/agent", json={"prompt": "a"}, headers=USER).status_code == 200
        assert quota.usage["user-1"] == 0

    def test_agent_failure_is_still_200(self, entitlements):
        engine = FakeEngine(default=Script(raises=ConnectionError("upstream down")))
        client = TestClient(create_app(engine, entitlements=entitlements))
        resp = client.post("/api/agent", json={"prompt": "hi"}, headers=USER)
        assert resp.status_code == 200
        assert resp.json()["success"] is False
        assert resp.json()["error"] == "upstream down"

    def test_agent_type_preset(self, client, engine):
        client.post(
            "/api/agent",
            json={"prompt": "hi", "agent_type": "researcher", "max_turns": 3},
            headers=USER,
        )
        _, options = engine.submissions[0]
        assert options.system_prompt.startswith("You are a research assistant.")
        assert options.allowed_tools == ("Read", "Glob", "Grep", "WebFetch")
        assert options.max_turns == 3

    def test_invalid_max_turns(self, client):
        resp = client.post("/api/agent", json={"prompt": "hi", "max_turns": 0}, headers=USER)
        assert resp.status_code == 422

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"


class TestStreamEndpoint:
    def test_event_stream(self, client, entitlements):
        resp = client.post("/api/agent/stream", json={"prompt": "hi"}, headers=USER)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")

        chunks = _sse(resp.text)
        assert chunks[-1] == "[DONE]"
        events = [json.loads(c) for c in chunks[:-1]]
        assert events == [
            {"type": "tool_use", "tool": "WebFetch"},
            {"type": "text", "text": "Hello there"},
            {"type": "result", "success": True, "session_id": "sess-1", "num_turns": 1},
        ]
        assert entitlements.usage["user-1"] == 1

    def test_stream_reports_failed_run(self, entitlements):
        engine = FakeEngine(default=Script(raises=ConnectionError("down")))
        client = TestClient(create_app(engine, entitlements=entitlements))
        resp = client.post("/api/agent/stream", json={"prompt": "hi"}, headers=USER)
        events = _sse(resp.text)
        assert json.loads(events[0]) == {
            "type": "result", "success": False, "session_id": None, "num_turns": None,
        }
        assert events[-1] == "[DONE]"

    def test_stream_requires_user(self, client):
        resp = client.post("/api/agent/stream", json={"prompt": "hi"})
        assert resp.status_code == 401

    def test_unexpected_error_emits_error_event(self, entitlements):
        class Exploding(UnlimitedEntitlements):
            async def record_usage(self, user_id: str) -> None:
                raise RuntimeError("billing offline")

        client = TestClient(create_app(FakeEngine(), entitlements=Exploding()))
        resp = client.post("/api/agent/stream", json={"prompt": "hi"}, headers=USER)
        events = _sse(resp.text)
        assert json.loads(events[-1]) == {"type": "error", "message": "Stream error occurred"}


class TestBuildAgent:
    def test_explicit_tools_override_preset(self, engine):
        agent = build_agent(
            AgentRequest(prompt="x", agent_type="developer", tools=["read_only"]), engine, None,
        )
        assert agent.name == "developer-agent"
        assert agent.config.allowed_tools == ("Read", "Glob", "Grep")

    def test_unknown_type_falls_back_to_default(self, engine):
        agent = build_agent(
            AgentRequest(prompt="x", agent_type="pirate", system_prompt="Arr."), engine, None,
        )
        assert agent.name == "pirate-agent"
        assert agent.config.system_prompt == "Arr."

    def test_custom_system_prompt_ignored_for_typed_agent(self, engine):
        agent = build_agent(
            AgentRequest(prompt="x", agent_type="writer", system_prompt="ignored"), engine, None,
        )
        assert agent.config.system_prompt.startswith("You are a content writer.")
