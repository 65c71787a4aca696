"""Tests for chorus.types."""

from __future__ import annotations

import logging

import pytest

from chorus.types import (
    AgentConfig,
    AgentResult,
    AssistantTurn,
    EngineOptions,
    HandoffRecord,
    MCPServerConfig,
    PermissionMode,
    ResultEvent,
    TextBlock,
    TokenUsage,
    ToolDef,
    ToolKind,
    ToolParam,
    ToolUseBlock,
)
from chorus.types.results import NO_RESULT_ERROR


class TestAgentConfig:
    def test_defaults(self):
        config = AgentConfig(name="writer", system_prompt="You write.")
        assert config.model is None
        assert config.max_turns == 10
        assert config.permission_mode is PermissionMode.DEFAULT
        assert config.allowed_tools == ()
        assert config.disallowed_tools == ()
        assert dict(config.mcp_servers) == {}

    def test_is_frozen(self):
        config = AgentConfig(name="a", system_prompt="p")
        with pytest.raises(AttributeError):
            config.name = "b"  # type: ignore[misc]

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="name"):
            AgentConfig(name="", system_prompt="p")

    @pytest.mark.parametrize("turns", [0, -3])
    def test_non_positive_max_turns_rejected(self, turns):
        with pytest.raises(ValueError, match="max_turns"):
            AgentConfig(name="a", system_prompt="p", max_turns=turns)

    def test_permission_mode_string_coerced(self):
        config = AgentConfig(name="a", system_prompt="p", permission_mode="plan-only")
        assert config.permission_mode is PermissionMode.PLAN

    def test_unknown_permission_mode_rejected(self):
        with pytest.raises(ValueError):
            AgentConfig(name="a", system_prompt="p", permission_mode="yolo")

    def test_tool_lists_become_tuples(self):
        config = AgentConfig(name="a", system_prompt="p", allowed_tools=["Read", "Grep"])
        assert config.allowed_tools == ("Read", "Grep")

    def test_mcp_servers_coerced_from_dicts(self):
        config = AgentConfig(
            name="a",
            system_prompt="p",
            mcp_servers={"fs": {"command": "npx", "args": ["server-fs", "/tmp"]}},
        )
        server = config.mcp_servers["fs"]
        assert isinstance(server, MCPServerConfig)
        assert server.command == "npx"
        assert server.args == ("server-fs", "/tmp")

    def test_allow_list_wins_over_deny_list(self, caplog):
        with caplog.at_level(logging.WARNING, logger="chorus.types.config"):
            config = AgentConfig(
                name="a",
                system_prompt="p",
                allowed_tools=("Read",),
                disallowed_tools=("Bash",),
            )
        assert config.effective_tools() == (("Read",), ())
        assert "allow-list takes precedence" in caplog.text

    def test_deny_list_alone_is_kept(self):
        config = AgentConfig(name="a", system_prompt="p", disallowed_tools=("Bash",))
        assert config.effective_tools() == ((), ("Bash",))


class TestEngineOptions:
    def test_for_agent_copies_config(self):
        config = AgentConfig(
            name="a",
            system_prompt="Be brief.",
            model="haiku",
            max_turns=3,
            permission_mode=PermissionMode.BYPASS,
            allowed_tools=("Read",),
            disallowed_tools=("Bash",),
        )
        options = EngineOptions.for_agent(config, resume="s-1")
        assert options.system_prompt == "Be brief."
        assert options.model == "haiku"
        assert options.max_turns == 3
        assert options.permission_mode is PermissionMode.BYPASS
        assert options.allowed_tools == ("Read",)
        assert options.disallowed_tools == ()
        assert options.resume == "s-1"

    def test_for_agent_without_session(self):
        options = EngineOptions.for_agent(AgentConfig(name="a", system_prompt="p"))
        assert options.resume is None


class TestEvents:
    def test_assistant_turn_text_joins_text_blocks(self):
        turn = AssistantTurn(blocks=(
            TextBlock("Hello "),
            ToolUseBlock("tu1", "Read", {"path": "x"}),
            TextBlock("world"),
        ))
        assert turn.text == "Hello world"

    def test_result_event_success(self):
        assert ResultEvent(subtype="success", session_id="s").is_success
        assert not ResultEvent(subtype="error_max_turns", session_id="s").is_success


class TestAgentResult:
    def test_from_success_event(self):
        event = ResultEvent(
            subtype="success",
            session_id="s-1",
            num_turns=2,
            result="done",
            input_tokens=100,
            output_tokens=40,
            total_cost_usd=0.02,
        )
        result = AgentResult.from_event(event)
        assert result.success
        assert result.result == "done"
        assert result.session_id == "s-1"
        assert result.num_turns == 2
        assert result.usage == TokenUsage(100, 40)
        assert result.usage.total == 140
        assert result.total_cost_usd == 0.02
        assert result.error is None
        assert result.errors == ()

    def test_from_failure_event(self):
        event = ResultEvent(
            subtype="error_max_turns",
            session_id="s-2",
            num_turns=10,
            errors=["Reached maximum number of turns (10)"],
        )
        result = AgentResult.from_event(event)
        assert not result.success
        assert result.error == "error_max_turns"
        assert result.errors == ("Reached maximum number of turns (10)",)
        assert result.session_id == "s-2"
        assert result.result is None
        assert result.usage is None

    def test_failure_builder(self):
        result = AgentResult.failure(NO_RESULT_ERROR)
        assert not result.success
        assert result.error == "No result received"
        assert result.session_id is None

    def test_to_dict(self):
        result = AgentResult(
            success=True,
            result="hi",
            session_id="s",
            num_turns=1,
            usage=TokenUsage(3, 4),
            total_cost_usd=0.5,
        )
        assert result.to_dict() == {
            "success": True,
            "result": "hi",
            "session_id": "s",
            "num_turns": 1,
            "usage": {"input_tokens": 3, "output_tokens": 4},
            "total_cost_usd": 0.5,
            "error": None,
            "errors": [],
        }

    def test_failure_to_dict_has_no_usage(self):
        data = AgentResult.failure("boom", errors=("a", "b")).to_dict()
        assert data["usage"] is None
        assert data["errors"] == ["a", "b"]


class TestHandoffRecord:
    def test_data_defaults_to_none(self):
        record = HandoffRecord("a", "b", "ctx")
        assert record.data is None


class TestToolDef:
    def test_input_schema(self):
        tool = ToolDef(
            name="Search",
            description="Search files",
            parameters=(
                ToolParam("pattern", "string", "Regex"),
                ToolParam("paths", "array", "Where", required=False),
            ),
            kind=ToolKind.READ,
        )
        schema = tool.input_schema()
        assert schema["required"] == ["pattern"]
        assert schema["properties"]["paths"]["items"] == {"type": "string"}
