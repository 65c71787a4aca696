"""Tests for chorus.engine.anthropic -- SDK stream translation."""

from __future__ import annotations

from types import SimpleNamespace as NS
from typing import Any

import pytest

from chorus.engine.anthropic import AnthropicProvider
from chorus.types import ChatMessage, ToolDef, ToolKind, ToolParam


class _FakeStream:
    def __init__(self, events: list[Any], final: Any):
        self._events = events
        self._final = final

    async def __aenter__(self) -> _FakeStream:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for event in self._events:
            yield event

    async def get_final_message(self) -> Any:
        return self._final


class _FakeMessages:
    def __init__(self, stream: _FakeStream):
        self._stream = stream
        self.requests: list[dict[str, Any]] = []

    def stream(self, **request: Any) -> _FakeStream:
        self.requests.append(request)
        return self._stream


def _provider(events: list[Any], stop_reason: str = "end_turn") -> tuple[AnthropicProvider, _FakeMessages]:
    provider = AnthropicProvider("claude-haiku-4-5-20251001", api_key="sk-test")
    final = NS(stop_reason=stop_reason, usage=NS(input_tokens=12, output_tokens=34))
    messages = _FakeMessages(_FakeStream(events, final))
    provider._client = NS(messages=messages)
    return provider, messages


async def _collect(provider: AnthropicProvider, **kw: Any) -> list[Any]:
    kw.setdefault("messages", [ChatMessage(role="user", content="hi")])
    kw.setdefault("tools", [])
    kw.setdefault("system", "")
    kw.setdefault("max_tokens", 1024)
    return [e async for e in provider.chat_completion_stream(**kw)]


class TestAnthropicProvider:
    def test_model_id(self):
        provider, _ = _provider([])
        assert provider.model_id == "claude-haiku-4-5-20251001"

    @pytest.mark.asyncio
    async def test_text_stream(self):
        provider, _ = _provider([
            NS(type="content_block_start", content_block=NS(type="text")),
            NS(type="content_block_delta", delta=NS(type="text_delta", text="Hel")),
            NS(type="content_block_delta", delta=NS(type="text_delta", text="lo")),
            NS(type="content_block_stop"),
            NS(type="message_stop"),
        ])
        events = await _collect(provider)
        assert [e.type for e in events] == ["text_delta", "text_delta", "message_end"]
        assert "".join(e.text for e in events[:2]) == "Hello"
        assert events[-1].stop_reason == "end_turn"
        assert events[-1].usage == {"input_tokens": 12, "output_tokens": 34}

    @pytest.mark.asyncio
    async def test_tool_use_stream(self):
        provider, _ = _provider([
            NS(type="content_block_start", content_block=NS(type="tool_use", id="tu1", name="Read")),
            NS(type="content_block_delta", delta=NS(type="input_json_delta", partial_json='{"pa')),
            NS(type="content_block_delta", delta=NS(type="input_json_delta", partial_json='th": "x"}')),
            NS(type="content_block_stop"),
            NS(type="message_stop"),
        ], stop_reason="tool_use")
        events = await _collect(provider)
        assert [e.type for e in events] == [
            "tool_use_start", "tool_use_delta", "tool_use_delta", "tool_use_end", "message_end",
        ]
        assert events[0].tool_use_id == "tu1"
        assert events[0].tool_name == "Read"
        assert events[-1].stop_reason == "tool_use"

    @pytest.mark.asyncio
    async def test_request_shape(self):
        provider, messages = _provider([NS(type="message_stop")])
        tool = ToolDef(
            name="Read",
            description="Read a file",
            parameters=(ToolParam("path", "string", "File path"),),
            kind=ToolKind.READ,
        )
        await _collect(provider, tools=[tool], system="Be brief.", max_tokens=99)

        [request] = messages.requests
        assert request["model"] == "claude-haiku-4-5-20251001"
        assert request["max_tokens"] == 99
        assert request["system"] == "Be brief."
        assert request["messages"] == [{"role": "user", "content": "hi"}]
        assert request["tools"][0]["name"] == "Read"
        assert request["tools"][0]["input_schema"]["required"] == ["path"]

    @pytest.mark.asyncio
    async def test_empty_system_and_tools_omitted(self):
        provider, messages = _provider([NS(type="message_stop")])
        await _collect(provider)
        assert "system" not in messages.requests[0]
        assert "tools" not in messages.requests[0]
