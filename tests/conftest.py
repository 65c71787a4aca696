"""Test fixtures: a scripted FakeEngine and a MockProvider for the default engine."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from chorus.engine.base import set_default_engine
from chorus.types.config import EngineOptions
from chorus.types.events import (
    ERROR_DURING_EXECUTION,
    SUCCESS,
    AssistantTurn,
    ResultEvent,
    TextBlock,
    ToolUseBlock,
)
from chorus.types.providers import ChatMessage, StreamEvent
from chorus.types.tools import ToolContext, ToolDef, ToolKind, ToolOutput


# ---------------------------------------------------------------------------
# FakeEngine -- scripted QueryEngine for the orchestration layer
# ---------------------------------------------------------------------------


@dataclass
class Script:
    """What FakeEngine does for one submission.

    ``text`` may be a callable receiving the prompt, handy for echo agents.
    """

    text: str | Callable[[str], str] = "ok"
    subtype: str = SUCCESS
    errors: tuple[str, ...] = ()
    delay: float = 0.0
    raises: BaseException | None = None
    no_result: bool = False
    tools: tuple[str, ...] = ()
    input_tokens: int = 10
    output_tokens: int = 5


class FakeEngine:
    """A deterministic QueryEngine.

    Scripts are looked up by the submission's system prompt; a list of
    scripts is consumed one per submission (the last one repeats).

    Usage:
        engine = FakeEngine({
            "You write.": Script(text="draft"),
            "You fail.": Script(subtype=ERROR_DURING_EXECUTION, errors=("boom",)),
        })
    """

    def __init__(
        self,
        scripts: dict[str, Script | list[Script]] | None = None,
        default: Script | None = None,
    ) -> None:
        self._scripts = {
            key: list(value) if isinstance(value, list) else [value]
            for key, value in (scripts or {}).items()
        }
        self._default = default or Script()
        self.submissions: list[tuple[str, EngineOptions]] = []
        self.active = 0
        self.max_active = 0
        self._sessions = 0

    def _next(self, system_prompt: str | None) -> Script:
        queue = self._scripts.get(system_prompt or "")
        if not queue:
            return self._default
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def prompts_for(self, system_prompt: str) -> list[str]:
        return [p for p, opts in self.submissions if opts.system_prompt == system_prompt]

    @property
    def calls(self) -> int:
        return len(self.submissions)

    async def submit(self, prompt: str, options: EngineOptions) -> AsyncIterator[Any]:
        self.submissions.append((prompt, options))
        script = self._next(options.system_prompt)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if script.delay:
                await asyncio.sleep(script.delay)
            if script.raises is not None:
                raise script.raises
        finally:
            self.active -= 1

        if options.resume:
            session_id = options.resume
        else:
            self._sessions += 1
            session_id = f"sess-{self._sessions}"

        text = script.text(prompt) if callable(script.text) else script.text
        blocks: list[Any] = [ToolUseBlock(f"tu{i}", name, {}) for i, name in enumerate(script.tools)]
        blocks.append(TextBlock(text))
        yield AssistantTurn(blocks=tuple(blocks))
        if script.no_result:
            return
        yield ResultEvent(
            subtype=script.subtype,
            session_id=session_id,
            num_turns=1,
            result=text if script.subtype == SUCCESS else None,
            input_tokens=script.input_tokens,
            output_tokens=script.output_tokens,
            total_cost_usd=0.001,
            errors=script.errors,
        )


# ---------------------------------------------------------------------------
# MockProvider -- scripted ChatProvider for ProviderEngine
# ---------------------------------------------------------------------------


@dataclass
class MockTurn:
    """A scripted model response for MockProvider."""

    text: str = ""
    tool_uses: list[dict[str, Any]] = field(default_factory=list)
    # Each tool_use: {"id": "tu1", "name": "Read", "args": {"path": "foo.py"}}


class MockProvider:
    """A deterministic chat provider.

    Records the messages and tool definitions it was called with so tests can
    check what the model "saw".
    """

    def __init__(self, turns: list[MockTurn], model: str = "mock-model"):
        self._turns = list(turns)
        self._turn_index = 0
        self._model = model
        self.calls: list[dict[str, Any]] = []

    @property
    def model_id(self) -> str:
        return self._model

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        tools: list[ToolDef],
        system: str,
        max_tokens: int,
    ) -> AsyncIterator[StreamEvent]:
        self.calls.append({
            "messages": list(messages),
            "tools": [t.name for t in tools],
            "system": system,
        })
        if self._turn_index >= len(self._turns):
            yield StreamEvent(
                type="message_end", stop_reason="end_turn",
                usage={"input_tokens": 10, "output_tokens": 5},
            )
            return

        turn = self._turns[self._turn_index]
        self._turn_index += 1

        if turn.text:
            yield StreamEvent(type="text_delta", text=turn.text)

        for tu in turn.tool_uses:
            yield StreamEvent(type="tool_use_start", tool_use_id=tu["id"], tool_name=tu["name"])
            yield StreamEvent(type="tool_use_delta", tool_args_json=json.dumps(tu.get("args", {})))
            yield StreamEvent(type="tool_use_end")

        yield StreamEvent(
            type="message_end",
            stop_reason="tool_use" if turn.tool_uses else "end_turn",
            usage={"input_tokens": 100, "output_tokens": 50},
        )


class FailingMockProvider(MockProvider):
    """Raises ConnectionError on every call."""

    async def chat_completion_stream(self, messages, tools, system, max_tokens) -> Any:
        raise ConnectionError("Simulated provider outage")
        yield  # pragma: no cover


class EchoTool:
    """A tool that returns its ``text`` argument."""

    def __init__(self, name: str = "Echo", kind: ToolKind = ToolKind.READ) -> None:
        self._definition = ToolDef(name=name, description="Echo text back.", kind=kind)
        self.calls: list[dict[str, Any]] = []

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        self.calls.append(args)
        return ToolOutput(content=str(args.get("text", "")))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from the user's config, sessions and default engine."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for var in ("CHORUS_MODEL", "CHORUS_MAX_TOKENS", "CHORUS_TIMEOUT", "CHORUS_SESSIONS_DIR"):
        monkeypatch.delenv(var, raising=False)
    set_default_engine(None)
    yield tmp_path
    set_default_engine(None)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider(turns=[MockTurn(text="I can help with that.")])
