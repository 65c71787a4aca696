"""Default query engine: a tool-using chat loop over a streaming provider."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable, Collection, Mapping
from pathlib import Path
from typing import Any

from chorus.engine.mcp import MCPToolbox
from chorus.engine.models import DEFAULT_MODEL, MODELS, resolve_model_id
from chorus.engine.session import EngineSession
from chorus.types.config import EngineOptions, PermissionMode
from chorus.types.events import (
    ERROR_MAX_TURNS,
    SUCCESS,
    AssistantTurn,
    ContentBlock,
    EngineEvent,
    ResultEvent,
    TextBlock,
    ToolUseBlock,
)
from chorus.types.providers import ChatMessage, ChatProvider
from chorus.types.tools import Tool, ToolContext, ToolKind, ToolOutput

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], ChatProvider]


def _mode_allows(mode: PermissionMode, kind: ToolKind) -> bool:
    """Whether a tool of *kind* may run unattended under *mode*."""
    match mode:
        case PermissionMode.BYPASS:
            return True
        case PermissionMode.ACCEPT_EDITS:
            return kind in (ToolKind.READ, ToolKind.EDIT)
        case PermissionMode.PLAN | PermissionMode.DEFAULT:
            return kind is ToolKind.READ
        case _:
            return False


def select_tools(
    toolbox: Mapping[str, Tool],
    options: EngineOptions,
    trusted: Collection[str] = (),
) -> tuple[dict[str, Tool], set[str]]:
    """Return the tools exposed to the model and the names approved to run.

    An allow-list both restricts exposure and pre-approves the listed tools,
    except in plan mode where only read-only tools ever run. Without an
    allow-list every tool not on the deny-list is exposed and the permission
    mode decides which of them run. Names in *trusted* (tools of explicitly
    configured MCP servers) run in every mode but plan.
    """
    mode = options.permission_mode
    if options.allowed_tools:
        allowed = set(options.allowed_tools)
        exposed = {name: tool for name, tool in toolbox.items() if name in allowed}
        if mode is PermissionMode.PLAN:
            approved = {
                name for name, tool in exposed.items()
                if tool.definition.kind is ToolKind.READ
            }
        else:
            approved = set(exposed)
        missing = allowed - set(toolbox)
        if missing:
            logger.warning("Allowed tools not in toolbox: %s", ", ".join(sorted(missing)))
        return exposed, approved

    denied = set(options.disallowed_tools)
    exposed = {name: tool for name, tool in toolbox.items() if name not in denied}
    approved = {
        name for name, tool in exposed.items()
        if _mode_allows(mode, tool.definition.kind)
        or (name in trusted and mode is not PermissionMode.PLAN)
    }
    return exposed, approved


class ProviderEngine:
    """Query engine that drives a :class:`ChatProvider` through a tool loop.

    Each submission opens (or resumes) a JSONL session, runs up to
    ``max_turns`` model turns, executes requested tools and emits one
    :class:`AssistantTurn` per model response followed by a single terminal
    :class:`ResultEvent`. Provider exceptions propagate unchanged.

    Args:
        provider: Fixed provider used for every submission (tests, proxies).
        provider_factory: Builds a provider for a model ID when *provider* is
            not given. Defaults to :class:`AnthropicProvider`.
        tools: Local toolbox (name -> tool), shared by all submissions.
        cwd: Working directory handed to tools (default: the process cwd at
            call time).
        sessions_dir: Where session transcripts are stored.
        model: Model used when the options do not name one.
        max_tokens: Max tokens per model response.
    """

    def __init__(
        self,
        provider: ChatProvider | None = None,
        *,
        provider_factory: ProviderFactory | None = None,
        tools: Mapping[str, Tool] | None = None,
        sessions_dir: str | Path | None = None,
        model: str | None = None,
        max_tokens: int = 16384,
        api_key: str | None = None,
        base_url: str | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self._provider = provider
        self._provider_factory = provider_factory or self._anthropic_factory(api_key, base_url)
        self._tools: dict[str, Tool] = dict(tools or {})
        self._sessions_dir = Path(sessions_dir or Path.home() / ".chorus" / "sessions")
        self._model = model or DEFAULT_MODEL
        self._max_tokens = max_tokens
        self._cwd = Path(cwd) if cwd is not None else None

    @staticmethod
    def _anthropic_factory(api_key: str | None, base_url: str | None) -> ProviderFactory:
        def factory(model_id: str) -> ChatProvider:
            from chorus.engine.anthropic import AnthropicProvider

            return AnthropicProvider(model_id, api_key=api_key, base_url=base_url)

        return factory

    @property
    def tools(self) -> dict[str, Tool]:
        return dict(self._tools)

    @property
    def sessions_dir(self) -> Path:
        return self._sessions_dir

    async def submit(self, prompt: str, options: EngineOptions) -> AsyncIterator[EngineEvent]:
        """Run one conversation turn sequence. Yields engine events."""
        model_id = resolve_model_id(options.model or self._model)
        provider = self._provider or self._provider_factory(model_id)
        model_info = MODELS.get(model_id)

        session = EngineSession(self._sessions_dir, options.resume)
        if options.resume and not session.resumed:
            logger.warning("Session %s not found; starting a new transcript", options.resume)

        async with MCPToolbox(options.mcp_servers) as mcp:
            exposed, approved = select_tools(
                {**self._tools, **mcp.tools}, options, trusted=mcp.tools.keys(),
            )
            tool_defs = [tool.definition for tool in exposed.values()]

            session.add_message(ChatMessage(role="user", content=prompt))
            messages = session.messages
            turns = 0
            input_tokens = 0
            output_tokens = 0
            total_cost = 0.0
            final_text = ""

            while turns < options.max_turns:
                turns += 1
                text = ""
                tool_uses: list[ToolUseBlock] = []
                current: dict[str, str] | None = None
                stop_reason = "end_turn"
                turn_in = turn_out = 0

                async for event in provider.chat_completion_stream(
                    messages=messages,
                    tools=tool_defs,
                    system=options.system_prompt or "",
                    max_tokens=self._max_tokens,
                ):
                    match event.type:
                        case "text_delta":
                            text += event.text or ""
                        case "tool_use_start":
                            current = {
                                "id": event.tool_use_id or "",
                                "name": event.tool_name or "",
                                "args": "",
                            }
                        case "tool_use_delta" if current is not None:
                            current["args"] += event.tool_args_json or ""
                        case "tool_use_end" if current is not None:
                            try:
                                args = json.loads(current["args"]) if current["args"] else {}
                            except json.JSONDecodeError:
                                args = {}
                            tool_uses.append(ToolUseBlock(current["id"], current["name"], args))
                            current = None
                        case "message_end":
                            stop_reason = event.stop_reason or "end_turn"
                            if event.usage:
                                turn_in = event.usage.get("input_tokens", 0)
                                turn_out = event.usage.get("output_tokens", 0)

                turn_cost = model_info.cost(turn_in, turn_out) if model_info else 0.0
                input_tokens += turn_in
                output_tokens += turn_out
                total_cost += turn_cost
                session.record_turn(turn_in, turn_out, turn_cost)

                blocks: list[ContentBlock] = []
                if text:
                    blocks.append(TextBlock(text))
                    final_text = text
                blocks.extend(tool_uses)
                if blocks:
                    assistant = ChatMessage(role="assistant", content=_to_content(blocks))
                    session.add_message(assistant)
                    messages.append(assistant)
                yield AssistantTurn(blocks=tuple(blocks))

                if stop_reason != "tool_use" or not tool_uses:
                    yield ResultEvent(
                        subtype=SUCCESS,
                        session_id=session.session_id,
                        num_turns=turns,
                        result=final_text,
                        input_tokens=input_tokens,
                        output_tokens=output_tokens,
                        total_cost_usd=total_cost,
                    )
                    return

                results: list[dict[str, Any]] = []
                for tu in tool_uses:
                    output = await self._run_tool(tu, exposed, approved, session, options)
                    block: dict[str, Any] = {
                        "type": "tool_result",
                        "tool_use_id": tu.id,
                        "content": output.content,
                    }
                    if output.is_error:
                        block["is_error"] = True
                    results.append(block)
                tool_msg = ChatMessage(role="user", content=results)
                session.add_message(tool_msg)
                messages.append(tool_msg)

            yield ResultEvent(
                subtype=ERROR_MAX_TURNS,
                session_id=session.session_id,
                num_turns=turns,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_cost_usd=total_cost,
                errors=(f"Reached maximum number of turns ({options.max_turns})",),
            )

    async def _run_tool(
        self,
        tu: ToolUseBlock,
        exposed: Mapping[str, Tool],
        approved: set[str],
        session: EngineSession,
        options: EngineOptions,
    ) -> ToolOutput:
        tool = exposed.get(tu.name)
        if tool is None:
            return ToolOutput(content=f"Unknown tool: {tu.name}", is_error=True)
        if tu.name not in approved:
            return ToolOutput(
                content=f"Permission denied: {tu.name} is not allowed "
                f"in {options.permission_mode.value} mode.",
                is_error=True,
            )
        ctx = ToolContext(
            session_id=session.session_id,
            permission_mode=options.permission_mode.value,
            cwd=self._cwd or Path.cwd(),
        )
        try:
            return await tool.execute(tu.input, ctx)
        except Exception as e:
            logger.warning("Tool %s raised %s", tu.name, type(e).__name__)
            return ToolOutput(content=f"Tool error: {type(e).__name__}: {e}", is_error=True)


def _to_content(blocks: list[ContentBlock]) -> list[dict[str, Any]]:
    content: list[dict[str, Any]] = []
    for block in blocks:
        match block:
            case TextBlock(text=text):
                content.append({"type": "text", "text": text})
            case ToolUseBlock(id=tool_id, name=name, input=args):
                content.append({"type": "tool_use", "id": tool_id, "name": name, "input": args})
    return content
