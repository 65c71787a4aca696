"""FastAPI transport: run an agent per request, or stream it as SSE."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from chorus.agents.agent import Agent
from chorus.agents.factory import create_agent, create_tool_agent
from chorus.agents.presets import AGENT_TYPES, DEFAULT_SYSTEM_PROMPT, resolve_tools
from chorus.engine.base import QueryEngine
from chorus.observability.exporters import ObservabilityConfig, configure_exporters, shutdown
from chorus.server.entitlements import Entitlements, UnlimitedEntitlements
from chorus.types.config import DEFAULT_MAX_TURNS
from chorus.types.events import AssistantTurn, TextBlock, ToolUseBlock

logger = logging.getLogger(__name__)

DONE_SENTINEL = "data: [DONE]\n\n"


# ── Request schema ────────────────────────────────────────────

class AgentRequest(BaseModel):
    prompt: str = ""
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    agent_type: str = "default"
    tools: Optional[list[str]] = None
    max_turns: int = Field(default=DEFAULT_MAX_TURNS, ge=1)


# ── Helpers ───────────────────────────────────────────────────

def build_agent(req: AgentRequest, engine: QueryEngine | None, timeout: float | None) -> Agent:
    """Build the ad hoc agent for a request.

    A known ``agent_type`` other than ``default`` supplies its own system
    prompt; ``tools`` (tool or preset names) override the type's preset.
    """
    agent_type = AGENT_TYPES.get(req.agent_type, AGENT_TYPES["default"])
    system_prompt = req.system_prompt if agent_type.name == "default" else agent_type.system_prompt
    tools = resolve_tools(req.tools) if req.tools is not None else agent_type.tools
    name = f"{req.agent_type}-agent"
    if tools:
        return create_tool_agent(
            name, system_prompt, tools, max_turns=req.max_turns, engine=engine, timeout=timeout,
        )
    return create_agent(name, system_prompt, max_turns=req.max_turns, engine=engine, timeout=timeout)


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def _authorize(request: Request, req: AgentRequest, user_id: str | None) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not req.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")
    entitlements: Entitlements = request.app.state.entitlements
    if not await entitlements.is_allowed(user_id):
        raise HTTPException(status_code=403, detail="Usage limit reached. Please upgrade to pro.")
    return user_id


async def _event_stream(
    agent: Agent, prompt: str, user_id: str, entitlements: Entitlements,
) -> AsyncIterator[str]:
    try:
        stream = agent.stream(prompt)
        async for event in stream:
            match event:
                case AssistantTurn(blocks=blocks):
                    for block in blocks:
                        match block:
                            case TextBlock(text=text):
                                yield _sse({"type": "text", "text": text})
                            case ToolUseBlock(name=name):
                                yield _sse({"type": "tool_use", "tool": name})
        result = stream.result
        yield _sse({
            "type": "result",
            "success": result.success,
            "session_id": result.session_id,
            "num_turns": result.num_turns,
        })
        await entitlements.record_usage(user_id)
        yield DONE_SENTINEL
    except Exception:
        logger.exception("Agent stream failed for %s", agent.name)
        yield _sse({"type": "error", "message": "Stream error occurred"})


# ── App factory ───────────────────────────────────────────────

def create_app(
    engine: QueryEngine | None = None,
    *,
    entitlements: Entitlements | None = None,
    timeout: float | None = None,
    observability: ObservabilityConfig | None = None,
) -> FastAPI:
    """Create the HTTP app.

    Args:
        engine: Engine every request runs on; the process default when omitted.
        entitlements: Quota collaborator; unlimited when omitted.
        timeout: Per-request agent deadline in seconds.
        observability: Exporters installed for the app's lifetime.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if observability is not None:
            configure_exporters(observability)
        logger.info("Chorus API ready")
        yield
        shutdown()

    app = FastAPI(title="Chorus", description="Multi-agent orchestration API", lifespan=lifespan)
    app.state.engine = engine
    app.state.entitlements = entitlements or UnlimitedEntitlements()
    app.state.timeout = timeout

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": "chorus"}

    @app.post("/api/agent")
    async def run_agent(
        req: AgentRequest,
        request: Request,
        x_user_id: Optional[str] = Header(default=None),
    ):
        user_id = await _authorize(request, req, x_user_id)
        agent = build_agent(req, request.app.state.engine, request.app.state.timeout)
        result = await agent.run(req.prompt)
        await request.app.state.entitlements.record_usage(user_id)
        return result.to_dict()

    @app.post("/api/agent/stream")
    async def stream_agent(
        req: AgentRequest,
        request: Request,
        x_user_id: Optional[str] = Header(default=None),
    ):
        user_id = await _authorize(request, req, x_user_id)
        agent = build_agent(req, request.app.state.engine, request.app.state.timeout)
        return StreamingResponse(
            _event_stream(agent, req.prompt, user_id, request.app.state.entitlements),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return app
