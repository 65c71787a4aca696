"""Convenience constructors for agents."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from chorus.agents.agent import Agent
from chorus.engine.base import QueryEngine
from chorus.types.config import AgentConfig, MCPServerConfig
from chorus.types.results import AgentResult

ONE_SHOT_SYSTEM_PROMPT = "You are a helpful assistant."


def create_agent(
    name: str,
    system_prompt: str,
    *,
    engine: QueryEngine | None = None,
    timeout: float | None = None,
    **options: Any,
) -> Agent:
    """Create an agent. ``options`` are any further :class:`AgentConfig` fields."""
    config = AgentConfig(name=name, system_prompt=system_prompt, **options)
    return Agent(config, engine, timeout=timeout)


def create_tool_agent(
    name: str,
    system_prompt: str,
    allowed_tools: Iterable[str],
    **options: Any,
) -> Agent:
    """Create an agent restricted to ``allowed_tools``."""
    return create_agent(name, system_prompt, allowed_tools=tuple(allowed_tools), **options)


def create_mcp_agent(
    name: str,
    system_prompt: str,
    mcp_servers: Mapping[str, MCPServerConfig | Mapping[str, Any]],
    **options: Any,
) -> Agent:
    """Create an agent with MCP servers attached.

    Server entries may be :class:`MCPServerConfig` or plain dicts of the
    ``{"command": ..., "args": [...], "env": {...}}`` shape. Tools from these
    servers are approved in every permission mode except plan.
    """
    return create_agent(name, system_prompt, mcp_servers=mcp_servers, **options)


async def run_query(
    prompt: str,
    system_prompt: str | None = None,
    **options: Any,
) -> AgentResult:
    """Run a single prompt on a throwaway agent."""
    agent = create_agent("one-shot", system_prompt or ONE_SHOT_SYSTEM_PROMPT, **options)
    return await agent.run(prompt)
