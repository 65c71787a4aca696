"""Agents, agent factories and presets."""

from chorus.agents.agent import Agent, AgentStream
from chorus.agents.factory import create_agent, create_mcp_agent, create_tool_agent, run_query
from chorus.agents.presets import (
    AGENT_TYPES,
    BUILTIN_TOOLS,
    TOOL_PRESETS,
    AgentType,
    get_agent_type,
    resolve_tools,
)

__all__ = [
    "AGENT_TYPES",
    "Agent",
    "AgentStream",
    "AgentType",
    "BUILTIN_TOOLS",
    "TOOL_PRESETS",
    "create_agent",
    "create_mcp_agent",
    "create_tool_agent",
    "get_agent_type",
    "resolve_tools",
    "run_query",
]
