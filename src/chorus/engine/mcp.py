"""MCP server connections exposing remote tools to the default engine."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import AsyncExitStack
from typing import Any

from chorus.types.config import MCPServerConfig
from chorus.types.tools import ToolContext, ToolDef, ToolKind, ToolOutput, ToolParam

logger = logging.getLogger(__name__)


def mcp_tool_name(server: str, tool: str) -> str:
    """Qualified name under which an MCP tool is exposed to the model."""
    return f"mcp__{server}__{tool}"


class MCPTool:
    """A tool living on an MCP server, callable through the toolbox."""

    def __init__(self, session: Any, server: str, name: str, definition: ToolDef):
        self._session = session
        self._server = server
        self._name = name
        self._definition = definition

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        try:
            result = await self._session.call_tool(self._name, args)
        except Exception as exc:
            logger.warning("MCP tool %s on '%s' failed: %s", self._name, self._server, exc)
            return ToolOutput(content=f"MCP tool error: {type(exc).__name__}: {exc}", is_error=True)

        parts = []
        for item in result.content:
            text = getattr(item, "text", None)
            parts.append(text if text is not None else str(item))
        return ToolOutput(
            content="\n".join(parts) if parts else "No output",
            is_error=bool(getattr(result, "isError", False)),
        )


def _to_tool_def(server: str, tool: Any) -> ToolDef:
    schema = tool.inputSchema or {}
    required = set(schema.get("required", []))
    params = tuple(
        ToolParam(
            name=pname,
            type=pschema.get("type", "string"),
            description=pschema.get("description", ""),
            required=pname in required,
        )
        for pname, pschema in schema.get("properties", {}).items()
    )
    return ToolDef(
        name=mcp_tool_name(server, tool.name),
        description=tool.description or f"MCP tool from {server}",
        parameters=params,
        kind=ToolKind.EXECUTE,
    )


class MCPToolbox:
    """Connects a set of stdio MCP servers for the lifetime of one submission.

    Use as an async context manager; every connection is closed on exit.
    """

    def __init__(self, servers: Mapping[str, MCPServerConfig]):
        self._servers = dict(servers)
        self._stack = AsyncExitStack()
        self._tools: dict[str, MCPTool] = {}

    async def __aenter__(self) -> MCPToolbox:
        if self._servers:
            from mcp import ClientSession, StdioServerParameters
            from mcp.client.stdio import stdio_client

            for name, config in self._servers.items():
                params = StdioServerParameters(
                    command=config.command,
                    args=list(config.args),
                    env=dict(config.env) or None,
                )
                try:
                    read, write = await self._stack.enter_async_context(stdio_client(params))
                    session = await self._stack.enter_async_context(ClientSession(read, write))
                    await session.initialize()
                    listing = await session.list_tools()
                except Exception as exc:
                    logger.error("Failed to connect MCP server '%s': %s", name, exc)
                    continue
                for tool in listing.tools:
                    definition = _to_tool_def(name, tool)
                    self._tools[definition.name] = MCPTool(session, name, tool.name, definition)
                logger.info("MCP server '%s' connected with %d tools", name, len(listing.tools))
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._tools.clear()
        await self._stack.aclose()

    @property
    def tools(self) -> dict[str, MCPTool]:
        return dict(self._tools)
