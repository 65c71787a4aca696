"""Built-in tools offered by the default engine."""

from __future__ import annotations

from chorus.tools.base import BaseTool
from chorus.tools.files import EditTool, ReadTool, WriteTool
from chorus.tools.search import GlobTool, GrepTool
from chorus.tools.shell import BashTool
from chorus.tools.web import WebFetchTool


def builtin_tools() -> dict[str, BaseTool]:
    """Fresh instances of every built-in tool, keyed by tool name."""
    tools: list[BaseTool] = [
        ReadTool(),
        WriteTool(),
        EditTool(),
        GlobTool(),
        GrepTool(),
        BashTool(),
        WebFetchTool(),
    ]
    return {tool.name: tool for tool in tools}


__all__ = [
    "BaseTool",
    "BashTool",
    "EditTool",
    "GlobTool",
    "GrepTool",
    "ReadTool",
    "WebFetchTool",
    "WriteTool",
    "builtin_tools",
]
