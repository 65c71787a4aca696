"""Shared base for the built-in tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from chorus.types.tools import ToolContext, ToolDef, ToolOutput


class BaseTool(ABC):
    """Base class for built-in tools. Failures are returned, never raised."""

    @property
    @abstractmethod
    def definition(self) -> ToolDef:
        ...

    @abstractmethod
    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        ...

    @property
    def name(self) -> str:
        return self.definition.name

    def _error(self, msg: str) -> ToolOutput:
        return ToolOutput(content=msg, is_error=True)

    def _ok(self, content: str) -> ToolOutput:
        return ToolOutput(content=content)


def resolve_path(raw: str, ctx: ToolContext) -> Path:
    """Interpret *raw* relative to the context's working directory."""
    path = Path(raw).expanduser()
    return path if path.is_absolute() else ctx.cwd / path
