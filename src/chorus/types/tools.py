"""Tool definition types used by the default engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


class ToolKind(Enum):
    """How much a tool can change the world; drives permission checks."""

    READ = "read"
    EDIT = "edit"
    EXECUTE = "execute"


@dataclass(frozen=True, slots=True)
class ToolParam:
    """A parameter for a tool."""

    name: str
    type: str  # "string", "integer", "boolean", "array", "object"
    description: str = ""
    required: bool = True
    enum: tuple[str, ...] | None = None
    items: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ToolDef:
    """Definition of a tool exposed to the model."""

    name: str
    description: str
    parameters: tuple[ToolParam, ...] = ()
    kind: ToolKind = ToolKind.EXECUTE

    def input_schema(self) -> dict[str, Any]:
        """JSON Schema ``object`` describing the tool's arguments."""
        properties: dict[str, Any] = {}
        required: list[str] = []
        for param in self.parameters:
            prop: dict[str, Any] = {"type": param.type, "description": param.description}
            if param.enum is not None:
                prop["enum"] = list(param.enum)
            if param.type == "array":
                prop["items"] = param.items if param.items is not None else {"type": "string"}
            properties[param.name] = prop
            if param.required:
                required.append(param.name)
        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema


@dataclass(slots=True)
class ToolOutput:
    """Data returned from tool execution."""

    content: str
    is_error: bool = False


@dataclass(slots=True)
class ToolContext:
    """Context passed to tool execute methods."""

    session_id: str
    permission_mode: str = "default"
    cwd: Path = field(default_factory=Path.cwd)
    extra: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Tool(Protocol):
    """Protocol that toolbox entries must implement."""

    @property
    def definition(self) -> ToolDef:
        ...

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        ...
