"""Built-in tool presets and agent-type presets."""

from __future__ import annotations

from dataclasses import dataclass

BUILTIN_TOOLS: tuple[str, ...] = (
    "Read",
    "Write",
    "Edit",
    "Glob",
    "Grep",
    "Bash",
    "WebFetch",
)

_READ_ONLY = ("Read", "Glob", "Grep")
_FILE_ACCESS = ("Read", "Write", "Edit", "Glob", "Grep")

TOOL_PRESETS: dict[str, tuple[str, ...]] = {
    "read_only": _READ_ONLY,
    "file_access": _FILE_ACCESS,
    "development": (*_FILE_ACCESS, "Bash"),
    "research": (*_READ_ONLY, "WebFetch"),
    "all": BUILTIN_TOOLS,
}

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."


@dataclass(frozen=True, slots=True)
class AgentType:
    """A named starting point for ad hoc agents."""

    name: str
    system_prompt: str
    tool_preset: str | None = None

    @property
    def tools(self) -> tuple[str, ...]:
        return TOOL_PRESETS[self.tool_preset] if self.tool_preset else ()


AGENT_TYPES: dict[str, AgentType] = {
    "default": AgentType(name="default", system_prompt=DEFAULT_SYSTEM_PROMPT),
    "researcher": AgentType(
        name="researcher",
        system_prompt=(
            "You are a research assistant. Find and summarize information "
            "clearly and accurately. Use web search when needed."
        ),
        tool_preset="research",
    ),
    "writer": AgentType(
        name="writer",
        system_prompt=(
            "You are a content writer. Create engaging, well-structured "
            "content based on the given topic."
        ),
    ),
    "analyst": AgentType(
        name="analyst",
        system_prompt=(
            "You are a data analyst. Analyze information and provide "
            "actionable insights."
        ),
        tool_preset="read_only",
    ),
    "developer": AgentType(
        name="developer",
        system_prompt=(
            "You are a software developer. Help write, review, and debug code. "
            "Use file tools when needed."
        ),
        tool_preset="development",
    ),
}


def get_agent_type(name: str) -> AgentType:
    """Get an agent type by name. Raises KeyError if not found."""
    if name not in AGENT_TYPES:
        available = ", ".join(sorted(AGENT_TYPES))
        raise KeyError(f"Unknown agent type: {name!r}. Available: {available}")
    return AGENT_TYPES[name]


def resolve_tools(names: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """Expand preset names into tool names, keeping order and dropping duplicates.

    ``["read_only", "Bash"]`` becomes ``("Read", "Glob", "Grep", "Bash")``.
    """
    out: list[str] = []
    for name in names:
        for tool in TOOL_PRESETS.get(name, (name,)):
            if tool not in out:
                out.append(tool)
    return tuple(out)
