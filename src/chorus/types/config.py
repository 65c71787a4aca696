"""Configuration types for agents and engine invocations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 10


class PermissionMode(Enum):
    """Permission modes controlling which tool calls the engine may run unattended."""

    DEFAULT = "default"  # Read-only tools only
    ACCEPT_EDITS = "accept-edits"  # Read-only + file edits
    BYPASS = "bypass-permissions"  # Everything
    PLAN = "plan-only"  # Read-only, no side effects


@dataclass(frozen=True, slots=True)
class MCPServerConfig:
    """Configuration for a stdio MCP server."""

    command: str
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MCPServerConfig:
        return cls(
            command=data["command"],
            args=tuple(data.get("args", ())),
            env=dict(data.get("env", {})),
        )


def _coerce_servers(
    servers: Mapping[str, MCPServerConfig | Mapping[str, Any]] | None,
) -> Mapping[str, MCPServerConfig]:
    result: dict[str, MCPServerConfig] = {}
    for name, cfg in (servers or {}).items():
        result[name] = cfg if isinstance(cfg, MCPServerConfig) else MCPServerConfig.from_dict(cfg)
    return MappingProxyType(result)


@dataclass(frozen=True, slots=True)
class AgentConfig:
    """Immutable specification of an agent.

    When both ``allowed_tools`` and ``disallowed_tools`` are given the
    allow-list wins: the deny-list is never sent to the engine.
    """

    name: str
    system_prompt: str
    model: str | None = None
    max_turns: int = DEFAULT_MAX_TURNS
    permission_mode: PermissionMode = PermissionMode.DEFAULT
    allowed_tools: tuple[str, ...] = ()
    disallowed_tools: tuple[str, ...] = ()
    mcp_servers: Mapping[str, MCPServerConfig] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Agent name must not be empty")
        if self.max_turns < 1:
            raise ValueError(f"max_turns must be a positive integer, got {self.max_turns}")
        # Frozen: normalise through object.__setattr__
        if isinstance(self.permission_mode, str):
            object.__setattr__(self, "permission_mode", PermissionMode(self.permission_mode))
        object.__setattr__(self, "allowed_tools", tuple(self.allowed_tools))
        object.__setattr__(self, "disallowed_tools", tuple(self.disallowed_tools))
        object.__setattr__(self, "mcp_servers", _coerce_servers(self.mcp_servers))
        if self.allowed_tools and self.disallowed_tools:
            logger.warning(
                "Agent '%s' sets both allowed and disallowed tools; "
                "the allow-list takes precedence",
                self.name,
            )

    def effective_tools(self) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """Return the (allowed, disallowed) pair that is sent to the engine."""
        if self.allowed_tools:
            return self.allowed_tools, ()
        return (), self.disallowed_tools


@dataclass(frozen=True, slots=True)
class EngineOptions:
    """Options for a single query engine submission."""

    model: str | None = None
    system_prompt: str | None = None
    max_turns: int = DEFAULT_MAX_TURNS
    permission_mode: PermissionMode = PermissionMode.DEFAULT
    allowed_tools: tuple[str, ...] = ()
    disallowed_tools: tuple[str, ...] = ()
    mcp_servers: Mapping[str, MCPServerConfig] = field(default_factory=dict)
    resume: str | None = None

    @classmethod
    def for_agent(cls, config: AgentConfig, resume: str | None = None) -> EngineOptions:
        allowed, disallowed = config.effective_tools()
        return cls(
            model=config.model,
            system_prompt=config.system_prompt,
            max_turns=config.max_turns,
            permission_mode=config.permission_mode,
            allowed_tools=allowed,
            disallowed_tools=disallowed,
            mcp_servers=config.mcp_servers,
            resume=resume,
        )
