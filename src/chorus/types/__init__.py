"""Type definitions for Chorus."""

from chorus.types.config import AgentConfig, EngineOptions, MCPServerConfig, PermissionMode
from chorus.types.events import (
    AssistantTurn,
    ContentBlock,
    EngineEvent,
    ResultEvent,
    TextBlock,
    ToolUseBlock,
)
from chorus.types.providers import ChatMessage, ChatProvider, ModelInfo, StreamEvent
from chorus.types.results import AgentResult, HandoffRecord, TokenUsage
from chorus.types.tools import Tool, ToolContext, ToolDef, ToolKind, ToolOutput, ToolParam

__all__ = [
    "AgentConfig",
    "AgentResult",
    "AssistantTurn",
    "ChatMessage",
    "ChatProvider",
    "ContentBlock",
    "EngineEvent",
    "EngineOptions",
    "HandoffRecord",
    "MCPServerConfig",
    "ModelInfo",
    "PermissionMode",
    "ResultEvent",
    "StreamEvent",
    "TextBlock",
    "TokenUsage",
    "Tool",
    "ToolContext",
    "ToolDef",
    "ToolKind",
    "ToolOutput",
    "ToolParam",
    "ToolUseBlock",
]
