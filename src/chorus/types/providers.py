"""Chat provider protocol and stream event types for the default engine."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from chorus.types.tools import ToolDef


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """A single event from a streaming provider response."""

    type: str  # "text_delta", "tool_use_start", "tool_use_delta", "tool_use_end", "message_end"
    text: str | None = None
    tool_use_id: str | None = None
    tool_name: str | None = None
    tool_args_json: str | None = None
    stop_reason: str | None = None
    usage: dict[str, int] | None = None


@dataclass(slots=True)
class ChatMessage:
    """A message in the chat history (provider-agnostic format)."""

    role: str  # "user", "assistant"
    content: str | list[dict[str, Any]] = ""


@dataclass(frozen=True, slots=True)
class ModelInfo:
    """Pricing and limits of a supported model."""

    id: str
    display_name: str
    context_window: int
    max_output_tokens: int
    input_cost_per_mtok: float = 0.0
    output_cost_per_mtok: float = 0.0
    aliases: tuple[str, ...] = ()

    def cost(self, input_tokens: int, output_tokens: int) -> float:
        return (
            input_tokens * self.input_cost_per_mtok
            + output_tokens * self.output_cost_per_mtok
        ) / 1_000_000


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol that chat providers must implement."""

    @property
    def model_id(self) -> str:
        ...

    def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        tools: list[ToolDef],
        system: str,
        max_tokens: int,
    ) -> AsyncIterator[StreamEvent]:
        """Stream a chat completion as :class:`StreamEvent` objects."""
        ...
