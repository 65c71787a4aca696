"""Event types emitted by a query engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

SUCCESS = "success"
ERROR_MAX_TURNS = "error_max_turns"
ERROR_DURING_EXECUTION = "error_during_execution"


@dataclass(frozen=True, slots=True)
class TextBlock:
    """A text segment of an assistant turn."""

    text: str


@dataclass(frozen=True, slots=True)
class ToolUseBlock:
    """A tool invocation notice inside an assistant turn."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


ContentBlock = TextBlock | ToolUseBlock


@dataclass(frozen=True, slots=True)
class AssistantTurn:
    """One assistant turn: text segments and/or tool invocations."""

    blocks: tuple[ContentBlock, ...] = ()

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.blocks if isinstance(b, TextBlock))


@dataclass(frozen=True, slots=True)
class ResultEvent:
    """Terminal event of an engine submission."""

    subtype: str
    session_id: str
    num_turns: int = 0
    result: str | None = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_cost_usd: float = 0.0
    errors: tuple[str, ...] = ()

    @property
    def is_success(self) -> bool:
        return self.subtype == SUCCESS


EngineEvent = AssistantTurn | ResultEvent
