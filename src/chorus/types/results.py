"""Result types produced by agents and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from chorus.types.events import ResultEvent

NO_RESULT_ERROR = "No result received"


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Input/output token counts for one invocation."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True, slots=True)
class AgentResult:
    """Outcome of one agent invocation."""

    success: bool
    result: str | None = None
    session_id: str | None = None
    num_turns: int | None = None
    usage: TokenUsage | None = None
    total_cost_usd: float | None = None
    error: str | None = None
    errors: tuple[str, ...] = ()

    @classmethod
    def failure(cls, error: str, **kwargs: Any) -> AgentResult:
        return cls(success=False, error=error, **kwargs)

    @classmethod
    def from_event(cls, event: ResultEvent) -> AgentResult:
        """Map a terminal engine event to a result."""
        if event.is_success:
            return cls(
                success=True,
                result=event.result,
                session_id=event.session_id,
                num_turns=event.num_turns,
                usage=TokenUsage(event.input_tokens, event.output_tokens),
                total_cost_usd=event.total_cost_usd,
            )
        return cls(
            success=False,
            session_id=event.session_id,
            num_turns=event.num_turns,
            error=event.subtype,
            errors=tuple(event.errors),
        )

    def to_dict(self) -> dict[str, Any]:
        """Render as a JSON-serialisable dict."""
        return {
            "success": self.success,
            "result": self.result,
            "session_id": self.session_id,
            "num_turns": self.num_turns,
            "usage": (
                {
                    "input_tokens": self.usage.input_tokens,
                    "output_tokens": self.usage.output_tokens,
                }
                if self.usage is not None
                else None
            ),
            "total_cost_usd": self.total_cost_usd,
            "error": self.error,
            "errors": list(self.errors),
        }


@dataclass(frozen=True, slots=True)
class HandoffRecord:
    """An entry in the orchestrator's hand-off log."""

    from_agent: str
    to_agent: str
    context: str
    data: Any = None
