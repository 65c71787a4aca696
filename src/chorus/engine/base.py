"""The query engine contract and the process-wide default engine."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from chorus.types.config import EngineOptions
from chorus.types.events import EngineEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class QueryEngine(Protocol):
    """An opaque conversational engine.

    ``submit`` returns a lazy, finite sequence of events that ends with
    exactly one :class:`~chorus.types.events.ResultEvent`. Implementations
    never retry; transport failures are raised to the caller.
    """

    def submit(self, prompt: str, options: EngineOptions) -> AsyncIterator[EngineEvent]:
        ...


_default_engine: QueryEngine | None = None


def get_default_engine() -> QueryEngine:
    """Return the default engine, building a ProviderEngine from settings on first use."""
    global _default_engine
    if _default_engine is None:
        from chorus.config import load_settings
        from chorus.engine.provider import ProviderEngine
        from chorus.tools import builtin_tools

        settings = load_settings()
        _default_engine = ProviderEngine(
            tools=builtin_tools(),
            model=settings.model,
            max_tokens=settings.max_tokens,
            sessions_dir=settings.sessions_dir,
            api_key=settings.api_key,
            base_url=settings.base_url,
        )
        logger.debug("Built default engine (model=%s)", settings.model)
    return _default_engine


def set_default_engine(engine: QueryEngine | None) -> None:
    """Replace the default engine. ``None`` rebuilds it from settings on next use."""
    global _default_engine
    _default_engine = engine
