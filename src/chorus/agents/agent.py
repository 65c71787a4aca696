"""The Agent runtime handle: one config, one session reference."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable

from chorus.engine.base import QueryEngine, get_default_engine
from chorus.observability.metrics import record_agent_run
from chorus.observability.tracing import get_tracer, mark_failed
from chorus.types.config import AgentConfig, EngineOptions
from chorus.types.events import EngineEvent, ResultEvent
from chorus.types.results import NO_RESULT_ERROR, AgentResult

logger = logging.getLogger(__name__)


class AgentStream:
    """Events of one invocation, in engine emission order.

    Iterate it once; afterwards :attr:`result` holds the mapped
    :class:`AgentResult`, the same value :meth:`Agent.run` returns.
    """

    def __init__(self, events: Callable[[AgentStream], AsyncIterator[EngineEvent]]):
        self._iterator = events(self)
        self._result: AgentResult | None = None

    def __aiter__(self) -> AsyncIterator[EngineEvent]:
        return self._iterator

    @property
    def done(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> AgentResult:
        if self._result is None:
            raise RuntimeError("AgentStream has not been consumed to completion")
        return self._result

    def _finish(self, result: AgentResult) -> None:
        self._result = result


class Agent:
    """A configured handle driving one conversation against a query engine.

    Every invocation resumes the agent's current session (if any) and stores
    the session id reported by the engine, so consecutive calls on the same
    instance continue one conversation.

    Args:
        config: Immutable agent specification.
        engine: Query engine; the process default is used when omitted.
        timeout: Default per-invocation deadline in seconds.
    """

    def __init__(
        self,
        config: AgentConfig,
        engine: QueryEngine | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self._config = config
        self._engine = engine
        self._timeout = timeout
        self._session_id: str | None = None

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, session_id={self._session_id!r})"

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def engine(self) -> QueryEngine:
        return self._engine if self._engine is not None else get_default_engine()

    # -- session reference -------------------------------------------------

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def get_session_id(self) -> str | None:
        return self._session_id

    def set_session_id(self, session_id: str) -> None:
        """Resume a previously stored conversation on the next call."""
        self._session_id = session_id

    def reset(self) -> None:
        """Forget the session; the next call starts a fresh conversation."""
        self._session_id = None

    # -- invocation --------------------------------------------------------

    async def run(self, prompt: str, *, timeout: float | None = None) -> AgentResult:
        """Drive one full turn sequence to completion and return its result."""
        stream = self.stream(prompt, timeout=timeout)
        async for _ in stream:
            pass
        return stream.result

    def stream(self, prompt: str, *, timeout: float | None = None) -> AgentStream:
        """Like :meth:`run`, but yields every engine event as it arrives."""
        deadline_s = timeout if timeout is not None else self._timeout
        return AgentStream(lambda sink: self._events(prompt, deadline_s, sink))

    async def run_conversation(
        self, messages: Iterable[str] | AsyncIterable[str],
    ) -> AgentResult:
        """Send several user messages in order on this agent's session.

        Stops at the first failed turn and returns the last result.
        """
        result = AgentResult.failure(NO_RESULT_ERROR)
        if isinstance(messages, AsyncIterable):
            async for message in messages:
                result = await self.run(message)
                if not result.success:
                    break
        else:
            for message in messages:
                result = await self.run(message)
                if not result.success:
                    break
        return result

    async def _events(
        self, prompt: str, timeout: float | None, sink: AgentStream,
    ) -> AsyncIterator[EngineEvent]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None
        options = EngineOptions.for_agent(self._config, resume=self._session_id)
        result = AgentResult.failure(NO_RESULT_ERROR)
        started = time.monotonic()
        span = get_tracer().start_span(
            "chorus.agent.run",
            attributes={"chorus.agent": self.name, "chorus.resumed": options.resume is not None},
        )
        scope: asyncio.Timeout | None = None
        try:
            events = self.engine.submit(prompt, options)
            try:
                while True:
                    try:
                        scope = asyncio.timeout_at(deadline)
                        async with scope:
                            event = await anext(events)
                    except StopAsyncIteration:
                        break
                    if isinstance(event, ResultEvent):
                        self._session_id = event.session_id
                        result = AgentResult.from_event(event)
                    yield event
            finally:
                aclose = getattr(events, "aclose", None)
                if aclose is not None:
                    await aclose()
        except TimeoutError as exc:
            if scope is not None and scope.expired():
                logger.warning("Agent '%s' timed out after %gs", self.name, timeout)
                result = AgentResult.failure(f"Timed out after {timeout:g}s")
            else:
                result = self._adapter_failure(exc)
        except Exception as exc:
            result = self._adapter_failure(exc)
        finally:
            if not result.success:
                mark_failed(span, result.error)
            span.end()

        record_agent_run(self.name, result, (time.monotonic() - started) * 1000)
        logger.debug("Agent '%s' finished (success=%s)", self.name, result.success)
        sink._finish(result)

    def _adapter_failure(self, exc: Exception) -> AgentResult:
        logger.warning("Agent '%s' engine call failed: %s: %s", self.name, type(exc).__name__, exc)
        return AgentResult.failure(str(exc) or type(exc).__name__)
