"""A registry of long-lived named agents with explicit hand-offs."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any

from chorus.agents.agent import Agent
from chorus.engine.base import QueryEngine
from chorus.types.config import AgentConfig
from chorus.types.results import AgentResult, HandoffRecord

logger = logging.getLogger(__name__)


def format_handoff(from_agent: str, context: str, data: Any = None) -> str:
    """Render the prompt delivered to the target of a hand-off."""
    lines = [f"[HANDOFF FROM {from_agent}]", f"Context: {context}"]
    if data is not None:
        lines.append(f"Data: {json.dumps(data, indent=2, default=str)}")
    lines.append("")
    lines.append("Please continue with this task based on the context provided.")
    return "\n".join(lines)


class AgentOrchestrator:
    """Keeps named agents, a hand-off log and a cursor on the current agent.

    Each registered agent keeps its own session across calls, so executing
    the same name twice continues one conversation. Table, log and cursor
    are guarded by a lock that is released before any engine call; two
    concurrent calls against the *same* agent still race on its session.
    """

    def __init__(
        self,
        engine: QueryEngine | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self._engine = engine
        self._timeout = timeout
        self._agents: dict[str, Agent] = {}
        self._history: list[HandoffRecord] = []
        self._current: str | None = None
        self._lock = threading.Lock()

    def register_agent(self, config: AgentConfig) -> Agent:
        """Register a fresh agent under ``config.name``, replacing any prior one."""
        agent = Agent(config, self._engine, timeout=self._timeout)
        with self._lock:
            replaced = config.name in self._agents
            self._agents[config.name] = agent
        if replaced:
            logger.info("Replaced agent '%s' (previous session dropped)", config.name)
        else:
            logger.info("Registered agent '%s'", config.name)
        return agent

    def get_agent(self, name: str) -> Agent | None:
        with self._lock:
            return self._agents.get(name)

    @property
    def agent_names(self) -> list[str]:
        with self._lock:
            return list(self._agents)

    @property
    def current_agent(self) -> str | None:
        with self._lock:
            return self._current

    async def execute(self, agent_name: str, task: str) -> AgentResult:
        """Run ``task`` on a registered agent and make it the current one."""
        with self._lock:
            agent = self._agents.get(agent_name)
            if agent is None:
                return AgentResult.failure(f"Agent not found: {agent_name}")
            self._current = agent_name
        return await agent.run(task)

    async def handoff(self, to_agent: str, context: str, data: Any = None) -> AgentResult:
        """Pass control from the current agent to ``to_agent``.

        Fails without touching the log or cursor when there is no current
        agent or the target is not registered.
        """
        with self._lock:
            if self._current is None:
                return AgentResult.failure("No current agent to hand off from")
            target = self._agents.get(to_agent)
            if target is None:
                return AgentResult.failure(f"Target agent not found: {to_agent}")
            source = self._current
            self._history.append(HandoffRecord(source, to_agent, context, data))
            self._current = to_agent

        logger.info("Hand-off %s -> %s", source, to_agent)
        return await target.run(format_handoff(source, context, data))

    def get_handoff_history(self) -> list[HandoffRecord]:
        with self._lock:
            return list(self._history)

    @property
    def handoff_history(self) -> list[HandoffRecord]:
        return self.get_handoff_history()

    def reset(self) -> None:
        """Reset every agent's session and clear the log and cursor."""
        with self._lock:
            for agent in self._agents.values():
                agent.reset()
            self._history.clear()
            self._current = None
