"""Stateless composition strategies over fresh, unregistered agents.

Every strategy builds one new :class:`~chorus.agents.agent.Agent` per spec
and per call, so no session leaks between calls. Agent-level failures are
recorded in the returned results; nothing here raises for them.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from chorus.agents.agent import Agent
from chorus.engine.base import QueryEngine
from chorus.observability.tracing import span
from chorus.types.config import AgentConfig
from chorus.types.results import AgentResult

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^(\d+)")


@dataclass(frozen=True, slots=True)
class AgentSpec:
    """A named system prompt, optionally restricted to some tools."""

    name: str
    system_prompt: str
    allowed_tools: tuple[str, ...] = ()

    def to_config(self) -> AgentConfig:
        return AgentConfig(
            name=self.name,
            system_prompt=self.system_prompt,
            allowed_tools=self.allowed_tools,
        )


@dataclass(frozen=True, slots=True)
class PipelineStage:
    """A pipeline stage; ``transform`` rewrites its output for the next stage."""

    name: str
    system_prompt: str
    transform: Callable[[str], str] | None = None


@dataclass(frozen=True, slots=True)
class DelegateSpec:
    """A specialist advertised to a supervisor."""

    name: str
    system_prompt: str
    description: str


@dataclass(frozen=True, slots=True)
class ConsensusResult:
    """Outcome of a vote.

    ``votes`` maps agent name to the option it chose (valid votes only);
    ``counts`` maps option to its tally, in option order.
    """

    winner: str | None
    votes: dict[str, str] = field(default_factory=dict)
    counts: dict[str, int] = field(default_factory=dict)
    results: dict[str, AgentResult] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PipelineResult:
    final_result: AgentResult
    stage_results: dict[str, AgentResult] = field(default_factory=dict)


def _build(
    config: AgentConfig, engine: QueryEngine | None, timeout: float | None,
) -> Agent:
    return Agent(config, engine, timeout=timeout)


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------


def format_chain_input(previous: str) -> str:
    """Wrap a stage's output as the next sequential-chain prompt."""
    return f"Previous agent output:\n{previous}\n\nPlease continue with your task."


def format_voting_prompt(question: str, options: Sequence[str]) -> str:
    """Render the question with a 1-based numbered list of options."""
    choices = "\n".join(f"{i}. {opt}" for i, opt in enumerate(options, start=1))
    return (
        f"{question}\n\n"
        "Please choose ONE of the following options and explain your reasoning:\n"
        f"{choices}\n\n"
        "Respond with your choice number first, then your reasoning."
    ).strip()


def format_supervisor_prompt(
    supervisor_prompt: str, delegates: Sequence[DelegateSpec], task: str,
) -> str:
    """Render the supervisor's system prompt with its catalogue of delegates."""
    catalogue = "\n".join(f"- {d.name}: {d.description}" for d in delegates)
    return (
        f"{supervisor_prompt}\n\n"
        "You have access to the following specialized agents:\n"
        f"{catalogue}\n\n"
        "When you need to delegate a task, describe which agent should handle it "
        "and what they should do.\n"
        "The system will execute the delegation and return the results.\n\n"
        f"Task: {task}"
    ).strip()


def parse_vote(text: str | None, options: Sequence[str]) -> str | None:
    """Map a response starting with a 1-based choice number to its option."""
    if not text:
        return None
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return None
    index = int(match.group(1)) - 1
    if 0 <= index < len(options):
        return options[index]
    return None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


async def run_sequential_chain(
    agents: Sequence[AgentSpec],
    initial_input: str,
    *,
    engine: QueryEngine | None = None,
    timeout: float | None = None,
) -> list[AgentResult]:
    """Run agents in order, wrapping each output as the next agent's prompt.

    Stops at the first failure; agents after it are never built.
    """
    results: list[AgentResult] = []
    current = initial_input
    with span("chorus.chain.sequential", {"chorus.stages": len(agents)}):
        for spec in agents:
            result = await _build(spec.to_config(), engine, timeout).run(current)
            results.append(result)
            if not result.success:
                logger.debug("Chain stopped at '%s': %s", spec.name, result.error)
                break
            logger.debug("Chain stage '%s' done", spec.name)
            current = format_chain_input(result.result or "")
    return results


async def run_parallel_agents(
    agents: Sequence[AgentSpec],
    input: str,
    *,
    engine: QueryEngine | None = None,
    timeout: float | None = None,
) -> dict[str, AgentResult]:
    """Run every agent concurrently on the same input.

    One agent failing never cancels the others. When two specs share a
    name, the later spec's result is kept.
    """
    with span("chorus.chain.parallel", {"chorus.agents": len(agents)}):
        built = [_build(spec.to_config(), engine, timeout) for spec in agents]
        outcomes = await asyncio.gather(*(agent.run(input) for agent in built))
    return {spec.name: result for spec, result in zip(agents, outcomes)}


async def run_consensus_agents(
    agents: Sequence[AgentSpec],
    question: str,
    options: Sequence[str],
    *,
    engine: QueryEngine | None = None,
    timeout: float | None = None,
) -> ConsensusResult:
    """Let agents vote on ``options``; the most votes wins.

    Ties go to the option listed first. Responses that fail or do not start
    with a valid choice number are left out of the tally. With no valid votes the
    first option wins; with no options the winner is ``None``.
    """
    with span("chorus.chain.consensus", {"chorus.agents": len(agents)}):
        results = await run_parallel_agents(
            agents,
            format_voting_prompt(question, options),
            engine=engine,
            timeout=timeout,
        )

    votes: dict[str, str] = {}
    for name, result in results.items():
        if not result.success:
            continue
        choice = parse_vote(result.result, options)
        if choice is not None:
            votes[name] = choice

    tally = Counter(votes.values())
    counts = {option: tally[option] for option in options if tally[option]}

    winner = options[0] if options else None
    best = 0
    for option, count in counts.items():
        if count > best:
            winner, best = option, count

    logger.debug("Vote on %d options: winner=%r counts=%s", len(options), winner, counts)
    return ConsensusResult(winner=winner, votes=votes, counts=counts, results=results)


async def run_pipeline(
    stages: Sequence[PipelineStage],
    initial_input: str,
    *,
    engine: QueryEngine | None = None,
    timeout: float | None = None,
) -> PipelineResult:
    """Run stages in order, feeding each one's (transformed) output forward.

    Unlike :func:`run_sequential_chain` no wrapper text is added.
    """
    stage_results: dict[str, AgentResult] = {}
    final = AgentResult.failure("No stages executed")
    current = initial_input
    with span("chorus.chain.pipeline", {"chorus.stages": len(stages)}):
        for stage in stages:
            config = AgentConfig(name=stage.name, system_prompt=stage.system_prompt)
            result = await _build(config, engine, timeout).run(current)
            stage_results[stage.name] = result
            final = result
            if not result.success:
                logger.debug("Pipeline stopped at '%s': %s", stage.name, result.error)
                break
            text = result.result or ""
            current = stage.transform(text) if stage.transform is not None else text
    return PipelineResult(final_result=final, stage_results=stage_results)


async def run_with_supervisor(
    supervisor_prompt: str,
    sub_agents: Sequence[DelegateSpec],
    task: str,
    *,
    engine: QueryEngine | None = None,
    timeout: float | None = None,
) -> AgentResult:
    """Run one ``"supervisor"`` agent that is told about ``sub_agents``.

    Delegates are only advertised in the prompt; none of them is run.
    Acting on the supervisor's delegation is left to the caller.
    """
    system_prompt = format_supervisor_prompt(supervisor_prompt, sub_agents, task)
    config = AgentConfig(name="supervisor", system_prompt=system_prompt)
    with span("chorus.chain.supervisor", {"chorus.delegates": len(sub_agents)}):
        return await _build(config, engine, timeout).run(task)
