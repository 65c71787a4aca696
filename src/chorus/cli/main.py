"""CLI entry point for Chorus."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

import click

from chorus.agents.agent import Agent
from chorus.agents.presets import AGENT_TYPES, resolve_tools
from chorus.config import Settings, load_settings
from chorus.errors import AgentFileError
from chorus.types.config import DEFAULT_MAX_TURNS, AgentConfig, PermissionMode
from chorus.types.results import AgentResult

T = TypeVar("T")


def _settings(ctx: click.Context) -> Settings:
    """Load settings once per invocation and install exporters if enabled."""
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        from chorus.observability import configure_exporters, shutdown

        settings = load_settings()
        if configure_exporters(settings.observability):
            ctx.call_on_close(shutdown)
        obj["settings"] = settings
    return obj["settings"]


def _timeout(ctx: click.Context, explicit: float | None) -> float | None:
    return explicit if explicit is not None else _settings(ctx).agent_timeout


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def _load(loader: Any, path: str) -> Any:
    try:
        return loader(path)
    except AgentFileError as exc:
        raise click.ClickException(f"{exc.path}: {exc}") from exc


def _printer() -> Any:
    from chorus.cli.output import RichPrinter

    return RichPrinter()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Chorus -- compose conversational agents.

    \b
    Usage:
      chorus run "Summarise README.md" --agent-type researcher
      chorus chain agents.yaml "Draft a blog post about tide pools"
      chorus parallel agents.yaml "Review this design"
      chorus vote agents.yaml "Which database?" -o Postgres -o SQLite
      chorus supervise agents.yaml "Ship the release" --prompt "You coordinate."
      chorus serve --port 8000
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
    ctx.ensure_object(dict)


@cli.command("run")
@click.argument("prompt", nargs=-1, required=True)
@click.option("--system", "-S", "system_prompt", default=None, help="System prompt")
@click.option(
    "--agent-type", "-t",
    type=click.Choice(sorted(AGENT_TYPES)),
    default="default",
    help="Agent type preset",
)
@click.option("--tool", "tools", multiple=True, help="Allowed tool or preset (repeatable)")
@click.option("--max-turns", default=DEFAULT_MAX_TURNS, type=click.IntRange(min=1), help="Maximum turns")
@click.option("--model", "-m", default=None, help="Model ID or alias")
@click.option("--session", "-s", default=None, help="Resume session ID")
@click.option(
    "--permission",
    type=click.Choice([m.value for m in PermissionMode]),
    default=PermissionMode.DEFAULT.value,
    help="Permission mode",
)
@click.option("--stream/--no-stream", default=True, help="Print events as they arrive")
@click.option("--timeout", type=float, default=None, help="Deadline in seconds")
@click.pass_context
def run_cmd(
    ctx: click.Context,
    prompt: tuple[str, ...],
    system_prompt: str | None,
    agent_type: str,
    tools: tuple[str, ...],
    max_turns: int,
    model: str | None,
    session: str | None,
    permission: str,
    stream: bool,
    timeout: float | None,
) -> None:
    """Run a single agent on PROMPT."""
    preset = AGENT_TYPES[agent_type]
    config = AgentConfig(
        name=f"{agent_type}-agent",
        system_prompt=system_prompt or preset.system_prompt,
        model=model,
        max_turns=max_turns,
        permission_mode=permission,
        allowed_tools=resolve_tools(tools) if tools else preset.tools,
    )
    agent = Agent(config, timeout=_timeout(ctx, timeout))
    if session:
        agent.set_session_id(session)

    printer = _printer()
    result = _run(_drive(agent, " ".join(prompt), printer, stream))
    printer.print_result(result)
    if not result.success:
        raise SystemExit(1)


async def _drive(agent: Agent, prompt: str, printer: Any, stream: bool) -> AgentResult:
    if not stream:
        result = await agent.run(prompt)
        printer.print_text(result)
        return result

    events = agent.stream(prompt)
    async for event in events:
        printer.print_event(event)
    result = events.result
    if not result.success:
        printer.print_error(result)
    return result


@cli.command("chain")
@click.argument("agent_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("initial_input")
@click.option("--timeout", type=float, default=None, help="Per-agent deadline in seconds")
@click.pass_context
def chain_cmd(ctx: click.Context, agent_file: str, initial_input: str, timeout: float | None) -> None:
    """Run the agents in AGENT_FILE one after another."""
    from chorus.cli.agent_file import load_specs
    from chorus.orchestration.chains import run_sequential_chain

    specs = _load(load_specs, agent_file)
    results = _run(run_sequential_chain(specs, initial_input, timeout=_timeout(ctx, timeout)))
    printer = _printer()
    printer.print_results([(s.name, r) for s, r in zip(specs, results)], title="Chain")
    if results[-1].success:
        printer.print_text(results[-1])
    else:
        raise SystemExit(1)


@cli.command("pipeline")
@click.argument("agent_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("initial_input")
@click.option("--timeout", type=float, default=None, help="Per-stage deadline in seconds")
@click.pass_context
def pipeline_cmd(ctx: click.Context, agent_file: str, initial_input: str, timeout: float | None) -> None:
    """Feed each stage's raw output to the next stage in AGENT_FILE."""
    from chorus.cli.agent_file import load_stages
    from chorus.orchestration.chains import run_pipeline

    stages = _load(load_stages, agent_file)
    outcome = _run(run_pipeline(stages, initial_input, timeout=_timeout(ctx, timeout)))
    printer = _printer()
    printer.print_results(list(outcome.stage_results.items()), title="Pipeline")
    printer.print_text(outcome.final_result)
    if not outcome.final_result.success:
        raise SystemExit(1)


@cli.command("parallel")
@click.argument("agent_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("input_text")
@click.option("--timeout", type=float, default=None, help="Per-agent deadline in seconds")
@click.pass_context
def parallel_cmd(ctx: click.Context, agent_file: str, input_text: str, timeout: float | None) -> None:
    """Run every agent in AGENT_FILE concurrently on the same input."""
    from chorus.cli.agent_file import load_specs
    from chorus.orchestration.chains import run_parallel_agents

    specs = _load(load_specs, agent_file)
    results = _run(run_parallel_agents(specs, input_text, timeout=_timeout(ctx, timeout)))
    _printer().print_results(list(results.items()), title="Parallel")
    if not all(r.success for r in results.values()):
        raise SystemExit(1)


@cli.command("vote")
@click.argument("agent_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("question")
@click.option("--option", "-o", "options", multiple=True, required=True, help="Choice (repeatable)")
@click.option("--timeout", type=float, default=None, help="Per-agent deadline in seconds")
@click.pass_context
def vote_cmd(
    ctx: click.Context,
    agent_file: str,
    question: str,
    options: tuple[str, ...],
    timeout: float | None,
) -> None:
    """Let the agents in AGENT_FILE vote on QUESTION."""
    from chorus.cli.agent_file import load_specs
    from chorus.orchestration.chains import run_consensus_agents

    specs = _load(load_specs, agent_file)
    outcome = _run(
        run_consensus_agents(specs, question, list(options), timeout=_timeout(ctx, timeout))
    )
    _printer().print_consensus(outcome, list(options))
    if not any(r.success for r in outcome.results.values()):
        raise SystemExit(1)


@cli.command("supervise")
@click.argument("agent_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("task")
@click.option("--prompt", "supervisor_prompt", required=True, help="Supervisor instructions")
@click.option("--timeout", type=float, default=None, help="Deadline in seconds")
@click.pass_context
def supervise_cmd(
    ctx: click.Context,
    agent_file: str,
    task: str,
    supervisor_prompt: str,
    timeout: float | None,
) -> None:
    """Ask a supervisor how to split TASK across the agents in AGENT_FILE.

    The delegates are only described to the supervisor; none of them runs.
    """
    from chorus.cli.agent_file import load_delegates
    from chorus.orchestration.chains import run_with_supervisor

    delegates = _load(load_delegates, agent_file)
    result = _run(
        run_with_supervisor(supervisor_prompt, delegates, task, timeout=_timeout(ctx, timeout))
    )
    printer = _printer()
    printer.print_text(result)
    printer.print_result(result)
    if not result.success:
        raise SystemExit(1)


@cli.command("models")
def models_cmd() -> None:
    """List known models."""
    from chorus.engine.models import ALIASES, MODELS

    header = f"{'Model ID':<30} {'Context':<10} {'$/M in':<8} {'$/M out':<8} {'Aliases'}"
    click.echo(header)
    click.echo("-" * 80)
    for model_id, info in sorted(MODELS.items()):
        ctx = f"{info.context_window // 1000}K"
        aliases = ", ".join(info.aliases) if info.aliases else ""
        click.echo(
            f"{model_id:<30} {ctx:<10} "
            f"${info.input_cost_per_mtok:<7.2f} "
            f"${info.output_cost_per_mtok:<7.2f} {aliases}"
        )
    click.echo(f"\n{len(MODELS)} models, {len(ALIASES)} aliases")


@cli.command("serve")
@click.option("--host", default=None, help="Bind address")
@click.option("--port", default=None, type=int, help="Port")
def serve_cmd(host: str | None, port: int | None) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from chorus.server.app import create_app

    settings = load_settings()
    app = create_app(timeout=settings.agent_timeout, observability=settings.observability)
    uvicorn.run(app, host=host or settings.server_host, port=port or settings.server_port)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
