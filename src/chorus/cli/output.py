"""Rich-powered terminal output."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chorus.orchestration.chains import ConsensusResult
from chorus.types.events import AssistantTurn, EngineEvent, ResultEvent, TextBlock, ToolUseBlock
from chorus.types.results import AgentResult

# ── Palette ──────────────────────────────────────────────────────────────────

TOOL_ICON = "▸"                  # ▸
STYLE_AGENT_NAME = "bold #a78bfa"     # violet
STYLE_TOOL_NAME = "bold #a78bfa"
STYLE_TOOL_DETAIL = "#7c7c8a"         # muted grey
STYLE_ERROR_LABEL = "bold #f87171"    # red
STYLE_ERROR_BODY = "#f87171"
STYLE_OK = "bold #34d399"             # green
STYLE_RESULT_LABEL = "bold #94a3b8"   # slate
STYLE_RESULT_VALUE = "#e2e8f0"
STYLE_COST_VALUE = "#34d399"

SNIPPET_LEN = 300


def _snippet(text: str | None) -> str:
    text = (text or "").strip()
    return text if len(text) <= SNIPPET_LEN else text[:SNIPPET_LEN] + "…"


def _status(result: AgentResult) -> Text:
    if result.success:
        return Text("ok", style=STYLE_OK)
    return Text(result.error or "failed", style=STYLE_ERROR_LABEL)


class RichPrinter:
    """Prints engine events and agent results.

    Assistant text goes to stdout; tool calls, summaries and errors to stderr.
    """

    def __init__(self, console: Console | None = None, stdout: Console | None = None) -> None:
        self._console = console or Console(stderr=True)
        self._stdout = stdout or Console()

    def print_event(self, event: EngineEvent) -> None:
        match event:
            case AssistantTurn(blocks=blocks):
                for block in blocks:
                    match block:
                        case TextBlock(text=text):
                            self._stdout.print(text, highlight=False)
                        case ToolUseBlock(name=name, input=args):
                            self._print_tool_use(name, args)
            case ResultEvent():
                pass  # Summarised by print_result

    def _print_tool_use(self, name: str, args: dict[str, Any]) -> None:
        line = Text()
        line.append(f"  {TOOL_ICON} ", style=STYLE_TOOL_NAME)
        line.append(name, style=STYLE_TOOL_NAME)
        detail = args.get("command") or args.get("file_path") or args.get("pattern") or args.get("url")
        if detail:
            line.append(f"  {detail}", style=STYLE_TOOL_DETAIL)
        self._console.print(line)

    # ── Results ──────────────────────────────────────────────────────────────

    def print_text(self, result: AgentResult) -> None:
        """Print a result's text, or its error when it failed."""
        if result.success:
            self._stdout.print(result.result or "", highlight=False)
        else:
            self.print_error(result)

    def print_error(self, result: AgentResult) -> None:
        label = Text("✗ ", style=STYLE_ERROR_LABEL)
        label.append(result.error or "failed", style=STYLE_ERROR_BODY)
        for sub in result.errors:
            label.append(f"\n  {sub}", style=STYLE_ERROR_BODY)
        self._console.print(label)

    def print_result(self, result: AgentResult) -> None:
        """Print the run summary as a compact table."""
        tbl = Table(show_header=False, show_edge=False, padding=(0, 1), expand=False)
        tbl.add_column(style=STYLE_RESULT_LABEL, justify="right", no_wrap=True)
        tbl.add_column(style=STYLE_RESULT_VALUE, no_wrap=True)

        tbl.add_row("Status", _status(result))
        tbl.add_row("Session", str(result.session_id))
        if result.num_turns is not None:
            tbl.add_row("Turns", str(result.num_turns))
        if result.usage is not None and result.usage.total:
            tbl.add_row("Tokens", f"{result.usage.total:,}")
        if result.total_cost_usd:
            tbl.add_row("Cost", Text(f"${result.total_cost_usd:.4f}", style=STYLE_COST_VALUE))

        self._console.print(Panel(tbl, border_style="#3f3f50", expand=False, padding=(0, 1)))

    def print_results(self, results: list[tuple[str, AgentResult]], title: str | None = None) -> None:
        """Print one row per agent: name, status and output snippet."""
        tbl = Table(title=title, show_lines=True, expand=False)
        tbl.add_column("Agent", style=STYLE_AGENT_NAME, no_wrap=True)
        tbl.add_column("Status", no_wrap=True)
        tbl.add_column("Output")
        for name, result in results:
            output = _snippet(result.result) if result.success else "; ".join(result.errors)
            tbl.add_row(name, _status(result), output)
        self._stdout.print(tbl)

    def print_consensus(self, outcome: ConsensusResult, options: list[str]) -> None:
        tbl = Table(title="Votes", expand=False)
        tbl.add_column("Option")
        tbl.add_column("Votes", justify="right")
        for option in options:
            tbl.add_row(option, str(outcome.counts.get(option, 0)))
        self._stdout.print(tbl)
        for agent, choice in outcome.votes.items():
            self._console.print(Text.assemble((agent, STYLE_AGENT_NAME), f" → {choice}"))
        self._stdout.print(Text.assemble("Winner: ", (str(outcome.winner), STYLE_OK)))
