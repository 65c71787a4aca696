"""Bash tool."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from chorus.tools.base import BaseTool
from chorus.types.tools import ToolContext, ToolDef, ToolKind, ToolOutput, ToolParam

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 120_000
MAX_TIMEOUT_MS = 600_000
MAX_OUTPUT_CHARS = 30_000


class BashTool(BaseTool):
    """Runs a shell command in the context's working directory.

    stdout and stderr are merged. A non-zero exit status is reported as an
    error result carrying the output and the exit code.
    """

    _definition = ToolDef(
        name="Bash",
        description=(
            "Run a shell command and return its combined output. "
            f"Timeout in milliseconds (default {DEFAULT_TIMEOUT_MS}, max {MAX_TIMEOUT_MS})."
        ),
        parameters=(
            ToolParam("command", "string", "The shell command."),
            ToolParam("timeout", "integer", "Timeout in milliseconds.", required=False),
        ),
        kind=ToolKind.EXECUTE,
    )

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        command = args.get("command", "")
        if not command:
            return self._error("command is required.")
        try:
            timeout_ms = int(args.get("timeout") or DEFAULT_TIMEOUT_MS)
        except (TypeError, ValueError):
            timeout_ms = DEFAULT_TIMEOUT_MS
        timeout_ms = max(1, min(timeout_ms, MAX_TIMEOUT_MS))

        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=str(ctx.cwd),
            )
        except OSError as exc:
            return self._error(f"Failed to start process: {exc}")

        try:
            async with asyncio.timeout(timeout_ms / 1000):
                stdout, _ = await proc.communicate()
        except TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning("Command killed after %d ms: %s", timeout_ms, command)
            return self._error(f"Command timed out after {timeout_ms} ms: {command}")

        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        if len(output) > MAX_OUTPUT_CHARS:
            dropped = len(output) - MAX_OUTPUT_CHARS
            output = output[:MAX_OUTPUT_CHARS] + f"\n[...{dropped} characters truncated]"
        if not output.strip():
            output = "Command completed with no output"

        if proc.returncode:
            return self._error(f"{output.rstrip()}\n[Exit code: {proc.returncode}]")
        return self._ok(output)
