"""Search tools: Glob and Grep."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from chorus.tools.base import BaseTool, resolve_path
from chorus.types.tools import ToolContext, ToolDef, ToolKind, ToolOutput, ToolParam

MAX_GLOB_RESULTS = 200
DEFAULT_MAX_MATCHES = 50

IGNORED_DIRS = frozenset({".git", "node_modules", "__pycache__", ".venv"})


def _ignored(path: Path, root: Path) -> bool:
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        return False
    return any(part in IGNORED_DIRS for part in parts)


def _search_root(args: dict[str, Any], ctx: ToolContext) -> Path:
    raw = args.get("path")
    return resolve_path(raw, ctx) if raw else ctx.cwd


class GlobTool(BaseTool):
    """Lists files matching a glob pattern, newest first."""

    _definition = ToolDef(
        name="Glob",
        description=(
            f"Find files matching a glob pattern such as '**/*.py'. Returns up to "
            f"{MAX_GLOB_RESULTS} paths, most recently modified first."
        ),
        parameters=(
            ToolParam("pattern", "string", "Glob pattern."),
            ToolParam("path", "string", "Directory to search (default: cwd).", required=False),
        ),
        kind=ToolKind.READ,
    )

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        pattern = args.get("pattern", "")
        if not pattern:
            return self._error("pattern is required.")
        root = _search_root(args, ctx)
        if not root.is_dir():
            return self._error(f"Not a directory: {root}")

        try:
            found = [p for p in root.glob(pattern) if p.is_file() and not _ignored(p, root)]
        except (ValueError, NotImplementedError) as exc:
            return self._error(f"Invalid glob pattern: {exc}")
        if not found:
            return self._ok(f"No files matched '{pattern}' in {root}")

        found.sort(key=lambda p: p.stat().st_mtime, reverse=True)
        lines = [str(p) for p in found[:MAX_GLOB_RESULTS]]
        if len(found) > MAX_GLOB_RESULTS:
            lines.append(f"[...{len(found) - MAX_GLOB_RESULTS} more results]")
        return self._ok("\n".join(lines))


class GrepTool(BaseTool):
    """Regex search over text files; one ``path:line: text`` per match."""

    _definition = ToolDef(
        name="Grep",
        description=(
            "Search file contents for a regular expression. Binary files and "
            "cache directories are skipped."
        ),
        parameters=(
            ToolParam("pattern", "string", "Regular expression."),
            ToolParam("path", "string", "File or directory (default: cwd).", required=False),
            ToolParam("glob", "string", "Only search files matching this glob.", required=False),
            ToolParam(
                "max_results", "integer",
                f"Maximum matches to return (default {DEFAULT_MAX_MATCHES}).",
                required=False,
            ),
        ),
        kind=ToolKind.READ,
    )

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        if not args.get("pattern"):
            return self._error("pattern is required.")
        try:
            regex = re.compile(args["pattern"])
        except re.error as exc:
            return self._error(f"Invalid regex pattern: {exc}")
        root = _search_root(args, ctx)
        if not root.exists():
            return self._error(f"Search path does not exist: {root}")
        try:
            limit = int(args.get("max_results") or DEFAULT_MAX_MATCHES)
        except (TypeError, ValueError):
            limit = DEFAULT_MAX_MATCHES

        if root.is_file():
            files = [root]
        else:
            files = sorted(
                p for p in root.rglob(args.get("glob") or "*")
                if p.is_file() and not _ignored(p, root)
            )

        matches: list[str] = []
        for path in files:
            try:
                data = path.read_bytes()
            except OSError:
                continue
            if b"\x00" in data[:8192]:
                continue
            text = data.decode("utf-8", errors="replace")
            for lineno, line in enumerate(text.splitlines(), start=1):
                if regex.search(line):
                    matches.append(f"{path}:{lineno}: {line.rstrip()}")
                    if len(matches) >= limit:
                        matches.append(f"[Results limited to {limit} matches]")
                        return self._ok("\n".join(matches))

        if not matches:
            return self._ok(f"No matches for '{args['pattern']}' in {root}")
        return self._ok("\n".join(matches))
