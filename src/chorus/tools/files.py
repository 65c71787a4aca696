"""File tools: Read, Write and Edit."""

from __future__ import annotations

from typing import Any

from chorus.tools.base import BaseTool, resolve_path
from chorus.types.tools import ToolContext, ToolDef, ToolKind, ToolOutput, ToolParam

MAX_LINE_LENGTH = 2000
DEFAULT_LINE_LIMIT = 2000

_FILE_PATH = ToolParam("file_path", "string", "Absolute or cwd-relative path to the file.")


class ReadTool(BaseTool):
    """Returns a file's lines numbered ``cat -n`` style."""

    _definition = ToolDef(
        name="Read",
        description=(
            "Read a text file. Optionally start at a 1-based line offset and "
            f"return at most limit lines (default {DEFAULT_LINE_LIMIT})."
        ),
        parameters=(
            _FILE_PATH,
            ToolParam("offset", "integer", "1-based line to start from.", required=False),
            ToolParam("limit", "integer", "Maximum number of lines to return.", required=False),
        ),
        kind=ToolKind.READ,
    )

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        if not args.get("file_path"):
            return self._error("file_path is required.")
        path = resolve_path(args["file_path"], ctx)

        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return self._error(f"File not found: {path}")
        except IsADirectoryError:
            return self._error(f"Path is a directory, not a file: {path}")
        except PermissionError:
            return self._error(f"Permission denied: {path}")
        except UnicodeDecodeError:
            return self._error(f"Cannot read file as text: {path}")

        start = max(0, int(args.get("offset") or 1) - 1)
        end = start + int(args.get("limit") or DEFAULT_LINE_LIMIT)

        numbered = []
        for lineno, line in enumerate(lines[start:end], start=start + 1):
            if len(line) > MAX_LINE_LENGTH:
                line = line[:MAX_LINE_LENGTH] + " [truncated]"
            numbered.append(f"{lineno:>6}\t{line}")
        if end < len(lines):
            numbered.append(f"[...{len(lines) - end} more lines (offset={end + 1})]")
        return self._ok("\n".join(numbered))


class WriteTool(BaseTool):
    """Creates or replaces a file, making parent directories as needed."""

    _definition = ToolDef(
        name="Write",
        description="Create or overwrite a file with the given content.",
        parameters=(
            _FILE_PATH,
            ToolParam("content", "string", "The full new file content."),
        ),
        kind=ToolKind.EDIT,
    )

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        if not args.get("file_path"):
            return self._error("file_path is required.")
        path = resolve_path(args["file_path"], ctx)
        content = str(args.get("content", ""))

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            return self._error(f"Cannot write {path}: {exc}")
        return self._ok(f"Wrote {len(content.encode('utf-8'))} bytes to {path}")


class EditTool(BaseTool):
    """Exact string replacement; the match must be unique unless ``replace_all``."""

    _definition = ToolDef(
        name="Edit",
        description=(
            "Replace old_string with new_string in a file. old_string must occur "
            "exactly once unless replace_all is true."
        ),
        parameters=(
            _FILE_PATH,
            ToolParam("old_string", "string", "Exact text to find."),
            ToolParam("new_string", "string", "Replacement text."),
            ToolParam("replace_all", "boolean", "Replace every occurrence.", required=False),
        ),
        kind=ToolKind.EDIT,
    )

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        if not args.get("file_path"):
            return self._error("file_path is required.")
        if "old_string" not in args or "new_string" not in args:
            return self._error("old_string and new_string are required.")
        old, new = str(args["old_string"]), str(args["new_string"])
        if old == new:
            return self._error("old_string and new_string must differ.")
        path = resolve_path(args["file_path"], ctx)

        try:
            original = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return self._error(f"File not found: {path}")
        except (OSError, UnicodeDecodeError) as exc:
            return self._error(f"Cannot read {path}: {exc}")

        count = original.count(old) if old else 0
        if count == 0:
            return self._error(f"old_string not found in {path}")
        replace_all = bool(args.get("replace_all", False))
        if count > 1 and not replace_all:
            return self._error(
                f"old_string occurs {count} times in {path}; "
                "add surrounding context or set replace_all."
            )

        updated = original.replace(old, new) if replace_all else original.replace(old, new, 1)
        try:
            path.write_text(updated, encoding="utf-8")
        except OSError as exc:
            return self._error(f"Cannot write {path}: {exc}")
        replaced = count if replace_all else 1
        return self._ok(f"Made {replaced} replacement(s) in {path}")
