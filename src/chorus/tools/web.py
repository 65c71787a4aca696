"""WebFetch tool."""

from __future__ import annotations

import html
import re
from typing import Any

import httpx

from chorus.tools.base import BaseTool
from chorus.types.tools import ToolContext, ToolDef, ToolKind, ToolOutput, ToolParam

MAX_CONTENT_LENGTH = 50_000
USER_AGENT = "chorus/0.1"

_SCRIPT_RE = re.compile(r"<(script|style)[^>]*>.*?</\1>", re.DOTALL | re.IGNORECASE)
_BLOCK_RE = re.compile(r"<(br|p|div|h[1-6]|li|tr)[^>]*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")


def html_to_text(markup: str) -> str:
    """Strip tags and scripts from *markup*, keeping rough line structure."""
    text = _SCRIPT_RE.sub("", markup)
    text = _BLOCK_RE.sub("\n", text)
    text = html.unescape(_TAG_RE.sub("", text))
    text = re.sub(r"[ \t]+", " ", text)
    return re.sub(r"\n\s*\n+", "\n\n", text).strip()


class WebFetchTool(BaseTool):
    """HTTP GET a URL and return its body, HTML reduced to plain text."""

    _definition = ToolDef(
        name="WebFetch",
        description="Fetch a web page or API response by URL. HTML is converted to plain text.",
        parameters=(
            ToolParam("url", "string", "http:// or https:// URL."),
            ToolParam(
                "max_length", "integer",
                f"Maximum characters to return (default {MAX_CONTENT_LENGTH}).",
                required=False,
            ),
        ),
        kind=ToolKind.READ,
    )

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        self._client = client
        self._timeout = timeout

    @property
    def definition(self) -> ToolDef:
        return self._definition

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolOutput:
        url = args.get("url", "")
        if not url.startswith(("http://", "https://")):
            return self._error("url must start with http:// or https://")
        max_length = int(args.get("max_length") or MAX_CONTENT_LENGTH)

        try:
            if self._client is not None:
                resp = await self._client.get(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(
                    follow_redirects=True,
                    timeout=self._timeout,
                    headers={"User-Agent": USER_AGENT},
                ) as client:
                    resp = await client.get(url)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            return self._error(f"Fetch failed: {type(exc).__name__}: {exc}")

        body = resp.text
        if "html" in resp.headers.get("content-type", ""):
            body = html_to_text(body)
        if len(body) > max_length:
            body = body[:max_length] + f"\n\n[Truncated, {len(body):,} chars total]"
        return self._ok(body)
