"""Anthropic/Claude chat provider."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from chorus.errors import ProviderUnavailableError
from chorus.types.providers import ChatMessage, StreamEvent
from chorus.types.tools import ToolDef

logger = logging.getLogger(__name__)


class AnthropicProvider:
    """Chat provider backed by the official ``anthropic`` async SDK.

    SDK stream events are translated into provider-agnostic
    :class:`~chorus.types.providers.StreamEvent` objects. No retries are made
    here; transport errors propagate to the engine's caller.

    Parameters
    ----------
    model:
        Model ID to use for completions.
    api_key:
        Anthropic API key. When *None* the SDK falls back to the
        ``ANTHROPIC_API_KEY`` environment variable.
    base_url:
        Optional proxy or gateway URL.
    """

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> None:
        try:
            from anthropic import AsyncAnthropic
        except ImportError as exc:
            raise ProviderUnavailableError(
                "The 'anthropic' package is required. Install it with: pip install anthropic",
                provider="anthropic",
            ) from exc

        self._model = model
        kwargs: dict[str, Any] = {}
        if api_key:
            kwargs["api_key"] = api_key
        if base_url:
            kwargs["base_url"] = base_url
        self._client = AsyncAnthropic(**kwargs)

    @property
    def model_id(self) -> str:
        return self._model

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        tools: list[ToolDef],
        system: str,
        max_tokens: int,
    ) -> AsyncIterator[StreamEvent]:
        """Stream one model response as :class:`StreamEvent` objects."""
        request: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if system:
            request["system"] = system
        if tools:
            request["tools"] = [
                {
                    "name": t.name,
                    "description": t.description,
                    "input_schema": t.input_schema(),
                }
                for t in tools
            ]

        async with self._client.messages.stream(**request) as stream:
            # Needed to tell when a tool_use block ends on content_block_stop.
            current_block_type: str | None = None

            async for event in stream:
                match event.type:
                    case "content_block_start":
                        current_block_type = event.content_block.type
                        if current_block_type == "tool_use":
                            yield StreamEvent(
                                type="tool_use_start",
                                tool_use_id=event.content_block.id,
                                tool_name=event.content_block.name,
                            )

                    case "content_block_delta":
                        if event.delta.type == "text_delta":
                            yield StreamEvent(type="text_delta", text=event.delta.text)
                        elif event.delta.type == "input_json_delta":
                            yield StreamEvent(
                                type="tool_use_delta",
                                tool_args_json=event.delta.partial_json,
                            )

                    case "content_block_stop":
                        if current_block_type == "tool_use":
                            yield StreamEvent(type="tool_use_end")
                        current_block_type = None

                    case "message_stop":
                        final_message = await stream.get_final_message()
                        yield StreamEvent(
                            type="message_end",
                            stop_reason=final_message.stop_reason,
                            usage={
                                "input_tokens": final_message.usage.input_tokens,
                                "output_tokens": final_message.usage.output_tokens,
                            },
                        )
