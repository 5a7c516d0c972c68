"""Anthropic streaming transport."""

import os
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Any, Protocol

from anthropic import AsyncAnthropic

from toolstream.models.llm import LLMMessage
from toolstream.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AnthropicConfig:
    """Per-instance defaults for model requests."""

    model: str = "claude-3-5-sonnet-latest"
    max_tokens: int = 8192
    temperature: float | None = None
    system: str | None = None

    # Upper bound on model turns per conversation call; None means unbounded
    max_turns: int | None = None


class MessageStreamTransport(Protocol):
    """Anything able to open one streamed model turn."""

    def create_stream(
        self,
        messages: list[LLMMessage],
        tools: list[dict[str, Any]],
        **options: Any,
    ) -> AsyncGenerator[Any, None]: ...


class AnthropicClient:
    """Low-level client opening streamed Messages API requests."""

    api_key: str
    client: AsyncAnthropic

    def __init__(self, api_key: str | None = None, client: AsyncAnthropic | None = None):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            client: Preconfigured SDK client, used as-is when given
        """
        if client is not None:
            self.client = client
            self.api_key = client.api_key
            return

        anthropic_api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")

        self.api_key = anthropic_api_key
        self.client = AsyncAnthropic(api_key=self.api_key)

    @staticmethod
    def build_request(
        messages: list[LLMMessage],
        tools: list[dict[str, Any]],
        **options: Any,
    ) -> dict[str, Any]:
        """Build the keyword arguments of a streamed ``messages.create`` call.

        ``model`` and ``max_tokens`` are required; ``system`` and ``temperature``
        are sent only when set. Any other option is passed through untouched.
        """
        options = dict(options)
        request_params: dict[str, Any] = {
            "model": options.pop("model"),
            "max_tokens": options.pop("max_tokens"),
            "messages": [msg.model_dump() for msg in messages],
            "stream": True,
        }

        for key in ("system", "temperature"):
            value = options.pop(key, None)
            if value is not None:
                request_params[key] = value

        if tools:
            request_params["tools"] = tools
            request_params["tool_choice"] = {"type": "auto"}

        request_params.update(options)
        return request_params

    async def create_stream(
        self,
        messages: list[LLMMessage],
        tools: list[dict[str, Any]],
        **options: Any,
    ) -> AsyncGenerator[Any, None]:
        """Open a streamed request and yield its raw events.

        Transport failures surface as ``anthropic.APIError`` and are not retried.
        The SDK response is closed when iteration ends, fails or is abandoned
        through ``aclose``.
        """
        request_params = self.build_request(messages, tools, **options)
        logger.debug(
            f"Opening stream with model {request_params['model']}, "
            f"{len(messages)} messages, {len(tools)} tools"
        )

        stream = await self.client.messages.create(**request_params)
        async with stream:
            async for event in stream:
                yield event
