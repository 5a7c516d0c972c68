"""Reassembly of one streamed model turn into content blocks."""

import json
from collections.abc import AsyncGenerator, AsyncIterable
from typing import Any

from toolstream.errors import ProtocolError, ToolInputParseError, TruncatedStreamError
from toolstream.models.events import (
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    InputJSONDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    TextDelta,
    parse_stream_event,
)
from toolstream.models.llm import AssistantBlock, LLMUsage, TextBlock, ToolUseBlock
from toolstream.utils.logging import get_logger

logger = get_logger(__name__)

# Yielded after each finished text block
BLOCK_BOUNDARY = "\n"


class StreamAssembler:
    """Consumes the events of a single turn.

    Iterating :meth:`assemble` yields text increments as they arrive. Once the
    iteration is exhausted, :attr:`content` holds the finalized blocks of the
    turn in stream order. An assembler handles exactly one turn.
    """

    def __init__(self) -> None:
        self.stop_reason: str | None = None
        self.usage = LLMUsage()

        self._blocks: list[AssistantBlock] = []
        self._pending: AssistantBlock | None = None
        self._pending_index: int | None = None
        self._pending_text = ""
        self._started = False
        self._complete = False

    @property
    def content(self) -> list[AssistantBlock]:
        """Finalized blocks of the turn, available once the stream is exhausted."""
        if not self._complete:
            raise RuntimeError("Turn content is not available until the event stream is exhausted")
        return list(self._blocks)

    @property
    def complete(self) -> bool:
        return self._complete

    async def assemble(self, events: AsyncIterable[Any]) -> AsyncGenerator[str, None]:
        """Consume ``events`` and yield text increments.

        Raises:
            ProtocolError: If the events are out of order or malformed
            TruncatedStreamError: If the stream ends inside an open block
            ToolInputParseError: If a tool_use block's input is not a JSON object
        """
        if self._started:
            raise RuntimeError("StreamAssembler instances cannot be reused across turns")
        self._started = True

        async for raw_event in events:
            event = parse_stream_event(raw_event)

            if isinstance(event, ContentBlockStartEvent):
                self._start_block(event)
            elif isinstance(event, ContentBlockDeltaEvent):
                increment = self._apply_delta(event)
                if increment is not None:
                    yield increment
            elif isinstance(event, ContentBlockStopEvent):
                if self._stop_block(event):
                    yield BLOCK_BOUNDARY
            elif isinstance(event, MessageStartEvent):
                self.usage.add(event.message.usage.to_usage())
            elif isinstance(event, MessageDeltaEvent):
                if event.delta.stop_reason is not None:
                    self.stop_reason = event.delta.stop_reason
                # message_delta counters are cumulative for the turn
                if event.usage.output_tokens is not None:
                    self.usage.output_tokens = event.usage.output_tokens

        if self._pending is not None:
            raise TruncatedStreamError(self._pending.type, self._pending_text)

        self._complete = True
        logger.debug(f"Turn assembled: {len(self._blocks)} blocks, stop reason {self.stop_reason}")

    def _start_block(self, event: ContentBlockStartEvent) -> None:
        if self._pending is not None:
            raise ProtocolError(
                f"content_block_start at index {event.index} while block {self._pending_index} is still open"
            )
        self._pending = event.content_block.model_copy()
        self._pending_index = event.index
        self._pending_text = ""

    def _apply_delta(self, event: ContentBlockDeltaEvent) -> str | None:
        self._check_open(event.type, event.index)

        delta = event.delta
        if isinstance(delta, InputJSONDelta):
            if not isinstance(self._pending, ToolUseBlock):
                raise ProtocolError(f"input_json_delta received for a {self._pending.type} block")
            self._pending_text += delta.partial_json
            return None

        if isinstance(delta, TextDelta):
            if not isinstance(self._pending, TextBlock):
                raise ProtocolError(f"text_delta received for a {self._pending.type} block")
            self._pending_text += delta.text
            return delta.text

        raise ProtocolError(f"Unsupported delta: {delta!r}")

    def _stop_block(self, event: ContentBlockStopEvent) -> bool:
        """Finalize the open block; returns True when it was a text block."""
        self._check_open(event.type, event.index)
        block = self._pending

        is_text = False
        if isinstance(block, TextBlock):
            block.text = self._pending_text
            is_text = True
        elif isinstance(block, ToolUseBlock):
            block.input = self._parse_tool_input(block.name, self._pending_text)
        else:
            raise ProtocolError(f"Unsupported content block: {block!r}")

        self._blocks.append(block)
        self._pending = None
        self._pending_index = None
        self._pending_text = ""
        return is_text

    def _check_open(self, event_type: str, index: int) -> None:
        if self._pending is None:
            raise ProtocolError(f"Unexpected {event_type}: no open content block")
        if index != self._pending_index:
            raise ProtocolError(f"Unexpected {event_type} for index {index}, open block is {self._pending_index}")

    @staticmethod
    def _parse_tool_input(tool_name: str, raw_input: str) -> dict[str, Any]:
        # A tool called without arguments streams no input at all
        if raw_input == "":
            return {}

        try:
            parsed = json.loads(raw_input)
        except json.JSONDecodeError as e:
            raise ToolInputParseError(tool_name, raw_input, str(e)) from e

        if not isinstance(parsed, dict):
            raise ToolInputParseError(tool_name, raw_input, f"expected a JSON object, got {type(parsed).__name__}")
        return parsed
