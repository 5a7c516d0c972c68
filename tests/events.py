"""Builders for scripted stream events and a replaying transport."""

from collections.abc import AsyncIterator, Iterable
from typing import Any

from toolstream.models.llm import LLMMessage


def text_block(index: int, *chunks: str) -> list[dict[str, Any]]:
    """Events of one text block streamed in ``chunks``."""
    return [
        {"type": "content_block_start", "index": index, "content_block": {"type": "text", "text": ""}},
        *(
            {"type": "content_block_delta", "index": index, "delta": {"type": "text_delta", "text": chunk}}
            for chunk in chunks
        ),
        {"type": "content_block_stop", "index": index},
    ]


def tool_use_block(index: int, tool_use_id: str, name: str, *json_chunks: str) -> list[dict[str, Any]]:
    """Events of one tool_use block whose input arrives as partial JSON."""
    return [
        {
            "type": "content_block_start",
            "index": index,
            "content_block": {"type": "tool_use", "id": tool_use_id, "name": name, "input": {}},
        },
        *(
            {
                "type": "content_block_delta",
                "index": index,
                "delta": {"type": "input_json_delta", "partial_json": chunk},
            }
            for chunk in json_chunks
        ),
        {"type": "content_block_stop", "index": index},
    ]


def turn(
    *blocks: list[dict[str, Any]],
    stop_reason: str = "end_turn",
    input_tokens: int = 10,
    output_tokens: int = 5,
) -> list[dict[str, Any]]:
    """Complete event sequence of one model turn."""
    events: list[dict[str, Any]] = [
        {
            "type": "message_start",
            "message": {"id": "msg_test", "model": "claude-test", "usage": {"input_tokens": input_tokens}},
        }
    ]
    for block in blocks:
        events.extend(block)
    events.append(
        {"type": "message_delta", "delta": {"stop_reason": stop_reason}, "usage": {"output_tokens": output_tokens}}
    )
    events.append({"type": "message_stop"})
    return events


async def aiter_events(events: Iterable[Any]) -> AsyncIterator[Any]:
    for event in events:
        yield event


class FakeTransport:
    """Replays one scripted event list per request and records each request."""

    def __init__(self, *turns: list[dict[str, Any]]):
        self.turns = list(turns)
        self.requests: list[dict[str, Any]] = []

    async def create_stream(
        self,
        messages: list[LLMMessage],
        tools: list[dict[str, Any]],
        **options: Any,
    ) -> AsyncIterator[Any]:
        self.requests.append(
            {
                "messages": [message.model_copy(deep=True) for message in messages],
                "tools": tools,
                "options": options,
            }
        )
        if not self.turns:
            raise AssertionError("Transport has no scripted turn left")
        for event in self.turns.pop(0):
            yield event


class FakeSDKStream:
    """Stand-in for the SDK's streamed response: async iterable, context manager, closable."""

    def __init__(self, events: Iterable[Any]):
        self.events = list(events)
        self.closed = False

    async def __aenter__(self) -> "FakeSDKStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        self.closed = True

    async def __aiter__(self) -> AsyncIterator[Any]:
        for event in self.events:
            yield event
