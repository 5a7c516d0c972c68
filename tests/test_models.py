"""Tests for data models and stream event parsing."""

import pytest
from pydantic import ValidationError

from toolstream.errors import ProtocolError
from toolstream.models.events import (
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    InputJSONDelta,
    MessageDeltaEvent,
    parse_stream_event,
)
from toolstream.models.llm import LLMMessage, LLMUsage, TextBlock, ToolResultBlock, ToolUseBlock
from toolstream.services.history import ConversationHistory


class TestContentBlocks:
    """Tests for content block models."""

    def test_llm_message_text_content(self):
        """Test LLM message with text content."""
        message = LLMMessage(role="user", content="Hello")
        assert message.role == "user"
        assert message.content == "Hello"
        assert message.blocks == [TextBlock(text="Hello")]

    def test_llm_message_content_blocks_from_dicts(self):
        """Test that block dicts are dispatched to the right block type."""
        message = LLMMessage.model_validate(
            {
                "role": "assistant",
                "content": [
                    {"type": "text", "text": "Let me check.", "citations": None},
                    {"type": "tool_use", "id": "toolu_01", "name": "roll_dice", "input": {"sides": 6}},
                ],
            }
        )
        assert isinstance(message.content[0], TextBlock)
        assert isinstance(message.content[1], ToolUseBlock)
        assert message.content[1].input == {"sides": 6}

    def test_llm_message_rejects_system_role(self):
        """Test that system instructions are not part of the history."""
        with pytest.raises(ValidationError):
            LLMMessage(role="system", content="You are helpful")  # type: ignore

    def test_tool_result_block_defaults(self):
        """Test valid tool result block."""
        block = ToolResultBlock(tool_use_id="toolu_01", content="Success")
        assert block.type == "tool_result"
        assert block.is_error is False

    def test_tool_result_block_dump(self):
        """Test the wire shape of an error tool result."""
        block = ToolResultBlock(tool_use_id="toolu_01", content="division by zero", is_error=True)
        assert block.model_dump() == {
            "type": "tool_result",
            "tool_use_id": "toolu_01",
            "content": "division by zero",
            "is_error": True,
        }


class TestUsage:
    """Tests for token usage bookkeeping."""

    def test_add_and_total(self):
        usage = LLMUsage(input_tokens=10, output_tokens=5)
        usage.add(LLMUsage(input_tokens=3, output_tokens=2, cache_read_input_tokens=7))

        assert usage.total_tokens == 20
        assert usage.cache_read_input_tokens == 7

    def test_cache_hit_rate(self):
        """Test cache hit rate as a percentage of all input tokens."""
        assert LLMUsage().cache_hit_rate == 0.0
        assert LLMUsage(input_tokens=25, cache_read_input_tokens=75).cache_hit_rate == 75.0


class TestStreamEvents:
    """Tests for normalizing raw stream events."""

    def test_parse_tool_use_start(self):
        event = parse_stream_event(
            {
                "type": "content_block_start",
                "index": 1,
                "content_block": {"type": "tool_use", "id": "toolu_01", "name": "roll_dice", "input": {}},
            }
        )
        assert isinstance(event, ContentBlockStartEvent)
        assert isinstance(event.content_block, ToolUseBlock)

    def test_parse_input_json_delta(self):
        event = parse_stream_event(
            {"type": "content_block_delta", "index": 0, "delta": {"type": "input_json_delta", "partial_json": '{"a'}}
        )
        assert isinstance(event, ContentBlockDeltaEvent)
        assert event.delta == InputJSONDelta(partial_json='{"a')

    def test_parse_message_delta(self):
        event = parse_stream_event(
            {
                "type": "message_delta",
                "delta": {"stop_reason": "tool_use", "stop_sequence": None},
                "usage": {"output_tokens": 9},
            }
        )
        assert isinstance(event, MessageDeltaEvent)
        assert event.delta.stop_reason == "tool_use"
        assert event.usage.to_usage().output_tokens == 9

    def test_typed_events_pass_through(self):
        event = ContentBlockStartEvent(index=0, content_block=TextBlock(text=""))
        assert parse_stream_event(event) is event

    def test_unknown_event_type_is_skipped(self):
        assert parse_stream_event({"type": "citations_delta_v9"}) is None

    def test_malformed_known_event(self):
        """Test that a known event with a bad payload is a protocol error."""
        with pytest.raises(ProtocolError, match="content_block_delta"):
            parse_stream_event({"type": "content_block_delta", "index": 0, "delta": {"type": "thinking_delta"}})

    def test_unsupported_event_object(self):
        with pytest.raises(ProtocolError):
            parse_stream_event("content_block_stop")


class TestConversationHistory:
    """Tests for the append-only history."""

    def test_append_validates_dicts(self):
        history = ConversationHistory()
        message = history.append({"role": "user", "content": "hi"})

        assert isinstance(message, LLMMessage)
        assert len(history) == 1

    def test_messages_returns_a_copy(self):
        """Test that readers cannot change the history through the returned list."""
        history = ConversationHistory([LLMMessage(role="user", content="hi")])

        history.messages.append(LLMMessage(role="assistant", content="sneaky"))

        assert len(history) == 1

    def test_snapshot_is_detached(self):
        """Test that snapshot messages are copies of the stored ones."""
        history = ConversationHistory()
        history.add_user("hi")

        snapshot = history.snapshot()

        assert isinstance(snapshot, tuple)
        assert snapshot[0] == history[0]
        assert snapshot[0] is not history[0]

    def test_stored_messages_cannot_be_rewritten(self):
        """Test that changing a message read from the history leaves the history intact."""
        original = LLMMessage(role="user", content="hi")
        history = ConversationHistory([original])

        history[0].content = "rewritten"
        history.messages[0].content = "rewritten"
        next(iter(history)).content = "rewritten"
        original.content = "rewritten"

        assert history[0].content == "hi"

    def test_stored_blocks_cannot_be_rewritten(self):
        """Test that block lists inside stored messages are copied as well."""
        history = ConversationHistory()
        history.append(LLMMessage(role="assistant", content=[TextBlock(text="hello")]))

        history[0].content[0].text = "changed"
        history[0].content.append(TextBlock(text="extra"))

        assert history[0].content == [TextBlock(text="hello")]
