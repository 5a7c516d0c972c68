"""Typed stream events of the Messages streaming API."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from toolstream.errors import ProtocolError
from toolstream.models.llm import LLMUsage, TextBlock, ToolUseBlock
from toolstream.utils.logging import get_logger

logger = get_logger(__name__)


class EventUsage(BaseModel):
    """Token counters reported by message_start and message_delta."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None

    def to_usage(self) -> LLMUsage:
        return LLMUsage(
            input_tokens=self.input_tokens or 0,
            output_tokens=self.output_tokens or 0,
            cache_creation_input_tokens=self.cache_creation_input_tokens or 0,
            cache_read_input_tokens=self.cache_read_input_tokens or 0,
        )


class StreamMessage(BaseModel):
    """Message envelope announced by message_start."""

    id: str | None = None
    model: str | None = None
    usage: EventUsage = Field(default_factory=EventUsage)


class TextDelta(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    text: str


class InputJSONDelta(BaseModel):
    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str


class MessageDeltaBody(BaseModel):
    stop_reason: str | None = None


class MessageStartEvent(BaseModel):
    type: Literal["message_start"] = "message_start"
    message: StreamMessage = Field(default_factory=StreamMessage)


class ContentBlockStartEvent(BaseModel):
    """Opens a content block; tool_use blocks arrive with an empty input."""

    type: Literal["content_block_start"] = "content_block_start"
    index: int
    content_block: Annotated[TextBlock | ToolUseBlock, Field(discriminator="type")]


class ContentBlockDeltaEvent(BaseModel):
    type: Literal["content_block_delta"] = "content_block_delta"
    index: int
    delta: Annotated[TextDelta | InputJSONDelta, Field(discriminator="type")]


class ContentBlockStopEvent(BaseModel):
    type: Literal["content_block_stop"] = "content_block_stop"
    index: int


class MessageDeltaEvent(BaseModel):
    type: Literal["message_delta"] = "message_delta"
    delta: MessageDeltaBody = Field(default_factory=MessageDeltaBody)
    usage: EventUsage = Field(default_factory=EventUsage)


class MessageStopEvent(BaseModel):
    type: Literal["message_stop"] = "message_stop"


class PingEvent(BaseModel):
    type: Literal["ping"] = "ping"


StreamEvent = Annotated[
    MessageStartEvent
    | ContentBlockStartEvent
    | ContentBlockDeltaEvent
    | ContentBlockStopEvent
    | MessageDeltaEvent
    | MessageStopEvent
    | PingEvent,
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)

_EVENT_CLASSES = (
    MessageStartEvent,
    ContentBlockStartEvent,
    ContentBlockDeltaEvent,
    ContentBlockStopEvent,
    MessageDeltaEvent,
    MessageStopEvent,
    PingEvent,
)
EVENT_TYPES = frozenset(cls.model_fields["type"].default for cls in _EVENT_CLASSES)


def parse_stream_event(raw: Any) -> StreamEvent | None:
    """Normalize a raw stream event into one of the typed event models.

    Accepts the typed models themselves, plain dicts, or SDK event objects
    (anything exposing ``model_dump``). Returns None for event kinds this
    module does not know, so newer provider events are skipped rather than fatal.

    Raises:
        ProtocolError: If a known event kind carries a malformed payload
    """
    if isinstance(raw, _EVENT_CLASSES):
        return raw

    if hasattr(raw, "model_dump"):
        data = raw.model_dump()
    elif isinstance(raw, dict):
        data = raw
    else:
        raise ProtocolError(f"Unsupported stream event: {raw!r}")

    event_type = data.get("type")
    if event_type not in EVENT_TYPES:
        logger.debug(f"Skipping unknown stream event type: {event_type}")
        return None

    try:
        return _event_adapter.validate_python(data)
    except ValidationError as e:
        raise ProtocolError(f"Malformed {event_type} event: {e}") from e
