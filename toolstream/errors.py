"""Exception taxonomy for the streaming tool loop."""


class ToolStreamError(Exception):
    """Base class for every error raised by toolstream."""


class ProtocolError(ToolStreamError):
    """The provider event stream is malformed (events out of order or of the wrong kind)."""


class TruncatedStreamError(ProtocolError):
    """The event stream ended while a content block was still open."""

    def __init__(self, block_type: str, buffered: str):
        super().__init__(f"Stream ended inside an unfinished {block_type} block ({len(buffered)} chars buffered)")
        self.block_type = block_type
        self.buffered = buffered


class ToolInputParseError(ToolStreamError):
    """The accumulated input of a tool_use block is not a JSON object."""

    def __init__(self, tool_name: str, raw_input: str, reason: str):
        super().__init__(f"Invalid input for tool {tool_name}: {reason}")
        self.tool_name = tool_name
        self.raw_input = raw_input


class UnknownToolError(ToolStreamError):
    """The model requested a tool that has no registered handler."""

    def __init__(self, tool_name: str):
        super().__init__(f"No handler for tool {tool_name}")
        self.tool_name = tool_name


class MaxTurnsExceededError(ToolStreamError):
    """The model kept requesting tools past the configured turn limit."""

    def __init__(self, max_turns: int):
        super().__init__(f"Conversation exceeded {max_turns} model turns")
        self.max_turns = max_turns


class ToolError(Exception):
    """Failure a tool handler reports back to the model as an error result."""
