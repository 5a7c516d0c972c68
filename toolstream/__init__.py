"""Streaming tool-use client for the Anthropic Messages API."""

from toolstream.clients.anthropic import AnthropicClient, AnthropicConfig
from toolstream.errors import (
    MaxTurnsExceededError,
    ProtocolError,
    ToolError,
    ToolInputParseError,
    ToolStreamError,
    TruncatedStreamError,
    UnknownToolError,
)
from toolstream.models.llm import LLMMessage, TextBlock, ToolResultBlock, ToolUseBlock
from toolstream.services.history import ConversationHistory
from toolstream.services.llm import LLMService
from toolstream.tools import ToolDefinition, ToolsRegistry

__version__ = "0.1.0"

__all__ = [
    "AnthropicClient",
    "AnthropicConfig",
    "ConversationHistory",
    "LLMMessage",
    "LLMService",
    "MaxTurnsExceededError",
    "ProtocolError",
    "TextBlock",
    "ToolDefinition",
    "ToolError",
    "ToolInputParseError",
    "ToolResultBlock",
    "ToolStreamError",
    "ToolUseBlock",
    "ToolsRegistry",
    "TruncatedStreamError",
    "UnknownToolError",
    "__version__",
]
