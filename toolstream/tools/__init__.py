"""Tools the model may call during a conversation."""

from toolstream.tools.base import ToolDefinition
from toolstream.tools.registry import ToolsRegistry

__all__ = ["ToolDefinition", "ToolsRegistry"]
