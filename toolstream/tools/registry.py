"""Tools registry mapping tool names to their handlers."""

from typing import Any

from pydantic import BaseModel

from toolstream.tools.base import ModelToolHandler, ToolCallable, ToolDefinition
from toolstream.utils.logging import get_logger

logger = get_logger(__name__)


class ToolsRegistry:
    """Registry of the tools available to one client instance."""

    def __init__(self, tools: list[ToolDefinition] | None = None):
        """Initialize tools registry.

        Args:
            tools: Tools to register up front
        """
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.add(tool)

    def add(self, tool: ToolDefinition) -> None:
        """Register a tool, replacing any previous tool with the same name."""
        if tool.name in self._tools:
            logger.debug(f"Replacing previously registered tool: {tool.name}")
        self._tools[tool.name] = tool

    def register_tool(
        self,
        name: str,
        input_schema: dict[str, Any],
        handler: ToolCallable,
        description: str | None = None,
    ) -> ToolDefinition:
        """Register a tool from a raw JSON schema and a handler taking the parsed input dict."""
        tool = ToolDefinition(name=name, input_schema=input_schema, handler=handler, description=description)
        self.add(tool)
        return tool

    def add_model_tool(
        self,
        name: str,
        input_schema_class: type[BaseModel],
        handler: ModelToolHandler,
        description: str | None = None,
    ) -> ToolDefinition:
        """Register a tool whose input is described and validated by a pydantic model."""
        tool = ToolDefinition.from_model(name, input_schema_class, handler, description)
        self.add(tool)
        return tool

    def get_handler(self, name: str) -> ToolCallable | None:
        tool = self._tools.get(name)
        return tool.handler if tool else None

    def get_api_tools(self) -> list[dict[str, Any]]:
        """Get tool schemas in registration order, ready for the request."""
        return [tool.to_api() for tool in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
