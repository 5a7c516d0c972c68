"""Base types and definitions for tools."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from toolstream.tools.schema import model_description, model_input_schema

ToolCallable = Callable[[dict[str, Any]], Awaitable[str]]
ModelToolHandler = Callable[[Any], Awaitable[str]]


@dataclass
class ToolDefinition:
    """Definition of a tool the model may call."""

    name: str
    input_schema: dict[str, Any]
    handler: ToolCallable
    description: str | None = None

    def to_api(self) -> dict[str, Any]:
        """Tool entry as sent in the ``tools`` request parameter."""
        tool: dict[str, Any] = {"name": self.name, "input_schema": self.input_schema}
        if self.description:
            tool["description"] = self.description
        return tool

    @classmethod
    def from_model(
        cls,
        name: str,
        input_schema_class: type[BaseModel],
        handler: ModelToolHandler,
        description: str | None = None,
    ) -> "ToolDefinition":
        """Create a tool whose input is validated by a pydantic model.

        The handler receives the validated model instance. Validation errors
        are raised from inside the tool callable, so they reach the model as an
        error result like any other handler failure.
        """

        async def tool_callable(params: dict[str, Any]) -> str:
            parsed_params = input_schema_class.model_validate(params)
            return await handler(parsed_params)

        return cls(
            name=name,
            input_schema=model_input_schema(input_schema_class),
            handler=tool_callable,
            description=description if description is not None else model_description(input_schema_class),
        )
