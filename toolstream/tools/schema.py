"""Conversion of pydantic input models into tool input schemas."""

import inspect
from typing import Any

from pydantic import BaseModel


def model_input_schema(model_cls: type[BaseModel]) -> dict[str, Any]:
    """Build the ``input_schema`` of a tool from a pydantic model.

    The model docstring describes the tool rather than its input, so it is
    left out of the schema and exposed through :func:`model_description`.

    Raises:
        ValueError: If the model does not describe a JSON object
    """
    schema = model_cls.model_json_schema()
    if schema.get("type") != "object":
        raise ValueError(f"Tool input model {model_cls.__name__} must produce an object schema")

    schema.pop("title", None)
    schema.pop("description", None)
    schema.setdefault("properties", {})
    return schema


def model_description(model_cls: type[BaseModel]) -> str | None:
    """Human-readable tool description taken from the model docstring, if any."""
    doc = model_cls.__doc__
    # BaseModel's own docstring is inherited when a model declares none
    if not doc or doc is BaseModel.__doc__:
        return None
    return inspect.cleandoc(doc)
