from collections.abc import Callable
from typing import Any

from pydantic import BaseModel


class Tool:
    """A named operation a provider exposes to callers, with validated input."""

    def __init__(
        self,
        *,
        name: str,
        description: str,
        input_schema: type[BaseModel],
        handler: Callable,
    ) -> None:
        self.name = name
        self.description = description
        self.input_schema = input_schema
        self.handler = handler

    def describe(self) -> dict[str, Any]:
        """Name, description and JSON schema, as advertised to clients."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema.model_json_schema(),
        }


class ToolCall(BaseModel):
    tool_name: str
    arguments: dict[str, Any] = {}
    request_id: str | None = None

    class Config:
        extra = "forbid"
