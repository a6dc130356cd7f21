import logging
from typing import Any

from .tool import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Dispatch table from tool name to :class:`Tool`."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")

        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            logger.error("Tool not found: %s", name)
            raise KeyError(f"Tool '{name}' not found")

    def remove(self, name: str) -> None:
        if self._tools.pop(name, None) is None:
            logger.error("Cannot remove tool, not found: %s", name)
            raise KeyError(f"Tool '{name}' not found")
        logger.debug("Removed tool: %s", name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def schemas(self) -> list[dict[str, Any]]:
        return [tool.describe() for tool in self._tools.values()]

    def list(self) -> dict[str, Tool]:
        return dict(self._tools)
