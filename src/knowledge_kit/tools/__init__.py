from .tool import Tool, ToolCall
from .tool_engine import ToolEngine
from .tool_registry import ToolRegistry

__all__ = [
    "Tool",
    "ToolCall",
    "ToolEngine",
    "ToolRegistry",
]
