import inspect
import logging
from time import monotonic
from typing import Any

from knowledge_kit.observability import names
from knowledge_kit.observability.base import MetricsHook, NoOpMetricsHook

from .tool import ToolCall
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolEngine:
    """Validates tool arguments and runs the handler, sync or async.

    Errors propagate to the caller after being counted.
    """

    def __init__(
        self,
        tool_registry: ToolRegistry,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.tool_registry = tool_registry
        self.metrics_hook = metrics_hook

    async def call_tool(self, tool_call: ToolCall) -> Any:
        logger.debug(
            "Calling tool: %s (request_id=%s)", tool_call.tool_name, tool_call.request_id
        )
        start = monotonic()
        labels = {"tool": tool_call.tool_name}
        try:
            tool = self.tool_registry.get(tool_call.tool_name)
            validated_args = tool.input_schema(**tool_call.arguments)

            if inspect.iscoroutinefunction(tool.handler):
                result = await tool.handler(validated_args)
            else:
                result = tool.handler(validated_args)
        except Exception:
            self.metrics_hook.increment(names.TOOL_ERRORS_TOTAL, labels=labels)
            raise

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.TOOL_CALL_DURATION, elapsed_ms, labels)
        self.metrics_hook.increment(names.TOOL_CALLS_TOTAL, labels=labels)
        return result
