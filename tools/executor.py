"""ToolExecutor - validates a ToolCall against the registry and runs exactly one tool."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from agent.config import AgentConfig
from agent.events import EventSink
from agent.exceptions import ProtocolError
from agent.logs import get_file_logger
from agent.messages import ToolCall, ToolResult
from tools.base_tool import Tool
from tools.tool_registry import ToolKind, ToolRegistry

if TYPE_CHECKING:
    from agent.models import LLMClient


class ToolExecutor:
    """
    Dispatches tool calls by ToolKind. Every call yields a ToolResult:
    unknown names, bad arguments, timeouts and tool exceptions all become
    failed results instead of propagating.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        config: AgentConfig,
        llm_client: LLMClient | None = None,
        on_event: EventSink | None = None,
    ):
        self.registry = registry
        self.config = config
        self._tools: dict[ToolKind, Tool] = {
            ToolKind(name): registry.get_tool_class(ToolKind(name))(
                config, on_event=on_event, llm_client=llm_client
            )
            for name in registry.tool_names
        }
        self._logger = get_file_logger("tool_executor", config.log_dir)

    async def execute(self, tool_call: ToolCall) -> ToolResult:
        """Execute one tool call. Never raises."""
        try:
            kind = self.registry.resolve(tool_call.name)
            args = tool_call.parse_arguments()
            self._check_required(kind, args)
        except ProtocolError as e:
            self._logger.warning("Rejected tool call %s: %s", tool_call.id, e)
            return ToolResult.failure(str(e))

        tool = self._tools[kind]
        timeout = self.config.tool_execution.timeout_for(kind.value)
        try:
            return await asyncio.wait_for(tool.execute(**args), timeout=timeout)
        except asyncio.TimeoutError:
            self._logger.warning("Tool '%s' timed out after %ss", kind.value, timeout)
            return ToolResult.failure(f"Tool '{kind.value}' timed out after {timeout}s")
        except Exception as e:
            self._logger.warning("Tool '%s' failed: %s", kind.value, e)
            return ToolResult.failure(f"Tool '{kind.value}' error: {e}")

    def _check_required(self, kind: ToolKind, args: dict) -> None:
        missing = [name for name in self.registry.required_args(kind) if name not in args]
        if missing:
            raise ProtocolError(
                f"Missing required argument(s) for '{kind.value}': {', '.join(missing)}"
            )
