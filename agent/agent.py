"""AgentLoop - the bounded request/act/observe cycle."""

from __future__ import annotations

import time
from typing import Protocol

from agent.events import EventSink, emit
from agent.exceptions import TransportError
from agent.logs import get_file_logger
from agent.messages import ConversationState, Message, ToolCall, ToolResult
from agent.response import TurnResult, TurnStatus
from agent.telemetry import Telemetry
from tools.tool_registry import ToolRegistry


DEFAULT_MAX_ITERATIONS = 10
MAX_ITERATIONS_NOTICE = "Maximum loop iterations reached. Task completed."
COMPLETED_NOTICE = (
    "I have completed all the tasks assigned by you. "
    "Let me know if you need help with anything else."
)


class CompletionClient(Protocol):
    async def complete(self, messages: list[dict], tools: list[dict]) -> Message: ...


class ToolRunner(Protocol):
    async def execute(self, tool_call: ToolCall) -> ToolResult: ...


class AgentLoop:
    """
    Drives one user turn to exactly one terminal state.

    Each iteration asks the model for its next message. A message without
    tool calls ends the turn (COMPLETED). Otherwise the message is appended,
    each call is executed in the listed order, and one tool-result message
    per call is appended before the next call starts. Hitting the iteration
    cap ends the turn as BOUNDED. A TransportError from the completion
    endpoint ends it as FAILED with the state left as it was.
    """

    def __init__(
        self,
        llm_client: CompletionClient,
        executor: ToolRunner,
        registry: ToolRegistry,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        on_event: EventSink | None = None,
        telemetry: Telemetry | None = None,
        model_name: str = "",
        log_dir: str | None = None,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self.llm_client = llm_client
        self.executor = executor
        self.registry = registry
        self.max_iterations = max_iterations
        self.on_event = on_event
        self.telemetry = telemetry
        self.model_name = model_name
        self._logger = get_file_logger("agent_loop", log_dir) if log_dir else None

    async def run(self, state: ConversationState) -> TurnResult:
        """Run the loop over `state`, which already holds the latest user message."""
        iterations = 0
        tools_used: list[str] = []
        tool_schemas = self.registry.get_tool_schemas()

        while iterations < self.max_iterations:
            started = time.monotonic()
            emit(self.on_event, "status", "Agent thinking...")

            # 1. Ask the model for its next message
            try:
                message = await self.llm_client.complete(state.to_api(), tool_schemas)
            except TransportError as e:
                self._record_llm(started, 0, str(e))
                self._log("error", "Turn failed at iteration %d: %s", iterations + 1, e)
                emit(self.on_event, "alert", f"Error: {e}", role="system")
                return self._finish(TurnResult(
                    status=TurnStatus.FAILED,
                    state=state,
                    iterations=iterations,
                    tools_used=tools_used,
                    error=str(e),
                ))
            self._record_llm(started, len(message.tool_calls), None)

            if message.content:
                emit(self.on_event, "message", message.content, role="assistant")

            # 2. No tool calls: final answer
            if not message.has_tool_calls:
                state.append(message)
                emit(self.on_event, "message", COMPLETED_NOTICE, role="assistant")
                return self._finish(TurnResult(
                    status=TurnStatus.COMPLETED,
                    state=state,
                    final_message=message,
                    iterations=iterations,
                    tools_used=tools_used,
                ))

            # 3. Record the request, then answer every call in order
            state.append(message)
            for tool_call in message.tool_calls:
                result = await self._execute(tool_call)
                state.append(Message.tool(tool_call.id, result))
                if tool_call.name not in tools_used:
                    tools_used.append(tool_call.name)

            # 4. Next iteration
            iterations += 1
            names = ",".join(tc.name for tc in message.tool_calls)
            self._record_iteration(iterations, f"tools:{names}", started)
            self._log("info", "Iteration %d executed %s", iterations, names)

        self._log("warning", "Iteration cap of %d reached", self.max_iterations)
        emit(self.on_event, "alert", MAX_ITERATIONS_NOTICE, role="system")
        emit(self.on_event, "message", COMPLETED_NOTICE, role="assistant")
        return self._finish(TurnResult(
            status=TurnStatus.BOUNDED,
            state=state,
            iterations=iterations,
            tools_used=tools_used,
        ))

    async def _execute(self, tool_call: ToolCall) -> ToolResult:
        """Run one call; an unexpected executor crash still yields a result."""
        emit(self.on_event, "status", f"Executing: {tool_call.name}")
        started = time.monotonic()
        try:
            result = await self.executor.execute(tool_call)
        except Exception as e:
            result = ToolResult.failure(f"Tool '{tool_call.name}' error: {e}")

        if not result.success:
            emit(self.on_event, "alert", f"Tool execution failed: {result.error}", role="system")
        if self.telemetry:
            self.telemetry.record_tool_call(
                tool_name=tool_call.name,
                call_id=tool_call.id,
                duration_ms=(time.monotonic() - started) * 1000,
                success=result.success,
                error=result.error,
            )
        return result

    def _finish(self, result: TurnResult) -> TurnResult:
        if self.telemetry:
            self.telemetry.finalize(result.status.value)
        return result

    def _record_llm(self, started: float, tool_call_count: int, error: str | None) -> None:
        if self.telemetry:
            self.telemetry.record_llm_call(
                model=self.model_name,
                latency_ms=(time.monotonic() - started) * 1000,
                tool_call_count=tool_call_count,
                error=error,
            )

    def _record_iteration(self, iteration: int, decision: str, started: float) -> None:
        if self.telemetry:
            self.telemetry.record_iteration(
                iteration=iteration,
                decision=decision,
                duration_ms=(time.monotonic() - started) * 1000,
            )

    def _log(self, level: str, msg: str, *args) -> None:
        if self._logger:
            getattr(self._logger, level)(msg, *args)
