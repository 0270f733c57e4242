"""AgentContext - one conversational session and its collaborators."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from agent.agent import AgentLoop
from agent.config import AgentConfig
from agent.demo import DemoResponder
from agent.events import EventSink
from agent.exceptions import NotConfiguredError, SessionBusyError
from agent.messages import ConversationState, Message
from agent.models import LLMClient
from agent.response import TurnResult
from agent.telemetry import Telemetry
from tools.executor import ToolExecutor
from tools.tool_registry import ToolRegistry


class AgentContext:
    """
    A conversational session. Owns the ConversationState for its lifetime
    and hands it to AgentLoop for each turn. In-memory only.
    """

    def __init__(
        self,
        config: AgentConfig,
        session_id: str | None = None,
        on_event: EventSink | None = None,
        llm_client: LLMClient | None = None,
        registry: ToolRegistry | None = None,
    ):
        self.id: str = session_id or uuid.uuid4().hex[:12]
        self.config = config
        self.on_event = on_event
        self.state = ConversationState()
        self.telemetry = Telemetry(config.telemetry, self.id)
        self.registry = registry or ToolRegistry()
        self.is_running = False
        self.last_result: TurnResult | None = None
        now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        self.created_at = now
        self.updated_at = now

        if llm_client is None and config.llm.is_configured:
            llm_client = LLMClient.from_config(config.llm)
        self.llm_client = llm_client

    @property
    def is_configured(self) -> bool:
        return self.llm_client is not None

    def build_loop(self) -> AgentLoop:
        """Wire a fresh AgentLoop around this session's collaborators."""
        if self.llm_client is None:
            raise NotConfiguredError(
                "LLM is not configured: set llm.api_key and llm.base_url"
            )
        executor = ToolExecutor(
            self.registry,
            self.config,
            llm_client=self.llm_client,
            on_event=self.on_event,
        )
        return AgentLoop(
            self.llm_client,
            executor,
            self.registry,
            max_iterations=self.config.max_iterations,
            on_event=self.on_event,
            telemetry=self.telemetry,
            model_name=self.config.llm.model,
            log_dir=self.config.log_dir,
        )

    async def run_turn(self, user_message: str) -> TurnResult:
        """Append the user message and run one agentic turn."""
        loop = self.build_loop()
        self._begin()
        try:
            self.state.append(Message.user(user_message))
            result = await loop.run(self.state)
            self.last_result = result
            return result
        finally:
            self._end()

    async def send(self, user_message: str) -> str:
        """
        Entry point for the outer surfaces. Runs the agentic loop when the
        LLM is configured, demo mode otherwise. Returns the reply text.
        """
        if not self.is_configured:
            self._begin()
            try:
                return await DemoResponder(self.config, self.on_event).respond(user_message)
            finally:
                self._end()
        result = await self.run_turn(user_message)
        return result.reply

    def _begin(self) -> None:
        if self.is_running:
            raise SessionBusyError(f"Session {self.id} is already processing a turn")
        self.is_running = True

    def _end(self) -> None:
        self.is_running = False
        self.updated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
