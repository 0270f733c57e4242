"""Abstract base class for all tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

from agent.config import AgentConfig
from agent.events import EventSink, emit
from agent.messages import ToolResult

if TYPE_CHECKING:
    from agent.models import LLMClient


class Tool(ABC):
    """Base class for all agent tools. Subclass this to create new tools."""

    name: str = ""
    description: str = ""
    parameters: dict[str, dict[str, Any]] = {}
    required_args: list[str] = []

    def __init__(
        self,
        config: AgentConfig,
        on_event: EventSink | None = None,
        llm_client: LLMClient | None = None,
    ):
        self.config = config
        self.on_event = on_event
        self.llm_client = llm_client

    @abstractmethod
    async def execute(self, **kwargs) -> ToolResult:
        """Execute the tool. Must be implemented by subclasses."""
        ...

    @classmethod
    def schema(cls) -> dict:
        """OpenAI function-calling declaration for this tool."""
        return {
            "type": "function",
            "function": {
                "name": cls.name,
                "description": cls.description,
                "parameters": {
                    "type": "object",
                    "properties": dict(cls.parameters),
                    "required": list(cls.required_args),
                },
            },
        }

    def emit(self, kind: str, content: str, **data) -> None:
        emit(self.on_event, kind, content, role="system", **data)
