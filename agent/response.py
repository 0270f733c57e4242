"""Turn outcome types returned by the agent loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from agent.messages import ConversationState, Message


class TurnStatus(str, Enum):
    """Terminal state of one user turn. Exactly one is reached per turn."""
    COMPLETED = "completed"
    BOUNDED = "bounded"
    FAILED = "failed"


@dataclass
class TurnResult:
    """Result of AgentLoop.run: the terminal state plus the run record."""
    status: TurnStatus
    state: ConversationState
    final_message: Message | None = None
    iterations: int = 0
    tools_used: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def reply(self) -> str:
        """Text to show the user for this turn."""
        if self.status is TurnStatus.FAILED:
            return f"Error: {self.error}"
        if self.final_message and self.final_message.content:
            return self.final_message.content
        return ""
