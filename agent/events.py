"""Display events emitted by the agent for the CLI and web layers."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Callable


EVENT_KINDS = ("message", "status", "alert", "code", "code_result", "search_results")


@dataclass
class AgentEvent:
    """A role-tagged message, status line, alert, or tool block."""
    kind: str
    content: str
    role: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.kind not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind '{self.kind}'")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


EventSink = Callable[[AgentEvent], None]


def emit(sink: EventSink | None, kind: str, content: str, role: str | None = None, **data) -> None:
    """Send an event to the sink if one is attached."""
    if sink is None:
        return
    sink(AgentEvent(kind=kind, content=content, role=role, data=data))
