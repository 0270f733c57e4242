"""Message, ToolCall, ToolResult and the append-only ConversationState."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterator

from agent.exceptions import ConversationError, ProtocolError


ROLES = ("user", "assistant", "system", "tool")


@dataclass(frozen=True)
class ToolCall:
    """A single function invocation requested by the model."""
    id: str
    name: str
    arguments: str = "{}"

    def parse_arguments(self) -> dict:
        """Decode the JSON argument payload into a dict."""
        raw = self.arguments
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return {}
        if isinstance(raw, dict):
            return dict(raw)
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            raise ProtocolError(f"Malformed arguments for '{self.name}': {e}")
        if not isinstance(data, dict):
            raise ProtocolError(
                f"Arguments for '{self.name}' must be a JSON object, got {type(data).__name__}"
            )
        return data

    def to_api(self) -> dict:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_api(cls, data: dict) -> "ToolCall":
        function = data.get("function") or {}
        arguments = function.get("arguments", "{}")
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(
            id=str(data.get("id", "")),
            name=str(function.get("name", "")),
            arguments=arguments,
        )


@dataclass(frozen=True)
class ToolResult:
    """Outcome of executing one ToolCall. Failures are data, not exceptions."""
    success: bool
    payload: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, payload: Any) -> "ToolResult":
        return cls(success=True, payload=payload)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def to_content(self) -> str:
        """Serialize as the content of a tool-result message."""
        if self.success:
            body = self.payload if isinstance(self.payload, dict) else {"result": self.payload}
        else:
            body = {"success": False, "error": self.error}
        return json.dumps(body, indent=2, default=str)


@dataclass(frozen=True)
class Message:
    """One turn in the conversation."""
    role: str
    content: str | None = None
    tool_calls: tuple[ToolCall, ...] = field(default_factory=tuple)
    tool_call_id: str | None = None

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown role '{self.role}'. Expected one of: {', '.join(ROLES)}")
        if self.tool_calls and self.role != "assistant":
            raise ValueError("Only assistant messages may carry tool calls")
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("Tool messages require a tool_call_id")
        if self.role != "tool" and self.tool_call_id is not None:
            raise ValueError("Only tool messages may carry a tool_call_id")
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def tool(cls, tool_call_id: str, result: ToolResult) -> "Message":
        return cls(role="tool", content=result.to_content(), tool_call_id=tool_call_id)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_api(self) -> dict:
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_api() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data

    @classmethod
    def from_api(cls, data: dict) -> "Message":
        """Build a Message from a `choices[0].message` object."""
        raw_calls = data.get("tool_calls") or []
        return cls(
            role=data.get("role") or "assistant",
            content=data.get("content"),
            tool_calls=tuple(ToolCall.from_api(tc) for tc in raw_calls),
            tool_call_id=data.get("tool_call_id"),
        )


class ConversationState:
    """
    Ordered, append-only message log for one session.
    Messages are never removed or rewritten. Tool-result messages must answer
    an outstanding call from the latest assistant message with tool calls.
    """

    def __init__(self, messages: list[Message] | None = None):
        self._messages: list[Message] = []
        self._outstanding: list[str] = []
        for message in messages or []:
            self.append(message)

    def append(self, message: Message) -> None:
        if message.role == "tool":
            if message.tool_call_id not in self._outstanding:
                raise ConversationError(
                    f"Tool result '{message.tool_call_id}' does not answer an outstanding call"
                )
            self._outstanding.remove(message.tool_call_id)
        elif self._outstanding:
            raise ConversationError(
                f"Cannot append a {message.role} message while tool calls are outstanding: "
                f"{', '.join(self._outstanding)}"
            )

        if message.role == "assistant" and message.tool_calls:
            ids = [tc.id for tc in message.tool_calls]
            if len(set(ids)) != len(ids):
                raise ConversationError("Tool call ids must be unique within a message")
            self._outstanding = ids

        self._messages.append(message)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def outstanding_tool_calls(self) -> list[str]:
        return list(self._outstanding)

    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def to_api(self) -> list[dict]:
        return [m.to_api() for m in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))
