"""Custom exceptions for the agentic chatbot."""


class TransportError(Exception):
    """Raised when the completion endpoint call fails or returns non-2xx."""

    def __init__(self, status: int | None, body: str):
        self.status = status
        self.body = body
        if status is None:
            super().__init__(body)
        else:
            super().__init__(f"HTTP {status}: {body}")


class ToolError(Exception):
    """Raised when a tool fails during execution."""
    pass


class ProtocolError(ToolError):
    """Raised when a tool call is malformed (bad arguments, missing fields)."""
    pass


class UnknownToolError(ProtocolError):
    """Raised when a requested tool does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ConversationError(Exception):
    """Raised when an append would break the message log invariants."""
    pass


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


class NotConfiguredError(Exception):
    """Raised when the agentic loop is started without LLM credentials."""
    pass


class SessionBusyError(Exception):
    """Raised when a turn is requested while another is still running."""
    pass
