"""Tool declarations and name resolution."""

from enum import Enum

from agent.exceptions import UnknownToolError
from tools.base_tool import Tool


class ToolKind(str, Enum):
    """Closed set of tools the model may call. Values are the wire names."""
    SEARCH = "google_search"
    EVALUATE = "execute_python"
    DELEGATE = "ai_task"


class ToolRegistry:
    """Declares the callable tools and their JSON-schema signatures."""

    def __init__(self, tool_classes: dict[ToolKind, type[Tool]] | None = None):
        if tool_classes is None:
            tool_classes = default_tool_classes()
        for kind, cls in tool_classes.items():
            if cls.name != kind.value:
                raise ValueError(f"Tool class {cls.__name__} is named '{cls.name}', expected '{kind.value}'")
        self._tool_classes: dict[ToolKind, type[Tool]] = dict(tool_classes)

    def resolve(self, name: str) -> ToolKind:
        """Map a wire name onto its ToolKind or raise UnknownToolError."""
        try:
            kind = ToolKind(name)
        except ValueError:
            raise UnknownToolError(name)
        if kind not in self._tool_classes:
            raise UnknownToolError(name)
        return kind

    def get_tool_class(self, kind: ToolKind) -> type[Tool]:
        return self._tool_classes[kind]

    @property
    def tool_names(self) -> list[str]:
        """List all registered tool names, in declaration order."""
        return [kind.value for kind in self._tool_classes]

    def get_tool_schemas(self) -> list[dict]:
        """Return the `tools` array for the completion request."""
        return [cls.schema() for cls in self._tool_classes.values()]

    def required_args(self, kind: ToolKind) -> list[str]:
        return list(self._tool_classes[kind].required_args)


def default_tool_classes() -> dict[ToolKind, type[Tool]]:
    from tools.ai_task import AITaskTool
    from tools.code_execution import CodeExecutionTool
    from tools.web_search import GoogleSearchTool

    return {
        ToolKind.SEARCH: GoogleSearchTool,
        ToolKind.EVALUATE: CodeExecutionTool,
        ToolKind.DELEGATE: AITaskTool,
    }
