"""AI task tool - delegates a sub-task to an independent, tool-less completion."""

from agent.messages import ToolResult
from tools.base_tool import Tool


AI_TASK_SYSTEM_PROMPT = (
    "You are a helpful AI assistant performing a specific task. Be concise and accurate."
)


class AITaskTool(Tool):
    name = "ai_task"
    description = (
        "Use AI for complex reasoning, analysis, or generation tasks "
        "that require advanced language model capabilities."
    )
    parameters = {
        "task": {"type": "string", "description": "The AI task to perform"},
        "context": {"type": "string", "description": "Additional context for the task"},
    }
    required_args = ["task"]

    async def execute(self, **kwargs) -> ToolResult:
        task = str(kwargs.get("task", "")).strip()
        context = kwargs.get("context") or ""

        if not task:
            return ToolResult.failure("No task provided")
        if self.llm_client is None:
            return ToolResult.failure("ai_task requires a configured LLM endpoint")

        self.emit("status", f"Performing AI task: {task}")

        prompt = f"Task: {task}"
        if context:
            prompt += f"\n\nContext: {context}"

        settings = self.config.ai_task
        # TransportError propagates; the executor turns it into a failed result.
        result = await self.llm_client.complete_text(
            [
                {"role": "system", "content": AI_TASK_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
        )

        self.emit("message", f"AI Task Result:\n{result}")
        return ToolResult.ok({"task": task, "context": context, "result": result})
