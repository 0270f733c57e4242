"""Demo mode - canned, non-agentic replies used when no LLM is configured."""

from agent.config import AgentConfig
from agent.events import EventSink, emit
from tools.code_execution import CodeExecutionTool
from tools.web_search import mock_search_results


NOT_CONFIGURED_NOTICE = "LLM not configured. Running in demo mode with limited functionality."

FIBONACCI_SNIPPET = """\
fib = [0, 1]
for i in range(2, 10):
    fib.append(fib[i - 1] + fib[i - 2])
return fib[:10]"""

TIP_SNIPPET = """\
bill = 84
tip_percent = 15
tip_amount = bill * tip_percent / 100
return {
    "bill": bill,
    "tip_percent": f"{tip_percent}%",
    "tip_amount": tip_amount,
    "total": bill + tip_amount,
}"""

SORT_SNIPPET = """\
array = [3, 1, 4, 1, 5, 9, 2, 6]
return {"original": array, "sorted": sorted(array)}"""

MATH_SNIPPET = """\
import math
return {"calculation": "2^8 + sqrt(144)", "result": 2 ** 8 + math.sqrt(144)}"""

GREETING = (
    "Hello! I'm working in demo mode. Here's what I can do:\n\n"
    '- Try: "Calculate 15% tip on $84"\n'
    '- Try: "Search for latest AI news"\n'
    '- Try: "Generate fibonacci numbers"\n'
    '- Try: "Sort array [3,1,4,1,5]"\n\n'
    "Configure your LLM provider for full AI capabilities!"
)

HELP_TEXT = (
    "Demo mode active! I can demonstrate:\n\n"
    '- Python execution - "calculate tip" or "fibonacci"\n'
    '- Search simulation - "search for information"\n'
    '- Tool usage - "sort an array"\n\n'
    "Configure your LLM provider for intelligent conversation and automatic tool selection!"
)


class DemoResponder:
    """Keyword-routed replies that still exercise the real tools."""

    def __init__(self, config: AgentConfig, on_event: EventSink | None = None):
        self.config = config
        self.on_event = on_event

    async def respond(self, user_message: str) -> str:
        emit(self.on_event, "alert", NOT_CONFIGURED_NOTICE, role="system")
        text = user_message.lower()

        if any(word in text for word in ("calculate", "math", "fibonacci", "python", "tip", "sort")):
            reply = "I can help with calculations! Let me execute some Python for you."
            emit(self.on_event, "message", reply, role="assistant")
            code, description = self._pick_snippet(text)
            tool = CodeExecutionTool(self.config, on_event=self.on_event)
            result = await tool.execute(code=code, description=description)
            if result.success:
                return f"{reply}\n\n{result.payload['display_result']}"
            return f"{reply}\n\nError: {result.error}"

        if "search" in text:
            reply = "I can search for information!"
            emit(self.on_event, "message", reply, role="assistant")
            payload = mock_search_results("demo search query from user message")
            emit(
                self.on_event,
                "search_results",
                f"{len(payload['results'])} mock search results",
                role="system",
                results=payload["results"],
                synthetic=True,
            )
            return reply

        if "test" in text or "hello" in text:
            emit(self.on_event, "message", GREETING, role="assistant")
            return GREETING

        emit(self.on_event, "message", HELP_TEXT, role="assistant")
        return HELP_TEXT

    @staticmethod
    def _pick_snippet(text: str) -> tuple[str, str]:
        if "fibonacci" in text:
            return FIBONACCI_SNIPPET, "Generate Fibonacci sequence up to 10 numbers"
        if "tip" in text:
            return TIP_SNIPPET, "Calculate tip amount"
        if "sort" in text:
            return SORT_SNIPPET, "Sort array of numbers"
        return MATH_SNIPPET, "Mathematical calculation example"
