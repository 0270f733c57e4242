"""Interactive CLI for the agentic chatbot."""

import json

from agent.agent_context import AgentContext
from agent.config import AgentConfig
from agent.events import AgentEvent
from agent.models import LLMClient


# ANSI color codes
RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
CYAN = "\033[36m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RED = "\033[31m"
MAGENTA = "\033[35m"

ROLE_COLORS = {
    "user": CYAN,
    "assistant": GREEN,
    "system": YELLOW,
    "tool": MAGENTA,
}


class CLIApp:
    """Interactive REPL that renders agent events as they happen."""

    def __init__(self, config: AgentConfig):
        self.config = config
        self.context: AgentContext | None = None

    async def run(self):
        """Main REPL loop."""
        self._print_banner()
        self._new_session()

        while True:
            try:
                user_input = input(f"{BOLD}You:{RESET} ").strip()
            except (EOFError, KeyboardInterrupt):
                print(f"\n{DIM}Goodbye!{RESET}")
                break

            if not user_input:
                continue

            # Commands
            command = user_input.lower()
            if command in ("exit", "quit", "/exit", "/quit"):
                print(f"{DIM}Goodbye!{RESET}")
                break
            if command in ("reset", "/reset", "/new"):
                self._new_session()
                print(f"{DIM}[Session reset]{RESET}")
                continue
            if command in ("/test", "test connection"):
                await self._test_connection()
                continue
            if command in ("/history", "history"):
                self._print_history()
                continue
            if command in ("help", "/help"):
                self._print_help()
                continue

            print()
            try:
                await self.context.send(user_input)
            except Exception as e:
                print(f"\n{RED}[Error: {e}]{RESET}")
                continue

            result = self.context.last_result
            if result is None or not self.context.is_configured:
                print()
                continue
            print(
                f"{DIM}[{result.status.value} after {result.iterations} iteration(s); "
                f"tools: {', '.join(result.tools_used) or 'none'}]{RESET}\n"
            )

    def render_event(self, event: AgentEvent):
        """Event sink: print one display event."""
        if event.kind == "status":
            print(f"{DIM}... {event.content}{RESET}")
        elif event.kind == "alert":
            print(f"{YELLOW}[!] {event.content}{RESET}")
        elif event.kind == "code":
            print(f"{DIM}--- python ---{RESET}\n{event.content}\n{DIM}--------------{RESET}")
        elif event.kind == "code_result":
            color = GREEN if event.data.get("success") else RED
            print(f"{color}=> {event.content}{RESET}")
        elif event.kind == "search_results":
            label = "Mock Search Results" if event.data.get("synthetic") else "Search Results"
            print(f"{BOLD}{label}{RESET}")
            for index, item in enumerate(event.data.get("results", []), start=1):
                print(f"  {index}. {item['title']}\n     {DIM}{item['link']}{RESET}\n     {item['snippet']}")
        else:
            role = event.role or "system"
            color = ROLE_COLORS.get(role, RESET)
            label = "Agent" if role == "assistant" else role.capitalize()
            print(f"{BOLD}{color}{label}:{RESET} {event.content}")

    def _new_session(self):
        """Create a fresh session."""
        self.context = AgentContext(self.config, on_event=self.render_event)
        if not self.context.is_configured:
            print(f"{YELLOW}[LLM not configured - demo mode]{RESET}")

    async def _test_connection(self):
        if not self.config.llm.is_configured:
            print(f"{YELLOW}[LLM not configured: set llm.api_key and llm.base_url]{RESET}")
            return
        print(f"{DIM}Testing connection to {self.config.llm.base_url}...{RESET}")
        result = await LLMClient.from_config(self.config.llm).test_connection()
        if result.ok:
            print(f"{GREEN}Connection successful! Response: {result.reply}{RESET}")
        else:
            print(f"{RED}Connection test failed: {result.error}{RESET}")

    def _print_history(self):
        if not self.context or not len(self.context.state):
            print(f"{DIM}[No messages yet]{RESET}")
            return
        for message in self.context.state:
            color = ROLE_COLORS.get(message.role, RESET)
            if message.tool_calls:
                calls = ", ".join(f"{tc.name}({tc.arguments})" for tc in message.tool_calls)
                print(f"{color}{message.role}{RESET} -> {calls}")
            if message.content:
                text = message.content
                if message.role == "tool":
                    text = json.dumps(json.loads(text))[:200]
                print(f"{color}{message.role}{RESET}: {text}")

    def _print_banner(self):
        llm = self.config.llm
        print(f"""
{BOLD}{CYAN}╔══════════════════════════════════════╗
║        Agentic Chatbot v0.1.0        ║
║   Tool-using LLM agent (function)    ║
╚══════════════════════════════════════╝{RESET}
{DIM}Model: {llm.model}
Endpoint: {llm.base_url or 'not set'}
Search: {'Google Custom Search' if self.config.search.has_credentials else 'mock results'}{RESET}
""")

    def _print_help(self):
        print(f"""
{BOLD}Commands:{RESET}
  {CYAN}/reset{RESET}   - Start a new session
  {CYAN}/test{RESET}    - Test the LLM connection
  {CYAN}/history{RESET} - Show the conversation log
  {CYAN}/help{RESET}    - Show this help
  {CYAN}/exit{RESET}    - Quit

{BOLD}How it works:{RESET}
  Your message goes to the model together with three tools:
  google_search, execute_python and ai_task. The agent runs
  the tools the model asks for and feeds the results back,
  up to {self.config.max_iterations} rounds, until the model answers without tools.
""")
