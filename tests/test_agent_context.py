import asyncio
import tempfile
import unittest
from pathlib import Path

from agent.agent_context import AgentContext
from agent.config import AgentConfig, LLMConfig
from agent.demo import GREETING, HELP_TEXT, NOT_CONFIGURED_NOTICE
from agent.exceptions import NotConfiguredError, SessionBusyError
from agent.messages import Message
from agent.response import TurnStatus


class FakeLLM:
    def __init__(self, replies, gate: asyncio.Event | None = None):
        self.replies = list(replies)
        self.gate = gate

    async def complete(self, messages, tools):
        if self.gate:
            await self.gate.wait()
        return self.replies.pop(0)


class ContextTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmpdir.cleanup)
        self.config = AgentConfig(
            llm=LLMConfig(api_key=""),
            log_dir=str(Path(self._tmpdir.name) / "logs"),
        )
        self.events = []


class TestDemoMode(ContextTestCase):
    async def test_unconfigured_session_uses_demo_mode(self):
        context = AgentContext(self.config, on_event=self.events.append)

        self.assertFalse(context.is_configured)
        reply = await context.send("hello there")

        self.assertEqual(reply, GREETING)
        self.assertEqual(self.events[0].kind, "alert")
        self.assertEqual(self.events[0].content, NOT_CONFIGURED_NOTICE)
        self.assertFalse(context.is_running)
        self.assertEqual(len(context.state), 0)

    async def test_demo_runs_real_code_tool(self):
        context = AgentContext(self.config, on_event=self.events.append)

        reply = await context.send("Generate fibonacci numbers")

        self.assertIn("[", reply)
        self.assertIn("34", reply)
        self.assertIn("code", [e.kind for e in self.events])

    async def test_demo_search_is_labeled_synthetic(self):
        context = AgentContext(self.config, on_event=self.events.append)

        await context.send("search for latest AI news")

        results = [e for e in self.events if e.kind == "search_results"]
        self.assertEqual(len(results), 1)
        self.assertTrue(results[0].data["synthetic"])

    async def test_demo_fallback_help(self):
        context = AgentContext(self.config)
        self.assertEqual(await context.send("what's up"), HELP_TEXT)

    async def test_run_turn_requires_configuration(self):
        context = AgentContext(self.config)
        with self.assertRaises(NotConfiguredError):
            await context.run_turn("hi")


class TestAgenticTurns(ContextTestCase):
    async def test_run_turn_with_client(self):
        llm = FakeLLM([Message(role="assistant", content="Hi!")])
        context = AgentContext(self.config, session_id="abc", llm_client=llm)

        result = await context.run_turn("hello")

        self.assertEqual(context.id, "abc")
        self.assertEqual(result.status, TurnStatus.COMPLETED)
        self.assertIs(context.last_result, result)
        self.assertEqual([m.role for m in context.state], ["user", "assistant"])
        self.assertEqual(await self._second_turn(context), "Again!")
        self.assertEqual(len(context.state), 4)

    async def _second_turn(self, context: AgentContext) -> str:
        context.llm_client.replies.append(Message(role="assistant", content="Again!"))
        return await context.send("once more")

    async def test_concurrent_turn_rejected(self):
        gate = asyncio.Event()
        llm = FakeLLM([Message(role="assistant", content="slow")], gate=gate)
        context = AgentContext(self.config, llm_client=llm)

        first = asyncio.create_task(context.run_turn("one"))
        await asyncio.sleep(0)
        self.assertTrue(context.is_running)

        with self.assertRaises(SessionBusyError):
            await context.run_turn("two")

        gate.set()
        result = await first
        self.assertEqual(result.status, TurnStatus.COMPLETED)
        self.assertFalse(context.is_running)
        self.assertEqual(len(context.state), 2)

    async def test_configured_config_builds_real_client(self):
        self.config.llm = LLMConfig(api_key="sk-test")
        context = AgentContext(self.config)
        self.assertTrue(context.is_configured)
        self.assertEqual(context.llm_client.model, "gpt-4o-mini")
