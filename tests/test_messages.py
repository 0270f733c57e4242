import json
import unittest

from agent.exceptions import ConversationError, ProtocolError
from agent.messages import ConversationState, Message, ToolCall, ToolResult


def _assistant_with_calls(*ids: str) -> Message:
    return Message(
        role="assistant",
        tool_calls=tuple(ToolCall(id=i, name="google_search", arguments='{"query": "x"}') for i in ids),
    )


class TestMessage(unittest.TestCase):
    def test_unknown_role_rejected(self):
        with self.assertRaises(ValueError):
            Message(role="narrator", content="hi")

    def test_tool_message_requires_call_id(self):
        with self.assertRaises(ValueError):
            Message(role="tool", content="{}")

    def test_from_api_parses_tool_calls(self):
        message = Message.from_api({
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {"id": "call_1", "type": "function",
                 "function": {"name": "execute_python", "arguments": '{"code": "1+1"}'}},
            ],
        })
        self.assertTrue(message.has_tool_calls)
        self.assertEqual(message.tool_calls[0].name, "execute_python")
        self.assertEqual(message.tool_calls[0].parse_arguments(), {"code": "1+1"})

    def test_to_api_roundtrips_wire_shape(self):
        message = _assistant_with_calls("a")
        data = message.to_api()
        self.assertEqual(data["role"], "assistant")
        self.assertEqual(data["tool_calls"][0]["function"]["name"], "google_search")
        self.assertNotIn("tool_call_id", data)

    def test_malformed_arguments_raise_protocol_error(self):
        call = ToolCall(id="c1", name="google_search", arguments="{query: ")
        with self.assertRaises(ProtocolError):
            call.parse_arguments()

    def test_non_object_arguments_raise_protocol_error(self):
        call = ToolCall(id="c1", name="google_search", arguments="[1, 2]")
        with self.assertRaises(ProtocolError):
            call.parse_arguments()

    def test_empty_arguments_parse_to_empty_dict(self):
        self.assertEqual(ToolCall(id="c1", name="x", arguments="").parse_arguments(), {})

    def test_tool_result_content(self):
        failed = json.loads(ToolResult.failure("boom").to_content())
        self.assertEqual(failed, {"success": False, "error": "boom"})
        ok = json.loads(ToolResult.ok({"query": "x"}).to_content())
        self.assertEqual(ok, {"query": "x"})
        scalar = json.loads(ToolResult.ok(4).to_content())
        self.assertEqual(scalar, {"result": 4})


class TestConversationState(unittest.TestCase):
    def test_append_only_log(self):
        state = ConversationState()
        state.append(Message.user("hello"))
        state.append(Message(role="assistant", content="hi"))
        self.assertEqual(len(state), 2)
        self.assertEqual([m.role for m in state], ["user", "assistant"])
        self.assertIsInstance(state.messages, tuple)

    def test_tool_result_must_answer_outstanding_call(self):
        state = ConversationState()
        state.append(Message.user("q"))
        with self.assertRaises(ConversationError):
            state.append(Message.tool("ghost", ToolResult.ok({})))

    def test_tool_results_close_outstanding_calls(self):
        state = ConversationState()
        state.append(Message.user("q"))
        state.append(_assistant_with_calls("a", "b"))
        self.assertEqual(state.outstanding_tool_calls(), ["a", "b"])

        state.append(Message.tool("b", ToolResult.ok({})))
        state.append(Message.tool("a", ToolResult.ok({})))
        self.assertEqual(state.outstanding_tool_calls(), [])
        state.append(Message(role="assistant", content="done"))

    def test_duplicate_result_rejected(self):
        state = ConversationState()
        state.append(Message.user("q"))
        state.append(_assistant_with_calls("a", "b"))
        state.append(Message.tool("a", ToolResult.ok({})))
        with self.assertRaises(ConversationError):
            state.append(Message.tool("a", ToolResult.ok({})))

    def test_no_new_turn_while_calls_outstanding(self):
        state = ConversationState()
        state.append(Message.user("q"))
        state.append(_assistant_with_calls("a"))
        with self.assertRaises(ConversationError):
            state.append(Message.user("another"))

    def test_duplicate_call_ids_rejected(self):
        state = ConversationState()
        state.append(Message.user("q"))
        with self.assertRaises(ConversationError):
            state.append(_assistant_with_calls("a", "a"))
        self.assertEqual(len(state), 1)

    def test_to_api(self):
        state = ConversationState([Message.user("q"), _assistant_with_calls("a")])
        state.append(Message.tool("a", ToolResult.ok({"n": 1})))
        wire = state.to_api()
        self.assertEqual(wire[-1]["role"], "tool")
        self.assertEqual(wire[-1]["tool_call_id"], "a")
        self.assertEqual(json.loads(wire[-1]["content"]), {"n": 1})
