import asyncio
import json
import threading
from pathlib import Path

import pytest

from agent.config import load_config
from agent.messages import Message, ToolCall
from web.app import SessionState, create_app


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("LLM_BASE_URL", "LLM_API_KEY", "OPENAI_API_KEY", "LLM_MODEL", "GOOGLE_API_KEY", "GOOGLE_CX"):
        monkeypatch.delenv(key, raising=False)


def _make_app(tmp_path: Path, config_data: dict):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"data_dir": str(tmp_path / "data"), **config_data}))
    config = load_config(str(config_path))
    app = create_app(config)
    app.testing = True
    app.config["config_path"] = str(config_path)
    return app


def test_settings_mask_api_key(tmp_path):
    app = _make_app(tmp_path, {"llm": {"api_key": "sk-abcdefghijklmnop", "model": "gpt-4o"}})
    client = app.test_client()

    resp = client.get("/api/settings")
    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["llm"]["model"] == "gpt-4o"
    assert payload["llm"]["configured"] is True
    assert payload["llm"]["api_key"] == "sk-...mnop"
    assert "abcdefghijkl" not in resp.get_data(as_text=True)
    assert payload["max_iterations"] == 10


def test_send_requires_message(tmp_path):
    client = _make_app(tmp_path, {}).test_client()
    resp = client.post("/api/chat/send", json={"message": "   "})
    assert resp.status_code == 400


def test_demo_mode_turn(tmp_path):
    app = _make_app(tmp_path, {})
    client = app.test_client()

    resp = client.post("/api/chat/send", json={"message": "hello"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["mode"] == "demo"
    session_id = data["session_id"]

    session = app.config["sessions"][session_id]
    session.wait(timeout=30)

    items = []
    while not session.stream_queue.empty():
        items.append(session.stream_queue.get_nowait())
    assert items[-1]["type"] == "done"
    assert items[-1]["status"] == "demo"
    assert any(item.get("kind") == "alert" for item in items)

    resp = client.get(f"/api/chat/history/{session_id}")
    assert resp.status_code == 200
    assert resp.get_json()["is_running"] is False

    resp = client.get("/api/chat/sessions")
    assert [s["session_id"] for s in resp.get_json()["sessions"]] == [session_id]

    resp = client.delete(f"/api/chat/session/{session_id}")
    assert resp.status_code == 200
    assert session_id not in app.config["sessions"]


def test_unknown_session(tmp_path):
    client = _make_app(tmp_path, {}).test_client()
    assert client.get("/api/chat/history/nope").status_code == 404
    assert client.get("/api/chat/stream/nope").status_code == 404
    assert client.delete("/api/chat/session/nope").status_code == 404


def test_metrics(tmp_path):
    client = _make_app(tmp_path, {}).test_client()
    resp = client.get("/api/metrics")
    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["enabled"] is False
    assert payload["sessions"] == []


def test_connection_test_requires_configuration(tmp_path):
    client = _make_app(tmp_path, {}).test_client()
    resp = client.post("/api/settings/test")
    assert resp.status_code == 400
    assert resp.get_json()["ok"] is False


class ScriptedLLM:
    """Completion client stand-in; blocks on `gate` until it is set."""

    def __init__(self, replies, gate: threading.Event | None = None):
        self.replies = list(replies)
        self.gate = gate

    async def complete(self, messages, tools):
        while self.gate is not None and not self.gate.is_set():
            await asyncio.sleep(0.01)
        return self.replies.pop(0)


def _add_session(app, llm) -> str:
    session = SessionState(app.config["agent_config"], session_id="s1", llm_client=llm)
    app.config["sessions"]["s1"] = session
    return "s1"


def _read_stream(client, session_id: str) -> list[dict]:
    resp = client.get(f"/api/chat/stream/{session_id}")
    assert resp.status_code == 200
    assert resp.mimetype == "text/event-stream"
    return [
        json.loads(line[len("data: "):])
        for line in resp.get_data(as_text=True).splitlines()
        if line.startswith("data: ")
    ]


def test_agentic_turn_streams_run_record(tmp_path):
    app = _make_app(tmp_path, {})
    llm = ScriptedLLM([
        Message(role="assistant", tool_calls=(
            ToolCall(id="c1", name="execute_python", arguments=json.dumps({"code": "return 2+2"})),
        )),
        Message(role="assistant", content="The answer is 4."),
    ])
    session_id = _add_session(app, llm)
    client = app.test_client()

    resp = client.post("/api/chat/send", json={"message": "what is 2+2?", "session_id": session_id})
    assert resp.status_code == 200
    assert resp.get_json()["mode"] == "agent"

    items = _read_stream(client, session_id)
    done = items[-1]
    assert done["type"] == "done"
    assert done["status"] == "completed"
    assert done["content"] == "The answer is 4."
    assert done["iterations"] == 1
    assert done["tools_used"] == ["execute_python"]
    assert any(item.get("kind") == "code_result" and item["content"] == "4" for item in items)

    history = client.get(f"/api/chat/history/{session_id}").get_json()
    assert [m["role"] for m in history["history"]] == ["user", "assistant", "tool", "assistant"]
    assert history["run"]["total_iterations"] == 1


def test_concurrent_send_is_rejected(tmp_path):
    app = _make_app(tmp_path, {})
    gate = threading.Event()
    session_id = _add_session(app, ScriptedLLM([Message(role="assistant", content="done")], gate=gate))
    client = app.test_client()

    first = client.post("/api/chat/send", json={"message": "one", "session_id": session_id})
    second = client.post("/api/chat/send", json={"message": "two", "session_id": session_id})
    assert first.status_code == 200
    assert second.status_code == 409
    assert client.delete(f"/api/chat/session/{session_id}").status_code == 409

    gate.set()
    session = app.config["sessions"][session_id]
    session.wait(timeout=10)
    assert not session.is_running
    assert len(session.context.state) == 2
