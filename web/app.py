"""Flask application factory for the agentic chatbot web API."""

import asyncio
import queue
import threading
from flask import Flask
from flask_cors import CORS

from agent.config import AgentConfig
from agent.agent_context import AgentContext
from agent.events import AgentEvent


def create_app(config: AgentConfig) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    CORS(app)

    # Shared state
    app.config["agent_config"] = config
    app.config["sessions"] = {}  # session_id -> SessionState
    app.config["config_path"] = "config.json"

    # Register blueprints
    from web.routes.chat import chat_bp
    from web.routes.settings import settings_bp
    from web.routes.metrics import metrics_bp

    app.register_blueprint(chat_bp, url_prefix="/api")
    app.register_blueprint(settings_bp, url_prefix="/api")
    app.register_blueprint(metrics_bp, url_prefix="/api")

    return app


class SessionState:
    """Holds the state for one chat session and its event queue."""

    def __init__(self, config: AgentConfig, session_id: str | None = None, llm_client=None):
        self.config = config
        self.stream_queue: queue.Queue = queue.Queue()
        self.context = AgentContext(
            config, session_id=session_id, on_event=self._push_event, llm_client=llm_client
        )
        self.final_response: str | None = None
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self.context.is_running or (self._thread is not None and self._thread.is_alive())

    def _push_event(self, event: AgentEvent):
        """Push agent events to the queue for SSE consumption."""
        self.stream_queue.put({"type": "event", **event.to_dict()})

    def send_message(self, message: str) -> bool:
        """
        Start one turn on a background thread with its own event loop.
        Returns False without starting anything if a turn is already running.
        """
        with self._start_lock:
            if self.is_running:
                return False
            self.final_response = None
            self._thread = threading.Thread(target=self._run_turn, args=(message,), daemon=True)
            self._thread.start()
            return True

    def _run_turn(self, message: str):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            reply = loop.run_until_complete(self.context.send(message))
            self.final_response = reply
            result = self.context.last_result
            self.stream_queue.put({
                "type": "done",
                "content": reply,
                "status": result.status.value if result else "demo",
                "iterations": result.iterations if result else 0,
                "tools_used": result.tools_used if result else [],
            })
        except Exception as e:
            self.stream_queue.put({
                "type": "error",
                "content": str(e),
            })
        finally:
            loop.close()

    def wait(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
