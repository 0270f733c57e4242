"""Settings API routes - inspect configuration and test the LLM connection."""

import asyncio
from flask import Blueprint, jsonify, current_app

from agent.models import LLMClient

settings_bp = Blueprint("settings", __name__)


@settings_bp.route("/settings", methods=["GET"])
def get_settings():
    """Return current configuration with secrets masked."""
    config = current_app.config["agent_config"]
    return jsonify({
        "llm": {
            "provider": config.llm.provider,
            "base_url": config.llm.base_url,
            "model": config.llm.model,
            "temperature": config.llm.temperature,
            "api_key": _mask(config.llm.api_key),
            "configured": config.llm.is_configured,
        },
        "search": {
            "endpoint": config.search.endpoint,
            "num_results": config.search.num_results,
            "configured": config.search.has_credentials,
        },
        "tools": {
            "default_timeout": config.tool_execution.default_timeout,
            "eval_timeout": config.tool_execution.eval_timeout,
            "ai_task_max_tokens": config.ai_task.max_tokens,
        },
        "max_iterations": config.max_iterations,
    })


@settings_bp.route("/settings/test", methods=["POST"])
def test_connection():
    """Round-trip a minimal prompt against the completion endpoint."""
    config = current_app.config["agent_config"]
    if not config.llm.is_configured:
        return jsonify({"ok": False, "error": "LLM is not configured"}), 400

    client = LLMClient.from_config(config.llm)
    loop = asyncio.new_event_loop()
    try:
        result = loop.run_until_complete(client.test_connection())
    finally:
        loop.close()

    status = 200 if result.ok else 502
    return jsonify({"ok": result.ok, "reply": result.reply, "error": result.error}), status


def _mask(secret: str) -> str:
    if not secret:
        return ""
    if len(secret) <= 8:
        return "****"
    return f"{secret[:3]}...{secret[-4:]}"
