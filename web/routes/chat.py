"""Chat API routes - send messages, stream events via SSE."""

import json
import queue
import uuid
from flask import Blueprint, request, jsonify, Response, current_app

from web.app import SessionState

chat_bp = Blueprint("chat", __name__)


@chat_bp.route("/chat/send", methods=["POST"])
def send_message():
    """Send a user message and start a turn."""
    data = request.get_json(silent=True) or {}
    message = (data.get("message") or "").strip()
    session_id = data.get("session_id")

    if not message:
        return jsonify({"error": "No message provided"}), 400

    config = current_app.config["agent_config"]
    sessions = current_app.config["sessions"]

    # Get or create session
    session = sessions.get(session_id) if session_id else None
    if session is None:
        session_id = uuid.uuid4().hex[:12]
        session = SessionState(config, session_id=session_id)
        sessions[session_id] = session

    if not session.send_message(message):
        return jsonify({"error": "Agent is already processing"}), 409

    return jsonify({
        "session_id": session_id,
        "status": "processing",
        "mode": "agent" if session.context.is_configured else "demo",
    })


@chat_bp.route("/chat/stream/<session_id>")
def stream_response(session_id):
    """SSE endpoint - streams agent events in real time."""
    sessions = current_app.config["sessions"]
    session = sessions.get(session_id)

    if session is None:
        return jsonify({"error": "Session not found"}), 404

    def generate():
        while True:
            try:
                event = session.stream_queue.get(timeout=30)
            except queue.Empty:
                # Timeout - send keepalive
                yield f"data: {json.dumps({'type': 'keepalive'})}\n\n"
                if not session.is_running:
                    break
                continue
            yield f"data: {json.dumps(event, default=str)}\n\n"
            if event.get("type") in ("done", "error"):
                break

    return Response(
        generate(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@chat_bp.route("/chat/history/<session_id>")
def get_history(session_id):
    """Get the wire-format conversation log for a session."""
    sessions = current_app.config["sessions"]
    session = sessions.get(session_id)

    if session is None:
        return jsonify({"error": "Session not found"}), 404

    context = session.context
    return jsonify({
        "history": context.state.to_api(),
        "run": context.telemetry.summary_dict(),
        "is_running": session.is_running,
    })


@chat_bp.route("/chat/sessions", methods=["GET"])
def list_sessions():
    """List all in-memory sessions."""
    sessions = current_app.config["sessions"]
    result = []
    for sid, session in sessions.items():
        context = session.context
        last = context.last_result
        result.append({
            "session_id": sid,
            "created_at": context.created_at,
            "updated_at": context.updated_at,
            "message_count": len(context.state),
            "is_running": session.is_running,
            "last_status": last.status.value if last else None,
        })

    return jsonify({"sessions": result})


@chat_bp.route("/chat/session/<session_id>", methods=["DELETE"])
def delete_session(session_id):
    """Delete a session."""
    sessions = current_app.config["sessions"]
    session = sessions.get(session_id)
    if session is None:
        return jsonify({"error": "Session not found"}), 404
    if session.is_running:
        return jsonify({"error": "Agent is still processing"}), 409

    del sessions[session_id]
    return jsonify({"status": "deleted"})
