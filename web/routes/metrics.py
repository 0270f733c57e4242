"""Metrics API routes."""

from flask import Blueprint, current_app, jsonify

metrics_bp = Blueprint("metrics", __name__)


@metrics_bp.route("/metrics", methods=["GET"])
def get_metrics():
    """Return run summaries for active sessions."""
    config = current_app.config["agent_config"]
    sessions = current_app.config["sessions"]
    result = []
    for sid, session in sessions.items():
        result.append({
            "session_id": sid,
            "metrics": session.context.telemetry.summary_dict(),
        })

    return jsonify({
        "enabled": config.telemetry.enabled,
        "log_dir": config.telemetry.log_dir if config.telemetry.enabled else None,
        "sessions": result,
    })
