"""Telemetry and metrics logging for agent turns."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
import json
import os
import threading
import time
from typing import Any

from agent.config import TelemetryConfig


@dataclass
class LLMCallMetric:
    """Metrics for a single completion request."""
    model: str
    latency_ms: float
    tool_call_count: int
    error: str | None = None


@dataclass
class ToolCallMetric:
    """Metrics for a single tool call."""
    tool_name: str
    call_id: str
    duration_ms: float
    success: bool
    error: str | None = None


@dataclass
class LoopIterationMetric:
    """Metrics for a single agent loop iteration."""
    iteration: int
    decision: str
    duration_ms: float


@dataclass
class RunSummary:
    """Session-level run record."""
    session_id: str
    total_iterations: int
    tools_used: list[str]
    tool_calls: list[ToolCallMetric]
    llm_calls: list[LLMCallMetric]
    total_duration_ms: float
    final_status: str


class Telemetry:
    """
    Run record for a session: iteration count and distinct tools invoked.
    The counters are always kept. JSONL output and spans only when enabled.
    """

    def __init__(self, config: TelemetryConfig, session_id: str):
        self.config = config
        self.session_id = session_id
        self._lock = threading.Lock()
        self._start_time = time.monotonic()
        self._llm_calls: list[LLMCallMetric] = []
        self._tool_calls: list[ToolCallMetric] = []
        self._loop_iterations: list[LoopIterationMetric] = []
        self._tools_used: list[str] = []
        self._total_iterations = 0
        self._final_status = ""
        self._log_path: str | None = None
        self._tracer = None

        if self.config.enabled:
            os.makedirs(self.config.log_dir, exist_ok=True)
            self._log_path = os.path.join(self.config.log_dir, f"{session_id}.jsonl")
            if self.config.otel_enabled:
                self._setup_otel()

    def record_llm_call(
        self,
        model: str,
        latency_ms: float,
        tool_call_count: int = 0,
        error: str | None = None,
    ) -> None:
        """Record a completion request metric."""
        metric = LLMCallMetric(
            model=model,
            latency_ms=latency_ms,
            tool_call_count=tool_call_count,
            error=error,
        )
        self._llm_calls.append(metric)
        self._log_event("llm_call", asdict(metric))
        self._emit_span("llm_call", asdict(metric))

    def record_tool_call(
        self,
        tool_name: str,
        call_id: str,
        duration_ms: float,
        success: bool,
        error: str | None = None,
    ) -> None:
        """Record a tool call metric."""
        metric = ToolCallMetric(
            tool_name=tool_name,
            call_id=call_id,
            duration_ms=duration_ms,
            success=success,
            error=error,
        )
        self._tool_calls.append(metric)
        if tool_name not in self._tools_used:
            self._tools_used.append(tool_name)
        self._log_event("tool_call", asdict(metric))
        self._emit_span("tool_call", asdict(metric))

    def record_iteration(self, iteration: int, decision: str, duration_ms: float) -> None:
        """Record one tool-executing loop iteration."""
        metric = LoopIterationMetric(
            iteration=iteration,
            decision=decision,
            duration_ms=duration_ms,
        )
        self._total_iterations += 1
        self._loop_iterations.append(metric)
        self._log_event("loop_iteration", asdict(metric))

    def finalize(self, final_status: str) -> None:
        """Mark the terminal state of the latest turn."""
        self._final_status = final_status
        self._log_event("turn_summary", self.summary_dict())

    @property
    def tools_used(self) -> list[str]:
        return list(self._tools_used)

    def summary(self) -> RunSummary:
        """Return a session-level run summary."""
        total_duration_ms = (time.monotonic() - self._start_time) * 1000
        return RunSummary(
            session_id=self.session_id,
            total_iterations=self._total_iterations,
            tools_used=list(self._tools_used),
            tool_calls=list(self._tool_calls),
            llm_calls=list(self._llm_calls),
            total_duration_ms=total_duration_ms,
            final_status=self._final_status,
        )

    def summary_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable summary."""
        summary = self.summary()
        return {
            "session_id": summary.session_id,
            "total_iterations": summary.total_iterations,
            "tools_used": summary.tools_used,
            "tool_calls": [asdict(m) for m in summary.tool_calls],
            "llm_calls": [asdict(m) for m in summary.llm_calls],
            "total_duration_ms": summary.total_duration_ms,
            "final_status": summary.final_status,
        }

    def _log_event(self, event_type: str, payload: dict[str, Any]) -> None:
        if not self.config.enabled or not self._log_path:
            return
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "session_id": self.session_id,
            "event": event_type,
            **payload,
        }
        line = json.dumps(record, default=str)
        with self._lock:
            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def _emit_span(self, name: str, attributes: dict[str, Any]) -> None:
        if not self._tracer:
            return
        with self._tracer.start_as_current_span(name) as span:
            for key, value in attributes.items():
                if value is None:
                    continue
                span.set_attribute(key, value)

    def _setup_otel(self) -> None:
        try:
            from opentelemetry import trace
            from opentelemetry.sdk.resources import Resource
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import BatchSpanProcessor
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        except ImportError:
            self._log_event(
                "telemetry_warning",
                {"message": "OpenTelemetry not installed; spans disabled."},
            )
            return

        resource = Resource.create({"service.name": self.config.otel_service_name})
        provider = TracerProvider(resource=resource)
        if self.config.otel_endpoint:
            exporter = OTLPSpanExporter(endpoint=self.config.otel_endpoint)
            provider.add_span_processor(BatchSpanProcessor(exporter))

        trace.set_tracer_provider(provider)
        self._tracer = trace.get_tracer(__name__)
