"""Configuration loading and validation."""

import json
import os
from dataclasses import dataclass, field
from agent.exceptions import ConfigError


PROVIDER_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "aipipe": "https://aipipe.org/openai/v1",
}

DEFAULT_SEARCH_ENDPOINT = "https://www.googleapis.com/customsearch/v1"


@dataclass
class LLMConfig:
    """Configuration for the chat-completions endpoint."""
    provider: str = "openai"
    base_url: str = PROVIDER_BASE_URLS["openai"]
    api_key: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    connect_timeout: float = 10.0
    read_timeout: float = 120.0

    @property
    def is_configured(self) -> bool:
        """The agentic loop needs both an endpoint and a key."""
        return bool(self.api_key.strip() and self.base_url.strip())


@dataclass
class SearchConfig:
    """Configuration for the Google Custom Search provider."""
    api_key: str = ""
    cx: str = ""
    endpoint: str = DEFAULT_SEARCH_ENDPOINT
    num_results: int = 5
    timeout: float = 15.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key.strip() and self.cx.strip())


@dataclass
class ToolExecutionConfig:
    """Configuration for tool execution behavior."""
    default_timeout: float = 30.0
    timeouts: dict[str, float] = field(default_factory=dict)
    eval_timeout: float = 10.0
    max_output_chars: int = 50000

    def timeout_for(self, tool_name: str) -> float:
        return self.timeouts.get(tool_name, self.default_timeout)


@dataclass
class AITaskConfig:
    """Configuration for the secondary completion tool."""
    max_tokens: int = 500
    temperature: float = 0.3


@dataclass
class WebConfig:
    """Configuration for the Flask API server."""
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False


@dataclass
class TelemetryConfig:
    """Configuration for telemetry and metrics logging."""
    enabled: bool = False
    log_dir: str = "./data/metrics"
    otel_enabled: bool = False
    otel_endpoint: str | None = None
    otel_service_name: str = "agentic-chatbot"


@dataclass
class AgentConfig:
    """Complete agent configuration."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    tool_execution: ToolExecutionConfig = field(default_factory=ToolExecutionConfig)
    ai_task: AITaskConfig = field(default_factory=AITaskConfig)
    web: WebConfig = field(default_factory=WebConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    max_iterations: int = 10
    data_dir: str = "data"
    log_dir: str = "data/logs"


def load_config(config_path: str = "config.json") -> AgentConfig:
    """Load configuration from JSON file with defaults and env overrides."""
    raw: dict = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigError(f"Failed to load config from {config_path}: {e}")
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")

    data_dir = raw.get("data_dir", "data")
    if not isinstance(data_dir, str) or not data_dir.strip():
        raise ConfigError("data_dir must be a non-empty string")

    llm = _load_llm_settings(raw.get("llm", {}) or {})
    search = _load_search_settings(raw.get("search", {}) or {})
    tool_execution = _load_tool_execution_settings(raw.get("tool_execution", {}) or {})
    ai_task = _load_ai_task_settings(raw.get("ai_task", {}) or {})
    web = _load_web_settings(raw.get("web", {}) or {})
    telemetry = _load_telemetry_settings(raw.get("telemetry", {}) or {}, data_dir)

    _apply_env_overrides(llm, search)

    max_iterations = _coerce_int(raw.get("max_iterations", 10), "max_iterations", 1)

    log_dir = raw.get("log_dir", os.path.join(data_dir, "logs"))
    if not isinstance(log_dir, str) or not log_dir.strip():
        raise ConfigError("log_dir must be a non-empty string")

    for d in [data_dir, log_dir]:
        os.makedirs(d, exist_ok=True)

    return AgentConfig(
        llm=llm,
        search=search,
        tool_execution=tool_execution,
        ai_task=ai_task,
        web=web,
        telemetry=telemetry,
        max_iterations=max_iterations,
        data_dir=data_dir,
        log_dir=log_dir,
    )


def _load_llm_settings(raw: dict) -> LLMConfig:
    """Parse and validate completion endpoint settings."""
    if not isinstance(raw, dict):
        raise ConfigError("llm must be an object")

    provider = raw.get("provider", "openai")
    if provider not in (*PROVIDER_BASE_URLS, "custom"):
        raise ConfigError("llm.provider must be 'openai', 'aipipe', or 'custom'")

    base_url = raw.get("base_url")
    if base_url is None:
        if provider == "custom":
            raise ConfigError("llm.base_url is required when llm.provider is 'custom'")
        base_url = PROVIDER_BASE_URLS[provider]
    if not isinstance(base_url, str):
        raise ConfigError("llm.base_url must be a string")

    api_key = raw.get("api_key", "")
    if not isinstance(api_key, str):
        raise ConfigError("llm.api_key must be a string")

    model = raw.get("model", "gpt-4o-mini")
    if not isinstance(model, str) or not model.strip():
        raise ConfigError("llm.model must be a non-empty string")

    return LLMConfig(
        provider=provider,
        base_url=base_url.strip().rstrip("/"),
        api_key=api_key.strip(),
        model=model.strip(),
        temperature=_coerce_float(raw.get("temperature", 0.7), "llm.temperature", 0.0),
        connect_timeout=_coerce_float(raw.get("connect_timeout", 10.0), "llm.connect_timeout", 0.1),
        read_timeout=_coerce_float(raw.get("read_timeout", 120.0), "llm.read_timeout", 0.1),
    )


def _load_search_settings(raw: dict) -> SearchConfig:
    """Parse and validate search provider settings."""
    if not isinstance(raw, dict):
        raise ConfigError("search must be an object")

    api_key = raw.get("api_key", "")
    cx = raw.get("cx", "")
    if not isinstance(api_key, str) or not isinstance(cx, str):
        raise ConfigError("search.api_key and search.cx must be strings")

    endpoint = raw.get("endpoint", DEFAULT_SEARCH_ENDPOINT)
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise ConfigError("search.endpoint must be a non-empty string")

    return SearchConfig(
        api_key=api_key.strip(),
        cx=cx.strip(),
        endpoint=endpoint.strip(),
        num_results=_coerce_int(raw.get("num_results", 5), "search.num_results", 1),
        timeout=_coerce_float(raw.get("timeout", 15.0), "search.timeout", 0.1),
    )


def _load_tool_execution_settings(raw: dict) -> ToolExecutionConfig:
    """Parse and validate tool execution settings."""
    default_timeout = _coerce_float(
        raw.get("default_timeout", 30.0),
        "tool_execution.default_timeout",
        0.1,
    )

    timeouts_raw = raw.get("timeouts", {})
    if timeouts_raw is None:
        timeouts_raw = {}
    if not isinstance(timeouts_raw, dict):
        raise ConfigError("tool_execution.timeouts must be an object")

    timeouts: dict[str, float] = {}
    for key, value in timeouts_raw.items():
        if not isinstance(key, str):
            raise ConfigError("tool_execution.timeouts keys must be strings")
        timeouts[key] = _coerce_float(value, f"tool_execution.timeouts.{key}", 0.1)

    eval_timeout = _coerce_float(
        raw.get("eval_timeout", 10.0),
        "tool_execution.eval_timeout",
        0.1,
    )
    max_output_chars = _coerce_int(
        raw.get("max_output_chars", 50000),
        "tool_execution.max_output_chars",
        100,
    )

    return ToolExecutionConfig(
        default_timeout=default_timeout,
        timeouts=timeouts,
        eval_timeout=eval_timeout,
        max_output_chars=max_output_chars,
    )


def _load_ai_task_settings(raw: dict) -> AITaskConfig:
    """Parse and validate secondary completion settings."""
    return AITaskConfig(
        max_tokens=_coerce_int(raw.get("max_tokens", 500), "ai_task.max_tokens", 1),
        temperature=_coerce_float(raw.get("temperature", 0.3), "ai_task.temperature", 0.0),
    )


def _load_web_settings(raw: dict) -> WebConfig:
    """Parse and validate web server settings."""
    host = raw.get("host", "0.0.0.0")
    if not isinstance(host, str) or not host.strip():
        raise ConfigError("web.host must be a non-empty string")

    debug = raw.get("debug", False)
    if not isinstance(debug, bool):
        raise ConfigError("web.debug must be a boolean")

    return WebConfig(
        host=host.strip(),
        port=_coerce_int(raw.get("port", 5000), "web.port", 1),
        debug=debug,
    )


def _load_telemetry_settings(raw: dict, data_dir: str) -> TelemetryConfig:
    """Parse and validate telemetry settings."""
    enabled = raw.get("enabled", False)
    if not isinstance(enabled, bool):
        raise ConfigError("telemetry.enabled must be a boolean")

    log_dir = raw.get("log_dir", os.path.join(data_dir, "metrics"))
    if not isinstance(log_dir, str) or not log_dir.strip():
        raise ConfigError("telemetry.log_dir must be a non-empty string")

    otel_enabled = raw.get("otel_enabled", False)
    if not isinstance(otel_enabled, bool):
        raise ConfigError("telemetry.otel_enabled must be a boolean")

    otel_endpoint = raw.get("otel_endpoint")
    if otel_endpoint is not None and (not isinstance(otel_endpoint, str) or not otel_endpoint.strip()):
        raise ConfigError("telemetry.otel_endpoint must be a non-empty string if provided")

    otel_service_name = raw.get("otel_service_name", "agentic-chatbot")
    if not isinstance(otel_service_name, str) or not otel_service_name.strip():
        raise ConfigError("telemetry.otel_service_name must be a non-empty string")

    return TelemetryConfig(
        enabled=enabled,
        log_dir=log_dir,
        otel_enabled=otel_enabled,
        otel_endpoint=otel_endpoint.strip() if isinstance(otel_endpoint, str) else None,
        otel_service_name=otel_service_name.strip(),
    )


def _apply_env_overrides(llm: LLMConfig, search: SearchConfig) -> None:
    """Environment variables win over the config file."""
    env_base_url = os.getenv("LLM_BASE_URL")
    if env_base_url:
        llm.base_url = env_base_url.strip().rstrip("/")
        llm.provider = "custom"

    env_api_key = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
    if env_api_key:
        llm.api_key = env_api_key.strip()

    env_model = os.getenv("LLM_MODEL")
    if env_model:
        llm.model = env_model.strip()

    env_google_key = os.getenv("GOOGLE_API_KEY")
    if env_google_key:
        search.api_key = env_google_key.strip()

    env_google_cx = os.getenv("GOOGLE_CX")
    if env_google_cx:
        search.cx = env_google_cx.strip()


def _coerce_float(value: object, name: str, min_value: float) -> float:
    """Coerce config value to float with basic validation."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number")

    if value < min_value:
        raise ConfigError(f"{name} must be >= {min_value}")
    return value


def _coerce_int(value: object, name: str, min_value: int) -> int:
    """Coerce config value to int with basic validation."""
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer")

    if value < min_value:
        raise ConfigError(f"{name} must be >= {min_value}")
    return value
