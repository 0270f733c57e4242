"""LLMClient - direct HTTP communication with an OpenAI-compatible chat-completions API."""

import asyncio
import json
from dataclasses import dataclass

import aiohttp
from agent.config import LLMConfig
from agent.exceptions import TransportError
from agent.messages import Message


CONNECTION_TEST_PROMPT = 'Say "Connection test successful" if you can read this.'


@dataclass
class ConnectionTestResult:
    """Outcome of a minimal round-trip against the completion endpoint."""
    ok: bool
    reply: str = ""
    error: str = ""


class LLMClient:
    """
    Async transport for the completion endpoint.
    One request per call: no retry, no backoff, no decision logic.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        connect_timeout: float = 10.0,
        read_timeout: float = 120.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LLMClient":
        return cls(
            base_url=config.base_url,
            api_key=config.api_key,
            model=config.model,
            temperature=config.temperature,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )

    async def complete(self, messages: list[dict], tools: list[dict]) -> Message:
        """
        Send the conversation plus tool schema. POST /chat/completions
        Returns the single assistant message the model proposes.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "tools": tools,
            "tool_choice": "auto",
            "temperature": self.temperature,
        }
        data = await self._post_completion(payload)
        return self._parse_message(data)

    async def complete_text(
        self,
        messages: list[dict],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Tool-less completion. Returns the reply text."""
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        data = await self._post_completion(payload)
        message = self._parse_message(data)
        return message.content or ""

    async def test_connection(self) -> ConnectionTestResult:
        """Send a minimal prompt and report a user-friendly outcome."""
        try:
            reply = await self.complete_text(
                [{"role": "user", "content": CONNECTION_TEST_PROMPT}],
                max_tokens=10,
                temperature=0,
            )
        except TransportError as e:
            return ConnectionTestResult(ok=False, error=self.describe_error(e))
        return ConnectionTestResult(ok=True, reply=reply)

    @staticmethod
    def describe_error(error: TransportError) -> str:
        """Map a transport failure onto a hint the user can act on."""
        detail = _extract_error_message(error.body) or str(error)
        lowered = f"{error} {detail}".lower()
        if error.status is None:
            return (
                f"Network error - could not reach the endpoint ({detail}). "
                "Check the base URL and your connection."
            )
        if error.status == 401 or "unauthorized" in lowered:
            return "Invalid API key. Please check your credentials."
        if "quota" in lowered or "billing" in lowered:
            return "API quota exceeded or billing issue. Check your account."
        return f"HTTP {error.status}: {detail}"

    async def _post_completion(self, payload: dict) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        try:
            async with aiohttp.ClientSession(timeout=self._timeout()) as session:
                async with session.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                ) as resp:
                    body = await resp.text()
                    if resp.status < 200 or resp.status >= 300:
                        raise TransportError(resp.status, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(None, self._connection_error_message(e)) from e

        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise TransportError(resp.status, f"Invalid JSON in completion response: {e}") from e

    @staticmethod
    def _parse_message(data: dict) -> Message:
        """Extract choices[0].message, filling in missing call ids."""
        try:
            raw = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            raise TransportError(None, f"Completion response has no message: {json.dumps(data)[:500]}")

        if not isinstance(raw, dict):
            raise TransportError(None, f"Completion message is not an object: {json.dumps(raw)[:500]}")
        content = raw.get("content")
        if content is not None and not isinstance(content, str):
            raise TransportError(None, f"Completion message content is not text: {json.dumps(content)[:500]}")
        raw_calls = raw.get("tool_calls") or []
        if not isinstance(raw_calls, list):
            raise TransportError(None, f"Completion tool_calls is not a list: {json.dumps(raw_calls)[:500]}")

        raw = dict(raw)
        raw["role"] = "assistant"
        raw.pop("tool_call_id", None)
        calls = []
        for index, call in enumerate(raw_calls):
            if not isinstance(call, dict) or not isinstance(call.get("function", {}), dict):
                raise TransportError(None, f"Malformed tool call in completion response: {json.dumps(call)[:500]}")
            call = dict(call)
            if not call.get("id"):
                call["id"] = f"call_{index}"
            calls.append(call)
        raw["tool_calls"] = calls

        ids = [c["id"] for c in calls]
        if len(set(ids)) != len(ids):
            raise TransportError(None, f"Completion response repeats tool call ids: {ids}")
        return Message.from_api(raw)

    def _timeout(self) -> aiohttp.ClientTimeout:
        """Build a client timeout configuration from settings."""
        return aiohttp.ClientTimeout(
            total=None,
            connect=self.connect_timeout,
            sock_connect=self.connect_timeout,
            sock_read=self.read_timeout,
        )

    def _connection_error_message(self, error: Exception) -> str:
        details = f"{error}" if str(error) else type(error).__name__
        return f"Cannot connect to {self.base_url}: {details}"


def _extract_error_message(body: str) -> str:
    """Pull error.message out of an OpenAI-style JSON error body."""
    try:
        data = json.loads(body)
    except (TypeError, json.JSONDecodeError):
        return body.strip() if isinstance(body, str) else ""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return body.strip()
