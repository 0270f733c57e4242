"""Code execution tool - evaluates Python in a separate, isolated interpreter process."""

import asyncio
import contextlib
import json
import os
import sys
import tempfile

from agent.messages import ToolResult
from tools.base_tool import Tool
from tools.sandbox_runner import NO_VALUE_SENTINEL, RESULT_PREFIX


RUNNER_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "sandbox_runner.py")
MEMORY_LIMIT_BYTES = 512 * 1024 * 1024


async def run_sandboxed(code: str, timeout: float, max_output_chars: int = 50000) -> dict:
    """
    Evaluate `code` in a fresh `python -I` child with CPU/memory limits,
    a throwaway working directory and a stripped environment.
    Returns the runner's result dict; never raises for evaluation errors.
    """
    request = json.dumps({
        "code": code,
        "cpu_seconds": max(1, int(timeout)),
        "memory_bytes": MEMORY_LIMIT_BYTES,
    })

    with tempfile.TemporaryDirectory(prefix="sandbox_") as workdir:
        process = await asyncio.create_subprocess_exec(
            sys.executable, "-I", RUNNER_PATH,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=workdir,
            env={"PATH": os.environ.get("PATH", ""), "PYTHONDONTWRITEBYTECODE": "1"},
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(request.encode()), timeout=timeout
            )
        except asyncio.TimeoutError:
            return {"success": False, "error": f"Execution timed out after {timeout}s", "stdout": ""}
        finally:
            # Also reached on cancellation from an outer timeout.
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await asyncio.shield(process.wait())

    output = stdout.decode("utf-8", errors="replace")
    marker = output.rfind(RESULT_PREFIX)
    if marker == -1:
        detail = stderr.decode("utf-8", errors="replace").strip() or f"exit code {process.returncode}"
        return {"success": False, "error": f"Evaluator crashed: {detail[-2000:]}", "stdout": ""}

    result = json.loads(output[marker + len(RESULT_PREFIX):].strip())

    # Output the code wrote around the redirect (e.g. sys.__stdout__) is kept too.
    stray = output[:marker].strip()
    if stray:
        result["stdout"] = (result.get("stdout") or "") + stray

    stdout_text = result.get("stdout") or ""
    if len(stdout_text) > max_output_chars:
        result["stdout"] = (
            stdout_text[:max_output_chars]
            + f"\n\n[Output truncated at {max_output_chars} characters]"
        )
    return result


class CodeExecutionTool(Tool):
    name = "execute_python"
    description = (
        "Execute Python code in an isolated interpreter. Use this for calculations, "
        "data processing, or demonstrations. A single expression is evaluated directly; "
        "otherwise the code runs as a function body, so `return` the result."
    )
    parameters = {
        "code": {
            "type": "string",
            "description": "The Python code to execute. Make sure to return a value.",
        },
        "description": {
            "type": "string",
            "description": "Brief description of what the code does",
        },
    }
    required_args = ["code"]

    async def execute(self, **kwargs) -> ToolResult:
        code = kwargs.get("code", "")
        description = kwargs.get("description") or ""

        if not isinstance(code, str) or not code.strip():
            return ToolResult.failure("No code provided")

        settings = self.config.tool_execution
        self.emit("status", f"Executing Python: {description or 'Code execution'}")
        self.emit("code", code, language="python", description=description)

        outcome = await run_sandboxed(code, settings.eval_timeout, settings.max_output_chars)

        if not outcome.get("success"):
            error = outcome.get("error") or "Unknown evaluation error"
            self.emit("code_result", f"Error: {error}", success=False)
            return ToolResult.failure(error)

        display_result = outcome.get("display_result", NO_VALUE_SENTINEL)
        self.emit("code_result", display_result, success=True)
        return ToolResult.ok({
            "code": code,
            "description": description,
            "result": outcome.get("result"),
            "display_result": display_result,
            "stdout": outcome.get("stdout", ""),
            "success": True,
        })
