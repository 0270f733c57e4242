"""
Standalone evaluator run as `python -I sandbox_runner.py` in a child process.

Reads {"code": ..., "cpu_seconds": ..., "memory_bytes": ...} as JSON on stdin
and prints a single JSON result object as the last line of stdout.
Only the standard library may be imported here: the child runs isolated,
without the project on sys.path.
"""

import ast
import contextlib
import io
import json
import sys
import traceback


NO_VALUE_SENTINEL = "None (code executed but no value returned)"
RESULT_PREFIX = "__SANDBOX_RESULT__"


def apply_limits(cpu_seconds, memory_bytes):
    try:
        import resource
    except ImportError:
        return
    if cpu_seconds:
        resource.setrlimit(resource.RLIMIT_CPU, (int(cpu_seconds), int(cpu_seconds) + 1))
    if memory_bytes:
        resource.setrlimit(resource.RLIMIT_AS, (int(memory_bytes), int(memory_bytes)))


def evaluate(code):
    """Try the code as one expression, then as a function body with `return`."""
    namespace = {"__name__": "__sandbox__"}
    try:
        compiled = compile(code, "<tool>", "eval")
    except SyntaxError:
        compiled = None

    if compiled is not None:
        return eval(compiled, namespace)

    exec(compile(as_function(code), "<tool>", "exec"), namespace)
    return namespace["__tool_main__"]()


def as_function(code):
    """Module AST defining __tool_main__() with the code's statements as its body."""
    statements = ast.parse(code, "<tool>", "exec").body
    module = ast.parse("def __tool_main__():\n    pass\n")
    if statements:
        module.body[0].body = statements
    return ast.fix_missing_locations(module)


def display(value):
    """Canonical text form of a return value."""
    if value is None:
        return NO_VALUE_SENTINEL
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    try:
        return json.dumps(value, indent=2)
    except (TypeError, ValueError):
        return repr(value)


def jsonable(value):
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return repr(value)


def main():
    request = json.loads(sys.stdin.read() or "{}")
    apply_limits(request.get("cpu_seconds"), request.get("memory_bytes"))

    captured = io.StringIO()
    try:
        with contextlib.redirect_stdout(captured):
            value = evaluate(request.get("code", ""))
        outcome = {
            "success": True,
            "result": jsonable(value),
            "display_result": display(value),
        }
    except BaseException as e:
        outcome = {
            "success": False,
            "error": f"{type(e).__name__}: {e}",
            "traceback": traceback.format_exc(limit=5),
        }

    outcome["stdout"] = captured.getvalue()
    sys.stdout.write("\n" + RESULT_PREFIX + json.dumps(outcome) + "\n")
    sys.stdout.flush()


if __name__ == "__main__":
    main()
