"""
Sandbox Eval Worker - one-shot subprocess running the embedded JS engine.

THIS IS A SUBPROCESS ENTRY POINT. Do not import this module in the main process.

Protocol:
- Supervisor (runtime.py) spawns this process and writes one JSON request to stdin
- Worker creates a fresh engine context, installs the stub prelude, runs the
  script, snapshots the requested globals and writes one JSON line to stdout
- Worker exits after one request; the supervisor kills it on timeout

Request format:
    {"prelude": "...", "script": "...", "bindings": ["ITEMS", ...],
     "callable_tag": "__sandbox_callable__"}

Response format (JSON line):
    Success:
    {"ok": true, "bindings": "<JSON snapshot>"}

    Failure:
    {"ok": false, "phase": "prelude|script|snapshot", "error_type": "...", "error": "message"}

Usage:
    python -m scriptdata.sandbox.eval_worker < request.json
"""

import json
import signal
import sys
from pathlib import Path


# Reads the requested globals and serializes them; functions become
# {tag: name} markers the supervisor revives as SandboxCallable.
SNAPSHOT_JS = """
(function (names, tag) {
    var out = {};
    names.forEach(function (name) {
        if (typeof globalThis[name] !== 'undefined') {
            out[name] = globalThis[name];
        }
    });
    return JSON.stringify(out, function (key, value) {
        if (typeof value === 'function') {
            var marker = {};
            marker[tag] = value.name || key;
            return marker;
        }
        return value;
    });
})(%s, %s)
"""


def _setup_signal_handlers():
    """Ignore SIGINT in worker - let supervisor handle it."""
    try:
        signal.signal(signal.SIGINT, signal.SIG_IGN)
    except (ValueError, OSError):
        pass  # Not supported on this platform/thread


def handle_request(request: dict) -> dict:
    """
    Evaluate one request in a fresh engine context.

    Returns response dict (always has an 'ok' field). The engine context is
    closed before returning; an open context can block interpreter exit.
    """
    phase = "startup"
    ctx = None
    try:
        from py_mini_racer import MiniRacer

        ctx = MiniRacer()

        phase = "prelude"
        ctx.eval(request.get("prelude", ""))

        phase = "script"
        # Trailing void keeps the completion value from being marshalled
        ctx.eval(request["script"] + "\n;void 0;")

        phase = "snapshot"
        snapshot = ctx.eval(SNAPSHOT_JS % (
            json.dumps(request.get("bindings", [])),
            json.dumps(request.get("callable_tag", "__sandbox_callable__")),
        ))

        return {"ok": True, "bindings": snapshot}

    except Exception as e:
        return {
            "ok": False,
            "phase": phase,
            "error_type": type(e).__name__,
            "error": str(e),
        }

    finally:
        if ctx is not None:
            ctx.close()


def worker_main():
    """Read one request from stdin, write one response line to stdout."""
    _setup_signal_handlers()

    try:
        request = json.loads(sys.stdin.read())
    except json.JSONDecodeError as e:
        response = {
            "ok": False,
            "phase": "request",
            "error_type": "JSONDecodeError",
            "error": f"Invalid request JSON: {e}",
        }
    else:
        response = handle_request(request)

    sys.stdout.write(json.dumps(response) + "\n")
    sys.stdout.flush()


if __name__ == "__main__":
    # Add src to path if running directly
    src_root = Path(__file__).parent.parent.parent
    sys.path.insert(0, str(src_root))

    worker_main()
