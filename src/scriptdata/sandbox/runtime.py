"""
Isolated Evaluator - subprocess-based script execution with hard timeout.

The assembled script runs in a separate Python process hosting an embedded
V8 engine (see eval_worker.py). This provides:
- Hard timeout enforcement (the worker is killed when the budget elapses)
- No shared state between the evaluated script and this process
- Engine crashes never take down the pipeline

Usage:
    from scriptdata.sandbox.runtime import evaluate

    bindings = evaluate(script, build_environment(), ["ITEMS", "RECIPES"],
                        timeout=15, debug_path=Path("data/_debug_eval.js"))
    items = bindings.get("ITEMS", {})
"""

import json
import logging
import os
import re
import subprocess
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from scriptdata.fragments import AssembledScript, Fragment
from scriptdata.errors import (
    EvaluationError,
    EvaluationTimeoutError,
    SandboxWorkerError,
)
from scriptdata.sandbox.stubs import SandboxEnvironment

logger = logging.getLogger(__name__)


# Default wall-clock budget for one evaluation (seconds)
DEFAULT_EVAL_TIMEOUT = 15

# Maximum allowed budget
MAX_EVAL_TIMEOUT = 300

# Key marking a JavaScript function in the worker's snapshot
CALLABLE_TAG = "__sandbox_callable__"


@dataclass(frozen=True)
class SandboxCallable:
    """
    Stand-in for a JavaScript function value read out of the sandbox.

    Callable so that serializers can treat it like any other callable, but
    the engine context is gone once evaluation returns.
    """
    name: str

    def __call__(self, *args, **kwargs):
        raise EvaluationError(
            f"{self.name or 'anonymous function'} cannot be called outside the sandbox",
            error_type="TypeError",
        )


@dataclass
class EvaluatedBinding:
    """Top-level name -> value snapshot taken after the script ran."""
    values: Dict[str, Any] = field(default_factory=dict)
    elapsed: float = 0.0

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)


def _get_src_root() -> Path:
    """Directory holding the scriptdata package."""
    # This file is at src/scriptdata/sandbox/runtime.py
    return Path(__file__).parent.parent.parent


def _revive(obj: Dict[str, Any]) -> Any:
    if len(obj) == 1 and CALLABLE_TAG in obj:
        return SandboxCallable(obj[CALLABLE_TAG])
    return obj


def decode_snapshot(snapshot: str) -> Dict[str, Any]:
    """Decode the worker's JSON snapshot, reviving function markers."""
    return json.loads(snapshot, object_hook=_revive)


_LINE_PATTERNS = (
    re.compile(r'<anonymous>:(\d+)'),
    re.compile(r':(\d+)'),
)
_ERROR_NAME = re.compile(r'\b([A-Z]\w*Error)\b')


def error_line(message: str) -> Optional[int]:
    """Best-effort 1-based line number from an engine error message."""
    for pattern in _LINE_PATTERNS:
        match = pattern.search(message)
        if match:
            return int(match.group(1))
    return None


def _first_line(message: str) -> str:
    lines = [line for line in message.strip().splitlines() if line.strip()]
    return lines[0] if lines else message


def _build_error(message: str, script: Union[AssembledScript, str]) -> EvaluationError:
    """EvaluationError with line, context and fragment filled in where possible."""
    name_match = _ERROR_NAME.search(message)
    error_type = name_match.group(1) if name_match else "Error"
    line = error_line(message)

    context = []
    fragment: Optional[Fragment] = None
    if line is not None:
        if isinstance(script, AssembledScript):
            context = script.context_lines(line)
            fragment = script.fragment_at_line(line)
        else:
            lines = script.split('\n')
            lo, hi = max(0, line - 3), min(len(lines), line + 2)
            context = [f"{n + 1:>5}: {lines[n]}" for n in range(lo, hi)]

    return EvaluationError(
        _first_line(message),
        error_type=error_type,
        line=line,
        context=context,
        fragment=fragment.display_name if fragment else None,
    )


def write_debug_artifact(path: Path, text: str) -> Path:
    """Write the pre-evaluation script so failures are reproducible."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)
    return path


def _run_worker(request: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    """
    Run the eval worker with a hard timeout and return its response.

    Internal helper - use evaluate() instead.
    """
    src_root = _get_src_root()
    env = {
        **os.environ,
        "PYTHONPATH": os.pathsep.join(
            p for p in (str(src_root), os.environ.get("PYTHONPATH", "")) if p
        ),
    }

    try:
        proc = subprocess.run(
            [sys.executable, "-m", "scriptdata.sandbox.eval_worker"],
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            input=json.dumps(request),
        )
    except subprocess.TimeoutExpired:
        # subprocess.run kills the worker on TimeoutExpired
        raise EvaluationTimeoutError(timeout)

    if proc.returncode != 0:
        stderr = proc.stderr.strip() if proc.stderr else "Unknown error"
        raise SandboxWorkerError(stderr, proc.returncode)

    stdout = proc.stdout.strip()
    if not stdout:
        raise SandboxWorkerError("Empty output from worker", 0)

    try:
        return json.loads(stdout.splitlines()[-1])
    except json.JSONDecodeError as e:
        raise SandboxWorkerError(f"Invalid JSON from worker: {e}", 0)


def evaluate(
    script: Union[AssembledScript, str],
    environment: SandboxEnvironment,
    bindings: Iterable[str],
    timeout: float = DEFAULT_EVAL_TIMEOUT,
    debug_path: Optional[Path] = None,
) -> EvaluatedBinding:
    """
    Execute an assembled script in the sandbox and snapshot bindings.

    Args:
        script: AssembledScript (gives fragment-aware diagnostics) or raw text
        environment: Capability table installed before the script runs
        bindings: Top-level names to read back; unbound names are omitted
        timeout: Wall-clock budget in seconds (capped at MAX_EVAL_TIMEOUT)
        debug_path: Where to write the script before executing

    Returns:
        EvaluatedBinding with plain data; JS functions become SandboxCallable

    Raises:
        EvaluationError: The script threw (line and context when known)
        EvaluationTimeoutError: The budget elapsed
        SandboxWorkerError: The worker itself failed
    """
    text = script.text if isinstance(script, AssembledScript) else script
    timeout = min(timeout, MAX_EVAL_TIMEOUT)

    if debug_path is not None:
        write_debug_artifact(debug_path, text)
        logger.debug(f"Debug script written to {debug_path}")

    request = {
        "prelude": environment.prelude(),
        "script": text,
        "bindings": list(bindings),
        "callable_tag": CALLABLE_TAG,
    }

    started = time.monotonic()
    response = _run_worker(request, timeout)
    elapsed = time.monotonic() - started

    if not response.get("ok"):
        phase = response.get("phase", "script")
        error = response.get("error", "Unknown error")
        if phase == "script":
            raise _build_error(error, script)
        if phase == "snapshot":
            raise EvaluationError(_first_line(error), error_type=response.get("error_type", "Error"))
        raise SandboxWorkerError(f"{phase}: {error}", 0)

    values = decode_snapshot(response["bindings"])
    logger.info(f"Sandbox evaluation finished in {elapsed:.2f}s ({len(values)} bindings)")
    return EvaluatedBinding(values=values, elapsed=elapsed)
