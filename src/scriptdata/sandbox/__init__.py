"""
scriptdata.sandbox - Isolated Evaluation

Executes assembled scripts against an explicit capability table of stubs,
in a separate worker process with a hard wall-clock budget.
"""

from .stubs import (
    HostState,
    SandboxEnvironment,
    Stub,
    build_environment,
    PASSTHROUGH,
    VALUE,
    NOOP,
    RETURNS,
    SCRIPT,
)
from .runtime import (
    DEFAULT_EVAL_TIMEOUT,
    EvaluatedBinding,
    SandboxCallable,
    evaluate,
    error_line,
    write_debug_artifact,
)

__all__ = [
    # Stubs
    "HostState",
    "SandboxEnvironment",
    "Stub",
    "build_environment",
    "PASSTHROUGH",
    "VALUE",
    "NOOP",
    "RETURNS",
    "SCRIPT",
    # Runtime
    "DEFAULT_EVAL_TIMEOUT",
    "EvaluatedBinding",
    "SandboxCallable",
    "evaluate",
    "error_line",
    "write_debug_artifact",
]
