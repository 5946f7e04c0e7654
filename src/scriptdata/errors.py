"""
Exception types shared across the extraction pipeline.
"""

from typing import List, Optional


class ScriptDataError(Exception):
    """Base class for all extraction errors."""


class ConfigError(ScriptDataError):
    """Invalid or unreadable configuration."""


class UnbalancedSpanError(ScriptDataError):
    """Bracket nesting never closed before end of text."""
    def __init__(self, offset: int, depth: int):
        self.offset = offset
        self.depth = depth
        super().__init__(
            f"Unbalanced span opened at offset {offset}: "
            f"{depth} bracket(s) still open at end of text"
        )


class ReferenceCheckError(ScriptDataError):
    """Assembled fragments read identifiers nothing defines."""
    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__(
            f"{len(problems)} unresolved reference(s) in assembled script: "
            + "; ".join(problems[:10])
        )


class EvaluationError(ScriptDataError):
    """The assembled script threw while executing in the sandbox."""
    def __init__(
        self,
        message: str,
        error_type: str = "Error",
        line: Optional[int] = None,
        context: Optional[List[str]] = None,
        fragment: Optional[str] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.line = line
        self.context = context or []
        self.fragment = fragment
        where = f" near line {line}" if line is not None else ""
        if fragment:
            where += f" (fragment {fragment})"
        super().__init__(f"Sandbox eval error{where}: {message}")

    def format_diagnostic(self) -> str:
        """Multi-line report: message, offending line and surrounding lines."""
        lines = [str(self)]
        if self.context:
            lines.append("Context:")
            lines.extend(f"  {ctx}" for ctx in self.context)
        return "\n".join(lines)


class EvaluationTimeoutError(ScriptDataError):
    """Sandbox evaluation exceeded its wall-clock budget."""
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Sandbox evaluation timed out after {timeout}s")


class SandboxWorkerError(ScriptDataError):
    """The evaluation subprocess failed outside the evaluated script."""
    def __init__(self, error: str, returncode: int = -1):
        self.error = error
        self.returncode = returncode
        super().__init__(f"Sandbox worker failed ({returncode}): {error}")
