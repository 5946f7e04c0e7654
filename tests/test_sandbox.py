"""
Tests for sandboxed evaluation.

Engine tests run the real worker subprocess and need mini-racer installed.
"""

import json

import pytest

from scriptdata.errors import EvaluationError, EvaluationTimeoutError
from scriptdata.fragments import DECLARATION, FUNCTION, RAW, AssembledScript, Fragment
from scriptdata.sandbox.runtime import (
    CALLABLE_TAG,
    EvaluatedBinding,
    SandboxCallable,
    decode_snapshot,
    error_line,
    evaluate,
)
from scriptdata.sandbox.stubs import SandboxEnvironment, build_environment


# =============================================================================
# SUPERVISOR HELPERS (no engine)
# =============================================================================

class TestDecodeSnapshot:
    """Reviving function markers from the worker snapshot."""

    def test_plain_values(self):
        assert decode_snapshot('{"A": {"x": [1, "two", null]}}') == {"A": {"x": [1, "two", None]}}

    def test_function_marker_revived(self):
        snapshot = json.dumps({"ACH": [{"id": "a", "check": {CALLABLE_TAG: "check"}}]})
        values = decode_snapshot(snapshot)
        assert values["ACH"][0]["check"] == SandboxCallable("check")
        assert values["ACH"][0]["id"] == "a"

    def test_marker_with_extra_keys_is_data(self):
        snapshot = json.dumps({"A": {CALLABLE_TAG: "x", "other": 1}})
        assert decode_snapshot(snapshot)["A"] == {CALLABLE_TAG: "x", "other": 1}


class TestErrorLine:
    """error_line(message)"""

    def test_anonymous_location(self):
        assert error_line("<anonymous>:12: ReferenceError: foo is not defined") == 12

    def test_stack_location(self):
        assert error_line("ReferenceError: foo is not defined\n    at <anonymous>:7:3") == 7

    def test_no_location(self):
        assert error_line("Something broke") is None


class TestSandboxCallable:
    """Function stand-ins outlive the engine context."""

    def test_is_callable(self):
        assert callable(SandboxCallable("check"))

    def test_calling_raises(self):
        with pytest.raises(EvaluationError, match="check cannot be called"):
            SandboxCallable("check")()


class _RecordingRacer:
    """Engine double that records close() and fails on a marker script."""

    instances = []

    def __init__(self):
        self.closed = False
        _RecordingRacer.instances.append(self)

    def eval(self, code):
        if "BOOM" in code:
            raise RuntimeError("<anonymous>:1: ReferenceError: BOOM is not defined")
        return "{}"

    def close(self):
        self.closed = True


class TestEvalWorker:
    """handle_request() engine lifecycle."""

    @pytest.fixture(autouse=True)
    def recording_racer(self, monkeypatch):
        py_mini_racer = pytest.importorskip("py_mini_racer")
        _RecordingRacer.instances = []
        monkeypatch.setattr(py_mini_racer, "MiniRacer", _RecordingRacer)

    def test_context_closed_after_success(self):
        from scriptdata.sandbox.eval_worker import handle_request

        response = handle_request({"prelude": "", "script": "var A = 1;", "bindings": ["A"]})
        assert response == {"ok": True, "bindings": "{}"}
        assert [r.closed for r in _RecordingRacer.instances] == [True]

    def test_context_closed_after_script_error(self):
        from scriptdata.sandbox.eval_worker import handle_request

        response = handle_request({"prelude": "", "script": "BOOM();", "bindings": []})
        assert not response["ok"]
        assert response["phase"] == "script"
        assert "BOOM is not defined" in response["error"]
        assert [r.closed for r in _RecordingRacer.instances] == [True]


class TestEvaluatedBinding:
    """Snapshot accessors."""

    def test_accessors(self):
        bindings = EvaluatedBinding(values={"A": 1})
        assert "A" in bindings
        assert bindings["A"] == 1
        assert bindings.get("B", []) == []


# =============================================================================
# ENGINE
# =============================================================================

@pytest.fixture
def engine():
    """Skip engine tests when mini-racer is unavailable."""
    pytest.importorskip("py_mini_racer")


def _script(*fragments):
    script = AssembledScript()
    for fragment in fragments:
        script.append(fragment)
    return script


@pytest.mark.usefixtures("engine")
class TestEvaluate:
    """evaluate() through the worker subprocess."""

    def test_declarations_read_independently(self):
        script = _script(
            Fragment("var A = {x: 1};", name="A", kind=DECLARATION),
            Fragment("var B = [A.x, 2];", name="B", kind=DECLARATION),
        )
        bindings = evaluate(script, SandboxEnvironment(), ["A", "B", "C"])
        assert bindings["A"] == {"x": 1}
        assert bindings["B"] == [1, 2]
        assert "C" not in bindings

    def test_functions_become_callables(self):
        script = _script(
            Fragment("var ACH = [{ id: 'a', check: function () { return 1; } }];\n"
                     "var F = () => 2;", name="ACH", kind=DECLARATION),
        )
        bindings = evaluate(script, SandboxEnvironment(), ["ACH", "F"])
        assert bindings["ACH"][0]["check"] == SandboxCallable("check")
        assert isinstance(bindings["F"], SandboxCallable)

    def test_block_scoped_bindings_are_not_globals(self):
        bindings = evaluate("let L = {a: 1};\nvar V = {a: 2};", SandboxEnvironment(), ["L", "V"])
        assert "L" not in bindings
        assert bindings["V"] == {"a": 2}

    def test_stubs_available(self):
        code = "playSound('x');\nvar R = { n: countItem('ore'), added: addItem('ore', 1), tier: player.prestige.tier };"
        bindings = evaluate(code, build_environment(), ["R"])
        assert bindings["R"] == {"n": 0, "added": True, "tier": 0}

    def test_undefined_host_symbol(self, tmp_path):
        script = _script(
            Fragment("var A = {x: 1};", name="A", kind=DECLARATION),
            Fragment("fireHostEffect('spark');", label="spawnParticles", kind=RAW),
            Fragment("function later() {\n  return 1;\n}", name="later", kind=FUNCTION),
        )
        debug_path = tmp_path / "out" / "_debug_eval.js"

        with pytest.raises(EvaluationError) as exc_info:
            evaluate(script, build_environment(), ["A"], debug_path=debug_path)

        error = exc_info.value
        assert "fireHostEffect" in error.message
        assert error.error_type == "ReferenceError"
        assert error.line == 2
        assert error.fragment == "spawnParticles"
        assert any("fireHostEffect('spark');" in line for line in error.context)
        assert "fireHostEffect" in error.format_diagnostic()
        assert debug_path.read_text(encoding="utf-8") == script.text

    def test_thrown_error_in_raw_text(self):
        with pytest.raises(EvaluationError) as exc_info:
            evaluate("var A = 1;\nvar B = 2;\nthrow new TypeError('bad table');",
                     SandboxEnvironment(), ["A"])
        assert exc_info.value.error_type == "TypeError"
        assert "bad table" in exc_info.value.message
        assert exc_info.value.line == 3
        assert exc_info.value.fragment is None

    def test_script_error_is_never_reported_as_timeout(self):
        """The worker exits promptly after reporting an engine error."""
        for _ in range(5):
            with pytest.raises(EvaluationError) as exc_info:
                evaluate("var A = 1;\nspawnParticles(A);", build_environment(), ["A"], timeout=30)
            assert exc_info.value.line == 2
            assert "spawnParticles" in exc_info.value.message

    def test_timeout(self, tmp_path):
        debug_path = tmp_path / "_debug_eval.js"
        with pytest.raises(EvaluationTimeoutError) as exc_info:
            evaluate("while (true) {}", SandboxEnvironment(), [], timeout=1, debug_path=debug_path)
        assert exc_info.value.timeout == 1
        assert debug_path.exists()

    def test_fresh_context_per_run(self):
        evaluate("var LEAK = 1;", SandboxEnvironment(), ["LEAK"])
        bindings = evaluate("var OTHER = 2;", SandboxEnvironment(), ["LEAK", "OTHER"])
        assert "LEAK" not in bindings
