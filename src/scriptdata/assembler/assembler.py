"""
Fragment Assembler

Runs a Recipe over source text and produces one AssembledScript: every
declaration, helper function and procedural block the documents need, in
recipe order, with block-scoped bindings normalized to var.

Missing fragments are warnings, never errors. A missing fragment that later
code depends on shows up when the sandbox fails to resolve a name.
"""

import logging
import re
from typing import Callable, Dict, Optional, Type

from scriptdata.fragments import PRELUDE, RAW, AssembledScript, Fragment
from scriptdata.errors import UnbalancedSpanError
from scriptdata.parser.locator import extract_declaration, extract_function
from scriptdata.parser.scanner import find_matching_span, strip_literals
from scriptdata.assembler.recipe import (
    BlockUntil,
    Declarations,
    Functions,
    LoopBlock,
    MarkerSlice,
    Prelude,
    Recipe,
    Step,
)

logger = logging.getLogger(__name__)


_BLOCK_SCOPED = re.compile(r'(?<![\w$.])(?:const|let)(?=\s)')


def normalize_bindings(code: str) -> str:
    """
    Rewrite const/let declarations as var so fragments can share one scope.

    Only the keyword is replaced, so line numbers are unchanged. Keywords
    inside strings and comments are left alone.
    """
    masked = strip_literals(code)
    out = []
    last = 0
    for match in _BLOCK_SCOPED.finditer(masked):
        out.append(code[last:match.start()])
        out.append('var')
        last = match.end()
    out.append(code[last:])
    return ''.join(out)


# =============================================================================
# RAW-OFFSET SLICES
# =============================================================================

def slice_between(text: str, step: MarkerSlice) -> Optional[Fragment]:
    """Slice text between two literal markers."""
    start = text.find(step.start_marker)
    if start == -1:
        logger.warning(f"Could not find start of {step.label}: {step.start_marker!r}")
        return None
    body_start = start + len(step.start_marker) if step.skip_start else start

    if step.end_marker is None:
        end = len(text)
    else:
        end = text.find(step.end_marker, body_start)
        if end == -1:
            logger.warning(f"Could not find end of {step.label}: {step.end_marker!r}")
            return None

    return Fragment(code=text[body_start:end], kind=RAW, label=step.label, source_offset=body_start)


def slice_loop(text: str, step: LoopBlock) -> Optional[Fragment]:
    """Slice from a literal prefix through the closing brace of the next loop body."""
    start = text.find(step.prefix)
    if start == -1:
        logger.warning(f"Could not find {step.label}: {step.prefix!r}")
        return None
    loop_at = text.find(step.loop_keyword, start + len(step.prefix))
    if loop_at == -1:
        logger.warning(f"No loop after {step.prefix!r} for {step.label}")
        return None

    try:
        header = find_matching_span(text, loop_at, pairs="()")
        body = find_matching_span(text, header.end, pairs="{}") if header else None
    except UnbalancedSpanError as e:
        logger.warning(f"Malformed loop for {step.label}: {e}")
        return None
    if body is None:
        logger.warning(f"Loop for {step.label} has no braced body")
        return None

    return Fragment(code=text[start:body.end], kind=RAW, label=step.label, source_offset=start)


def slice_until(text: str, step: BlockUntil) -> Optional[Fragment]:
    """Slice from a literal marker through the first terminator after it."""
    start = text.find(step.start_marker)
    if start == -1:
        logger.warning(f"Could not find {step.label}: {step.start_marker!r}")
        return None
    end = text.find(step.terminator, start)
    if end == -1:
        logger.warning(f"No {step.terminator!r} after {step.label}")
        return None
    end += len(step.terminator)
    return Fragment(code=text[start:end], kind=RAW, label=step.label, source_offset=start)


# =============================================================================
# ASSEMBLER
# =============================================================================

class FragmentAssembler:
    """
    Build an AssembledScript from source text.

    Usage:
        assembler = FragmentAssembler(source_text)
        script = assembler.assemble(game_recipe())
        open("eval.js", "w").write(script.text)
    """

    def __init__(self, text: str):
        self.text = text
        self._handlers: Dict[Type, Callable[[Step, AssembledScript], None]] = {
            Declarations: self._add_declarations,
            Functions: self._add_functions,
            Prelude: self._add_prelude,
            MarkerSlice: self._add_slice(slice_between),
            LoopBlock: self._add_slice(slice_loop),
            BlockUntil: self._add_slice(slice_until),
        }

    def assemble(self, recipe: Recipe) -> AssembledScript:
        """Run every recipe step in order."""
        script = AssembledScript()
        for step in recipe.steps:
            handler = self._handlers.get(type(step))
            if handler is None:
                raise TypeError(f"Unknown recipe step: {step!r}")
            handler(step, script)
        logger.info(
            f"Assembled {len(script.fragments)} fragments "
            f"({len(script.missing)} missing)"
        )
        return script

    def _append(self, script: AssembledScript, fragment: Fragment) -> None:
        fragment.code = normalize_bindings(fragment.code)
        script.append(fragment)
        logger.debug(f"  + {fragment!r}")

    def _add_declarations(self, step: Declarations, script: AssembledScript) -> None:
        for name in step.names:
            fragment = extract_declaration(name, self.text)
            if fragment is None:
                logger.warning(f"Could not find {name}")
                script.missing.append(name)
                continue
            self._append(script, fragment)

    def _add_functions(self, step: Functions, script: AssembledScript) -> None:
        for name in step.names:
            fragment = extract_function(name, self.text)
            if fragment is None:
                logger.warning(f"Could not find function {name}")
                script.missing.append(name)
                continue
            self._append(script, fragment)

    def _add_prelude(self, step: Prelude, script: AssembledScript) -> None:
        self._append(script, Fragment(code=step.code, kind=PRELUDE, label=step.label))

    def _add_slice(self, slicer: Callable[[str, Step], Optional[Fragment]]):
        def handler(step: Step, script: AssembledScript) -> None:
            fragment = slicer(self.text, step)
            if fragment is None:
                script.missing.append(step.label)
                return
            self._append(script, fragment)
        return handler


def assemble(text: str, recipe: Recipe) -> AssembledScript:
    """Convenience wrapper: FragmentAssembler(text).assemble(recipe)."""
    return FragmentAssembler(text).assemble(recipe)
