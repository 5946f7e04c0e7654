"""
Assembly-time reference check.

Approximates, without a parser, which free identifiers each fragment reads
and verifies each one is a sandbox stub, a JavaScript builtin, or defined by
an earlier fragment. Problems found here would otherwise surface only as a
ReferenceError during sandbox evaluation.

The scan is loose: property names, object keys and anything
assigned within a fragment are never reported. It can miss problems, but a
reported name is almost always a real gap.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Set, Tuple

from scriptdata.fragments import FUNCTION, Fragment
from scriptdata.parser.scanner import strip_literals

logger = logging.getLogger(__name__)


JS_KEYWORDS = frozenset("""
    async await break case catch class const continue debugger default delete
    do else export extends false finally for function get if import in
    instanceof let new null of return set static super switch this throw true
    try typeof var void while with yield
""".split())

JS_GLOBALS = frozenset("""
    Array ArrayBuffer BigInt Boolean Date Error EvalError Float32Array
    Float64Array Infinity Int32Array Intl JSON Map Math NaN Number Object
    Promise Proxy RangeError ReferenceError Reflect RegExp Set String Symbol
    SyntaxError TypeError Uint8Array WeakMap WeakSet arguments
    decodeURIComponent encodeURIComponent eval globalThis isFinite isNaN
    parseFloat parseInt undefined
""".split())

_IDENT = r'[A-Za-z_$][\w$]*'

# Identifier not preceded by '.', an identifier char, or a digit (1e5, 0x1F)
_REFERENCE = re.compile(r'(?<![\w$.])(' + _IDENT + r')(?![\w$])(?!\s*:(?!:))')
_DECLARED = re.compile(r'(?<![\w$.])(?:var|let|const)\s+(' + _IDENT + ')')
_FUNCTION_NAME = re.compile(r'(?<![\w$.])function\s*\*?\s*(' + _IDENT + r')?\s*\(([^()]*)\)')
_ARROW_PARAMS = re.compile(r'\(([^()]*)\)\s*=>')
_ARROW_PARAM = re.compile(r'(?<![\w$.])(' + _IDENT + r')\s*=>')
_CATCH_PARAM = re.compile(r'catch\s*\(\s*(' + _IDENT + r')')
_ASSIGNED = re.compile(r'(?<![\w$.])(' + _IDENT + r')\s*(?:=(?![=>])|[-+*/%]=|\+\+|--)')
_IDENT_ONLY = re.compile(_IDENT)


@dataclass
class FragmentNames:
    """Identifiers a fragment defines and reads."""
    defined: Set[str] = field(default_factory=set)
    free: Set[str] = field(default_factory=set)


def scan_names(code: str) -> FragmentNames:
    """Approximate the defined and free identifiers of one fragment."""
    masked = strip_literals(code)
    # Blank quotes too so string content can never look like code
    masked = re.sub(r"['\"`]", ' ', masked)

    defined: Set[str] = set(_DECLARED.findall(masked))
    local: Set[str] = set()
    for name, params in _FUNCTION_NAME.findall(masked):
        if name:
            defined.add(name)
        local.update(_IDENT_ONLY.findall(params))
    for params in _ARROW_PARAMS.findall(masked):
        local.update(_IDENT_ONLY.findall(params))
    local.update(_ARROW_PARAM.findall(masked))
    local.update(_CATCH_PARAM.findall(masked))
    defined.update(_ASSIGNED.findall(masked))

    referenced = set(_REFERENCE.findall(masked))
    free = referenced - defined - local - JS_KEYWORDS - JS_GLOBALS
    return FragmentNames(defined=defined - JS_KEYWORDS, free=free)


@dataclass
class ReferenceReport:
    """Outcome of checking an ordered fragment list."""
    unresolved: List[Tuple[str, str]] = field(default_factory=list)  # (name, fragment)
    forward: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.unresolved and not self.forward

    def problems(self) -> List[str]:
        out = [f"{name} is not defined (read by {frag})" for name, frag in self.unresolved]
        out += [f"{name} is defined after {frag} reads it" for name, frag in self.forward]
        return out

    def log(self) -> None:
        for problem in self.problems():
            logger.warning(f"Reference check: {problem}")


def check_references(fragments: List[Fragment], known_globals: Iterable[str]) -> ReferenceReport:
    """
    Check that every free identifier resolves in fragment order.

    Args:
        fragments: Fragments in assembly order
        known_globals: Names the sandbox provides (stub table keys)

    Forward references from function declarations are allowed because the
    body runs only when called. Forward references from code that runs at
    load time are reported.
    """
    known = set(known_globals)
    scanned = [scan_names(f.code) for f in fragments]
    report = ReferenceReport()

    defined_so_far: Set[str] = set()
    for index, (fragment, names) in enumerate(zip(fragments, scanned)):
        defined_later: Set[str] = set()
        for later in scanned[index + 1:]:
            defined_later |= later.defined

        for name in sorted(names.free):
            if name in known or name in defined_so_far:
                continue
            if name in defined_later:
                if fragment.kind != FUNCTION:
                    report.forward.append((name, fragment.display_name))
                continue
            report.unresolved.append((name, fragment.display_name))

        defined_so_far |= names.defined

    return report
