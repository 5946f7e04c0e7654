"""
Named-Declaration and Named-Function Locators

Locate a top-level binding or function definition by name and capture its
full source text using the balanced span scanner.
"""

import logging
import re
from typing import Optional, Tuple

from scriptdata.fragments import DECLARATION, FUNCTION, Fragment
from scriptdata.errors import UnbalancedSpanError
from scriptdata.parser.scanner import find_matching_span, iter_code, strip_literals

logger = logging.getLogger(__name__)


# Identifier boundaries for JavaScript names ($ is an identifier char)
_NOT_IDENT_BEFORE = r'(?<![\w$])'
_NOT_IDENT_AFTER = r'(?![\w$])'


def _declaration_pattern(name: str) -> "re.Pattern":
    return re.compile(
        _NOT_IDENT_BEFORE + r'(?:var|let|const)\s+' + re.escape(name)
        + _NOT_IDENT_AFTER + r'\s*=(?![=>])'
    )


def _function_pattern(name: str) -> "re.Pattern":
    return re.compile(
        _NOT_IDENT_BEFORE + r'function\s+' + re.escape(name) + r'\s*\('
    )


def find_declaration(name: str, text: str) -> Optional[Tuple[int, int]]:
    """
    Locate the first binding site of name.

    Returns (start, end) where start is the binding keyword and end is the
    offset just past the assignment marker, or None. Declarations inside
    strings and comments are ignored.
    """
    match = _declaration_pattern(name).search(strip_literals(text))
    if match is None:
        return None
    return match.start(), match.end()


def _statement_ends_before(text: str, start: int, opener: int) -> bool:
    """True if a ';' outside literals occurs between start and opener."""
    for _, ch in iter_code(text, start, opener):
        if ch == ';':
            return True
    return False


def extract_declaration(name: str, text: str) -> Optional[Fragment]:
    """
    Extract `var|let|const NAME = {...}` or `= [...]` as one fragment.

    The fragment runs from the binding keyword through the matching closer
    of the first '{' or '[' after the assignment, plus a trailing ';'.

    Returns None if the name is not declared, the value is not a bracketed
    literal, or its brackets never balance.
    """
    found = find_declaration(name, text)
    if found is None:
        logger.debug(f"Declaration not found: {name}")
        return None
    start, value_at = found

    try:
        span = find_matching_span(text, value_at)
    except UnbalancedSpanError as e:
        logger.warning(f"Malformed span for {name}: {e}")
        return None
    if span is None:
        logger.debug(f"No bracketed value after declaration of {name}")
        return None
    if _statement_ends_before(text, value_at, span.start):
        logger.warning(f"Declaration of {name} is not a bracketed literal, skipping")
        return None

    return Fragment(
        code=text[start:span.end],
        name=name,
        kind=DECLARATION,
        label=f"var {name}",
        source_offset=start,
    )


def extract_function(name: str, text: str) -> Optional[Fragment]:
    """
    Extract `function NAME(...) { ... }` as one fragment.

    The parameter list is skipped with a literal-aware paren scan so braces
    inside default-value strings cannot start the body. The body is matched
    on braces only.
    """
    match = _function_pattern(name).search(strip_literals(text))
    if match is None:
        logger.debug(f"Function not found: {name}")
        return None

    try:
        params = find_matching_span(text, match.end() - 1, pairs="()")
        if params is None:
            return None
        body = find_matching_span(text, params.end, pairs="{}")
    except UnbalancedSpanError as e:
        logger.warning(f"Malformed span for function {name}: {e}")
        return None
    if body is None:
        logger.warning(f"Function {name} has no body")
        return None

    end = body.end
    # Function declarations need no terminator
    if text[end - 1] == ';':
        end -= 1

    return Fragment(
        code=text[match.start():end],
        name=name,
        kind=FUNCTION,
        label=f"function {name}",
        source_offset=match.start(),
    )
