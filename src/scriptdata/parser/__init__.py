"""
scriptdata.parser - Source Span Extraction

Grammar-free scanning of JavaScript-like source: balanced span matching that
skips strings and comments, and name-based declaration/function lookup.
"""

from scriptdata.parser.scanner import (
    Span,
    find_matching_span,
    find_opener,
    iter_code,
    skip_literal,
    strip_literals,
)
from scriptdata.parser.locator import (
    extract_declaration,
    extract_function,
    find_declaration,
)

__all__ = [
    # Scanner
    "Span",
    "find_matching_span",
    "find_opener",
    "iter_code",
    "skip_literal",
    "strip_literals",
    # Locators
    "extract_declaration",
    "extract_function",
    "find_declaration",
]
