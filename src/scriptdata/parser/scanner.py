"""
Balanced Span Scanner

Finds the closing delimiter of a bracketed construct in JavaScript-like
source text without a grammar. String literals ('...', "...", `...`),
line comments and block comments are skipped so that delimiters inside
them never affect nesting.

Usage:
    span = find_matching_span(text, text.index("="))
    if span is not None:
        literal = span.text_of(text)
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from scriptdata.errors import UnbalancedSpanError


QUOTES = ("'", '"', '`')

# Bracket pairs used by declaration extraction
DEFAULT_PAIRS = "{}[]"


@dataclass(frozen=True)
class Span:
    """A half-open range [start, end) into source text."""
    start: int
    end: int
    balanced: bool = True

    def __len__(self) -> int:
        return self.end - self.start

    def text_of(self, text: str) -> str:
        """Return the slice of text this span covers."""
        return text[self.start:self.end]


def _pair_table(pairs: str) -> Dict[str, str]:
    """'{}[]' -> {'{': '}', '[': ']'}"""
    if len(pairs) % 2:
        raise ValueError(f"Bracket pairs must come in twos: {pairs!r}")
    return {pairs[i]: pairs[i + 1] for i in range(0, len(pairs), 2)}


def skip_literal(text: str, i: int) -> int:
    """
    If a string or comment starts at i, return the offset just past it.

    Returns i unchanged when text[i] opens neither. An unterminated literal
    runs to end of text.
    """
    n = len(text)
    ch = text[i]

    if ch in QUOTES:
        j = i + 1
        while j < n and text[j] != ch:
            if text[j] == '\\':
                j += 1
            j += 1
        return min(j + 1, n)

    if ch == '/' and i + 1 < n:
        nxt = text[i + 1]
        if nxt == '/':
            end = text.find('\n', i + 2)
            return n if end == -1 else end + 1
        if nxt == '*':
            end = text.find('*/', i + 2)
            return n if end == -1 else end + 2

    return i


def iter_code(text: str, start: int = 0, end: Optional[int] = None) -> Iterator[Tuple[int, str]]:
    """Yield (offset, char) for every character outside strings and comments."""
    stop = len(text) if end is None else min(end, len(text))
    i = start
    while i < stop:
        j = skip_literal(text, i)
        if j != i:
            i = j
            continue
        yield i, text[i]
        i += 1


def strip_literals(text: str) -> str:
    """
    Blank out string and comment content, keeping offsets and newlines.

    Quote characters are kept so string positions stay recognisable.
    """
    out = list(text)
    i = 0
    n = len(text)
    while i < n:
        j = skip_literal(text, i)
        if j == i:
            i += 1
            continue
        keep_quotes = text[i] in QUOTES
        for k in range(i, j):
            if out[k] == '\n':
                continue
            if keep_quotes and (k == i or (k == j - 1 and text[k] == text[i])):
                continue
            out[k] = ' '
        i = j
    return ''.join(out)


def find_opener(text: str, start: int, pairs: str = DEFAULT_PAIRS,
                skip_literals: bool = True) -> int:
    """Offset of the first opening bracket at/after start, or -1."""
    openers = _pair_table(pairs)
    if skip_literals:
        for i, ch in iter_code(text, start):
            if ch in openers:
                return i
        return -1
    hits = [text.find(op, start) for op in openers]
    hits = [h for h in hits if h != -1]
    return min(hits) if hits else -1


def find_matching_span(
    text: str,
    start: int,
    pairs: str = DEFAULT_PAIRS,
    skip_literals: bool = True,
    strict: bool = True,
) -> Optional[Span]:
    """
    Find the balanced span opened by the first bracket at/after start.

    Args:
        text: Source text
        start: Offset to begin searching for an opening bracket
        pairs: Bracket pairs that count for nesting, as "{}[]" or "{}"
        skip_literals: Ignore brackets inside strings and comments
        strict: Raise UnbalancedSpanError if nesting never closes

    Returns:
        Span from the opener through its matching closer (plus one trailing
        ';' if present), or None if there is no opener.

    Raises:
        UnbalancedSpanError: strict mode and the stack never empties
    """
    table = _pair_table(pairs)
    closers = set(table.values())

    open_at = find_opener(text, start, pairs, skip_literals)
    if open_at == -1:
        return None

    stack = [text[open_at]]
    n = len(text)
    j = open_at + 1
    while j < n and stack:
        if skip_literals:
            k = skip_literal(text, j)
            if k != j:
                j = k
                continue
        ch = text[j]
        if ch in table:
            stack.append(ch)
        elif ch in closers and ch == table[stack[-1]]:
            stack.pop()
        # Non-matching closers are tolerated
        j += 1

    if stack:
        if strict:
            raise UnbalancedSpanError(open_at, len(stack))
        return Span(open_at, n, balanced=False)

    if j < n and text[j] == ';':
        j += 1
    return Span(open_at, j)
