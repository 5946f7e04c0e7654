"""
Fragments and the assembled script.

A Fragment is one unit of extracted source text. Fragments are kept in
recipe order; later fragments may read names defined by earlier ones.
"""

from dataclasses import dataclass, field
from typing import List, Optional


# Fragment kinds
DECLARATION = "declaration"
FUNCTION = "function"
PRELUDE = "prelude"
RAW = "raw"


@dataclass
class Fragment:
    """A named or anonymous unit of extracted text."""
    code: str
    name: str = ""            # Empty for anonymous raw slices
    kind: str = RAW
    label: str = ""           # Human-readable origin, e.g. "defineItem calls"
    source_offset: Optional[int] = None

    @property
    def display_name(self) -> str:
        return self.name or self.label or f"<{self.kind}>"

    @property
    def line_count(self) -> int:
        return self.code.count('\n') + 1

    def __repr__(self):
        return f"Fragment({self.kind}, {self.display_name}, {len(self.code)} chars)"


@dataclass
class AssembledScript:
    """Ordered fragments joined into one executable text."""
    fragments: List[Fragment] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)

    def append(self, fragment: Fragment) -> None:
        self.fragments.append(fragment)

    @property
    def text(self) -> str:
        """Full executable text, one fragment after another."""
        return "".join(f.code + "\n" for f in self.fragments)

    def start_lines(self) -> List[int]:
        """1-based line in the assembled text where each fragment begins."""
        starts = []
        line = 1
        for frag in self.fragments:
            starts.append(line)
            line += frag.line_count
        return starts

    def fragment_at_line(self, line: int) -> Optional[Fragment]:
        """Fragment containing a 1-based line of the assembled text."""
        found = None
        for frag, start in zip(self.fragments, self.start_lines()):
            if start > line:
                break
            found = frag
        return found

    def context_lines(self, line: int, before: int = 2, after: int = 2) -> List[str]:
        """Numbered lines surrounding a 1-based line."""
        lines = self.text.split('\n')
        lo = max(0, line - 1 - before)
        hi = min(len(lines), line + after)
        return [f"{n + 1:>5}: {lines[n]}" for n in range(lo, hi)]
