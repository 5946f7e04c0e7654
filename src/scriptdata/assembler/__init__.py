"""
scriptdata.assembler - Executable Subset Assembly

Turns an extraction Recipe into one ordered, self-consistent script:
1. Named declarations and functions via the locators
2. Helper preludes the extracted code relies on
3. Raw slices for procedurally built tables
4. A reference check over the ordered fragments
"""

from .recipe import (
    Recipe,
    Declarations,
    Functions,
    Prelude,
    MarkerSlice,
    LoopBlock,
    BlockUntil,
    DocumentSpec,
    Ref,
    SummaryLine,
    game_recipe,
    resolve_body,
)
from .assembler import FragmentAssembler, assemble, normalize_bindings
from .references import ReferenceReport, check_references, scan_names

__all__ = [
    # Recipe
    "Recipe",
    "Declarations",
    "Functions",
    "Prelude",
    "MarkerSlice",
    "LoopBlock",
    "BlockUntil",
    "DocumentSpec",
    "Ref",
    "SummaryLine",
    "game_recipe",
    "resolve_body",
    # Assembler
    "FragmentAssembler",
    "assemble",
    "normalize_bindings",
    # References
    "ReferenceReport",
    "check_references",
    "scan_names",
]
