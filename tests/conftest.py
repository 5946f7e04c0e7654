"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scriptdata.assembler.recipe import (
    Declarations,
    MarkerSlice,
    Prelude,
    Recipe,
    DocumentSpec,
    Ref,
    ITEM_REGISTRY,
)
from scriptdata.config import ExtractorConfig


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def game_js_path(fixtures_dir):
    """Trimmed RunEscape game.js."""
    return fixtures_dir / "game.js"


@pytest.fixture
def game_js(game_js_path):
    """Contents of the trimmed game.js."""
    return game_js_path.read_text(encoding="utf-8")


@pytest.fixture
def output_dir(tmp_path):
    """Fresh output directory per test."""
    return tmp_path / "data"


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

def make_config(tmp_path: Path, source: Path, output: Path, **extra) -> ExtractorConfig:
    """Write a YAML config for one test run and load it."""
    lines = [
        f'source_path: "{source.as_posix()}"',
        f'output_dir: "{output.as_posix()}"',
    ]
    for key, value in extra.items():
        lines.append(f"{key}: {value}")
    path = tmp_path / "scriptdata.yaml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return ExtractorConfig(path)


@pytest.fixture
def config(tmp_path, game_js_path, output_dir):
    """Config pointing at the fixture script and a temp output dir."""
    return make_config(tmp_path, game_js_path, output_dir)


# =============================================================================
# RECIPE FIXTURES
# =============================================================================

@pytest.fixture
def item_recipe():
    """Enum + item registry + every defineItem call from the first one onward."""
    return Recipe(
        steps=[
            Declarations(("ItemType",)),
            Prelude("item registry", ITEM_REGISTRY),
            MarkerSlice("defineItem calls", "defineItem('ore1'"),
        ],
        documents=[
            DocumentSpec("items.json", Ref("ITEMS")),
            DocumentSpec("enums.json", {"item_type": Ref("ItemType")}),
        ],
    )
