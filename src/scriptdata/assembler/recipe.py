"""
Extraction Recipe

Declarative description of what to pull out of the game script, in which
order, and how evaluated bindings are grouped into output documents.

Order matters: a step may only read names defined by earlier steps.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union


# =============================================================================
# ASSEMBLY STEPS
# =============================================================================

@dataclass(frozen=True)
class Declarations:
    """Named `var NAME = {...}` / `[...]` literals, appended in order."""
    names: Tuple[str, ...]


@dataclass(frozen=True)
class Functions:
    """Named `function NAME(...) {...}` definitions, appended in order."""
    names: Tuple[str, ...]


@dataclass(frozen=True)
class Prelude:
    """Helper code written directly into the assembled script."""
    label: str
    code: str


@dataclass(frozen=True)
class MarkerSlice:
    """
    Raw text between two literal markers.

    The slice starts at start_marker (or just after it when skip_start is
    set) and stops before end_marker. A None end_marker runs to end of text.
    """
    label: str
    start_marker: str
    end_marker: Optional[str] = None
    skip_start: bool = False


@dataclass(frozen=True)
class LoopBlock:
    """From a literal prefix through the brace-matched body of the next loop."""
    label: str
    prefix: str
    loop_keyword: str = "for ("


@dataclass(frozen=True)
class BlockUntil:
    """From a literal marker through the first terminator after it."""
    label: str
    start_marker: str
    terminator: str


Step = Union[Declarations, Functions, Prelude, MarkerSlice, LoopBlock, BlockUntil]


# =============================================================================
# OUTPUT DOCUMENTS
# =============================================================================

@dataclass(frozen=True)
class Ref:
    """A dotted path into the evaluated bindings, e.g. 'DUNGEON_CONFIG.roomSize'."""
    path: str
    default: Any = None

    @property
    def root(self) -> str:
        return self.path.split('.', 1)[0]

    def resolve(self, bindings: Dict[str, Any]) -> Any:
        value: Any = bindings
        for part in self.path.split('.'):
            if not isinstance(value, dict) or part not in value:
                return self.default
            value = value[part]
        return value


# A document body is a single Ref or a nested mapping of keys to bodies
Body = Union[Ref, Dict[str, Any]]


def _body_roots(body: Body) -> List[str]:
    if isinstance(body, Ref):
        return [body.root]
    roots = []
    for sub in body.values():
        roots.extend(_body_roots(sub))
    return roots


def resolve_body(body: Body, bindings: Dict[str, Any]) -> Any:
    """Build a document value from evaluated bindings."""
    if isinstance(body, Ref):
        return body.resolve(bindings)
    return {key: resolve_body(sub, bindings) for key, sub in body.items()}


@dataclass(frozen=True)
class DocumentSpec:
    """One output file and the bindings it is built from."""
    filename: str
    body: Body

    def binding_names(self) -> List[str]:
        return _body_roots(self.body)


@dataclass(frozen=True)
class SummaryLine:
    """Count line for the end-of-run report: template is filled with len(ref)."""
    label: str
    refs: Tuple[str, ...]
    template: str = "{0}"


@dataclass
class Recipe:
    """Ordered assembly steps plus the documents built from the result."""
    steps: List[Step]
    documents: List[DocumentSpec] = field(default_factory=list)
    summary: List[SummaryLine] = field(default_factory=list)

    def binding_names(self) -> List[str]:
        """Every top-level name the documents and summary read, deduplicated."""
        names: List[str] = []
        for doc in self.documents:
            names.extend(doc.binding_names())
        for line in self.summary:
            names.extend(ref.split('.', 1)[0] for ref in line.refs)
        return list(dict.fromkeys(names))


def _group(**fields: Union[str, Ref, Dict[str, Any]]) -> Dict[str, Body]:
    """Shorthand: string values become Refs."""
    return {k: Ref(v) if isinstance(v, str) else v for k, v in fields.items()}


# =============================================================================
# RUNESCAPE GAME.JS RECIPE
# =============================================================================

SIMPLE_DECLARATIONS: Sequence[str] = (
    'ItemType', 'EquipSlot', 'CombatStyle', 'Tiers',
    'PRESTIGE_CONFIG', 'PRESTIGE_PASSIVES', 'PRESTIGE_SHOP_ITEMS',
    'PET_DEFS', 'DURABILITY_BY_TIER',
    'AREAS', 'CORRUPTED_AREAS', 'AREA_ATMOSPHERE', 'CORRIDORS',
    'AREA_LEVEL_RANGES', 'ENEMY_SUB_ZONES', 'PROCESSING_STATIONS',
    'DUNGEON_THEMES', 'AREA_DUNGEON_THEME', 'DUNGEON_MODIFIERS',
    'DUNGEON_CONFIG', 'DUNGEON_TRAP_TYPES', 'DUNGEON_LOOT_TIERS',
    'SKILL_DEFS', 'SYNERGY_DEFS', 'SKILL_UNLOCKS',
    'WEAPON_STATS', 'ARMOR_STATS', 'OFFHAND_STATS',
    'TIER_DEFS', 'SLOT_DEFS', 'STYLE_NAMES',
    'WEAPON_DEFS_GEN', 'OFFHAND_DEFS_GEN',
    'ENEMY_BIO_MAT', 'ENEMY_ORE', 'ENEMY_FOOD',
    'SLAYER_SHOP', 'RELIC_RECIPES',
)

ITEM_REGISTRY = """var ITEMS = {};
function defineItem(id, props) { ITEMS[id] = Object.assign({ id: id }, props); }"""

ENEMY_FUNCTIONS = ('computeEnemyStats', 'lookupByLevel', 'getEquipTierForLevel', 'generateLootTable')


def game_recipe() -> Recipe:
    """Recipe for RunEscape's js/game.js."""
    steps: List[Step] = [
        Declarations(tuple(SIMPLE_DECLARATIONS)),
        Prelude("item registry", ITEM_REGISTRY),
        MarkerSlice("defineItem calls", "defineItem('stellarite_ore'", "var RECIPES = {};"),
        Prelude("recipe registry", "var RECIPES = {};"),
        MarkerSlice("recipe definitions", "var RECIPES = {};", "var ORE_TO_BAR=", skip_start=True),
        LoopBlock("XP_TABLE loop", "const XP_TABLE = [0];"),
        Functions(("xpForLevel",)),
        Declarations(("NPC_DEFS", "QUESTS", "QUEST_CHAINS", "BOARD_QUESTS", "ACHIEVEMENTS")),
        Functions(ENEMY_FUNCTIONS),
        Declarations(("ENEMY_DEFS",)),
        BlockUntil("ENEMY_TYPES builder", "var ENEMY_TYPES = {};", "})();"),
    ]

    documents = [
        DocumentSpec("items.json", Ref("ITEMS")),
        DocumentSpec("recipes.json", Ref("RECIPES")),
        DocumentSpec("enemies.json", Ref("ENEMY_TYPES")),
        DocumentSpec("enemy_defs.json", Ref("ENEMY_DEFS")),
        DocumentSpec("areas.json", _group(
            areas="AREAS",
            corrupted_areas="CORRUPTED_AREAS",
            atmosphere="AREA_ATMOSPHERE",
            corridors="CORRIDORS",
            level_ranges="AREA_LEVEL_RANGES",
            sub_zones="ENEMY_SUB_ZONES",
            processing_stations="PROCESSING_STATIONS",
        )),
        DocumentSpec("skills.json", _group(
            skill_defs="SKILL_DEFS",
            synergies="SYNERGY_DEFS",
            unlocks="SKILL_UNLOCKS",
            xp_table="XP_TABLE",
        )),
        DocumentSpec("quests.json", _group(
            quests="QUESTS",
            quest_chains="QUEST_CHAINS",
            board_quests="BOARD_QUESTS",
            slayer_shop="SLAYER_SHOP",
            relic_recipes="RELIC_RECIPES",
        )),
        DocumentSpec("npcs.json", Ref("NPC_DEFS")),
        DocumentSpec("achievements.json", Ref("ACHIEVEMENTS")),
        DocumentSpec("prestige.json", _group(
            config="PRESTIGE_CONFIG",
            passives="PRESTIGE_PASSIVES",
            shop_items="PRESTIGE_SHOP_ITEMS",
        )),
        DocumentSpec("dungeons.json", _group(
            themes="DUNGEON_THEMES",
            area_theme_map="AREA_DUNGEON_THEME",
            modifiers="DUNGEON_MODIFIERS",
            config=_group(
                roomSize=Ref("DUNGEON_CONFIG.roomSize", 15),
                corridorWidth=Ref("DUNGEON_CONFIG.corridorWidth", 4),
                roomSpacing=Ref("DUNGEON_CONFIG.roomSpacing", 22),
            ),
            trap_types="DUNGEON_TRAP_TYPES",
            loot_tiers="DUNGEON_LOOT_TIERS",
        )),
        DocumentSpec("pets.json", Ref("PET_DEFS")),
        DocumentSpec("equipment.json", _group(
            weapon_stats="WEAPON_STATS",
            armor_stats="ARMOR_STATS",
            offhand_stats="OFFHAND_STATS",
            tier_defs="TIER_DEFS",
            slot_defs="SLOT_DEFS",
            style_names="STYLE_NAMES",
            weapon_defs_gen="WEAPON_DEFS_GEN",
            offhand_defs_gen="OFFHAND_DEFS_GEN",
            tiers="Tiers",
            durability_by_tier="DURABILITY_BY_TIER",
            enums=_group(
                item_type="ItemType",
                equip_slot="EquipSlot",
                combat_style="CombatStyle",
            ),
        )),
        DocumentSpec("enemy_loot_tables.json", _group(
            bio_mat="ENEMY_BIO_MAT",
            ore="ENEMY_ORE",
            food="ENEMY_FOOD",
        )),
    ]

    summary = [
        SummaryLine("Items", ("ITEMS",)),
        SummaryLine("Recipes", ("RECIPES",)),
        SummaryLine("Enemies", ("ENEMY_TYPES",)),
        SummaryLine("Quests", ("QUESTS", "BOARD_QUESTS"), "{0} main + {1} board"),
        SummaryLine("NPCs", ("NPC_DEFS",)),
        SummaryLine("Achievements", ("ACHIEVEMENTS",)),
        SummaryLine("Pets", ("PET_DEFS",)),
        SummaryLine("Skills", ("SKILL_DEFS",)),
    ]

    return Recipe(steps=steps, documents=documents, summary=summary)
