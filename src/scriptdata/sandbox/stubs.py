"""
Sandbox capability table.

Every global the assembled script may touch is listed here with the stub
that stands in for it. Pure utilities pass through to the engine's real
builtins; anything representing the surrounding game (player state, UI,
sound, persistence, events) becomes an inert stand-in.

The player object is generated from HostState, an explicit list of the
fields extracted code is known to read, with documented defaults.
"""

import json
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Optional, Tuple

from scriptdata.errors import ConfigError


# Stub kinds
PASSTHROUGH = "passthrough"   # Real engine builtin, nothing emitted
VALUE = "value"               # Plain data, emitted as a JSON literal
NOOP = "noop"                 # function () {}
RETURNS = "returns"           # function () { return <value>; }
SCRIPT = "script"             # Raw JavaScript expression


@dataclass(frozen=True)
class Stub:
    """One capability table entry."""
    kind: str
    value: Any = None

    def render(self, name: str) -> Optional[str]:
        """JavaScript declaring this stub, or None for passthroughs."""
        if self.kind == PASSTHROUGH:
            return None
        if self.kind == VALUE:
            expr = json.dumps(self.value, sort_keys=True)
        elif self.kind == NOOP:
            expr = "function () {}"
        elif self.kind == RETURNS:
            expr = f"function () {{ return {json.dumps(self.value)}; }}"
        elif self.kind == SCRIPT:
            expr = self.value
        else:
            raise ValueError(f"Unknown stub kind for {name}: {self.kind}")
        return f"var {name} = {expr};"


# =============================================================================
# HOST STATE
# =============================================================================

DEFAULT_SKILLS = ("nano", "tesla", "void", "astromining", "bioforge", "circuitry", "xenocook")
DEFAULT_EQUIPMENT_SLOTS = ("head", "body", "legs", "boots", "gloves", "weapon", "offhand")


@dataclass
class HostState:
    """
    Minimal read surface of the game's mutable state.

    skill_levels: level per skill, read as player.skills[name].level
    equipment_slots: player.equipment keys, all empty (null)
    prestige_tier: player.prestige.tier
    combat_style: player.combatStyle
    credits, slayer_points: numeric counters on player
    dungeon_max_floor: DungeonState.maxFloorReached
    delta_time: GameState.deltaTime, seconds per frame
    """
    skill_levels: Dict[str, int] = field(default_factory=lambda: {s: 1 for s in DEFAULT_SKILLS})
    equipment_slots: Tuple[str, ...] = DEFAULT_EQUIPMENT_SLOTS
    prestige_tier: int = 0
    combat_style: str = "nano"
    credits: int = 0
    slayer_points: int = 0
    dungeon_max_floor: int = 0
    delta_time: float = 0.016

    @classmethod
    def from_dict(cls, overrides: Optional[Dict[str, Any]]) -> "HostState":
        """Build from a config mapping; unknown keys are rejected."""
        if overrides is not None and not isinstance(overrides, dict):
            raise ConfigError(f"host_state must be a mapping, got {type(overrides).__name__}")
        overrides = dict(overrides or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown host_state keys: {', '.join(unknown)}")
        if "equipment_slots" in overrides:
            overrides["equipment_slots"] = tuple(overrides["equipment_slots"])
        return cls(**overrides)

    def player(self) -> Dict[str, Any]:
        """The stand-in `player` object."""
        # Lists and maps the game appends to during play start empty
        empty_lists: List[str] = [
            "achievements", "collectionLog", "areasVisited", "unlockedSynergies",
            "slayerUnlocks", "slayerPreferred", "slayerBlocked",
        ]
        player: Dict[str, Any] = {
            "skills": {name: {"level": level} for name, level in self.skill_levels.items()},
            "equipment": {slot: None for slot in self.equipment_slots},
            "prestige": {"tier": self.prestige_tier},
            "credits": self.credits,
            "stats": {},
            "bossKillLog": {},
            "combatStyle": self.combat_style,
            "slayerPoints": self.slayer_points,
        }
        for key in empty_lists:
            player[key] = []
        return player


# =============================================================================
# ENVIRONMENT
# =============================================================================

BUILTIN_PASSTHROUGH = (
    "Math", "Object", "Array", "String", "Number", "parseInt", "parseFloat", "JSON",
)

# Registries the documents read; defined empty so a missing fragment yields {} / []
EMPTY_REGISTRIES: Dict[str, Any] = {
    "ITEMS": {},
    "RECIPES": {},
    "ENEMY_TYPES": {},
    "QUESTS": {},
    "BOARD_QUESTS": {},
    "QUEST_CHAINS": [],
    "ACHIEVEMENTS": [],
}

_CONSOLE = "{ log: function () {}, warn: function () {}, error: function () {} }"
_DOCUMENT = """{
    createElement: function () {
        return { style: {}, appendChild: function () {}, addEventListener: function () {} };
    },
    getElementById: function () { return null; },
    querySelectorAll: function () { return []; }
}"""
_THREE = "{ Color: function () { return { set: function () {}, lerp: function () {} }; } }"
_EVENT_BUS = "{ emit: function () {}, on: function () {} }"
_GET_ITEM = "function (id) { return typeof ITEMS !== 'undefined' && ITEMS ? ITEMS[id] : null; }"


@dataclass
class SandboxEnvironment:
    """Symbol -> stub table, built fresh for each run."""
    stubs: Dict[str, Stub] = field(default_factory=dict)

    def names(self) -> List[str]:
        return list(self.stubs)

    def __contains__(self, name: str) -> bool:
        return name in self.stubs

    def define(self, name: str, stub: Stub) -> None:
        self.stubs[name] = stub

    def without(self, names: Iterable[str]) -> "SandboxEnvironment":
        """Copy with some stubs removed."""
        drop = set(names)
        return SandboxEnvironment({k: v for k, v in self.stubs.items() if k not in drop})

    def prelude(self) -> str:
        """JavaScript that installs every non-passthrough stub as a global."""
        lines = []
        for name, stub in self.stubs.items():
            code = stub.render(name)
            if code is not None:
                lines.append(code)
        return "\n".join(lines) + "\n"


def build_environment(host: Optional[HostState] = None) -> SandboxEnvironment:
    """The capability table for game.js extraction."""
    host = host or HostState()
    env = SandboxEnvironment()

    for name in BUILTIN_PASSTHROUGH:
        env.define(name, Stub(PASSTHROUGH))

    # Browser and engine host objects
    env.define("console", Stub(SCRIPT, _CONSOLE))
    env.define("document", Stub(SCRIPT, _DOCUMENT))
    env.define("window", Stub(VALUE, {}))
    env.define("setTimeout", Stub(NOOP))
    env.define("setInterval", Stub(NOOP))
    env.define("THREE", Stub(SCRIPT, _THREE))

    # Game state containers
    env.define("player", Stub(VALUE, host.player()))
    env.define("DungeonState", Stub(VALUE, {"active": False, "maxFloorReached": host.dungeon_max_floor}))
    env.define("HousingState", Stub(VALUE, {"active": False}))
    env.define("GameState", Stub(VALUE, {
        "deltaTime": host.delta_time,
        "ambientLight": None,
        "dirLight": None,
        "scene": None,
        "skyDome": None,
    }))
    env.define("EventBus", Stub(SCRIPT, _EVENT_BUS))

    # Side-effecting game calls
    env.define("playSound", Stub(NOOP))
    env.define("addItem", Stub(RETURNS, True))
    env.define("countItem", Stub(RETURNS, 0))
    env.define("removeItem", Stub(NOOP))
    env.define("addCredits", Stub(NOOP))
    env.define("gainXp", Stub(NOOP))
    env.define("renderItemIcon", Stub(RETURNS, ""))
    env.define("getItem", Stub(SCRIPT, _GET_ITEM))

    for name, empty in EMPTY_REGISTRIES.items():
        env.define(name, Stub(VALUE, empty))

    return env
