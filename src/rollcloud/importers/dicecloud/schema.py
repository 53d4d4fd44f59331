"""
DiceCloud payload constants and lookup tables.

These map DiceCloud's creature variable names, property vocabularies and
well-known rules content to RollCloud equivalents. Based on the v2
``/api/creature/{id}`` endpoint payload (``creatures``,
``creatureVariables``, ``creatureProperties``).
"""

import re

# ---------------------------------------------------------------------------
# URL parsing
# ---------------------------------------------------------------------------

# Matches: https://dicecloud.com/character/AbCdEf123456789xy[/slug]
DICECLOUD_CHARACTER_URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.|beta\.|v2\.)?dicecloud\.com/character/([A-Za-z0-9]+)"
)

DICECLOUD_BARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{5,}$")

# ---------------------------------------------------------------------------
# Standard creature variables
# ---------------------------------------------------------------------------

ABILITIES: tuple[str, ...] = (
    "strength",
    "dexterity",
    "constitution",
    "intelligence",
    "wisdom",
    "charisma",
)

ABILITY_MOD_VARIABLES: dict[str, str] = {a: f"{a}Mod" for a in ABILITIES}
SAVE_VARIABLES: dict[str, str] = {a: f"{a}Save" for a in ABILITIES}

SKILL_VARIABLES: tuple[str, ...] = (
    "acrobatics",
    "animalHandling",
    "arcana",
    "athletics",
    "deception",
    "history",
    "insight",
    "intimidation",
    "investigation",
    "medicine",
    "nature",
    "perception",
    "performance",
    "persuasion",
    "religion",
    "sleightOfHand",
    "stealth",
    "survival",
)

COMBAT_VARIABLES: tuple[str, ...] = (
    "armorClass",
    "hitPoints",
    "speed",
    "initiative",
    "proficiencyBonus",
)

TEMP_HP_VARIABLES: tuple[str, ...] = ("tempHP", "tempHitPoints", "temporaryHitPoints")

HIT_DICE_VARIABLES: tuple[str, ...] = ("hitDice", "hitDiceRemaining")

SPELL_SLOT_VARIABLES: dict[int, str] = {n: f"slotLevel{n}" for n in range(1, 10)}

# ---------------------------------------------------------------------------
# Armor class resolution
# ---------------------------------------------------------------------------

AC_VARIABLE_NAMES: tuple[str, ...] = (
    "armor",
    "armorClass",
    "armor_class",
    "ac",
    "acTotal",
    "ac_total",
)

# Keys looked up directly on the denormalized stat block before any deep scan
AC_DENORMALIZED_KEYS: tuple[str, ...] = ("armorClass", "armor", "ac")

AC_PROPERTY_NAME = "armor class"

AC_KEY_PATTERN = re.compile(r"armor|ac", re.IGNORECASE)
AC_EXCLUDED_KEY_PATTERN = re.compile(
    r"xp|level|hp|hitpoints|speed|initiative|proficiency|str|dex|con|int|wis|cha"
    r"|save|skill|damage",
    re.IGNORECASE,
)

# Effects from spells that grant temporary AC; never part of the resting AC
TEMPORARY_AC_EFFECTS: tuple[str, ...] = (
    "shield",
    "mage armor",
    "shield of faith",
    "barkskin",
    "haste",
    "armor of agathys",
)

DEFAULT_ARMOR_CLASS = 10
DEFAULT_SPEED = 30

# ---------------------------------------------------------------------------
# Hit dice by class name (case-insensitive substring, first match wins)
# ---------------------------------------------------------------------------

CLASS_HIT_DICE: tuple[tuple[str, str], ...] = (
    ("barbarian", "d12"),
    ("fighter", "d10"),
    ("paladin", "d10"),
    ("ranger", "d10"),
    ("bard", "d8"),
    ("cleric", "d8"),
    ("druid", "d8"),
    ("monk", "d8"),
    ("rogue", "d8"),
    ("warlock", "d8"),
    ("sorcerer", "d6"),
    ("wizard", "d6"),
)

DEFAULT_HIT_DIE = "d8"

# ---------------------------------------------------------------------------
# Property vocabularies
# ---------------------------------------------------------------------------

CLASS_TYPES = ("class", "classLevel")
RACE_TYPES = ("race", "species", "characterRace")
ITEM_TYPES = ("item", "equipment")
SPELL_ROLL_TYPES = ("attack", "damage", "roll")

MULTICLASS_SUFFIX_PATTERN = re.compile(r"\s*\[multiclass\]\s*$", re.IGNORECASE)

COMMON_RACES: tuple[str, ...] = (
    "human",
    "elf",
    "dwarf",
    "halfling",
    "gnome",
    "half-elf",
    "half-orc",
    "tiefling",
    "dragonborn",
    "aasimar",
    "goliath",
    "genasi",
    "tabaxi",
    "firbolg",
    "kenku",
    "lizardfolk",
    "tortle",
    "triton",
    "orc",
    "goblin",
    "hobgoblin",
    "bugbear",
    "kobold",
    "yuan-ti",
    "changeling",
    "warforged",
    "kalashtar",
    "shifter",
    "satyr",
    "fairy",
    "harengon",
    "owlin",
    "centaur",
    "minotaur",
    "loxodon",
    "leonin",
    "custom lineage",
)

# Whole words only: "orc" must not match "Sorcerer", "elf" must not match "Self"
COMMON_RACE_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(race) for race in COMMON_RACES) + r")\b", re.IGNORECASE
)

RACE_FOLDER_MAX_DEPTH = 2

# ---------------------------------------------------------------------------
# Features, toggles and actions
# ---------------------------------------------------------------------------

METAMAGIC_FEATURES: frozenset[str] = frozenset({
    "careful spell",
    "distant spell",
    "empowered spell",
    "extended spell",
    "heightened spell",
    "quickened spell",
    "subtle spell",
    "twinned spell",
    "seeking spell",
    "transmuted spell",
})

CONDITION_TOGGLES: tuple[str, ...] = (
    "bardic inspiration",
    "guidance",
    "bless",
    "bane",
    "inspiration",
    "advantage",
    "disadvantage",
    "resistance",
    "vulnerability",
)

DEFAULT_CONDITION_EFFECT = "1d4"

ACTION_ECONOMY_SUFFIX_PATTERN = re.compile(
    r"\s*\((?:free action|free|bonus action|bonus|reaction|action|no spell slot|at will)\)\s*$",
    re.IGNORECASE,
)

DIVINE_SMITE = "Divine Smite"

LEVEL_REQUIREMENT_PATTERN = re.compile(r"(\d+)(?:st|nd|rd|th)[\s-]*level", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Spells
# ---------------------------------------------------------------------------

UNKNOWN_SOURCE = "Unknown Source"
SPELL_ATTACK_SENTINEL = "use_spell_attack_bonus"

DICE_PATTERN = re.compile(r"d\d+", re.IGNORECASE)
HALF_DAMAGE_PATTERN = re.compile(r"/\s*2\b|\bhalf\b", re.IGNORECASE)
BARE_VARIABLE_PATTERN = re.compile(r"^[A-Za-z_~][\w.~]*$")

SPELL_ATTACK_DESCRIPTION_PATTERN = re.compile(
    r"make an? (?:ranged|melee) spell attack", re.IGNORECASE
)

DEFENSIVE_SPELLS: frozenset[str] = frozenset({"shield", "absorb elements", "counterspell"})

LIFESTEAL_SPELLS: frozenset[str] = frozenset({
    "vampiric touch",
    "life transference",
    "enervation",
})

LIFESTEAL_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(
        r"regains? hit points equal to (?:half )?(?:the )?(?:amount of )?(?:\w+ )?damage",
        re.IGNORECASE,
    ),
    re.compile(
        r"regains? (?:a number of )?hit points equal to half the amount of \w+ damage",
        re.IGNORECASE,
    ),
    re.compile(r"heals? (?:you )?for .{0,40}damage dealt", re.IGNORECASE),
)

HEALING_DAMAGE_TYPE = "healing"

# Common cantrips whose damage is frequently missing from the source tree
CANTRIP_DAMAGE: dict[str, tuple[str, str]] = {
    "eldritch blast": ("1d10", "force"),
    "fire bolt": ("1d10", "fire"),
    "sacred flame": ("1d8", "radiant"),
    "toll the dead": ("1d8", "necrotic"),
    "ray of frost": ("1d8", "cold"),
    "chill touch": ("1d8", "necrotic"),
    "shocking grasp": ("1d8", "lightning"),
    "produce flame": ("1d8", "fire"),
    "poison spray": ("1d12", "poison"),
    "vicious mockery": ("1d4", "psychic"),
    "acid splash": ("1d6", "acid"),
    "thorn whip": ("1d6", "piercing"),
    "frostbite": ("1d6", "cold"),
    "infestation": ("1d6", "poison"),
    "mind sliver": ("1d6", "psychic"),
    "primal savagery": ("1d10", "acid"),
    "create bonfire": ("1d8", "fire"),
    "word of radiance": ("1d6", "radiant"),
    "thunderclap": ("1d6", "thunder"),
}

# ---------------------------------------------------------------------------
# Resources and slots
# ---------------------------------------------------------------------------

PACT_MAGIC_VARIABLES: tuple[str, ...] = (
    "pactMagicSlots",
    "pactSlot",
    "pactSlots",
    "warlockSlots",
    "warlockSpellSlots",
)

PACT_SLOT_LEVEL_VARIABLES: tuple[str, ...] = (
    "pactMagicSlotLevel",
    "pactSlotLevelVisible",
    "pactSlotLevel",
    "warlockSlotLevel",
)

PACT_MAX_SLOT_LEVEL = 5

RESOURCE_ATTRIBUTE_TYPES = ("resource", "healthBar")
EXCLUDED_RESOURCE_PATTERN = re.compile(r"slot level to create", re.IGNORECASE)
RESOURCE_MAX_DEPTH = 5

HIT_POINTS_PATTERN = re.compile(r"^(?:hit\s*points|hp)$", re.IGNORECASE)
TEMP_HIT_POINTS_PATTERN = re.compile(
    r"^(?:temp(?:orary)?\s*(?:hit\s*points|hp))$", re.IGNORECASE
)

# ---------------------------------------------------------------------------
# Companions
# ---------------------------------------------------------------------------

COMPANION_NAME_PATTERNS: tuple[re.Pattern, ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"companion",
        r"beast of",
        r"familiar",
        r"summon",
        r"\bmount\b",
        r"steel defender",
        r"homunculus",
        r"drake(?:warden)?",
        r"primal companion",
        r"beast master",
        r"ranger'?s companion",
    )
)

COMPANION_ABILITY_KEYS: tuple[str, ...] = ("str", "dex", "con", "int", "wis", "cha")
