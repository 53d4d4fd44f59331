"""
Spell extraction.

For each active spell: resolve which class/feature grants it, skip it if
that source is a higher-level feature tier than the character has reached,
then collect its attack roll and damage/healing rolls from the properties
below it.

Rolls the caster chooses between (same dice, selectable damage type) are
grouped into one OR choice set. Lifesteal spells get a healing roll paired
with their damage.
"""

from __future__ import annotations

import logging
from typing import Callable

from .features import clean_text, drop_smite_variants, format_attack_roll
from .graph import PropertyGraph, is_active, node_name, node_type
from .schema import (
    CANTRIP_DAMAGE,
    DEFENSIVE_SPELLS,
    DICE_PATTERN,
    HALF_DAMAGE_PATTERN,
    HEALING_DAMAGE_TYPE,
    LIFESTEAL_PATTERNS,
    LIFESTEAL_SPELLS,
    SPELL_ATTACK_DESCRIPTION_PATTERN,
    SPELL_ATTACK_SENTINEL,
    SPELL_ROLL_TYPES,
    UNKNOWN_SOURCE,
)
from .text import camel_to_title, exceeds_level
from .values import as_int, extract_formula, extract_number

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Source resolution
# ---------------------------------------------------------------------------


def _source_from_parent(graph: PropertyGraph, node: dict) -> str | None:
    parent = graph.parent_id(node)
    if parent is None or parent == graph.id_of(node):
        return None
    return graph.name_of(parent) or None


def _source_from_ancestors(graph: PropertyGraph, node: dict) -> str | None:
    own_id = graph.id_of(node)
    visited: set[str] = set()
    for ancestor_id in reversed(graph.ancestor_ids(node)):
        if ancestor_id == own_id or ancestor_id in visited:
            continue
        visited.add(ancestor_id)
        name = graph.name_of(ancestor_id)
        if name:
            return name
    return None


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


def _source_from_library_tags(graph: PropertyGraph, node: dict) -> str | None:
    classes = [
        camel_to_title(tag[: -len("Spell")])
        for tag in _string_list(node.get("libraryTags"))
        if tag.endswith("Spell") and tag.lower() != "spell"
    ]
    classes = [c for c in classes if c]
    return " / ".join(classes) if classes else None


def _source_from_tags(graph: PropertyGraph, node: dict) -> str | None:
    tags = _string_list(node.get("tags"))
    return ", ".join(tags) if tags else None


SourceStrategy = Callable[[PropertyGraph, dict], "str | None"]

SPELL_SOURCE_STRATEGIES: tuple[tuple[str, SourceStrategy], ...] = (
    ("parent", _source_from_parent),
    ("ancestors", _source_from_ancestors),
    ("library_tags", _source_from_library_tags),
    ("tags", _source_from_tags),
)


def resolve_spell_source(graph: PropertyGraph, node: dict) -> str:
    """Run the source strategies in order, falling back to "Unknown Source"."""
    for strategy_name, strategy in SPELL_SOURCE_STRATEGIES:
        source = strategy(graph, node)
        if source:
            logger.debug("Spell %r source %r via %s", node_name(node), source, strategy_name)
            return source
    return UNKNOWN_SOURCE


# ---------------------------------------------------------------------------
# Rolls
# ---------------------------------------------------------------------------


def _roll_label(child: dict) -> str | None:
    kind = node_type(child)
    name = node_name(child).lower()
    if kind == "attack":
        return "attack"
    if kind == "damage":
        damage_type = str(child.get("damageType") or "").lower()
        return "healing" if damage_type == HEALING_DAMAGE_TYPE else "damage"
    if kind == "roll":
        if "attack" in name or "to hit" in name:
            return "attack"
        if "heal" in name:
            return "healing"
        if "damage" in name:
            return "damage"
    return None


def attack_roll_from(node: dict) -> str:
    """Literal dice roll if present, else ``1d20±value``, else the spell-attack sentinel."""
    for key in ("roll", "attackRoll", "amount"):
        formula = extract_formula(node.get(key))
        if formula and DICE_PATTERN.search(formula):
            return formula
    for key in ("attackRoll", "amount", "roll", "value"):
        raw = node.get(key)
        if isinstance(raw, dict) and not isinstance(raw.get("value"), (int, float)):
            continue
        number = extract_number(raw)
        if number is not None:
            return format_attack_roll(number)
    return SPELL_ATTACK_SENTINEL


def is_rollable(formula: str) -> bool:
    """Real dice notation, not a bare variable or a half-damage-on-save expression."""
    return bool(DICE_PATTERN.search(formula)) and not HALF_DAMAGE_PATTERN.search(formula)


def _damage_formula(child: dict) -> str:
    for key in ("amount", "roll"):
        formula = extract_formula(child.get(key))
        if formula:
            return formula
    return ""


def group_or_choices(rolls: list[dict]) -> list[dict]:
    """Group rolls sharing a formula but differing in damage type into OR sets."""
    by_formula: dict[str, list[int]] = {}
    for index, roll in enumerate(rolls):
        if roll["damage_type"].lower() == HEALING_DAMAGE_TYPE:
            continue
        by_formula.setdefault(roll["damage"], []).append(index)

    for indices in by_formula.values():
        if len(indices) < 2:
            continue
        rolls[indices[0]]["or_choices"] = [
            {"damage": rolls[i]["damage"], "damage_type": rolls[i]["damage_type"]}
            for i in indices
        ]
        for i in indices[1:]:
            rolls[i]["is_or_group_member"] = True
    return rolls


def _is_defensive(name: str) -> bool:
    lowered = name.lower()
    return lowered in DEFENSIVE_SPELLS or lowered.startswith("shield ")


def _is_healing(roll: dict) -> bool:
    return roll["damage_type"].lower() == HEALING_DAMAGE_TYPE


def detect_lifesteal(name: str, description: str, rolls: list[dict]) -> bool:
    if name.lower() in LIFESTEAL_SPELLS:
        return True
    has_damage = any(not _is_healing(r) for r in rolls)
    has_healing = any(_is_healing(r) for r in rolls)
    return has_damage and has_healing and any(p.search(description) for p in LIFESTEAL_PATTERNS)


def _new_roll(damage: str, damage_type: str) -> dict:
    return {"damage": damage, "damage_type": damage_type, "or_choices": [], "is_or_group_member": False}


def extract_spell_rolls(graph: PropertyGraph, node: dict) -> tuple[str, list[dict]]:
    """Collect (attack_roll, damage_rolls) from the properties below a spell."""
    attack_roll = ""
    if node.get("attackRoll") is not None:
        attack_roll = attack_roll_from({"attackRoll": node.get("attackRoll")})

    rolls: list[dict] = []
    seen: set[tuple[str, str]] = set()
    for child in graph.descendants_of(graph.id_of(node)):
        if node_type(child) not in SPELL_ROLL_TYPES or not is_active(child):
            continue
        label = _roll_label(child)
        if label == "attack":
            if not attack_roll:
                attack_roll = attack_roll_from(child)
            continue
        if label is None:
            continue
        formula = _damage_formula(child)
        if not is_rollable(formula):
            logger.debug("Rejecting non-rollable formula %r on %r", formula, node_name(node))
            continue
        if label == "healing":
            damage_type = HEALING_DAMAGE_TYPE
        else:
            damage_type = str(child.get("damageType") or "untyped")
        pair = (formula, damage_type)
        if pair in seen:
            continue
        seen.add(pair)
        rolls.append(_new_roll(formula, damage_type))

    return attack_roll, group_or_choices(rolls)


def _components(node: dict) -> str:
    components = node.get("components")
    if isinstance(components, str):
        return components
    parts: list[str] = []
    if node.get("verbal"):
        parts.append("V")
    if node.get("somatic"):
        parts.append("S")
    material = node.get("material")
    if isinstance(material, str) and material.strip():
        parts.append(f"M ({material.strip()})")
    elif material:
        parts.append("M")
    return ", ".join(parts)


def _text_field(node: dict, key: str) -> str:
    value = node.get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _spell_record(graph: PropertyGraph, node: dict, source: str) -> dict:
    name = node_name(node) or "Unnamed Spell"
    description = clean_text(node.get("description"))
    attack_roll, rolls = extract_spell_rolls(graph, node)

    if not attack_roll and SPELL_ATTACK_DESCRIPTION_PATTERN.search(description):
        attack_roll = SPELL_ATTACK_SENTINEL
    if _is_defensive(name):
        attack_roll = ""

    if not rolls and name.lower() in CANTRIP_DAMAGE:
        damage, damage_type = CANTRIP_DAMAGE[name.lower()]
        logger.debug("Using default cantrip damage %s %s for %r", damage, damage_type, name)
        rolls = [_new_roll(damage, damage_type)]

    lifesteal = detect_lifesteal(name, description, rolls)
    if lifesteal and not any(_is_healing(r) for r in rolls):
        primary = next((r for r in rolls if not _is_healing(r)), None)
        if primary is not None:
            healing = primary["damage"]
            if "half" in description.lower():
                healing = f"({healing}) / 2"
            rolls.append(_new_roll(healing, HEALING_DAMAGE_TYPE))

    return {
        "name": name,
        "level": as_int(extract_number(node.get("level"))),
        "school": _text_field(node, "school"),
        "casting_time": _text_field(node, "castingTime"),
        "range": _text_field(node, "range"),
        "components": _components(node),
        "duration": _text_field(node, "duration"),
        "summary": clean_text(node.get("summary")),
        "description": description,
        "source": source,
        "concentration": bool(node.get("concentration")),
        "ritual": bool(node.get("ritual")),
        "prepared": bool(node.get("prepared")),
        "attack_roll": attack_roll,
        "damage_rolls": rolls,
        "is_lifesteal": lifesteal,
    }


def map_spells(graph: PropertyGraph, level: int) -> tuple[list[dict], list[str]]:
    """Map active spells, skipping those granted by features above ``level``.

    Returns:
        Tuple of (spells, warnings).
    """
    warnings: list[str] = []
    spells: list[dict] = []

    for node in graph.of_type("spell"):
        if not is_active(node):
            continue
        try:
            source = resolve_spell_source(graph, node)
            if exceeds_level(source, level):
                logger.debug("Skipping level-gated spell %r from %r", node_name(node), source)
                continue
            spells.append(_spell_record(graph, node, source))
        except Exception as e:
            warnings.append(f"Failed to map spell {node_name(node)!r}: {e}")

    return drop_smite_variants(spells), warnings


__all__ = [
    "SPELL_SOURCE_STRATEGIES",
    "attack_roll_from",
    "detect_lifesteal",
    "extract_spell_rolls",
    "group_or_choices",
    "is_rollable",
    "map_spells",
    "resolve_spell_source",
]
