"""
Ability scores, modifiers, saves, skills and the combat block.

Armor class is resolved through an explicit cascade of named strategies,
stopping at the first one that produces a number. Precomputed values on
the creature always win over manual accumulation of effects.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .graph import PropertyGraph, is_active, node_name, node_type
from .schema import (
    ABILITIES,
    ABILITY_MOD_VARIABLES,
    AC_DENORMALIZED_KEYS,
    AC_EXCLUDED_KEY_PATTERN,
    AC_KEY_PATTERN,
    AC_PROPERTY_NAME,
    AC_VARIABLE_NAMES,
    CLASS_HIT_DICE,
    DEFAULT_ARMOR_CLASS,
    DEFAULT_HIT_DIE,
    DEFAULT_SPEED,
    HIT_DICE_VARIABLES,
    ITEM_TYPES,
    SAVE_VARIABLES,
    SKILL_VARIABLES,
    TEMP_HP_VARIABLES,
    TEMPORARY_AC_EFFECTS,
)
from .values import as_int, extract_number, variable_total, variable_value

logger = logging.getLogger(__name__)

_DEEP_SCAN_MAX_DEPTH = 6


def ability_modifier(score: int) -> int:
    """Standard 5e modifier: floor((score - 10) / 2)."""
    return (score - 10) // 2


def map_abilities(variables: dict) -> tuple[dict, list[str]]:
    """Map scores, modifiers, saves and skills from creature variables.

    A source modifier that is nonzero and differs from the computed one
    wins (house rules, odd racial adjustments) and is reported in
    ``overrides``.

    Returns:
        Tuple of (fields, warnings). fields contains attributes,
        attribute_mods, saves, saving_throws, skills and overrides.
    """
    warnings: list[str] = []
    attributes: dict[str, int] = {}
    mods: dict[str, int] = {}
    saves: dict[str, int] = {}
    overrides: list[str] = []

    for ability in ABILITIES:
        score = variable_value(variables.get(ability))
        if score is None:
            if ability in variables:
                warnings.append(f"Unreadable {ability} score, defaulting to 10")
            score = 10
        score = as_int(score, 10)
        attributes[ability] = score

        computed = ability_modifier(score)
        source_mod = variable_value(variables.get(ABILITY_MOD_VARIABLES[ability]))
        if source_mod is not None and as_int(source_mod) != 0 and as_int(source_mod) != computed:
            logger.info(
                "Modifier override for %s: source %s, computed %s",
                ability, as_int(source_mod), computed,
            )
            overrides.append(
                f"{ability}: source modifier {as_int(source_mod)} overrides computed {computed}"
            )
            mods[ability] = as_int(source_mod)
        else:
            mods[ability] = computed

        save = variable_value(variables.get(SAVE_VARIABLES[ability]))
        saves[ability] = as_int(save) if save is not None else mods[ability]

    skills: dict[str, int] = {}
    for skill in SKILL_VARIABLES:
        if skill in variables:
            value = variable_value(variables[skill])
            if value is not None:
                skills[skill] = as_int(value)

    return {
        "attributes": attributes,
        "attribute_mods": mods,
        "saves": dict(saves),
        "saving_throws": dict(saves),
        "skills": skills,
        "overrides": overrides,
    }, warnings


# ---------------------------------------------------------------------------
# Armor class cascade
# ---------------------------------------------------------------------------


def _denormalized_stats(creature: dict) -> dict:
    stats = creature.get("denormalizedStats")
    return stats if isinstance(stats, dict) else {}


def _ac_from_denormalized(creature: dict, variables: dict, graph: PropertyGraph) -> int | float | None:
    stats = _denormalized_stats(creature)
    for key in AC_DENORMALIZED_KEYS:
        if key in stats:
            value = extract_number(stats[key])
            if value is not None:
                return value
    return None


def _ac_from_creature_field(creature: dict, variables: dict, graph: PropertyGraph) -> int | float | None:
    return extract_number(creature.get("armorClass"))


def _ac_from_variables(creature: dict, variables: dict, graph: PropertyGraph) -> int | float | None:
    for name in AC_VARIABLE_NAMES:
        if name in variables:
            value = extract_number(variables[name])
            if value is not None:
                return value
    return None


def _ac_from_named_property(creature: dict, variables: dict, graph: PropertyGraph) -> int | float | None:
    for node in graph:
        if node_name(node).lower() != AC_PROPERTY_NAME or not is_active(node):
            continue
        for key in ("amount", "value", "total", "baseValue"):
            if key in node:
                value = extract_number(node[key])
                if value is not None:
                    return value
    return None


def _scan_numeric_leaves(data: Any, prefer_ac: bool, depth: int = 0) -> int | float | None:
    if depth > _DEEP_SCAN_MAX_DEPTH or not isinstance(data, dict):
        return None
    for key, value in data.items():
        if not isinstance(key, str) or AC_EXCLUDED_KEY_PATTERN.search(key):
            continue
        if prefer_ac and not AC_KEY_PATTERN.search(key):
            if isinstance(value, dict):
                nested = _scan_numeric_leaves(value, prefer_ac, depth + 1)
                if nested is not None:
                    return nested
            continue
        if isinstance(value, dict):
            nested = _scan_numeric_leaves(value, prefer_ac, depth + 1)
            if nested is not None:
                return nested
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            if 0 < value <= 50:
                return value
    return None


def _ac_from_deep_scan(creature: dict, variables: dict, graph: PropertyGraph) -> int | float | None:
    stats = _denormalized_stats(creature)
    if not stats:
        return None
    found = _scan_numeric_leaves(stats, prefer_ac=True)
    if found is None:
        found = _scan_numeric_leaves(stats, prefer_ac=False)
    return found


def _targets_armor(node: dict) -> bool:
    stats = node.get("stats")
    if isinstance(stats, str):
        stats = [stats]
    if not isinstance(stats, list):
        return False
    return any(isinstance(s, str) and s.lower() in ("armor", "armorclass") for s in stats)


def _temporary_ac_source(graph: PropertyGraph, node: dict) -> str | None:
    """Name of the spell or buff granting a temporary AC effect, if any.

    Spell effects usually sit unnamed under the spell, so ancestors count too.
    Equipment is never a temporary source (a carried "Shield" is real AC).
    """
    if node_name(node).lower() in TEMPORARY_AC_EFFECTS:
        return node_name(node)
    for ancestor_id in graph.nearest_ancestors(node):
        ancestor = graph.get(ancestor_id)
        if ancestor is None or node_type(ancestor) in ITEM_TYPES:
            continue
        if node_name(ancestor).lower() in TEMPORARY_AC_EFFECTS:
            return node_name(ancestor)
    return None


def _ac_from_effects(creature: dict, variables: dict, graph: PropertyGraph) -> int | float | None:
    base: int | float | None = None
    bonus: int | float = 0
    found = False
    for node in graph.of_type("effect"):
        if not is_active(node) or not _targets_armor(node):
            continue
        temporary = _temporary_ac_source(graph, node)
        if temporary:
            logger.debug("Skipping temporary AC effect from %r", temporary)
            continue
        amount = extract_number(node.get("amount"))
        if amount is None:
            continue
        operation = str(node.get("operation") or "").lower()
        if operation == "base":
            base = amount if base is None else max(base, amount)
            found = True
        elif operation == "add":
            bonus += amount
            found = True
    if not found:
        return None
    return (base if base is not None else DEFAULT_ARMOR_CLASS) + bonus


ArmorClassStrategy = Callable[[dict, dict, PropertyGraph], "int | float | None"]

AC_STRATEGIES: tuple[tuple[str, ArmorClassStrategy], ...] = (
    ("denormalized_stats", _ac_from_denormalized),
    ("creature_field", _ac_from_creature_field),
    ("variables", _ac_from_variables),
    ("armor_class_property", _ac_from_named_property),
    ("deep_scan", _ac_from_deep_scan),
    ("effects", _ac_from_effects),
)


def resolve_armor_class(
    creature: dict, variables: dict, graph: PropertyGraph
) -> tuple[int, str | None]:
    """Run the AC strategies in order; returns (armor_class, strategy name)."""
    for strategy_name, strategy in AC_STRATEGIES:
        value = strategy(creature, variables, graph)
        if value is not None:
            logger.debug("Armor class %s resolved by %s", value, strategy_name)
            return as_int(value, DEFAULT_ARMOR_CLASS), strategy_name
    return DEFAULT_ARMOR_CLASS, None


# ---------------------------------------------------------------------------
# Combat block
# ---------------------------------------------------------------------------


def hit_die_for_class(class_name: str) -> str:
    """Hit die of the primary (first) class; substring match, d8 default."""
    primary = class_name.split("/")[0].strip().lower()
    if not primary:
        return DEFAULT_HIT_DIE
    for key, die in CLASS_HIT_DICE:
        if key in primary:
            return die
    return DEFAULT_HIT_DIE


def proficiency_for_level(level: int) -> int:
    return 2 + (max(level, 1) - 1) // 4


def _first_variable(variables: dict, names: tuple[str, ...]) -> Any:
    for name in names:
        if name in variables:
            return variables[name]
    return None


def map_combat(
    creature: dict,
    variables: dict,
    graph: PropertyGraph,
    attribute_mods: dict[str, int],
    level: int,
    character_class: str,
) -> tuple[dict, list[str]]:
    """Map hit points, AC, speed, initiative, proficiency, hit dice, death saves.

    Returns:
        Tuple of (combat_fields_dict, warnings).
    """
    warnings: list[str] = []
    result: dict = {}

    hp_cell = variables.get("hitPoints")
    hp_current = variable_value(hp_cell)
    hp_max = variable_total(hp_cell)
    result["hit_points"] = {
        "current": as_int(hp_current),
        "max": as_int(hp_max if hp_max is not None else hp_current),
    }

    temp_cell = _first_variable(variables, TEMP_HP_VARIABLES)
    result["temporary_hp"] = max(0, as_int(variable_value(temp_cell)))

    armor_class, strategy = resolve_armor_class(creature, variables, graph)
    if strategy is None:
        warnings.append(f"Could not resolve armor class, defaulting to {DEFAULT_ARMOR_CLASS}")
    result["armor_class"] = armor_class

    speed = variable_value(variables.get("speed"))
    result["speed"] = as_int(speed, DEFAULT_SPEED) if speed is not None else DEFAULT_SPEED

    initiative = variable_value(variables.get("initiative"))
    result["initiative"] = (
        as_int(initiative) if initiative is not None else attribute_mods.get("dexterity", 0)
    )

    proficiency = variable_value(variables.get("proficiencyBonus"))
    result["proficiency_bonus"] = (
        as_int(proficiency) if proficiency is not None else proficiency_for_level(level)
    )

    hit_die = hit_die_for_class(character_class)
    remaining = variable_value(_first_variable(variables, HIT_DICE_VARIABLES))
    result["hit_dice"] = {
        "current": as_int(remaining, level) if remaining is not None else level,
        "max": level,
        "type": hit_die,
    }

    death = creature.get("deathSave")
    if not isinstance(death, dict):
        death = {}
    result["death_saves"] = {
        "successes": as_int(extract_number(death.get("success"))),
        "failures": as_int(extract_number(death.get("fail"))),
    }

    return result, warnings


__all__ = [
    "AC_STRATEGIES",
    "ability_modifier",
    "hit_die_for_class",
    "map_abilities",
    "map_combat",
    "proficiency_for_level",
    "resolve_armor_class",
]
