"""
Spell slots, pact magic and class resources.

Pact magic is stored as its own pool, never merged into the numbered
slots, because it recharges on a short rest.
"""

from __future__ import annotations

import logging
import math

from .graph import PropertyGraph, is_active, node_name
from .schema import (
    EXCLUDED_RESOURCE_PATTERN,
    HIT_POINTS_PATTERN,
    PACT_MAGIC_VARIABLES,
    PACT_MAX_SLOT_LEVEL,
    PACT_SLOT_LEVEL_VARIABLES,
    RESOURCE_ATTRIBUTE_TYPES,
    SPELL_SLOT_VARIABLES,
    TEMP_HIT_POINTS_PATTERN,
)
from .values import as_int, deep_number, extract_number, variable_total, variable_value

logger = logging.getLogger(__name__)


def map_spell_slots(variables: dict, warlock_level: int = 0) -> tuple[dict, list[str]]:
    """Map numbered slots 1-9 and the pact magic pool.

    Returns:
        Tuple of (spell_slots_dict, warnings); the dict has ``levels``
        (level → {current, max}) and ``pact_magic`` ({current, max, level}).
    """
    warnings: list[str] = []
    levels: dict[int, dict] = {}

    for level, name in SPELL_SLOT_VARIABLES.items():
        cell = variables.get(name)
        current = variable_value(cell)
        maximum = variable_total(cell)
        levels[level] = {
            "current": max(0, as_int(current)),
            "max": max(0, as_int(maximum if maximum is not None else current)),
        }

    pact = {"current": 0, "max": 0, "level": 0}
    for name in PACT_MAGIC_VARIABLES:
        cell = variables.get(name)
        current = variable_value(cell)
        if current is None:
            continue
        maximum = variable_total(cell)
        pact["current"] = max(0, as_int(current))
        pact["max"] = max(0, as_int(maximum if maximum is not None else current))
        pact["level"] = _pact_slot_level(cell, variables, warlock_level)
        if not pact["level"] and pact["max"]:
            warnings.append(f"Pact magic slots found in {name} but slot level unknown")
        logger.debug("Pact magic from %s: %s", name, pact)
        break

    return {"levels": levels, "pact_magic": pact}, warnings


def _pact_slot_level(cell: object, variables: dict, warlock_level: int) -> int:
    if isinstance(cell, dict):
        for key in ("slotLevel", "level"):
            level = extract_number(cell.get(key))
            if level:
                return as_int(level)
    for name in PACT_SLOT_LEVEL_VARIABLES:
        level = variable_value(variables.get(name))
        if level:
            return as_int(level)
    explicit = variable_value(variables.get("warlockLevel"))
    if explicit:
        warlock_level = as_int(explicit)
    if warlock_level <= 0:
        return 0
    return min(PACT_MAX_SLOT_LEVEL, math.ceil(warlock_level / 2))


def map_resources(graph: PropertyGraph) -> tuple[list[dict], list[str]]:
    """Map resource and health-bar attributes into resource pools.

    Resources tracked as damage against a pool (``damage`` consumed out of
    ``baseValue``) report ``current = baseValue - damage``. Attributes with no
    positive maximum are utility variables, not resources, and are dropped.
    First occurrence wins per variableName (or name), case-insensitively.
    """
    warnings: list[str] = []
    resources: list[dict] = []
    seen: set[str] = set()

    for node in graph.of_type("attribute"):
        if node.get("attributeType") not in RESOURCE_ATTRIBUTE_TYPES or not is_active(node):
            continue
        name = node_name(node)
        variable_name = node.get("variableName") if isinstance(node.get("variableName"), str) else ""
        if EXCLUDED_RESOURCE_PATTERN.search(name) or EXCLUDED_RESOURCE_PATTERN.search(variable_name):
            continue

        current = deep_number(node.get("value"))
        if current is None:
            current = deep_number(node)
        maximum = deep_number(node.get("total"))
        base_value = deep_number(node.get("baseValue"))
        if maximum is None:
            maximum = base_value if base_value is not None else current

        damage = deep_number(node.get("damage"))
        if damage is not None and base_value is not None and base_value > 0:
            maximum = base_value
            current = max(0, base_value - damage)

        if maximum is None or maximum <= 0:
            logger.debug("Dropping non-resource attribute %r", name or variable_name)
            continue

        key = (variable_name or name).lower()
        if not key or key in seen:
            continue
        seen.add(key)
        resources.append({
            "name": name or variable_name,
            "variable_name": variable_name,
            "current": current if current is not None else maximum,
            "max": maximum,
        })

    return resources, warnings


def apply_hit_point_resources(character: dict, resources: list[dict]) -> list[str]:
    """Copy HP-like resources into the canonical hit point fields.

    Some sheets model hit points only as a generic health bar.
    Returns the names of the fields that were overwritten.
    """
    applied: list[str] = []
    for resource in resources:
        labels = (resource.get("name", ""), resource.get("variable_name", ""))
        if any(TEMP_HIT_POINTS_PATTERN.match(label) for label in labels if label):
            character["temporary_hp"] = as_int(resource["current"])
            applied.append("temporary_hp")
        elif any(HIT_POINTS_PATTERN.match(label) for label in labels if label):
            character["hit_points"] = {
                "current": as_int(resource["current"]),
                "max": as_int(resource["max"]),
            }
            applied.append("hit_points")
    return applied


__all__ = [
    "apply_hit_point_resources",
    "map_resources",
    "map_spell_slots",
]
