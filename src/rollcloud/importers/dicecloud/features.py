"""
Features, toggles, conditions and actions.

A single pass over the properties in source order collects:

- every active ``feature`` (and mirrors damaging ones into actions, except
  metamagic, which only applies while casting),
- damage carried by ``toggle`` subtrees (Sneak Attack, Divine Favor...) as
  actions, and enabled roll-affecting toggles (Bless, Guidance...) as
  conditions,
- direct ``action`` properties with their attack roll and summed damage.

Actions are then collapsed: weapon-specific Divine Smite variants are
dropped and entries differing only by an action-economy suffix are merged.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from .graph import PropertyGraph, is_active, node_name, node_type
from .schema import (
    ACTION_ECONOMY_SUFFIX_PATTERN,
    CONDITION_TOGGLES,
    DEFAULT_CONDITION_EFFECT,
    DICE_PATTERN,
    DIVINE_SMITE,
    METAMAGIC_FEATURES,
)
from .text import exceeds_level, strip_template_expressions
from .values import extract_formula, extract_number, extract_text

logger = logging.getLogger(__name__)

_DICE_FORMULA_RE = re.compile(r"(?<![A-Za-z])\d*d\d+(?:\s*[+-]\s*\d+)?", re.IGNORECASE)
_PURE_NUMBER_RE = re.compile(r"^\s*[+-]?\d+\s*$")
_CONDITION_RES = tuple(
    re.compile(rf"\b{re.escape(name)}\b", re.IGNORECASE) for name in CONDITION_TOGGLES
)
_MERGED_FIELDS = ("source", "damage", "attack_roll", "uses")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _d20(bonus: int | float) -> str:
    bonus = int(bonus)
    return f"1d20+{bonus}" if bonus >= 0 else f"1d20-{abs(bonus)}"


def format_attack_roll(raw: Any) -> str:
    """Build an attack roll: ``1d20±bonus`` from a number, verbatim for a formula."""
    if raw is None or isinstance(raw, bool):
        return ""
    if isinstance(raw, (int, float)):
        return _d20(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return ""
        return _d20(int(text)) if _PURE_NUMBER_RE.match(text) else text
    if isinstance(raw, dict):
        value = raw.get("value")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return _d20(value)
        for key in ("calculation", "value", "text"):
            candidate = raw.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return format_attack_roll(candidate)
    return ""


def clean_text(raw: Any) -> str:
    return strip_template_expressions(extract_text(raw))


def _uses(node: dict) -> float | None:
    return extract_number(node.get("uses"))


def _missing(value: Any) -> bool:
    return value is None or value == ""


def _source_name(graph: PropertyGraph, node: dict) -> str:
    for ancestor_id in graph.nearest_ancestors(node):
        name = graph.name_of(ancestor_id)
        if name:
            return name
    return ""


def _is_level_gated(graph: PropertyGraph, node: dict, level: int) -> bool:
    return any(
        exceeds_level(graph.name_of(ancestor_id), level)
        for ancestor_id in graph.nearest_ancestors(node)
    )


def _numeric_effect_bonus(amount: Any) -> int | float:
    """Sum purely numeric effects nested in a damage amount.

    Dice-formula effects (a Sneak Attack toggle's extra dice) are skipped:
    they surface as their own action.
    """
    if not isinstance(amount, dict):
        return 0
    effects = amount.get("effects")
    if not isinstance(effects, list):
        return 0
    total: int | float = 0
    for effect in effects:
        if not isinstance(effect, dict):
            continue
        effect_amount = effect.get("amount", effect)
        if DICE_PATTERN.search(extract_formula(effect_amount)):
            logger.debug("Skipping dice effect on damage: %r", effect.get("name"))
            continue
        number = extract_number(effect_amount)
        if number:
            total += number
    return total


def _append_bonus(formula: str, bonus: int | float) -> str:
    if not bonus:
        return formula
    bonus = int(bonus) if float(bonus).is_integer() else bonus
    return f"{formula}+{bonus}" if bonus > 0 else f"{formula}-{abs(bonus)}"


def assemble_damage(graph: PropertyGraph, node: dict) -> tuple[str, str]:
    """Sum all damage properties below ``node`` into one formula.

    Returns (damage, damage_type); formulas are joined by ``+`` and the
    distinct damage types by `` + ``.
    """
    formulas: list[str] = []
    types: list[str] = []
    for child in graph.descendants_of(graph.id_of(node)):
        if node_type(child) != "damage" or not is_active(child):
            continue
        amount = child.get("amount")
        formula = extract_formula(amount)
        if not formula:
            continue
        formulas.append(_append_bonus(formula, _numeric_effect_bonus(amount)))
        damage_type = child.get("damageType")
        if isinstance(damage_type, str) and damage_type and damage_type not in types:
            types.append(damage_type)
    return "+".join(formulas), " + ".join(types)


# ---------------------------------------------------------------------------
# Per-type extraction
# ---------------------------------------------------------------------------


def _feature_record(node: dict) -> dict:
    roll = extract_formula(node.get("roll"))
    damage = extract_formula(node.get("damage"))
    return {
        "name": node_name(node) or "Unnamed Feature",
        "summary": clean_text(node.get("summary")),
        "description": clean_text(node.get("description")),
        "uses": _uses(node),
        "roll": roll or None,
        "damage": damage or None,
    }


def _feature_action(feature: dict, graph: PropertyGraph, node: dict) -> dict:
    return {
        "name": feature["name"],
        "action_type": "action",
        "attack_roll": "",
        "damage": feature["damage"] or feature["roll"] or "",
        "damage_type": node.get("damageType") if isinstance(node.get("damageType"), str) else "",
        "summary": feature["summary"],
        "description": feature["description"],
        "source": _source_name(graph, node),
        "uses": feature["uses"],
    }


def _action_record(graph: PropertyGraph, node: dict) -> dict:
    damage, damage_type = assemble_damage(graph, node)
    action_type = node.get("actionType")
    return {
        "name": node_name(node) or "Unnamed Action",
        "action_type": action_type if isinstance(action_type, str) and action_type else "action",
        "attack_roll": format_attack_roll(node.get("attackRoll")),
        "damage": damage,
        "damage_type": damage_type,
        "summary": clean_text(node.get("summary")),
        "description": clean_text(node.get("description")),
        "source": _source_name(graph, node),
        "uses": _uses(node),
    }


def toggle_enabled(node: dict) -> bool:
    """Whether a toggle is switched on (manual ``enabled`` or computed result)."""
    for key in ("enabled", "toggleResult"):
        if key in node:
            return bool(node[key])
    return is_active(node)


def _effect_damage(node: dict) -> str:
    damage = extract_formula(node.get("damage"))
    if damage:
        return damage
    stats = node.get("stats")
    if isinstance(stats, str):
        stats = [stats]
    if isinstance(stats, list) and any(isinstance(s, str) and "damage" in s.lower() for s in stats):
        amount = extract_formula(node.get("amount"))
        if amount and amount not in ("0",):
            return amount
    return ""


def _toggle_actions(graph: PropertyGraph, toggle: dict, children: list[dict]) -> list[dict]:
    actions: list[dict] = []
    toggle_name = node_name(toggle)
    for child in children:
        if not is_active(child):
            continue
        child_type = node_type(child)
        damage_type = child.get("damageType") if isinstance(child.get("damageType"), str) else ""
        if child_type == "damage":
            damage = extract_formula(child.get("amount"))
        elif child_type == "effect":
            damage = _effect_damage(child)
        else:
            continue
        if not damage:
            continue
        actions.append({
            "name": toggle_name or node_name(child) or "Unnamed Action",
            "action_type": "action",
            "attack_roll": "",
            "damage": damage,
            "damage_type": damage_type,
            "summary": clean_text(toggle.get("summary")),
            "description": clean_text(toggle.get("description")),
            "source": _source_name(graph, toggle),
            "uses": None,
        })
    return actions


def is_condition_toggle(name: str) -> bool:
    return any(pattern.search(name) for pattern in _CONDITION_RES)


def _condition_effect(toggle: dict, children: list[dict]) -> str:
    for child in children:
        if node_type(child) != "effect":
            continue
        formula = extract_formula(child.get("amount"))
        if DICE_PATTERN.search(formula):
            return formula
    for text in (node_name(toggle), extract_text(toggle.get("summary")), extract_text(toggle.get("description"))):
        match = _DICE_FORMULA_RE.search(text or "")
        if match:
            formula = match.group(0).replace(" ", "")
            return f"1{formula}" if formula[:1].lower() == "d" else formula
    return DEFAULT_CONDITION_EFFECT


# ---------------------------------------------------------------------------
# Action collapsing
# ---------------------------------------------------------------------------


def normalize_action_name(name: str) -> str:
    """Strip action-economy suffixes such as "(bonus action)" or "(at will)"."""
    current = name.strip()
    while True:
        stripped = ACTION_ECONOMY_SUFFIX_PATTERN.sub("", current).strip()
        if stripped == current:
            return current
        current = stripped


def drop_smite_variants(entries: list[dict]) -> list[dict]:
    """Collapse weapon-specific Divine Smite entries onto the canonical one."""
    kept = []
    for entry in entries:
        name = entry.get("name", "")
        if "divine smite" in name.lower() and name != DIVINE_SMITE:
            logger.debug("Dropping Divine Smite variant %r", name)
            continue
        kept.append(entry)
    return kept


def dedupe_actions(actions: list[dict]) -> list[dict]:
    """Group actions by normalized name, keep the shortest name, merge gaps.

    Groups keep first-seen order; ties on name length go to the first entry.
    """
    groups: dict[str, list[dict]] = {}
    for action in actions:
        key = normalize_action_name(action.get("name", "")).lower()
        groups.setdefault(key, []).append(action)

    merged: list[dict] = []
    for members in groups.values():
        canonical_source = min(members, key=lambda a: len(a.get("name", "")))
        canonical = dict(canonical_source)
        for other in members:
            if other is canonical_source:
                continue
            for field in _MERGED_FIELDS:
                if _missing(canonical.get(field)) and not _missing(other.get(field)):
                    canonical[field] = other[field]
                    if field == "damage" and not canonical.get("damage_type"):
                        canonical["damage_type"] = other.get("damage_type", "")
        merged.append(canonical)
    return merged


# ---------------------------------------------------------------------------
# Section mapper
# ---------------------------------------------------------------------------


def map_features(graph: PropertyGraph, level: int) -> tuple[dict, list[str]]:
    """Map features, actions and conditions.

    Args:
        graph: Indexed creature properties.
        level: Total character level, gating actions under higher-level features.

    Returns:
        Tuple of (fields, warnings); fields has features, actions, conditions.
    """
    warnings: list[str] = []
    features: list[dict] = []
    actions: list[dict] = []
    conditions: list[dict] = []

    for node in graph:
        if not is_active(node):
            continue
        kind = node_type(node)
        try:
            if kind == "feature":
                feature = _feature_record(node)
                features.append(feature)
                if (feature["roll"] or feature["damage"]) and feature["name"].lower() not in METAMAGIC_FEATURES:
                    if not _is_level_gated(graph, node, level):
                        actions.append(_feature_action(feature, graph, node))
            elif kind == "action":
                if _is_level_gated(graph, node, level):
                    logger.debug("Skipping level-gated action %r", node_name(node))
                    continue
                actions.append(_action_record(graph, node))
            elif kind == "toggle":
                children = graph.children_of(graph.id_of(node))
                actions.extend(_toggle_actions(graph, node, children))
                name = node_name(node)
                if name and toggle_enabled(node) and is_condition_toggle(name):
                    conditions.append({
                        "name": name,
                        "effect": _condition_effect(node, children),
                        "active": True,
                    })
        except Exception as e:
            warnings.append(f"Failed to map {kind} {node_name(node)!r}: {e}")

    actions = dedupe_actions(drop_smite_variants(actions))
    return {"features": features, "actions": actions, "conditions": conditions}, warnings


__all__ = [
    "assemble_damage",
    "clean_text",
    "dedupe_actions",
    "drop_smite_variants",
    "format_attack_roll",
    "is_condition_toggle",
    "map_features",
    "normalize_action_name",
    "toggle_enabled",
]
