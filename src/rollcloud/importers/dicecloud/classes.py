"""
Class, level, race and background extraction.

Each function returns a (result, warnings) tuple like the other mapper
sections so the orchestrator can degrade per section.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .graph import PropertyGraph, is_active, node_name, node_type
from .schema import (
    CLASS_TYPES,
    COMMON_RACE_PATTERN,
    MULTICLASS_SUFFIX_PATTERN,
    RACE_FOLDER_MAX_DEPTH,
    RACE_TYPES,
)
from .text import camel_to_title
from .values import as_int, extract_number, is_truthy_cell

logger = logging.getLogger(__name__)


def _class_key(name: str) -> str:
    return MULTICLASS_SUFFIX_PATTERN.sub("", name).strip().lower()


def map_classes(graph: PropertyGraph, creature: dict | None = None) -> tuple[dict, list[str]]:
    """Deduplicate class names and count total level.

    Every active ``classLevel`` node adds one level, even when its class name
    was already seen; ``class`` nodes only contribute a name.

    Returns:
        Tuple of (fields, warnings); fields contains character_class,
        class_names, level and class_levels (levels per dedup key).
    """
    warnings: list[str] = []
    names: list[str] = []
    seen: set[str] = set()
    class_levels: dict[str, int] = {}
    level = 0

    for node in graph.of_type(*CLASS_TYPES):
        if not is_active(node):
            continue
        raw_name = node_name(node)
        key = _class_key(raw_name)
        if key and key not in seen:
            seen.add(key)
            names.append(MULTICLASS_SUFFIX_PATTERN.sub("", raw_name).strip())
        if node_type(node) == "classLevel":
            level += 1
            if key:
                class_levels[key] = class_levels.get(key, 0) + 1

    if level == 0 and creature:
        fallback = _creature_level(creature)
        if fallback:
            warnings.append(f"No class levels found, using creature level {fallback}")
            level = fallback

    if not names:
        warnings.append("No classes found")

    return {
        "character_class": " / ".join(names),
        "class_names": names,
        "level": level,
        "class_levels": class_levels,
    }, warnings


def _creature_level(creature: dict) -> int:
    explicit = extract_number(creature.get("level"))
    if explicit:
        return as_int(explicit)
    levels = creature.get("levels")
    if isinstance(levels, list):
        total = 0
        for entry in levels:
            if isinstance(entry, dict):
                total += as_int(extract_number(entry.get("level")), 1)
            else:
                total += as_int(extract_number(entry))
        return total
    return 0


# ---------------------------------------------------------------------------
# Race resolution
# ---------------------------------------------------------------------------


def _race_from_typed_property(graph: PropertyGraph, variables: dict) -> str | None:
    for node in graph.of_type(*RACE_TYPES):
        if is_active(node) and node_name(node):
            return node_name(node)
    return None


def _matches_common_race(name: str) -> bool:
    return COMMON_RACE_PATTERN.search(name) is not None


def _has_tag(node: dict, tag: str) -> bool:
    tags = node.get("tags")
    if not isinstance(tags, list):
        return False
    return any(isinstance(t, str) and t.lower() == tag for t in tags)


def _race_from_folder(graph: PropertyGraph, variables: dict) -> str | None:
    for node in graph.of_type("folder"):
        if not is_active(node):
            continue
        name = node_name(node)
        if not name or graph.depth(node) > RACE_FOLDER_MAX_DEPTH:
            continue
        if not _matches_common_race(name):
            continue
        for child in graph.children_of(graph.id_of(node)):
            if node_type(child) == "folder" and _has_tag(child, "subrace") and node_name(child):
                return f"{name} - {node_name(child)}"
        return name
    return None


def _cell_name(cell: Any) -> str | None:
    if isinstance(cell, str) and cell.strip():
        return cell.strip()
    if isinstance(cell, dict):
        for key in ("name", "text", "value"):
            value = cell.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def _format_race_flag(name: str) -> str:
    if name.lower() == "custom":
        return "Custom Lineage"
    return camel_to_title(name)


def _race_from_variables(graph: PropertyGraph, variables: dict) -> str | None:
    candidates = {
        k: v for k, v in variables.items()
        if isinstance(k, str) and ("race" in k.lower() or "species" in k.lower())
    }
    if not candidates:
        return None

    for key, cell in candidates.items():
        if key.lower() == "subrace":
            name = _cell_name(cell)
            if name:
                return name

    for key, cell in candidates.items():
        if key.lower() in ("race", "species", "characterrace"):
            name = _cell_name(cell)
            if name:
                return _format_race_flag(name) if name.lower() == "custom" else name

    for key, cell in candidates.items():
        if key.endswith("Race") and key.lower() not in ("subrace", "characterrace"):
            if is_truthy_cell(cell):
                return _format_race_flag(key[: -len("Race")])
    return None


RaceStrategy = Callable[[PropertyGraph, dict], "str | None"]

RACE_STRATEGIES: tuple[tuple[str, RaceStrategy], ...] = (
    ("typed_property", _race_from_typed_property),
    ("race_folder", _race_from_folder),
    ("variables", _race_from_variables),
)


def resolve_race(graph: PropertyGraph, variables: dict) -> tuple[str, str | None]:
    """Run the race strategies in order; returns (race, strategy name)."""
    for strategy_name, strategy in RACE_STRATEGIES:
        race = strategy(graph, variables)
        if race:
            logger.debug("Race %r resolved by %s", race, strategy_name)
            return race, strategy_name
    return "", None


def map_identity(
    creature: dict, variables: dict, graph: PropertyGraph
) -> tuple[dict, list[str]]:
    """Map identity fields: id, name, alignment, race, background."""
    warnings: list[str] = []
    result: dict = {
        "id": str(creature.get("_id") or creature.get("id") or ""),
        "name": creature.get("name") or "",
        "alignment": creature.get("alignment") or "",
    }
    if not isinstance(result["name"], str):
        result["name"] = str(result["name"])
    if not isinstance(result["alignment"], str):
        result["alignment"] = ""

    race, _ = resolve_race(graph, variables)
    if not race:
        warnings.append("Could not resolve race")
    result["race"] = race

    background = ""
    for node in graph.of_type("background"):
        if is_active(node) and node_name(node):
            background = node_name(node)
            break
    result["background"] = background

    return result, warnings


__all__ = [
    "RACE_STRATEGIES",
    "map_classes",
    "map_identity",
    "resolve_race",
]
