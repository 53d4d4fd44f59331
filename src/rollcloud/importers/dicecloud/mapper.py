"""
Core pipeline translating a DiceCloud creature into a NormalizedCharacter.

The property graph is indexed once, then each section mapper runs in turn.
Every section returns a (result, warnings) tuple and runs under its own
exception guard, so one malformed property never costs the rest of the
character. Sections that depend on total level run after class extraction.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from rollcloud.models import NormalizedCharacter

from ..base import ExtractionError, ExtractionResult
from .classes import map_classes, map_identity
from .companions import map_companions
from .features import map_features
from .fetcher import unwrap_payload
from .graph import PropertyGraph
from .inventory import map_inventory
from .resources import apply_hit_point_resources, map_resources, map_spell_slots
from .schema import (
    ABILITIES,
    ABILITY_MOD_VARIABLES,
    AC_VARIABLE_NAMES,
    COMBAT_VARIABLES,
    HIT_DICE_VARIABLES,
    PACT_MAGIC_VARIABLES,
    PACT_SLOT_LEVEL_VARIABLES,
    SAVE_VARIABLES,
    SKILL_VARIABLES,
    SPELL_SLOT_VARIABLES,
    TEMP_HP_VARIABLES,
)
from .spells import map_spells
from .stats import map_abilities, map_combat

logger = logging.getLogger(__name__)

# Variables consumed by a section mapper; everything else is passed through
MAPPED_VARIABLES: frozenset[str] = frozenset(
    (
        *ABILITIES,
        *ABILITY_MOD_VARIABLES.values(),
        *SAVE_VARIABLES.values(),
        *SKILL_VARIABLES,
        *COMBAT_VARIABLES,
        *AC_VARIABLE_NAMES,
        *TEMP_HP_VARIABLES,
        *HIT_DICE_VARIABLES,
        *SPELL_SLOT_VARIABLES.values(),
        *PACT_MAGIC_VARIABLES,
        *PACT_SLOT_LEVEL_VARIABLES,
        "warlockLevel",
    )
)


def passthrough_variables(variables: dict) -> dict[str, Any]:
    """Copy the variables no section consumed, skipping document metadata keys."""
    return {
        name: copy.deepcopy(cell)
        for name, cell in variables.items()
        if isinstance(name, str) and not name.startswith("_") and name not in MAPPED_VARIABLES
    }


def _section_failed(section: str, error: Exception, warnings: list[str]) -> None:
    logger.warning("Failed to map %s: %s", section, error)
    warnings.append(f"Failed to map {section}: {error}")


def map_creature_to_character(
    creature: dict,
    variables: dict | None = None,
    properties: list | None = None,
) -> ExtractionResult:
    """Orchestrate the full creature → NormalizedCharacter extraction.

    Calls all section mappers, collects warnings, and builds the final
    character. Always returns a valid character once a creature is present.

    Args:
        creature: ``creatures[0]`` of the DiceCloud payload.
        variables: ``creatureVariables[0]``; missing means no variables.
        properties: ``creatureProperties``; missing means no properties.

    Returns:
        ExtractionResult with the character, mapped/unmapped sections,
        warnings and modifier overrides.

    Raises:
        ExtractionError: If there is no creature data at all.
    """
    if not isinstance(creature, dict) or not creature:
        raise ExtractionError("No creature data to extract")
    variables = variables if isinstance(variables, dict) else {}
    properties = properties if isinstance(properties, list) else []

    all_warnings: list[str] = []
    overrides: list[str] = []
    mapped_fields: list[str] = []
    unmapped_fields: list[str] = []
    character_data: dict = {}

    graph = PropertyGraph.index(properties)
    logger.debug("Indexed %d creature properties", len(graph))

    # Classes and total level (gates actions and spells below)
    level = 0
    character_class = ""
    class_levels: dict[str, int] = {}
    try:
        classes, warnings = map_classes(graph, creature)
        level = classes["level"]
        character_class = classes["character_class"]
        class_levels = classes["class_levels"]
        character_data.update(character_class=character_class, level=level)
        all_warnings.extend(warnings)
        mapped_fields.append("classes")
    except Exception as e:
        _section_failed("classes", e, all_warnings)
        unmapped_fields.append("classes")

    # Identity
    try:
        identity, warnings = map_identity(creature, variables, graph)
        character_data.update(identity)
        all_warnings.extend(warnings)
        mapped_fields.append("identity")
    except Exception as e:
        _section_failed("identity", e, all_warnings)
        unmapped_fields.append("identity")

    # Abilities
    attribute_mods: dict[str, int] = {}
    try:
        abilities, warnings = map_abilities(variables)
        overrides.extend(abilities.pop("overrides"))
        attribute_mods = abilities["attribute_mods"]
        character_data.update(abilities)
        all_warnings.extend(warnings)
        mapped_fields.append("abilities")
    except Exception as e:
        _section_failed("abilities", e, all_warnings)
        unmapped_fields.append("abilities")

    # Combat block (requires modifiers, level and class)
    try:
        combat, warnings = map_combat(
            creature, variables, graph, attribute_mods, level, character_class
        )
        character_data.update(combat)
        all_warnings.extend(warnings)
        mapped_fields.append("combat")
    except Exception as e:
        _section_failed("combat stats", e, all_warnings)
        unmapped_fields.append("combat")

    # Spell slots and pact magic
    try:
        slots, warnings = map_spell_slots(variables, class_levels.get("warlock", 0))
        character_data["spell_slots"] = slots
        all_warnings.extend(warnings)
        mapped_fields.append("spell_slots")
    except Exception as e:
        _section_failed("spell slots", e, all_warnings)
        unmapped_fields.append("spell_slots")

    # Resources
    try:
        resources, warnings = map_resources(graph)
        character_data["resources"] = resources
        all_warnings.extend(warnings)
        mapped_fields.append("resources")
    except Exception as e:
        _section_failed("resources", e, all_warnings)
        unmapped_fields.append("resources")

    # Features, actions and conditions
    try:
        features, warnings = map_features(graph, level)
        character_data.update(features)
        all_warnings.extend(warnings)
        mapped_fields.append("features")
    except Exception as e:
        _section_failed("features", e, all_warnings)
        unmapped_fields.append("features")

    # Spells
    try:
        spells, warnings = map_spells(graph, level)
        character_data["spells"] = spells
        all_warnings.extend(warnings)
        mapped_fields.append("spells")
    except Exception as e:
        _section_failed("spells", e, all_warnings)
        unmapped_fields.append("spells")

    # Inventory
    try:
        inventory, warnings = map_inventory(graph)
        character_data["inventory"] = inventory
        all_warnings.extend(warnings)
        mapped_fields.append("inventory")
    except Exception as e:
        _section_failed("inventory", e, all_warnings)
        unmapped_fields.append("inventory")

    # Companions
    try:
        companions, warnings = map_companions(graph)
        character_data["companions"] = companions
        all_warnings.extend(warnings)
        mapped_fields.append("companions")
    except Exception as e:
        _section_failed("companions", e, all_warnings)
        unmapped_fields.append("companions")

    # Health-bar resources win over the hit point variables
    applied = apply_hit_point_resources(character_data, character_data.get("resources", []))
    if applied:
        logger.debug("Hit point fields taken from resources: %s", ", ".join(applied))

    character_data["other_variables"] = passthrough_variables(variables)

    character = NormalizedCharacter.model_validate(character_data)

    return ExtractionResult(
        character=character,
        mapped_fields=mapped_fields,
        unmapped_fields=unmapped_fields,
        warnings=all_warnings,
        overrides=overrides,
        source="payload",
        source_id=character.id or None,
    )


def extract_character(data: dict, source: str = "payload") -> ExtractionResult:
    """Extract a character from a full API payload or file export.

    Raises:
        ExtractionError: If the payload holds no creature data.
    """
    creature, variables, properties = unwrap_payload(data)
    result = map_creature_to_character(creature, variables, properties)
    result.source = source
    return result


def normalize_character(
    creature: dict,
    variables: dict | None = None,
    properties: list | None = None,
) -> NormalizedCharacter:
    """Pure creature → NormalizedCharacter transform, dropping the diagnostics."""
    return map_creature_to_character(creature, variables, properties).character


__all__ = [
    "MAPPED_VARIABLES",
    "extract_character",
    "map_creature_to_character",
    "normalize_character",
    "passthrough_variables",
]
