"""Flat field projection of a NormalizedCharacter for tabletop sheet filling.

Defines which Roll20 5e sheet fields are filled and which character
attribute each one reads. Empty values are left out so the filler never
blanks a field the sheet already has.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from rollcloud.models import NormalizedCharacter


class FieldMapping(BaseModel):
    """Maps a sheet field name to a NormalizedCharacter path."""
    field_key: str
    model_path: str  # dot-notation path into NormalizedCharacter (e.g. "hit_points.max")
    section: str = ""


# --- Ordered field definitions ---
# Order here determines fill order.

FIELD_MAPPINGS: list[FieldMapping] = [
    # Identity
    FieldMapping(field_key="character_name", model_path="name", section="Identity"),

    # Abilities
    FieldMapping(field_key="strength", model_path="attributes.strength", section="Abilities"),
    FieldMapping(field_key="dexterity", model_path="attributes.dexterity", section="Abilities"),
    FieldMapping(field_key="constitution", model_path="attributes.constitution", section="Abilities"),
    FieldMapping(field_key="intelligence", model_path="attributes.intelligence", section="Abilities"),
    FieldMapping(field_key="wisdom", model_path="attributes.wisdom", section="Abilities"),
    FieldMapping(field_key="charisma", model_path="attributes.charisma", section="Abilities"),

    # Combat
    FieldMapping(field_key="hp", model_path="hit_points.current", section="Combat"),
    FieldMapping(field_key="hp_max", model_path="hit_points.max", section="Combat"),
    FieldMapping(field_key="ac", model_path="armor_class", section="Combat"),
    FieldMapping(field_key="speed", model_path="speed", section="Combat"),

    # Identity (sheet header)
    FieldMapping(field_key="class", model_path="character_class", section="Identity"),
    FieldMapping(field_key="level", model_path="level", section="Identity"),
    FieldMapping(field_key="race", model_path="race", section="Identity"),
    FieldMapping(field_key="background", model_path="background", section="Identity"),
    FieldMapping(field_key="alignment", model_path="alignment", section="Identity"),

    FieldMapping(field_key="proficiency", model_path="proficiency_bonus", section="Combat"),
]

# --- Lookup index built once at import time ---

_FIELD_BY_KEY: dict[str, FieldMapping] = {fm.field_key: fm for fm in FIELD_MAPPINGS}


class SheetSchema:
    """Conversion from NormalizedCharacter to flat sheet fields."""

    @staticmethod
    def get_mapping(field_key: str) -> FieldMapping | None:
        """Return the FieldMapping for a sheet field name."""
        return _FIELD_BY_KEY.get(field_key)

    @staticmethod
    def field_keys() -> list[str]:
        return [fm.field_key for fm in FIELD_MAPPINGS]

    @staticmethod
    def character_to_fields(character: NormalizedCharacter) -> dict[str, Any]:
        """Convert a character to ``{sheet_field: value}``.

        Fields whose value is None or an empty string are omitted.
        """
        fields: dict[str, Any] = {}

        for mapping in FIELD_MAPPINGS:
            value = _resolve_model_path(character, mapping.model_path)
            if value is None or value == "":
                continue
            fields[mapping.field_key] = value

        return fields


def _resolve_model_path(obj: Any, path: str) -> Any:
    """Walk a dot-notation path on a Pydantic model or dict.

    Examples:
        _resolve_model_path(char, "name") → "Thorin"
        _resolve_model_path(char, "hit_points.max") → 44
        _resolve_model_path(char, "attributes.strength") → 16
    """
    parts = path.split(".")
    current = obj
    for part in parts:
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current
