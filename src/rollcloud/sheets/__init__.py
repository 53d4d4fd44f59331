"""Flat sheet-field projection of normalized characters (Roll20 5e OGL names)."""

from rollcloud.sheets.schema import FIELD_MAPPINGS, FieldMapping, SheetSchema

__all__ = [
    "SheetSchema",
    "FieldMapping",
    "FIELD_MAPPINGS",
]
