"""
Character extraction from external platforms.

Currently supports:
- DiceCloud v2 (creature API with a bearer token, or local JSON export)
"""

from .base import ExtractionError, ExtractionResult
from .dicecloud.fetcher import fetch_creature, read_creature_file
from .dicecloud.mapper import extract_character, map_creature_to_character, normalize_character

__all__ = [
    "fetch_creature",
    "read_creature_file",
    "extract_character",
    "map_creature_to_character",
    "normalize_character",
    "ExtractionResult",
    "ExtractionError",
]
