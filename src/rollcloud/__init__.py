"""
RollCloud core - normalizes DiceCloud creatures into flat tabletop-ready characters.
"""

from .models import *
from .importers import ExtractionError, ExtractionResult, extract_character, normalize_character

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("rollcloud-core")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = ["ExtractionError", "ExtractionResult", "extract_character", "normalize_character"]
