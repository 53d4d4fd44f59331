"""
Coercion of DiceCloud value cells.

DiceCloud stores amounts, variables and attribute values in several shapes:
a bare number, a formula string, or a computed cell carrying some subset of
``{value, total, calculation, text}``. Every read site goes through the
helpers here instead of repeating shape checks.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Union

from .schema import RESOURCE_MAX_DEPTH

logger = logging.getLogger(__name__)

_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?\d+(?:\.\d+)?)")
_NUMBER_RE = re.compile(r"^\s*[+-]?\d+(?:\.\d+)?\s*$")


@dataclass(frozen=True)
class NumericLiteral:
    value: float


@dataclass(frozen=True)
class FormulaText:
    text: str


@dataclass(frozen=True)
class ComputedCell:
    value: Any = None
    total: Any = None
    calculation: Any = None
    text: Any = None


Cell = Union[NumericLiteral, FormulaText, ComputedCell]


def _tidy(number: float) -> int | float:
    """Return ints for integral values so 17.0 serializes as 17."""
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_number(text: str, *, leading: bool = False) -> int | float | None:
    """Parse a numeric string; with ``leading`` only its leading integer part is needed."""
    pattern = _LEADING_NUMBER_RE if leading else _NUMBER_RE
    match = pattern.match(text)
    if not match:
        return None
    return _tidy(float(match.group(1) if leading else text))


def classify(raw: Any) -> Cell | None:
    """Classify a raw cell into one of the three known shapes."""
    if _is_number(raw):
        return NumericLiteral(float(raw))
    if isinstance(raw, str):
        number = _parse_number(raw)
        if number is not None:
            return NumericLiteral(float(number))
        return FormulaText(raw)
    if isinstance(raw, dict):
        return ComputedCell(
            value=raw.get("value"),
            total=raw.get("total"),
            calculation=raw.get("calculation"),
            text=raw.get("text"),
        )
    if raw is not None:
        logger.debug("Unrecognized value cell shape: %r", type(raw).__name__)
    return None


def extract_number(raw: Any) -> int | float | None:
    """Resolve a cell to a number.

    Order for computed cells: ``total``, ``value``, the leading integer of
    ``calculation``, then ``text``. Returns None when nothing numeric is found.
    """
    cell = classify(raw)
    if isinstance(cell, NumericLiteral):
        return _tidy(cell.value)
    if isinstance(cell, FormulaText):
        return _parse_number(cell.text, leading=True)
    if isinstance(cell, ComputedCell):
        for candidate in (cell.total, cell.value):
            if _is_number(candidate):
                return _tidy(float(candidate))
            if isinstance(candidate, str):
                number = _parse_number(candidate)
                if number is not None:
                    return number
        if isinstance(cell.calculation, str):
            number = _parse_number(cell.calculation, leading=True)
            if number is not None:
                return number
        if _is_number(cell.text):
            return _tidy(float(cell.text))
        if isinstance(cell.text, str):
            return _parse_number(cell.text, leading=True)
    return None


def variable_value(raw: Any) -> int | float | None:
    """Read the current value of a creature variable.

    Variables carry their current value in ``value`` (``total`` holds the
    maximum for attributes like hitPoints), so ``value`` is preferred here.
    """
    if isinstance(raw, dict) and _is_number(raw.get("value")):
        return _tidy(float(raw["value"]))
    return extract_number(raw)


def variable_total(raw: Any) -> int | float | None:
    """Read the maximum of a creature variable: ``total`` then ``value``."""
    if isinstance(raw, dict):
        for key in ("total", "value"):
            if _is_number(raw.get(key)):
                return _tidy(float(raw[key]))
    return extract_number(raw)


def deep_number(raw: Any, depth: int = 0) -> int | float | None:
    """Bounded recursive coercion trying value → total → calculation → text."""
    if depth > RESOURCE_MAX_DEPTH or raw is None:
        return None
    if _is_number(raw):
        return _tidy(float(raw))
    if isinstance(raw, str):
        return _parse_number(raw, leading=True)
    if isinstance(raw, dict):
        for key in ("value", "total", "calculation", "text"):
            if key in raw:
                number = deep_number(raw[key], depth + 1)
                if number is not None:
                    return number
    return None


def extract_formula(raw: Any) -> str:
    """Read a roll/damage formula as text.

    Computed cells prefer their ``calculation`` (the unevaluated formula with
    dice), falling back to ``value`` and ``text``.
    """
    if raw is None or isinstance(raw, bool):
        return ""
    if _is_number(raw):
        return str(_tidy(float(raw)))
    if isinstance(raw, str):
        return raw.strip()
    if isinstance(raw, dict):
        for key in ("calculation", "value", "text"):
            candidate = raw.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
            if _is_number(candidate):
                return str(_tidy(float(candidate)))
        return ""
    logger.debug("Unrecognized formula shape: %r", type(raw).__name__)
    return ""


def extract_text(raw: Any) -> str:
    """Read a summary/description: a bare string or ``{value, text}`` (value preferred)."""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        for key in ("value", "text"):
            candidate = raw.get(key)
            if isinstance(candidate, str) and candidate:
                return candidate
    return ""


def as_int(value: Any, default: int = 0) -> int:
    """Integer view of an already-coerced number (None → default)."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def is_truthy_cell(raw: Any) -> bool:
    """Boolean flag variable: ``true`` or ``{value: true}``."""
    if isinstance(raw, dict):
        raw = raw.get("value")
    return raw is True


__all__ = [
    "NumericLiteral",
    "FormulaText",
    "ComputedCell",
    "classify",
    "extract_number",
    "variable_value",
    "variable_total",
    "deep_number",
    "extract_formula",
    "extract_text",
    "as_int",
    "is_truthy_cell",
]
