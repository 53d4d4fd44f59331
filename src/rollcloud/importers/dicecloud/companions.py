"""
Companion stat-block parsing.

Familiars, summons and class companions are modelled in DiceCloud as a
feature whose description holds a markdown stat block. Each piece of the
block is parsed independently; a companion is kept only when its armor
class, hit points or ability scores could be recovered.
"""

from __future__ import annotations

import logging
import re

from .graph import PropertyGraph, is_active, node_name
from .schema import COMPANION_ABILITY_KEYS, COMPANION_NAME_PATTERNS
from .values import extract_text

logger = logging.getLogger(__name__)

_SIZE_TYPE_RE = re.compile(
    r"^[*_\s]*(Tiny|Small|Medium|Large|Huge|Gargantuan)\s+([\w-]+),\s*([A-Za-z][A-Za-z -]*?)[*_\s]*$",
    re.IGNORECASE | re.MULTILINE,
)

_HP_VALUE = r"(\d+(?:\s*\([^)]*\))?)"

_AC_PATTERNS = (
    re.compile(r"\*\*Armor Class\*\*\s*(\d+)", re.IGNORECASE),
    re.compile(r"Armor Class[:\s]+(\d+)", re.IGNORECASE),
    re.compile(r"\bAC[:\s]+(\d+)"),
)

_HP_PATTERNS = (
    re.compile(r"\*\*Hit Points\*\*\s*" + _HP_VALUE, re.IGNORECASE),
    re.compile(r"Hit Points[:\s]+" + _HP_VALUE, re.IGNORECASE),
    re.compile(r"\bHP[:\s]+" + _HP_VALUE),
)

_ABILITY_CELL_RE = re.compile(r"(\d+)\s*\(\s*([+\-−–]?)\s*(\d+)\s*\)")

_NAMED_ENTRY_RE = re.compile(r"^\s*\*\*\*(.+?)\.\*\*\*\s*(.*)$")

_ACTION_PATTERNS = (
    re.compile(
        r"Melee Weapon Attack:?[*_]*\s*\+?(-?\d+)\s*to hit,\s*(reach\s+\d+\s*ft\.?)"
        r"[^.]*?\.?\s*[*_]*Hit:?[*_]*\s*(.+)$",
        re.IGNORECASE,
    ),
    re.compile(
        r"\+?(-?\d+)\s*to hit.*?(reach\s+\d+\s*ft\.?).*?Hit:?[*_]*\s*(.+)$",
        re.IGNORECASE,
    ),
)
_BONUS_RE = re.compile(r"\+?(-?\d+)\s*to hit", re.IGNORECASE)
_REACH_RE = re.compile(r"reach\s+\d+\s*ft\.?", re.IGNORECASE)
_DAMAGE_CLAUSE_RE = re.compile(r"\d+\s*\(\s*\d*d\d+[^)]*\)\s*[a-z]+\s+damage", re.IGNORECASE)

_MELEE_CUE = "melee weapon attack"


def is_companion_name(name: str) -> bool:
    return any(pattern.search(name) for pattern in COMPANION_NAME_PATTERNS)


def _first_match(patterns: tuple[re.Pattern, ...], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def _label_value(text: str, label: str) -> str:
    pattern = re.compile(
        r"^[^\S\n]*(?:[*_>-]+[^\S\n]*)*" + re.escape(label) + r"(?:\*\*)?:?(?:\*\*)?[^\S\n]*(.+)$",
        re.IGNORECASE | re.MULTILINE,
    )
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def _signed(sign: str, digits: str) -> int:
    value = int(digits)
    return -value if sign in ("-", "−", "–") else value


def parse_ability_row(text: str) -> dict[str, dict]:
    """Find the markdown-table row holding six ``N (±M)`` cells."""
    for line in text.splitlines():
        if "|" not in line or len(_ABILITY_CELL_RE.findall(line)) < 6:
            continue
        cells = [cell.strip() for cell in line.split("|") if cell.strip()][-6:]
        parsed = [_ABILITY_CELL_RE.search(cell) for cell in cells]
        if len(parsed) != 6 or not all(parsed):
            continue
        return {
            key: {"score": int(m.group(1)), "modifier": _signed(m.group(2), m.group(3))}
            for key, m in zip(COMPANION_ABILITY_KEYS, parsed)
        }
    return {}


def _clean_damage(text: str) -> str:
    return text.strip().rstrip(".").strip()


def parse_melee_action(name: str, text: str) -> dict | None:
    for pattern in _ACTION_PATTERNS:
        match = pattern.search(text)
        if match:
            return {
                "name": name,
                "attack_bonus": int(match.group(1)),
                "reach": match.group(2).strip().rstrip(","),
                "damage": _clean_damage(match.group(3)),
                "description": text.strip(),
            }

    bonus = _BONUS_RE.search(text)
    damage = _DAMAGE_CLAUSE_RE.search(text)
    if bonus is None and damage is None:
        return None
    reach = _REACH_RE.search(text)
    return {
        "name": name,
        "attack_bonus": int(bonus.group(1)) if bonus else 0,
        "reach": reach.group(0) if reach else "",
        "damage": _clean_damage(damage.group(0)) if damage else "",
        "description": text.strip(),
    }


def _read_size_type(companion: dict, text: str) -> None:
    size_type = _SIZE_TYPE_RE.search(text)
    if size_type:
        companion["size"] = size_type.group(1).title()
        companion["type"] = size_type.group(2)
        companion["alignment"] = size_type.group(3).strip()


def _read_armor_class(companion: dict, text: str) -> None:
    ac = _first_match(_AC_PATTERNS, text)
    if ac:
        companion["ac"] = int(ac)


def _read_hit_points(companion: dict, text: str) -> None:
    hp = _first_match(_HP_PATTERNS, text)
    if hp:
        companion["hp"] = re.sub(r"\s+", " ", hp)


def _read_labels(companion: dict, text: str) -> None:
    companion["speed"] = _label_value(text, "Speed")
    companion["senses"] = _label_value(text, "Senses")
    companion["languages"] = _label_value(text, "Languages")
    proficiency = re.search(r"\d+", _label_value(text, "Proficiency Bonus"))
    if proficiency:
        companion["proficiency_bonus"] = int(proficiency.group(0))


def _read_abilities(companion: dict, text: str) -> None:
    companion["abilities"] = parse_ability_row(text)


def _read_entries(companion: dict, text: str) -> None:
    for line in text.splitlines():
        entry = _NAMED_ENTRY_RE.match(line)
        if not entry:
            continue
        entry_name, body = entry.group(1).strip(), entry.group(2).strip()
        if _MELEE_CUE in body.lower():
            action = parse_melee_action(entry_name, body)
            if action is not None:
                companion["actions"].append(action)
                continue
        companion["features"].append({"name": entry_name, "description": body})


_STAT_BLOCK_STEPS = (
    ("size and type", _read_size_type),
    ("armor class", _read_armor_class),
    ("hit points", _read_hit_points),
    ("labels", _read_labels),
    ("abilities", _read_abilities),
    ("features and actions", _read_entries),
)


def parse_stat_block(name: str, text: str, warnings: list[str] | None = None) -> dict | None:
    """Parse a free-text stat block into a companion record.

    Each field group is read independently; a group that fails keeps its
    defaults and, when ``warnings`` is given, is reported there.

    Returns None when none of armor class, hit points or ability scores
    were recovered.
    """
    companion: dict = {
        "name": name,
        "size": "",
        "type": "",
        "alignment": "",
        "ac": 0,
        "hp": "",
        "speed": "",
        "abilities": {},
        "senses": "",
        "languages": "",
        "proficiency_bonus": 0,
        "features": [],
        "actions": [],
    }

    for step_name, step in _STAT_BLOCK_STEPS:
        try:
            step(companion, text)
        except Exception as e:
            logger.debug("Companion %r: %s step failed: %s", name, step_name, e)
            if warnings is not None:
                warnings.append(f"Failed to parse {step_name} of companion {name!r}: {e}")

    if companion["ac"] <= 0 and not companion["hp"] and not companion["abilities"]:
        return None
    return companion


def map_companions(graph: PropertyGraph) -> tuple[list[dict], list[str]]:
    """Parse companion stat blocks out of matching features.

    Returns:
        Tuple of (companions, warnings).
    """
    warnings: list[str] = []
    companions: list[dict] = []
    seen: set[str] = set()

    for node in graph.of_type("feature"):
        name = node_name(node)
        if not name or not is_active(node) or not is_companion_name(name):
            continue
        description = extract_text(node.get("description"))
        if not description.strip():
            logger.debug("Companion feature %r has no stat block", name)
            continue
        if name.lower() in seen:
            continue
        try:
            companion = parse_stat_block(name, description, warnings)
        except Exception as e:
            warnings.append(f"Failed to parse companion {name!r}: {e}")
            continue
        if companion is None:
            logger.debug("No stat block fields recovered for %r", name)
            continue
        seen.add(name.lower())
        companions.append(companion)

    return companions, warnings


__all__ = [
    "is_companion_name",
    "map_companions",
    "parse_ability_row",
    "parse_melee_action",
    "parse_stat_block",
]
