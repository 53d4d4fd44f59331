"""
Free-text cleanup for DiceCloud summaries and descriptions.

DiceCloud inlines computed expressions in braces. Whatever the engine did
not resolve reaches us as raw template syntax, e.g.
``Deals {level >= 5 ? '3d6' : '2d6'} damage`` or ``{[1, 2, 3][slotLevel]}``.
"""

import re

from .schema import LEVEL_REQUIREMENT_PATTERN

_TERNARY_RE = re.compile(r"\{[^{}]*\?[^{}]*\}")
_DOUBLE_INDEX_RE = re.compile(r"\{\s*\[[^{}]*\]\s*\[[^{}]*\]\s*\}")
_WHITESPACE_RE = re.compile(r"\s+")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def strip_template_expressions(text: str | None) -> str:
    """Remove unresolved ternary and double-index expressions.

    Nested expressions are peeled innermost-first until nothing changes.
    Text without such expressions is returned untouched; otherwise runs of
    whitespace left behind are collapsed and the result trimmed.
    """
    if not text or not isinstance(text, str):
        return ""

    current = text
    changed = False
    for _ in range(len(text) + 1):
        stripped = _DOUBLE_INDEX_RE.sub("", _TERNARY_RE.sub("", current))
        if stripped == current:
            break
        current = stripped
        changed = True

    if not changed:
        return text
    return _WHITESPACE_RE.sub(" ", current).strip()


def camel_to_title(name: str) -> str:
    """``highElf`` → ``High Elf``, ``bloodHunter`` → ``Blood Hunter``."""
    spaced = _CAMEL_BOUNDARY_RE.sub(" ", name.strip())
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


def required_level(text: str | None) -> int | None:
    """Return the level embedded as "11th Level" in ``text``, if any."""
    if not text:
        return None
    match = LEVEL_REQUIREMENT_PATTERN.search(text)
    if not match:
        return None
    return int(match.group(1))


def exceeds_level(text: str | None, level: int) -> bool:
    """True when ``text`` names a level requirement above ``level``."""
    needed = required_level(text)
    return needed is not None and needed > level


__all__ = [
    "strip_template_expressions",
    "camel_to_title",
    "required_level",
    "exceeds_level",
]
