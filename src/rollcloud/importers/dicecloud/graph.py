"""
Index over the flat list of DiceCloud creature properties.

Properties arrive as an unordered list where each node points at its parent
and lists its ancestors, as a bare id or as ``{"id": ..., "collection": ...}``.
The index is built once per extraction so every later pass resolves
parent/ancestor relationships by id without rescanning the list.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable, Iterator

logger = logging.getLogger(__name__)

_PARENT_KEYS = ("parent", "parentRef", "parentId")
_ANCESTOR_KEYS = ("ancestors", "ancestorRefs")
_INACTIVE_KEYS = ("inactive", "disabled", "removed")


def ref_id(ref: Any) -> str | None:
    """Normalize a reference given as a bare id or as ``{"id": ...}``."""
    if isinstance(ref, str):
        return ref or None
    if isinstance(ref, dict):
        value = ref.get("id")
        if isinstance(value, str) and value:
            return value
    return None


def is_active(node: dict) -> bool:
    """False for properties flagged inactive, disabled or soft-removed."""
    return not any(node.get(key) for key in _INACTIVE_KEYS)


def node_type(node: dict) -> str:
    value = node.get("type")
    return value if isinstance(value, str) else ""


def node_name(node: dict) -> str:
    value = node.get("name")
    return value.strip() if isinstance(value, str) else ""


class PropertyGraph:
    """Id lookup and parent/child index over creature properties."""

    def __init__(self, nodes: Iterable[Any] | None = None) -> None:
        self._nodes: list[dict] = []
        self._by_id: dict[str, dict] = {}
        self._positions: dict[str, int] = {}
        self._children: dict[str, list[int]] = defaultdict(list)
        self._descendants: dict[str, list[int]] = defaultdict(list)

        for raw in nodes or []:
            if not isinstance(raw, dict):
                logger.debug("Skipping non-object property: %r", type(raw).__name__)
                continue
            position = len(self._nodes)
            self._nodes.append(raw)
            node_id = ref_id(raw.get("_id")) or ref_id(raw.get("id"))
            if node_id and node_id not in self._by_id:
                self._by_id[node_id] = raw
                self._positions[node_id] = position

        for position, node in enumerate(self._nodes):
            parent = self.parent_id(node)
            if parent is not None:
                self._children[parent].append(position)
            for ancestor in self.ancestor_ids(node):
                self._descendants[ancestor].append(position)

    @classmethod
    def index(cls, nodes: Iterable[Any] | None) -> "PropertyGraph":
        return cls(nodes)

    # -- lookups ----------------------------------------------------------

    @property
    def by_id(self) -> dict[str, dict]:
        return self._by_id

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[dict]:
        return iter(self._nodes)

    def get(self, node_id: str | None) -> dict | None:
        if node_id is None:
            return None
        return self._by_id.get(node_id)

    def name_of(self, node_id: str | None) -> str:
        node = self.get(node_id)
        return node_name(node) if node else ""

    def id_of(self, node: dict) -> str | None:
        return ref_id(node.get("_id")) or ref_id(node.get("id"))

    def of_type(self, *types: str) -> list[dict]:
        """Properties of the given types, in source order."""
        return [n for n in self._nodes if node_type(n) in types]

    # -- relationships ----------------------------------------------------

    @staticmethod
    def parent_id(node: dict) -> str | None:
        for key in _PARENT_KEYS:
            if key in node:
                parent = ref_id(node[key])
                if parent is not None:
                    return parent
        return None

    @staticmethod
    def ancestor_ids(node: dict) -> list[str]:
        """Ancestor ids, root first. Malformed ancestor lists yield []."""
        for key in _ANCESTOR_KEYS:
            refs = node.get(key)
            if refs is None:
                continue
            if not isinstance(refs, list):
                logger.debug("Malformed %s on property %r", key, node.get("name"))
                return []
            return [i for i in (ref_id(r) for r in refs) if i is not None]
        return []

    def children_of(self, parent_id: str | None) -> list[dict]:
        """Direct children only, in source order."""
        if parent_id is None:
            return []
        return [
            self._nodes[p]
            for p in self._children.get(parent_id, [])
            if self.id_of(self._nodes[p]) != parent_id
        ]

    def has_ancestor(self, node: dict, ancestor_id: str | None) -> bool:
        if ancestor_id is None or not isinstance(node, dict):
            return False
        return ancestor_id in self.ancestor_ids(node)

    def descendants_of(self, root_id: str | None) -> list[dict]:
        """Every node below ``root_id``, by ancestor chain or parent links.

        Cycles are cut by a visited set; the root itself is never returned.
        """
        if root_id is None:
            return []

        found: set[int] = set(self._descendants.get(root_id, []))

        visited: set[str] = {root_id}
        frontier = [root_id]
        while frontier:
            current = frontier.pop()
            for position in self._children.get(current, []):
                found.add(position)
                child_id = self.id_of(self._nodes[position])
                if child_id is not None and child_id not in visited:
                    visited.add(child_id)
                    frontier.append(child_id)

        return [
            self._nodes[p]
            for p in sorted(found)
            if self.id_of(self._nodes[p]) != root_id
        ]

    def nearest_ancestors(self, node: dict) -> list[str]:
        """Parent first, then ancestors from nearest to farthest, without repeats or self."""
        own_id = self.id_of(node)
        ordered: list[str] = []
        seen: set[str] = set()
        parent = self.parent_id(node)
        candidates = ([parent] if parent else []) + list(reversed(self.ancestor_ids(node)))
        for candidate in candidates:
            if candidate == own_id or candidate in seen:
                continue
            seen.add(candidate)
            ordered.append(candidate)
        return ordered

    def depth(self, node: dict) -> int:
        """Number of ancestors, falling back to walking parent links."""
        ancestors = self.ancestor_ids(node)
        if ancestors:
            return len(ancestors)
        depth = 0
        visited: set[str] = set()
        current = self.parent_id(node)
        while current is not None and current not in visited:
            visited.add(current)
            depth += 1
            parent = self.get(current)
            current = self.parent_id(parent) if parent else None
        return depth


__all__ = [
    "PropertyGraph",
    "ref_id",
    "is_active",
    "node_type",
    "node_name",
]
