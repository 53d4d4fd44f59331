"""
Inventory extraction from item and equipment properties.
"""

from __future__ import annotations

import logging

from .features import clean_text
from .graph import PropertyGraph, is_active, node_name
from .schema import ITEM_TYPES
from .values import as_int, extract_number

logger = logging.getLogger(__name__)


def _item_record(node: dict) -> dict:
    quantity = extract_number(node.get("quantity"))
    tags = node.get("tags")
    return {
        "name": node_name(node) or "Unnamed Item",
        "quantity": as_int(quantity, 1) if quantity is not None else 1,
        "weight": extract_number(node.get("weight")) or 0,
        "value": extract_number(node.get("value")) or 0,
        "equipped": bool(node.get("equipped")),
        "attuned": bool(node.get("attuned")),
        "tags": [t for t in tags if isinstance(t, str)] if isinstance(tags, list) else [],
        "description": clean_text(node.get("description")) or clean_text(node.get("summary")),
    }


def map_inventory(graph: PropertyGraph) -> tuple[list[dict], list[str]]:
    """Map active items in source order.

    Returns:
        Tuple of (items, warnings).
    """
    warnings: list[str] = []
    items: list[dict] = []
    for node in graph.of_type(*ITEM_TYPES):
        if not is_active(node):
            continue
        try:
            items.append(_item_record(node))
        except Exception as e:
            warnings.append(f"Failed to map item {node_name(node)!r}: {e}")
    logger.debug("Mapped %d inventory items", len(items))
    return items, warnings


__all__ = ["map_inventory"]
