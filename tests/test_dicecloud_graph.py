"""Tests for the DiceCloud property index."""

import time

from rollcloud.importers.dicecloud.graph import (
    PropertyGraph,
    is_active,
    node_name,
    ref_id,
)


def _node(node_id, name="", type_="feature", parent=None, ancestors=None, **extra):
    node = {"_id": node_id, "name": name, "type": type_}
    if parent is not None:
        node["parent"] = {"id": parent, "collection": "creatureProperties"}
    if ancestors is not None:
        node["ancestors"] = [{"id": a, "collection": "creatureProperties"} for a in ancestors]
    node.update(extra)
    return node


class TestRefHelpers:
    """Test reference normalization and node flags."""

    def test_ref_id_shapes(self):
        assert ref_id("abc") == "abc"
        assert ref_id({"id": "abc", "collection": "creatures"}) == "abc"
        assert ref_id({"collection": "creatures"}) is None
        assert ref_id("") is None
        assert ref_id(12) is None

    def test_is_active(self):
        assert is_active({"name": "x"}) is True
        assert is_active({"inactive": True}) is False
        assert is_active({"disabled": True}) is False
        assert is_active({"removed": True}) is False

    def test_node_name_trims(self):
        assert node_name({"name": "  Shield "}) == "Shield"
        assert node_name({"name": None}) == ""


class TestIndex:
    """Test id lookup and source order."""

    def test_lookup_and_order(self):
        graph = PropertyGraph.index([
            _node("a", "Alpha", "class"),
            "not-a-node",
            _node("b", "Beta", "spell"),
            _node("c", "Gamma", "spell"),
        ])
        assert len(graph) == 3
        assert graph.get("b")["name"] == "Beta"
        assert graph.name_of("missing") == ""
        assert [n["name"] for n in graph.of_type("spell")] == ["Beta", "Gamma"]

    def test_empty_input(self):
        graph = PropertyGraph.index(None)
        assert len(graph) == 0
        assert graph.descendants_of("a") == []


class TestRelationships:
    """Test parent, ancestor and descendant resolution."""

    def test_children_of(self):
        graph = PropertyGraph.index([
            _node("root", "Root"),
            _node("c1", "One", parent="root"),
            _node("c2", "Two", parent="root"),
            _node("g1", "Grandchild", parent="c1"),
        ])
        assert [n["name"] for n in graph.children_of("root")] == ["One", "Two"]
        assert graph.children_of(None) == []

    def test_descendants_by_ancestors_and_parents(self):
        """Nodes linked only by ancestor lists or only by parent links are both found."""
        graph = PropertyGraph.index([
            _node("root", "Root"),
            _node("x", "ByAncestors", ancestors=["root"]),
            _node("y", "ByParent", parent="root"),
            _node("z", "Deep", parent="y"),
            _node("other", "Unrelated"),
        ])
        names = [n["name"] for n in graph.descendants_of("root")]
        assert names == ["ByAncestors", "ByParent", "Deep"]

    def test_cycle_terminates(self):
        """A parent cycle is walked once and the root is never returned."""
        graph = PropertyGraph.index([
            _node("a", "A", parent="b"),
            _node("b", "B", parent="a"),
        ])
        assert [n["name"] for n in graph.descendants_of("a")] == ["B"]
        assert graph.depth(graph.get("a")) == 2

    def test_self_parent_not_a_child(self):
        graph = PropertyGraph.index([_node("a", "A", parent="a")])
        assert graph.children_of("a") == []
        assert graph.descendants_of("a") == []

    def test_malformed_ancestors(self):
        """A non-list ancestor field is treated as no ancestors."""
        node = _node("a", "A")
        node["ancestors"] = "garbage"
        graph = PropertyGraph.index([node])
        assert graph.ancestor_ids(node) == []
        assert graph.has_ancestor(node, "root") is False

    def test_nearest_ancestors_order(self):
        """Parent first, then ancestors nearest to farthest, skipping self and repeats."""
        node = _node("leaf", "Leaf", parent="mid", ancestors=["root", "mid", "leaf"])
        graph = PropertyGraph.index([node])
        assert graph.nearest_ancestors(node) == ["mid", "root"]

    def test_depth_from_ancestors(self):
        node = _node("leaf", "Leaf", ancestors=["root", "mid"])
        graph = PropertyGraph.index([node])
        assert graph.depth(node) == 2


class TestLargeGraph:
    """Test descendant lookups on sheets with thousands of properties."""

    def test_descendants_indexed_once(self):
        nodes = [_node("root", "Wizard", type_="class")]
        for i in range(3000):
            nodes.append(_node(f"s{i}", f"Spell {i}", type_="spell", parent="root", ancestors=["root"]))
            nodes.append(_node(f"d{i}", type_="damage", ancestors=["root", f"s{i}"]))
        graph = PropertyGraph.index(nodes)

        start = time.perf_counter()
        for i in range(3000):
            assert [graph.id_of(n) for n in graph.descendants_of(f"s{i}")] == [f"d{i}"]
        elapsed = time.perf_counter() - start

        assert elapsed < 2.0, f"3000 descendant lookups took {elapsed:.2f}s (budget: 2.0s)"
        assert len(graph.descendants_of("root")) == 6000
