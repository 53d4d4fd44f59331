"""Tests for feature, action and condition extraction."""

import pytest

from rollcloud.importers.dicecloud.features import (
    assemble_damage,
    dedupe_actions,
    drop_smite_variants,
    format_attack_roll,
    is_condition_toggle,
    map_features,
    normalize_action_name,
    toggle_enabled,
)
from rollcloud.importers.dicecloud.graph import PropertyGraph


class TestFormatAttackRoll:
    """Test attack roll formatting from numbers and formulas."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (5, "1d20+5"),
            (0, "1d20+0"),
            (-1, "1d20-1"),
            ("3", "1d20+3"),
            ("1d20+2d4", "1d20+2d4"),
            ({"value": 7, "calculation": "strengthMod + proficiencyBonus"}, "1d20+7"),
            ({"calculation": "4"}, "1d20+4"),
            (None, ""),
            ("", ""),
            (True, ""),
        ],
    )
    def test_format(self, raw, expected):
        assert format_attack_roll(raw) == expected


class TestActionNames:
    """Test action-economy suffix handling."""

    def test_single_suffix(self):
        assert normalize_action_name("Longsword (bonus action)") == "Longsword"

    def test_stacked_suffixes(self):
        assert normalize_action_name("Misty Step (no spell slot) (free)") == "Misty Step"

    def test_plain_name(self):
        assert normalize_action_name("  Fireball ") == "Fireball"

    def test_inner_parentheses_kept(self):
        assert normalize_action_name("Breath Weapon (Fire) (action)") == "Breath Weapon (Fire)"


class TestCollapse:
    """Test Divine Smite collapsing and action dedup."""

    def test_drop_smite_variants(self):
        entries = [
            {"name": "Divine Smite"},
            {"name": "Divine Smite (Longsword)"},
            {"name": "Divine Smite (Paladin, 2nd level)"},
            {"name": "Longsword Divine Smite"},
            {"name": "Longsword"},
        ]
        assert [e["name"] for e in drop_smite_variants(entries)] == ["Divine Smite", "Longsword"]

    def test_fireball_dedup(self):
        """Entries differing only by suffix merge under the shortest name."""
        actions = [
            {"name": "Fireball (bonus action)", "damage": "8d6", "damage_type": "fire", "source": "Wizard"},
            {"name": "Fireball", "damage": "", "damage_type": "", "source": "", "attack_roll": ""},
        ]
        merged = dedupe_actions(actions)
        assert len(merged) == 1
        assert merged[0]["name"] == "Fireball"
        assert merged[0]["damage"] == "8d6"
        assert merged[0]["damage_type"] == "fire"
        assert merged[0]["source"] == "Wizard"

    def test_dedup_keeps_first_seen_order(self):
        actions = [{"name": "Dagger"}, {"name": "Shortbow"}, {"name": "Dagger (bonus action)"}]
        assert [a["name"] for a in dedupe_actions(actions)] == ["Dagger", "Shortbow"]

    def test_dedup_does_not_overwrite(self):
        actions = [
            {"name": "Club", "damage": "1d4"},
            {"name": "Club (bonus)", "damage": "1d6"},
        ]
        assert dedupe_actions(actions)[0]["damage"] == "1d4"


class TestAssembleDamage:
    """Test summing damage properties below an action."""

    def test_sum_with_numeric_effects(self):
        graph = PropertyGraph.index([
            {"_id": "a1", "type": "action", "name": "Flame Tongue"},
            {
                "_id": "d1", "type": "damage", "parent": "a1", "damageType": "slashing",
                "amount": {
                    "calculation": "1d8",
                    "effects": [
                        {"name": "Dueling", "amount": {"value": 2}},
                        {"name": "Sneak Attack", "amount": {"calculation": "3d6"}},
                    ],
                },
            },
            {"_id": "d2", "type": "damage", "parent": "a1", "damageType": "fire", "amount": "2d6"},
            {"_id": "d3", "type": "damage", "parent": "a1", "damageType": "fire", "amount": "1", "inactive": True},
        ])
        damage, damage_type = assemble_damage(graph, graph.get("a1"))
        assert damage == "1d8+2+2d6"
        assert damage_type == "slashing + fire"

    def test_no_damage(self):
        graph = PropertyGraph.index([{"_id": "a1", "type": "action", "name": "Dash"}])
        assert assemble_damage(graph, graph.get("a1")) == ("", "")


class TestToggles:
    """Test toggle state and condition recognition."""

    def test_toggle_enabled(self):
        assert toggle_enabled({"enabled": False}) is False
        assert toggle_enabled({"toggleResult": 1}) is True
        assert toggle_enabled({}) is True
        assert toggle_enabled({"inactive": True}) is False

    @pytest.mark.parametrize("name", ["Bless", "Bardic Inspiration (d8)", "Guidance", "Disadvantage on attacks"])
    def test_condition_names(self, name):
        assert is_condition_toggle(name) is True

    @pytest.mark.parametrize("name", ["Rage", "Blessed Strikes", "Great Weapon Master"])
    def test_non_condition_names(self, name):
        assert is_condition_toggle(name) is False


class TestMapFeatures:
    """Test the single-pass feature, action and condition mapper."""

    def _graph(self):
        return PropertyGraph.index([
            {"_id": "race", "type": "race", "name": "Dragonborn"},
            {
                "_id": "f1", "type": "feature", "name": "Breath Weapon", "parent": "race",
                "damage": "2d6", "damageType": "fire", "summary": "Exhale {a ? 'fire' : 'ice'} destruction.",
                "uses": {"value": 1},
            },
            {"_id": "f2", "type": "feature", "name": "Quickened Spell", "roll": "1d4"},
            {"_id": "f3", "type": "feature", "name": "Darkvision"},
            {
                "_id": "a1", "type": "action", "name": "Longsword", "actionType": "action",
                "attackRoll": {"value": 5},
            },
            {"_id": "d1", "type": "damage", "parent": "a1", "damageType": "slashing", "amount": "1d8+3"},
            {"_id": "lvl", "type": "folder", "name": "11th Level"},
            {"_id": "a2", "type": "action", "name": "Improved Strike", "parent": "lvl"},
            {"_id": "t1", "type": "toggle", "name": "Sneak Attack", "enabled": True},
            {"_id": "d2", "type": "damage", "parent": "t1", "damageType": "piercing", "amount": "2d6"},
            {"_id": "t2", "type": "toggle", "name": "Bless", "enabled": True},
            {"_id": "e1", "type": "effect", "parent": "t2", "amount": "1d4", "stats": ["attack"]},
            {"_id": "t3", "type": "toggle", "name": "Guidance", "enabled": False},
            {"_id": "t4", "type": "toggle", "name": "Bardic Inspiration d8", "enabled": True},
            {"_id": "f4", "type": "feature", "name": "Lost Feature", "inactive": True},
        ])

    def test_features(self):
        fields, warnings = map_features(self._graph(), level=5)
        names = [f["name"] for f in fields["features"]]
        assert names == ["Breath Weapon", "Quickened Spell", "Darkvision"]
        breath = fields["features"][0]
        assert breath["summary"] == "Exhale destruction."
        assert breath["uses"] == 1
        assert breath["damage"] == "2d6"
        assert warnings == []

    def test_actions(self):
        fields, _ = map_features(self._graph(), level=5)
        actions = {a["name"]: a for a in fields["actions"]}
        assert list(actions) == ["Breath Weapon", "Longsword", "Sneak Attack"]
        assert actions["Breath Weapon"]["source"] == "Dragonborn"
        assert actions["Breath Weapon"]["damage_type"] == "fire"
        assert actions["Longsword"]["attack_roll"] == "1d20+5"
        assert actions["Longsword"]["damage"] == "1d8+3"
        assert actions["Longsword"]["damage_type"] == "slashing"
        assert actions["Sneak Attack"]["damage"] == "2d6"

    def test_level_gated_action_included_at_high_level(self):
        fields, _ = map_features(self._graph(), level=11)
        assert "Improved Strike" in [a["name"] for a in fields["actions"]]

    def test_conditions(self):
        fields, _ = map_features(self._graph(), level=5)
        assert fields["conditions"] == [
            {"name": "Bless", "effect": "1d4", "active": True},
            {"name": "Bardic Inspiration d8", "effect": "1d8", "active": True},
        ]

    def test_empty_graph(self):
        fields, warnings = map_features(PropertyGraph.index([]), level=1)
        assert fields == {"features": [], "actions": [], "conditions": []}
        assert warnings == []
