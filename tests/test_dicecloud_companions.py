"""Tests for companion stat-block parsing."""

from unittest.mock import patch

import pytest

from rollcloud.importers.dicecloud.companions import (
    is_companion_name,
    map_companions,
    parse_ability_row,
    parse_melee_action,
    parse_stat_block,
)
from rollcloud.importers.dicecloud.graph import PropertyGraph

OWL_BLOCK = (
    "*Tiny beast, unaligned*\n\n"
    "**Armor Class** 11\n"
    "**Hit Points** 1 (1d4 - 1)\n"
    "**Speed** 5 ft., fly 60 ft.\n\n"
    "| STR | DEX | CON | INT | WIS | CHA |\n"
    "|:---:|:---:|:---:|:---:|:---:|:---:|\n"
    "| 3 (−4) | 13 (+1) | 8 (−1) | 2 (−4) | 12 (+1) | 7 (−2) |\n\n"
    "**Senses** darkvision 120 ft., passive Perception 13\n"
    "**Languages** understands Common but can't speak\n"
    "**Proficiency Bonus** +2\n\n"
    "***Flyby.*** The owl doesn't provoke opportunity attacks when it flies out of an enemy's reach.\n\n"
    "***Talons.*** *Melee Weapon Attack:* +3 to hit, reach 5 ft., one target. *Hit:* 1 slashing damage."
)

DEFENDER_BLOCK = (
    "Medium construct, neutral\n"
    "Armor Class: 15 (natural armor)\n"
    "Hit Points: 22\n"
    "Speed: 40 ft.\n\n"
    "***Force-Empowered Rend.*** Melee Weapon Attack: +5 to hit, reach 5 ft., one target you can see. "
    "Hit: 1d8 + 2 force damage."
)


class TestCompanionNames:

    @pytest.mark.parametrize("name", ["Owl Familiar", "Find Familiar", "Steel Defender", "Primal Companion", "Summon Beast"])
    def test_companion_names(self, name):
        assert is_companion_name(name) is True

    @pytest.mark.parametrize("name", ["Wild Shape", "Darkvision", "Paramount Strike"])
    def test_other_names(self, name):
        assert is_companion_name(name) is False


class TestParseAbilityRow:
    """Test ability table parsing."""

    def test_unicode_minus(self):
        abilities = parse_ability_row(OWL_BLOCK)
        assert abilities["str"] == {"score": 3, "modifier": -4}
        assert abilities["dex"] == {"score": 13, "modifier": 1}
        assert abilities["cha"] == {"score": 7, "modifier": -2}

    def test_ascii_row(self):
        row = "| 10 (+0) | 14 (+2) | 12 (+1) | 4 (-3) | 10 (+0) | 6 (-2) |"
        abilities = parse_ability_row(row)
        assert list(abilities) == ["str", "dex", "con", "int", "wis", "cha"]
        assert abilities["int"] == {"score": 4, "modifier": -3}

    def test_no_table(self):
        assert parse_ability_row("STR 10, DEX 12") == {}


class TestParseMeleeAction:
    """Test melee attack lines."""

    def test_standard_line(self):
        action = parse_melee_action("Bite", "Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 7 (2d4 + 2) piercing damage.")
        assert action["attack_bonus"] == 4
        assert action["reach"] == "reach 5 ft."
        assert action["damage"] == "7 (2d4 + 2) piercing damage"

    def test_fallback_without_reach(self):
        action = parse_melee_action("Claw", "Melee Weapon Attack: +4 to hit, one creature. Hit: 7 (2d4 + 2) slashing damage.")
        assert action["attack_bonus"] == 4
        assert action["reach"] == ""
        assert action["damage"] == "7 (2d4 + 2) slashing damage"

    def test_not_an_attack(self):
        assert parse_melee_action("Bark", "It barks loudly.") is None


class TestParseStatBlock:
    """Test whole stat block parsing."""

    def test_owl(self):
        owl = parse_stat_block("Owl Familiar", OWL_BLOCK)
        assert owl["size"] == "Tiny"
        assert owl["type"] == "beast"
        assert owl["alignment"] == "unaligned"
        assert owl["ac"] == 11
        assert owl["hp"] == "1 (1d4 - 1)"
        assert owl["speed"] == "5 ft., fly 60 ft."
        assert owl["senses"] == "darkvision 120 ft., passive Perception 13"
        assert owl["languages"] == "understands Common but can't speak"
        assert owl["proficiency_bonus"] == 2
        assert [f["name"] for f in owl["features"]] == ["Flyby"]
        assert owl["actions"] == [{
            "name": "Talons",
            "attack_bonus": 3,
            "reach": "reach 5 ft.",
            "damage": "1 slashing damage",
            "description": "*Melee Weapon Attack:* +3 to hit, reach 5 ft., one target. *Hit:* 1 slashing damage.",
        }]

    def test_plain_labels(self):
        defender = parse_stat_block("Steel Defender", DEFENDER_BLOCK)
        assert defender["size"] == "Medium"
        assert defender["type"] == "construct"
        assert defender["alignment"] == "neutral"
        assert defender["ac"] == 15
        assert defender["hp"] == "22"
        assert defender["speed"] == "40 ft."
        assert defender["abilities"] == {}
        assert defender["actions"][0]["name"] == "Force-Empowered Rend"
        assert defender["actions"][0]["attack_bonus"] == 5
        assert defender["actions"][0]["damage"] == "1d8 + 2 force damage"

    def test_failing_step_keeps_other_fields(self):
        """A broken ability table still leaves armor class, hit points and actions."""
        warnings = []
        with patch(
            "rollcloud.importers.dicecloud.companions.parse_ability_row",
            side_effect=ValueError("bad table"),
        ):
            owl = parse_stat_block("Owl Familiar", OWL_BLOCK, warnings)

        assert owl is not None
        assert owl["ac"] == 11
        assert owl["hp"] == "1 (1d4 - 1)"
        assert owl["abilities"] == {}
        assert owl["actions"][0]["name"] == "Talons"
        assert warnings == ["Failed to parse abilities of companion 'Owl Familiar': bad table"]

    def test_nothing_recovered(self):
        assert parse_stat_block("Familiar", "A loyal little friend.") is None


class TestMapCompanions:
    """Test companion discovery among features."""

    def test_map(self):
        graph = PropertyGraph.index([
            {"_id": "f1", "type": "feature", "name": "Owl Familiar", "description": OWL_BLOCK},
            {"_id": "f2", "type": "feature", "name": "Owl Familiar", "description": {"value": DEFENDER_BLOCK}},
            {"_id": "f3", "type": "feature", "name": "Darkvision", "description": OWL_BLOCK},
            {"_id": "f4", "type": "feature", "name": "Steel Defender", "description": {"text": DEFENDER_BLOCK}},
            {"_id": "f5", "type": "feature", "name": "Find Familiar", "description": OWL_BLOCK, "inactive": True},
        ])
        companions, warnings = map_companions(graph)
        assert [c["name"] for c in companions] == ["Owl Familiar", "Steel Defender"]
        assert companions[0]["ac"] == 11
        assert warnings == []

    def test_empty_description(self):
        """A companion feature with no stat block yields nothing."""
        graph = PropertyGraph.index([
            {"_id": "f1", "type": "feature", "name": "Animal Companion", "description": ""},
        ])
        assert map_companions(graph) == ([], [])

    def test_step_failure_reported(self):
        graph = PropertyGraph.index([
            {"_id": "f1", "type": "feature", "name": "Owl Familiar", "description": OWL_BLOCK},
        ])
        with patch(
            "rollcloud.importers.dicecloud.companions.parse_melee_action",
            side_effect=RuntimeError("boom"),
        ):
            companions, warnings = map_companions(graph)

        assert len(companions) == 1
        assert companions[0]["ac"] == 11
        assert companions[0]["abilities"]["dex"]["score"] == 13
        assert warnings == ["Failed to parse features and actions of companion 'Owl Familiar': boom"]
