"""Tests for spell slots, pact magic and class resources."""

from rollcloud.importers.dicecloud.graph import PropertyGraph
from rollcloud.importers.dicecloud.resources import (
    apply_hit_point_resources,
    map_resources,
    map_spell_slots,
)


def _resource(node_id, name, variable_name="", attribute_type="resource", **extra):
    node = {
        "_id": node_id,
        "type": "attribute",
        "attributeType": attribute_type,
        "name": name,
        "variableName": variable_name,
    }
    node.update(extra)
    return node


class TestSpellSlots:
    """Test numbered slot pools and pact magic."""

    def test_numbered_slots(self):
        variables = {
            "slotLevel1": {"value": 3, "total": 4},
            "slotLevel2": {"value": 2},
        }
        slots, warnings = map_spell_slots(variables)
        assert sorted(slots["levels"]) == list(range(1, 10))
        assert slots["levels"][1] == {"current": 3, "max": 4}
        assert slots["levels"][2] == {"current": 2, "max": 2}
        assert slots["levels"][9] == {"current": 0, "max": 0}
        assert slots["pact_magic"] == {"current": 0, "max": 0, "level": 0}
        assert warnings == []

    def test_pact_magic_kept_separate(self):
        """Pact slots never add to the numbered pools."""
        variables = {
            "slotLevel2": {"value": 1, "total": 1},
            "pactMagicSlots": {"value": 2, "total": 2},
            "pactSlotLevel": {"value": 2},
        }
        slots, _ = map_spell_slots(variables, warlock_level=3)
        assert slots["levels"][2] == {"current": 1, "max": 1}
        assert slots["pact_magic"] == {"current": 2, "max": 2, "level": 2}

    def test_pact_level_from_warlock_level(self):
        variables = {"warlockSlots": {"value": 0, "total": 2}}
        slots, _ = map_spell_slots(variables, warlock_level=5)
        assert slots["pact_magic"] == {"current": 0, "max": 2, "level": 3}

    def test_pact_level_capped(self):
        variables = {"pactSlot": {"value": 4, "total": 4}}
        slots, _ = map_spell_slots(variables, warlock_level=20)
        assert slots["pact_magic"]["level"] == 5

    def test_pact_level_on_cell(self):
        variables = {"pactMagicSlots": {"value": 1, "total": 1, "slotLevel": 4}}
        slots, _ = map_spell_slots(variables, warlock_level=1)
        assert slots["pact_magic"]["level"] == 4

    def test_pact_level_unknown_warns(self):
        variables = {"pactMagicSlots": {"value": 1, "total": 1}}
        slots, warnings = map_spell_slots(variables)
        assert slots["pact_magic"]["level"] == 0
        assert warnings == ["Pact magic slots found in pactMagicSlots but slot level unknown"]


class TestMapResources:
    """Test resource pool extraction."""

    def test_resources(self):
        graph = PropertyGraph.index([
            _resource("r1", "Ki Points", "kiPoints", value=3, total=5),
            _resource("r2", "Lay on Hands", "layOnHands", baseValue=20, damage=5),
            _resource("r3", "Slot Level to Create", "slotLevelToCreate", value=1, total=5),
            _resource("r4", "Utility Counter", "utilityCounter", value=0, total=0),
            _resource("r5", "Ki Duplicate", "KIPOINTS", value=1, total=1),
            _resource("r6", "Strength", "strength", attribute_type="ability", value=16, total=16),
            _resource("r7", "Old Pool", "oldPool", value=1, total=1, inactive=True),
            _resource("r8", "Hit Points", "hitPoints", attribute_type="healthBar", value=12, total=20),
        ])
        resources, warnings = map_resources(graph)
        assert resources == [
            {"name": "Ki Points", "variable_name": "kiPoints", "current": 3, "max": 5},
            {"name": "Lay on Hands", "variable_name": "layOnHands", "current": 15, "max": 20},
            {"name": "Hit Points", "variable_name": "hitPoints", "current": 12, "max": 20},
        ]
        assert warnings == []

    def test_nested_value_cells(self):
        graph = PropertyGraph.index([
            _resource("r1", "Sorcery Points", "sorceryPoints", value={"value": 4}, total={"total": 6}),
        ])
        resources, _ = map_resources(graph)
        assert resources[0]["current"] == 4
        assert resources[0]["max"] == 6


class TestApplyHitPointResources:
    """Test copying HP-like resources onto the character."""

    def test_hit_points_and_temp(self):
        character = {"hit_points": {"current": 0, "max": 0}, "temporary_hp": 0}
        applied = apply_hit_point_resources(character, [
            {"name": "Ki Points", "variable_name": "kiPoints", "current": 3, "max": 5},
            {"name": "Hit Points", "variable_name": "hitPoints", "current": 20, "max": 30},
            {"name": "Temporary Hit Points", "variable_name": "", "current": 5, "max": 5},
        ])
        assert applied == ["hit_points", "temporary_hp"]
        assert character["hit_points"] == {"current": 20, "max": 30}
        assert character["temporary_hp"] == 5

    def test_no_match_leaves_character(self):
        character = {"hit_points": {"current": 7, "max": 9}}
        assert apply_hit_point_resources(character, []) == []
        assert character["hit_points"] == {"current": 7, "max": 9}
