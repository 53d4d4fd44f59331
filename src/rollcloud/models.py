"""
Data models for normalized RollCloud characters.

Attributes are snake_case; serialization uses the camelCase names the
chat renderer, overlay, field-filler and tabletop popover already consume.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HitPoints(CamelModel):
    current: int = 0
    max: int = 0


class HitDice(CamelModel):
    current: int = 0
    max: int = 0
    type: str = "d8"


class DeathSaves(CamelModel):
    successes: int = 0
    failures: int = 0


class SlotPool(CamelModel):
    """A numbered spell-slot pool."""
    current: int = 0
    max: int = 0


class PactMagicSlots(CamelModel):
    """Pact magic slots, recharging on a short rest.

    Kept apart from the numbered pools so spending one never drains the other.
    """
    current: int = 0
    max: int = 0
    level: int = 0


def _empty_slot_pools() -> dict[int, SlotPool]:
    return {level: SlotPool() for level in range(1, 10)}


class SpellSlots(CamelModel):
    """Numbered slot pools (1-9) plus the independent pact magic pool."""
    levels: dict[int, SlotPool] = Field(default_factory=_empty_slot_pools)
    pact_magic: PactMagicSlots = Field(default_factory=PactMagicSlots)

    def pool(self, level: int) -> SlotPool:
        """Return the numbered pool for a spell level (1-9) without adding one."""
        if not 1 <= level <= 9:
            raise ValueError(f"Spell slot level must be 1-9, got {level}")
        return self.levels.get(level, SlotPool())


class Resource(CamelModel):
    """A class resource pool (ki points, sorcery points, superiority dice...)."""
    name: str
    variable_name: str = ""
    current: float = 0
    max: float = 0


class Feature(CamelModel):
    name: str
    summary: str = ""
    description: str = ""
    uses: float | None = None
    roll: str | None = None
    damage: str | None = None


class Action(CamelModel):
    """An actionable entry: attack, damaging feature or utility action."""
    name: str
    action_type: str = "action"
    attack_roll: str = ""
    damage: str = ""
    damage_type: str = ""
    summary: str = ""
    description: str = ""
    source: str = ""
    uses: float | None = None


class DamageChoice(CamelModel):
    damage: str
    damage_type: str = ""


class DamageRoll(CamelModel):
    """One damage or healing roll of a spell.

    The first roll of an OR group carries every selectable choice in
    ``or_choices``; the remaining members are flagged ``is_or_group_member``.
    """
    damage: str
    damage_type: str = ""
    or_choices: list[DamageChoice] = Field(default_factory=list)
    is_or_group_member: bool = False


class Spell(CamelModel):
    name: str
    level: int = 0
    school: str = ""
    casting_time: str = ""
    range: str = ""
    components: str = ""
    duration: str = ""
    summary: str = ""
    description: str = ""
    source: str = ""
    concentration: bool = False
    ritual: bool = False
    prepared: bool = False
    attack_roll: str = ""
    damage_rolls: list[DamageRoll] = Field(default_factory=list)
    is_lifesteal: bool = False


class InventoryItem(CamelModel):
    name: str
    quantity: int = 1
    weight: float = 0
    value: float = 0
    equipped: bool = False
    attuned: bool = False
    tags: list[str] = Field(default_factory=list)
    description: str = ""


class Condition(CamelModel):
    """A toggled effect that changes downstream roll computation (Bless, Guidance...)."""
    name: str
    effect: str = "1d4"
    active: bool = True


class CompanionAbility(CamelModel):
    score: int
    modifier: int


class CompanionFeature(CamelModel):
    name: str
    description: str = ""


class CompanionAction(CamelModel):
    name: str
    attack_bonus: int = 0
    reach: str = ""
    damage: str = ""
    description: str = ""


class Companion(CamelModel):
    """A familiar, summon or companion parsed from a free-text stat block."""
    name: str
    size: str = ""
    type: str = ""
    alignment: str = ""
    ac: int = 0
    hp: str = ""
    speed: str = ""
    abilities: dict[str, CompanionAbility] = Field(default_factory=dict)
    senses: str = ""
    languages: str = ""
    proficiency_bonus: int = 0
    features: list[CompanionFeature] = Field(default_factory=list)
    actions: list[CompanionAction] = Field(default_factory=list)


class NormalizedCharacter(CamelModel):
    """Flat, self-consistent character derived from a DiceCloud creature."""
    id: str = ""
    name: str = ""
    race: str = ""
    character_class: str = Field(default="", alias="class")
    level: int = 0
    background: str = ""
    alignment: str = ""

    attributes: dict[str, int] = Field(default_factory=dict)
    attribute_mods: dict[str, int] = Field(default_factory=dict)
    # Two synonymous views kept for older consumers
    saves: dict[str, int] = Field(default_factory=dict)
    saving_throws: dict[str, int] = Field(default_factory=dict)
    skills: dict[str, int] = Field(default_factory=dict)

    hit_points: HitPoints = Field(default_factory=HitPoints)
    temporary_hp: int = Field(default=0, alias="temporaryHP")
    hit_dice: HitDice = Field(default_factory=HitDice)
    armor_class: int = 10
    speed: int = 30
    initiative: int = 0
    proficiency_bonus: int = 2
    death_saves: DeathSaves = Field(default_factory=DeathSaves)

    spell_slots: SpellSlots = Field(default_factory=SpellSlots)
    resources: list[Resource] = Field(default_factory=list)
    features: list[Feature] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    spells: list[Spell] = Field(default_factory=list)
    inventory: list[InventoryItem] = Field(default_factory=list)
    companions: list[Companion] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)

    other_variables: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """JSON-serializable camelCase projection for message-passing consumers."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "CamelModel",
    "HitPoints",
    "HitDice",
    "DeathSaves",
    "SlotPool",
    "PactMagicSlots",
    "SpellSlots",
    "Resource",
    "Feature",
    "Action",
    "DamageChoice",
    "DamageRoll",
    "Spell",
    "InventoryItem",
    "Condition",
    "CompanionAbility",
    "CompanionFeature",
    "CompanionAction",
    "Companion",
    "NormalizedCharacter",
]
