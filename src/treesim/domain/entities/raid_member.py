"""Raid roster entities and their active heal-over-time effects."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from treesim.core.types import Role


@dataclass(slots=True)
class ActiveHoT:
    """A ticking heal on one member, unique per (spell, source, target)."""

    spell_id: str
    source_id: str
    target_id: str
    remaining_duration: float
    tick_interval: float
    next_tick_in: float
    heal_per_tick: int
    stacks: int = 1
    bloom_heal: int | None = None
    can_crit: bool = False


@dataclass(slots=True)
class ActiveDebuff:
    """A boss-applied debuff; stacking ones raise damage taken per stack."""

    name: str
    remaining_duration: float
    stacks: int = 1
    damage_taken_modifier: float = 0.0
    tick_interval: float | None = None
    next_tick_in: float | None = None


@dataclass(slots=True)
class RaidMember:
    """One slot of the raid roster."""

    id: str
    name: str
    spec_id: str
    class_id: str
    role: Role
    group: int
    max_health: int
    current_health: int
    crit_chance: float = 0.0
    is_melee: bool = False
    hots: List[ActiveHoT] = field(default_factory=list)
    debuffs: List[ActiveDebuff] = field(default_factory=list)
    is_dead: bool = False

    @property
    def is_alive(self) -> bool:
        return not self.is_dead

    @property
    def missing_health(self) -> int:
        return self.max_health - self.current_health

    def find_hot(self, spell_id: str, source_id: str) -> ActiveHoT | None:
        for hot in self.hots:
            if hot.spell_id == spell_id and hot.source_id == source_id:
                return hot
        return None

    def remove_hot(self, hot: ActiveHoT) -> None:
        self.hots = [entry for entry in self.hots if entry is not hot]

    def find_debuff(self, name: str) -> ActiveDebuff | None:
        for debuff in self.debuffs:
            if debuff.name == name:
                return debuff
        return None
