"""Encounter definitions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class RaidDamageDef:
    damage: int
    interval: float


@dataclass(frozen=True, slots=True)
class RandomTargetDamageDef:
    damage: int
    interval: float
    target_count: int


@dataclass(frozen=True, slots=True)
class MeteorSlashDef:
    """Cone hit split across everyone behind the active tank, leaving a stacking debuff."""

    damage: int
    interval: float
    debuff_duration: float
    debuff_modifier: float
    random_delay: float = 4.0
    swap_stacks: int = 3


@dataclass(frozen=True, slots=True)
class BurnDef:
    """Escalating DoT placed on a random unburnt member."""

    interval: float
    duration: float
    base_damage: int
    tick_interval: float
    escalation_interval: float


@dataclass(frozen=True, slots=True)
class TankPositionDef:
    angle: float
    radius: float


@dataclass(frozen=True, slots=True)
class RangedGroupDef:
    """Ranged members formed up in a cone behind one tank."""

    tank_index: int
    cone_spread: float
    cone_min_distance: float
    cone_max_distance: float


@dataclass(frozen=True, slots=True)
class EncounterDef:
    """Boss encounter and the damage pattern of its opening phase."""

    id: str
    name: str
    description: str
    duration: float
    boss_count: int
    boss_health: int | None
    tank_count: int
    enabled: bool
    tank_dps: int
    raid_damage: RaidDamageDef | None = None
    random_target_damage: RandomTargetDamageDef | None = None
    meteor_slash: MeteorSlashDef | None = None
    burn: BurnDef | None = None
    tank_positions: Tuple[TankPositionDef, ...] = ()
    ranged_groups: Tuple[RangedGroupDef, ...] = ()
    boss_names: Tuple[str, ...] = ()

    def boss_name(self, index: int) -> str:
        if index < len(self.boss_names):
            return self.boss_names[index]
        return self.name
