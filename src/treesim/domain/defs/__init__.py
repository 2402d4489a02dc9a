"""Domain definition exports."""

from .avoidance_def import AvoidanceDef
from .class_spec_def import ClassSpecDef
from .encounter_def import (
    BurnDef,
    EncounterDef,
    MeteorSlashDef,
    RaidDamageDef,
    RandomTargetDamageDef,
    RangedGroupDef,
    TankPositionDef,
)
from .gear_def import GearPresetDef, StatBundle
from .raid_def import GROUP_SIZE, RAID_SIZE, RaidPresetDef
from .spell_def import (
    BuffEffect,
    ChannelEffect,
    DirectAndHotEffect,
    DirectHealEffect,
    HotEffect,
    ManaRestoreEffect,
    SpellDef,
    SpellEffect,
    SwiftmendEffect,
)

__all__ = [
    "AvoidanceDef",
    "BuffEffect",
    "BurnDef",
    "ChannelEffect",
    "ClassSpecDef",
    "DirectAndHotEffect",
    "DirectHealEffect",
    "EncounterDef",
    "GROUP_SIZE",
    "GearPresetDef",
    "HotEffect",
    "ManaRestoreEffect",
    "MeteorSlashDef",
    "RAID_SIZE",
    "RaidDamageDef",
    "RaidPresetDef",
    "RandomTargetDamageDef",
    "RangedGroupDef",
    "SpellDef",
    "SpellEffect",
    "StatBundle",
    "SwiftmendEffect",
    "TankPositionDef",
]
