"""Repository exports."""

from .avoidance_repo import AvoidanceRepository
from .class_specs_repo import ClassSpecsRepository
from .encounters_repo import EncountersRepository
from .gear_presets_repo import GearPresetsRepository
from .raid_presets_repo import RaidPresetsRepository
from .spells_repo import SpellsRepository

__all__ = [
    "AvoidanceRepository",
    "ClassSpecsRepository",
    "EncountersRepository",
    "GearPresetsRepository",
    "RaidPresetsRepository",
    "SpellsRepository",
]
