"""Gear preset definitions."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class StatBundle:
    """Raw character stats before derivation."""

    stamina: int
    intellect: int
    spirit: int
    spell_power: int
    mp5: int
    crit_chance: float
    haste_rating: int


@dataclass(frozen=True, slots=True)
class GearPresetDef:
    id: str
    name: str
    description: str
    tier: str
    stats: StatBundle
