"""Derived combat stats for the player caster."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CombatStats:
    """Replaced wholesale whenever gear or buffs change."""

    max_health: int
    max_mana: int
    spell_power: int
    crit_chance: float
    haste_percent: float
    mp5: int
    intellect: int
    spirit: int
