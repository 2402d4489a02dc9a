"""Swiftmend: instantly cash in a Rejuvenation or Regrowth."""
from __future__ import annotations

import math
from dataclasses import dataclass

from treesim.core.rng import RNG
from treesim.domain.defs import SwiftmendEffect
from treesim.domain.entities import ActiveHoT, CombatStats, RaidMember
from treesim.domain.healing import GIFT_OF_NATURE, HealResult, apply_heal, roll_crit

_EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class SwiftmendResult:
    success: bool
    consumed_spell_id: str | None = None
    heal: HealResult | None = None
    reason: str | None = None


def find_consumable_hot(target: RaidMember, effect: SwiftmendEffect, caster_id: str) -> ActiveHoT | None:
    """First HoT from the caster in the effect's priority order, if any."""
    for spell_id in effect.consumes:
        hot = target.find_hot(spell_id, caster_id)
        if hot is not None:
            return hot
    return None


def remaining_hot_value(hot: ActiveHoT) -> int:
    """Every remaining tick, a partial last one included, at the current rate."""
    ticks_left = math.ceil(hot.remaining_duration / hot.tick_interval - _EPSILON)
    return max(0, ticks_left) * hot.heal_per_tick


def apply_swiftmend(
    target: RaidMember,
    effect: SwiftmendEffect,
    caster: CombatStats,
    caster_id: str,
    rng: RNG,
    spell_id: str = "swiftmend",
) -> SwiftmendResult:
    hot = find_consumable_hot(target, effect, caster_id)
    if hot is None:
        return SwiftmendResult(success=False, reason="no_consumable_hot")

    amount = math.floor(remaining_hot_value(hot) * GIFT_OF_NATURE)
    amount, is_crit = roll_crit(amount, caster.crit_chance, rng)
    heal = apply_heal(target, amount, source_id=caster_id, spell_id=spell_id, kind="direct", is_crit=is_crit)
    target.remove_hot(hot)
    return SwiftmendResult(success=True, consumed_spell_id=hot.spell_id, heal=heal)
