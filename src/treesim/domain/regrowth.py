"""Regrowth: a direct heal with a large crit bonus plus a non-stacking HoT."""
from __future__ import annotations

from dataclasses import dataclass

from treesim.core.rng import RNG
from treesim.domain.defs import DirectAndHotEffect
from treesim.domain.entities import ActiveHoT, CombatStats, RaidMember
from treesim.domain.healing import HealResult, apply_heal, direct_heal_range, roll_crit, talented_hot_tick

REGROWTH_CRIT_BONUS = 50.0


@dataclass(frozen=True, slots=True)
class RegrowthResult:
    direct: HealResult
    hot_heal_per_tick: int


def apply_regrowth(
    target: RaidMember,
    effect: DirectAndHotEffect,
    caster: CombatStats,
    caster_id: str,
    rng: RNG,
    spell_id: str = "regrowth",
) -> RegrowthResult:
    low, high = direct_heal_range(effect.min_heal, effect.max_heal, effect.coefficient, caster.spell_power)
    amount, is_crit = roll_crit(rng.randint(low, high), caster.crit_chance + REGROWTH_CRIT_BONUS, rng)
    direct = apply_heal(target, amount, source_id=caster_id, spell_id=spell_id, kind="direct", is_crit=is_crit)

    existing = target.find_hot(spell_id, caster_id)
    if existing is not None:
        target.remove_hot(existing)
    heal_per_tick = talented_hot_tick(effect.hot_heal_per_tick, effect.hot_coefficient, caster.spell_power)
    target.hots.append(
        ActiveHoT(
            spell_id=spell_id,
            source_id=caster_id,
            target_id=target.id,
            remaining_duration=effect.hot_duration,
            tick_interval=effect.hot_tick_interval,
            next_tick_in=effect.hot_tick_interval,
            heal_per_tick=heal_per_tick,
        )
    )
    return RegrowthResult(direct=direct, hot_heal_per_tick=heal_per_tick)
