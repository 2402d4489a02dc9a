"""Lifebloom: a stacking HoT that blooms when it runs out."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from treesim.domain.defs import HotEffect
from treesim.domain.entities import ActiveHoT, CombatStats, RaidMember
from treesim.domain.healing import talented_bloom, talented_hot_tick

LifebloomOutcome = Literal["applied", "stacked", "refreshed"]


@dataclass(frozen=True, slots=True)
class LifebloomApplication:
    outcome: LifebloomOutcome
    stacks: int
    heal_per_tick: int
    bloom_heal: int


def apply_lifebloom(
    target: RaidMember,
    effect: HotEffect,
    caster: CombatStats,
    caster_id: str,
    spell_id: str = "lifebloom",
) -> LifebloomApplication:
    """Apply, stack or refresh the caster's Lifebloom on ``target``.

    Stacking and refreshing reset the remaining duration but leave the
    countdown to the next tick alone, so the tick rhythm is never lost.
    """
    bloom_heal = talented_bloom(effect.bloom_heal or 0, effect.bloom_coefficient or 0.0, caster.spell_power)
    existing = target.find_hot(spell_id, caster_id)

    if existing is None:
        heal_per_tick = talented_hot_tick(effect.heal_per_tick, effect.coefficient, caster.spell_power, 1)
        target.hots.append(
            ActiveHoT(
                spell_id=spell_id,
                source_id=caster_id,
                target_id=target.id,
                remaining_duration=effect.duration,
                tick_interval=effect.tick_interval,
                next_tick_in=effect.tick_interval,
                heal_per_tick=heal_per_tick,
                stacks=1,
                bloom_heal=bloom_heal,
                can_crit=True,
            )
        )
        return LifebloomApplication("applied", 1, heal_per_tick, bloom_heal)

    outcome: LifebloomOutcome = "refreshed"
    if existing.stacks < effect.max_stacks:
        existing.stacks += 1
        outcome = "stacked"
    existing.remaining_duration = effect.duration
    existing.heal_per_tick = talented_hot_tick(
        effect.heal_per_tick, effect.coefficient, caster.spell_power, existing.stacks
    )
    existing.bloom_heal = bloom_heal
    return LifebloomApplication(outcome, existing.stacks, existing.heal_per_tick, bloom_heal)
