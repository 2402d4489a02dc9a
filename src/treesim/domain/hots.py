"""Refreshable HoTs (Rejuvenation) and per-frame HoT advancement."""
from __future__ import annotations

from typing import Callable, List

from treesim.core.rng import RNG
from treesim.domain.defs import HotEffect
from treesim.domain.entities import ActiveHoT, CombatStats, RaidMember
from treesim.domain.healing import HealResult, apply_heal, roll_crit, talented_hot_tick

# Float drift from summing many frame deltas must not drop a HoT's last tick.
_EPSILON = 1e-9


def apply_periodic_heal(
    target: RaidMember,
    effect: HotEffect,
    caster: CombatStats,
    caster_id: str,
    spell_id: str,
) -> ActiveHoT:
    """Place a fresh, non-stacking HoT, replacing the caster's previous one."""
    existing = target.find_hot(spell_id, caster_id)
    if existing is not None:
        target.remove_hot(existing)
    hot = ActiveHoT(
        spell_id=spell_id,
        source_id=caster_id,
        target_id=target.id,
        remaining_duration=effect.duration,
        tick_interval=effect.tick_interval,
        next_tick_in=effect.tick_interval,
        heal_per_tick=talented_hot_tick(effect.heal_per_tick, effect.coefficient, caster.spell_power),
    )
    target.hots.append(hot)
    return hot


def advance_hot(
    hot: ActiveHoT,
    member: RaidMember,
    delta: float,
    caster_crit: float,
    rng: RNG,
) -> tuple[List[HealResult], bool]:
    """Consume every tick that falls inside ``delta``, then report expiry.

    A tick landing exactly on the final moment of the duration still happens
    before the HoT expires.
    """
    results: List[HealResult] = []
    remaining = delta
    while hot.next_tick_in <= remaining + _EPSILON and hot.next_tick_in <= hot.remaining_duration + _EPSILON:
        step = max(hot.next_tick_in, 0.0)
        remaining -= step
        hot.remaining_duration -= step
        amount, is_crit = hot.heal_per_tick, False
        if hot.can_crit:
            amount, is_crit = roll_crit(amount, caster_crit, rng)
        results.append(
            apply_heal(member, amount, source_id=hot.source_id, spell_id=hot.spell_id, kind="tick", is_crit=is_crit)
        )
        hot.next_tick_in = hot.tick_interval
    hot.next_tick_in -= remaining
    hot.remaining_duration -= remaining
    return results, hot.remaining_duration <= _EPSILON


def advance_member_hots(
    member: RaidMember,
    delta: float,
    crit_for_source: Callable[[str], float],
    rng: RNG,
) -> List[HealResult]:
    """Advance every HoT on ``member``; expired ones bloom (if they can) and drop."""
    results: List[HealResult] = []
    expired: List[ActiveHoT] = []
    for hot in list(member.hots):
        ticks, is_expired = advance_hot(hot, member, delta, crit_for_source(hot.source_id), rng)
        results.extend(ticks)
        if is_expired:
            expired.append(hot)
    for hot in expired:
        if hot.bloom_heal is not None:
            # the bloom crits off the target's chance, not the caster's
            amount, is_crit = roll_crit(hot.bloom_heal, member.crit_chance, rng)
            results.append(
                apply_heal(member, amount, source_id=hot.source_id, spell_id=hot.spell_id, kind="bloom", is_crit=is_crit)
            )
        member.remove_hot(hot)
    return results
