"""Shared heal math and the single clamp sites for raid member health."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from treesim.core.rng import RNG
from treesim.core.types import HealKind
from treesim.domain.entities import RaidMember

# Always-on talent baseline for the druid.
EMPOWERED_REJUVENATION = 1.2  # HoT spell power coefficient bonus
GIFT_OF_NATURE = 1.1  # healing done bonus
CRIT_MULTIPLIER = 1.5


@dataclass(frozen=True, slots=True)
class HealResult:
    """Outcome of one heal landing on one member."""

    target_id: str
    source_id: str
    spell_id: str
    kind: HealKind
    amount: int
    effective: int
    overheal: int
    is_crit: bool


def roll_crit(amount: int, crit_chance: float, rng: RNG) -> Tuple[int, bool]:
    """Return the (possibly critical) amount and whether it crit."""
    if rng.roll_percent(crit_chance):
        return math.floor(amount * CRIT_MULTIPLIER), True
    return amount, False


def apply_heal(
    member: RaidMember,
    amount: int,
    *,
    source_id: str,
    spell_id: str,
    kind: HealKind,
    is_crit: bool = False,
) -> HealResult:
    """Heal a member, clamping at max health; the dead take nothing."""
    amount = max(0, amount)
    if member.is_dead:
        effective = 0
    else:
        effective = min(amount, member.missing_health)
        member.current_health += effective
    return HealResult(
        target_id=member.id,
        source_id=source_id,
        spell_id=spell_id,
        kind=kind,
        amount=amount,
        effective=effective,
        overheal=amount - effective,
        is_crit=is_crit,
    )


def apply_damage(member: RaidMember, amount: int) -> int:
    """Damage a member, never below zero. Death is permanent and drops all HoTs."""
    if member.is_dead:
        return 0
    taken = min(max(0, amount), member.current_health)
    member.current_health -= taken
    if member.current_health <= 0:
        member.current_health = 0
        member.is_dead = True
        member.hots.clear()
    return taken


# -----------------------
# Talented formulas
# -----------------------
def talented_hot_tick(base_per_tick: int, coefficient: float, spell_power: int, stacks: int = 1) -> int:
    return math.floor(
        (base_per_tick * stacks + coefficient * stacks * EMPOWERED_REJUVENATION * spell_power) * GIFT_OF_NATURE
    )


def talented_bloom(base_bloom: int, bloom_coefficient: float, spell_power: int) -> int:
    return math.floor((base_bloom + bloom_coefficient * EMPOWERED_REJUVENATION * spell_power) * GIFT_OF_NATURE)


def direct_heal_range(min_heal: int, max_heal: int, coefficient: float, spell_power: int) -> Tuple[int, int]:
    bonus = coefficient * spell_power
    return (
        math.floor((min_heal + bonus) * GIFT_OF_NATURE),
        math.floor((max_heal + bonus) * GIFT_OF_NATURE),
    )


def channel_tick(heal_per_tick: int, coefficient: float, spell_power: int) -> int:
    return math.floor((heal_per_tick + coefficient * spell_power) * GIFT_OF_NATURE)


def apply_direct_heal(
    target: RaidMember,
    min_heal: int,
    max_heal: int,
    coefficient: float,
    spell_power: int,
    crit_chance: float,
    rng: RNG,
    *,
    source_id: str,
    spell_id: str,
) -> HealResult:
    """Roll a talented direct heal (Healing Touch) and land it."""
    low, high = direct_heal_range(min_heal, max_heal, coefficient, spell_power)
    amount, is_crit = roll_crit(rng.randint(low, high), crit_chance, rng)
    return apply_heal(target, amount, source_id=source_id, spell_id=spell_id, kind="direct", is_crit=is_crit)
