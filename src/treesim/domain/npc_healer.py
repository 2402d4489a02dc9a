"""Companion Restoration Shaman that keeps the raid topped up with Chain Heal.

The AI reads an immutable health snapshot and hands back heal intents; it
never touches raid members itself. The encounter loop applies the intents.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from treesim.core.rng import RNG
from treesim.domain.resources import calculate_cast_time, calculate_gcd, haste_percent_from_rating

RESTO_SHAMAN_SPEC_ID = "shaman-restoration"

BONUS_HEALING = 2400
HASTE_RATING = 320

PURIFICATION = 1.10
IMPROVED_CHAIN_HEAL = 1.20
CHAIN_HEAL_TALENT_MULTIPLIER = PURIFICATION * IMPROVED_CHAIN_HEAL

CHAIN_HEAL_SPELL_ID = "chain-heal"
CHAIN_HEAL_MIN = 826
CHAIN_HEAL_MAX = 943
CHAIN_HEAL_CAST_TIME = 2.5
CHAIN_HEAL_MAX_TARGETS = 3
CHAIN_HEAL_JUMP_REDUCTION = 0.5
CHAIN_HEAL_COEFFICIENT = 0.714

HEAL_THRESHOLD = 0.80
INITIAL_DELAY_MAX = 2.0
REACTION_DELAY_MAX = 0.5


@dataclass(frozen=True, slots=True)
class MemberHealth:
    """Read-only view of one member, as the AI sees it."""

    id: str
    current_health: int
    max_health: int
    is_dead: bool

    @property
    def deficit(self) -> int:
        return self.max_health - self.current_health


@dataclass(frozen=True, slots=True)
class ChainHealTarget:
    member_id: str
    amount: int
    jump: int


@dataclass(slots=True)
class NpcCast:
    spell_id: str
    target_id: str
    cast_time: float
    remaining: float
    targets: Tuple[ChainHealTarget, ...]


@dataclass(slots=True)
class NpcHealerState:
    """Per-healer bookkeeping owned by the encounter loop."""

    healer_id: str
    spec_id: str
    current_cast: NpcCast | None = None
    gcd_remaining: float = 0.0
    initial_delay: float = 0.0
    reaction_delay: float = 0.0


@dataclass(frozen=True, slots=True)
class HealIntent:
    source_id: str
    target_id: str
    spell_id: str
    amount: int


@dataclass(slots=True)
class NpcTickResult:
    heals: List[HealIntent] = field(default_factory=list)
    chain_target_ids: Tuple[str, ...] | None = None


def create_npc_healer(member_id: str, rng: RNG, spec_id: str = RESTO_SHAMAN_SPEC_ID) -> NpcHealerState:
    """New healer with a random 0-2 s opening delay so healers don't sync up."""
    return NpcHealerState(healer_id=member_id, spec_id=spec_id, initial_delay=rng.uniform(0.0, INITIAL_DELAY_MAX))


def chain_heal_amount(jump: int, base_heal: int, bonus_healing: int = BONUS_HEALING) -> int:
    falloff = CHAIN_HEAL_JUMP_REDUCTION**jump
    return math.floor(
        (base_heal * falloff + bonus_healing * CHAIN_HEAL_COEFFICIENT * falloff) * CHAIN_HEAL_TALENT_MULTIPLIER
    )


def select_chain_targets(
    members: Sequence[MemberHealth],
    primary_id: str,
    max_targets: int = CHAIN_HEAL_MAX_TARGETS,
) -> List[str]:
    """Primary target first, then the most injured living members."""
    primary = next((m for m in members if m.id == primary_id), None)
    if primary is None or primary.is_dead:
        return []
    others = sorted(
        (m for m in members if not m.is_dead and m.id != primary_id and m.deficit > 0),
        key=lambda m: m.deficit,
        reverse=True,
    )
    return [primary_id] + [m.id for m in others[: max_targets - 1]]


def find_best_chain_target(members: Sequence[MemberHealth]) -> str | None:
    """Pick the primary target whose chain would cover the most weighted deficit."""
    by_id = {m.id: m for m in members}
    best_id: str | None = None
    best_score = 0.0
    for member in members:
        if member.is_dead or member.deficit <= 0:
            continue
        score = sum(
            by_id[target_id].deficit * CHAIN_HEAL_JUMP_REDUCTION**jump
            for jump, target_id in enumerate(select_chain_targets(members, member.id))
        )
        if score > best_score:
            best_id, best_score = member.id, score
    return best_id


def should_cast(state: NpcHealerState, members: Sequence[MemberHealth]) -> bool:
    if state.current_cast is not None or state.gcd_remaining > 0:
        return False
    return any(
        not m.is_dead and m.max_health > 0 and m.current_health / m.max_health < HEAL_THRESHOLD for m in members
    )


def plan_chain_heal(members: Sequence[MemberHealth], primary_id: str, rng: RNG) -> NpcCast:
    """Fix the full heal distribution at cast start; one base roll feeds every jump."""
    base_heal = rng.randint(CHAIN_HEAL_MIN, CHAIN_HEAL_MAX)
    haste = haste_percent_from_rating(HASTE_RATING)
    cast_time = calculate_cast_time(CHAIN_HEAL_CAST_TIME, haste)
    targets = tuple(
        ChainHealTarget(member_id=target_id, amount=chain_heal_amount(jump, base_heal), jump=jump)
        for jump, target_id in enumerate(select_chain_targets(members, primary_id))
    )
    return NpcCast(
        spell_id=CHAIN_HEAL_SPELL_ID,
        target_id=primary_id,
        cast_time=cast_time,
        remaining=cast_time,
        targets=targets,
    )


def tick_npc_healer(
    state: NpcHealerState,
    members: Sequence[MemberHealth],
    delta: float,
    rng: RNG,
) -> NpcTickResult:
    result = NpcTickResult()
    if state.initial_delay > 0:
        state.initial_delay = max(0.0, state.initial_delay - delta)
        return result
    if state.reaction_delay > 0:
        state.reaction_delay = max(0.0, state.reaction_delay - delta)
    if state.gcd_remaining > 0:
        state.gcd_remaining = max(0.0, state.gcd_remaining - delta)

    cast = state.current_cast
    if cast is not None:
        cast.remaining -= delta
        if cast.remaining <= 0:
            result.heals.extend(
                HealIntent(state.healer_id, target.member_id, cast.spell_id, target.amount) for target in cast.targets
            )
            result.chain_target_ids = tuple(target.member_id for target in cast.targets)
            state.current_cast = None
            state.reaction_delay = rng.uniform(0.0, REACTION_DELAY_MAX)

    if state.current_cast is None and state.reaction_delay <= 0 and should_cast(state, members):
        primary_id = find_best_chain_target(members)
        if primary_id is not None:
            state.current_cast = plan_chain_heal(members, primary_id, rng)
            state.gcd_remaining = calculate_gcd(haste_percent_from_rating(HASTE_RATING))
    return result
