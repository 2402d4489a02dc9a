"""Single-roll attack table used for boss swings against tanks."""
from __future__ import annotations

from dataclasses import dataclass

from treesim.core.rng import RNG
from treesim.core.types import AttackOutcome
from treesim.domain.defs import AvoidanceDef


@dataclass(frozen=True, slots=True)
class AttackResult:
    outcome: AttackOutcome
    damage_dealt: int
    damage_mitigated: int
    roll: float


def resolve_attack(base_damage: int, avoidance: AvoidanceDef, rng: RNG) -> AttackResult:
    """Classify one attack with a single roll in [0, 100).

    Thresholds accumulate in priority order (miss, dodge, parry, block); a roll
    past the block threshold is a hit. ``damage_dealt + damage_mitigated`` is
    always ``base_damage``.
    """
    roll = rng.random() * 100
    return classify_roll(roll, base_damage, avoidance)


def classify_roll(roll: float, base_damage: int, avoidance: AvoidanceDef) -> AttackResult:
    miss_cap = avoidance.miss
    dodge_cap = miss_cap + avoidance.dodge
    parry_cap = dodge_cap + avoidance.parry
    block_cap = parry_cap + avoidance.block

    if roll < miss_cap:
        return AttackResult("miss", 0, base_damage, roll)
    if roll < dodge_cap:
        return AttackResult("dodge", 0, base_damage, roll)
    if roll < parry_cap:
        return AttackResult("parry", 0, base_damage, roll)
    if roll < block_cap:
        dealt = max(0, base_damage - avoidance.block_value)
        return AttackResult("block", dealt, base_damage - dealt, roll)
    return AttackResult("hit", base_damage, 0, roll)


def resolve_untanked(base_damage: int) -> AttackResult:
    """Non-tanks take the swing in full without rolling."""
    return AttackResult("hit", base_damage, 0, 100.0)


def format_attack_result(result: AttackResult, attacker: str, target: str) -> str:
    if result.outcome == "miss":
        return f"{attacker}'s attack misses {target}"
    if result.outcome == "dodge":
        return f"{target} dodges {attacker}'s attack"
    if result.outcome == "parry":
        return f"{target} parries {attacker}'s attack"
    if result.outcome == "block":
        return (
            f"{attacker} hits {target} for {result.damage_dealt} "
            f"({result.damage_mitigated} blocked)"
        )
    return f"{attacker} hits {target} for {result.damage_dealt}"
