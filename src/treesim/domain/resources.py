"""Stat derivation, mana regeneration and haste math for the player caster."""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Sequence

from treesim.domain.defs import BuffEffect, SpellDef, StatBundle
from treesim.domain.entities import CombatStats

BASE_HEALTH = 4254
HEALTH_PER_STAMINA = 10
BASE_MANA = 2958
MANA_PER_INTELLECT = 15
HASTE_RATING_PER_PERCENT = 15.77
# per-5-second spirit regen constant
SPIRIT_REGEN_PER5_FACTOR = 0.00932715221261

BASE_GCD = 1.5
MIN_GCD = 1.0


def derive_combat_stats(bundle: StatBundle) -> CombatStats:
    """Build the full derived stat block from a raw stat bundle."""
    return CombatStats(
        max_health=BASE_HEALTH + bundle.stamina * HEALTH_PER_STAMINA,
        max_mana=BASE_MANA + bundle.intellect * MANA_PER_INTELLECT,
        spell_power=bundle.spell_power,
        crit_chance=bundle.crit_chance,
        haste_percent=bundle.haste_rating / HASTE_RATING_PER_PERCENT,
        mp5=bundle.mp5,
        intellect=bundle.intellect,
        spirit=bundle.spirit,
    )


def haste_percent_from_rating(rating: int) -> float:
    return rating / HASTE_RATING_PER_PERCENT


def calculate_gcd(haste_percent: float) -> float:
    """Haste shortens the global cooldown down to a hard 1.0 s floor."""
    return max(BASE_GCD / (1 + haste_percent / 100), MIN_GCD)


def calculate_cast_time(base_cast_time: float, haste_percent: float) -> float:
    if base_cast_time <= 0:
        return 0.0
    return base_cast_time / (1 + haste_percent / 100)


def mana_regen_per_second(
    stats: CombatStats,
    *,
    inside_five_second_rule: bool,
    innervate_multiplier: float | None,
    casting_fraction: float,
) -> float:
    """Mana per second from mp5 and spirit.

    ``innervate_multiplier`` is the spirit multiplier while Innervate runs
    (None when inactive); Innervate also lifts the five-second-rule penalty.
    """
    effective_spirit = stats.spirit * innervate_multiplier if innervate_multiplier else stats.spirit
    spirit_per5 = 5 * SPIRIT_REGEN_PER5_FACTOR * math.sqrt(stats.intellect) * effective_spirit
    if inside_five_second_rule and not innervate_multiplier:
        spirit_per5 *= casting_fraction
    return (stats.mp5 + spirit_per5) / 5


def effective_mana_cost(spell: SpellDef, tree_of_life: BuffEffect | None) -> int:
    """Mana cost after the Tree of Life reduction (pass None when not in form)."""
    if tree_of_life is None or not tree_of_life.mana_cost_reduction:
        return spell.mana_cost
    if spell.id not in tree_of_life.affected_spells:
        return spell.mana_cost
    return math.floor(spell.mana_cost * (1 - tree_of_life.mana_cost_reduction))


# -----------------------
# Raid buffs and consumables
# -----------------------
@dataclass(frozen=True, slots=True)
class RaidBuff:
    """Flat stat bonus granted by a consumable or raid buff."""

    name: str
    stamina: int = 0
    intellect: int = 0
    spirit: int = 0
    spell_power: int = 0
    mp5: int = 0
    multiplier: float = 1.0
    requires_party_spec: frozenset[str] = frozenset()
    requires_party_class: str | None = None


RAID_BUFFS: Dict[str, RaidBuff] = {
    buff.name: buff
    for buff in (
        RaidBuff("draenic-wisdom", intellect=30, spirit=30),
        RaidBuff("elixir-of-healing-power", spell_power=50),
        RaidBuff("golden-fish-sticks", spell_power=44, spirit=20),
        RaidBuff("brilliant-mana-oil", spell_power=25, mp5=12),
        RaidBuff("greater-blessing-of-wisdom", mp5=41),
        RaidBuff("prayer-of-fortitude", stamina=79),
        RaidBuff("arcane-brilliance", intellect=40),
        RaidBuff("gift-of-the-wild", stamina=14, intellect=14, spirit=14),
        RaidBuff("prayer-of-spirit", spirit=30),
        RaidBuff("greater-blessing-of-kings", multiplier=1.10),
        RaidBuff("mana-spring-totem", mp5=25, requires_party_class="shaman"),
        RaidBuff(
            "wrath-of-air-totem",
            spell_power=101,
            requires_party_spec=frozenset({"shaman-restoration", "shaman-elemental"}),
        ),
    )
}


def available_raid_buffs(
    names: Iterable[str],
    party_spec_ids: Sequence[str],
    party_class_ids: Sequence[str],
) -> list[str]:
    """Filter requested buff names down to the ones the player's group can provide."""
    available = []
    for name in names:
        buff = RAID_BUFFS[name]
        if buff.requires_party_class and buff.requires_party_class not in party_class_ids:
            continue
        if buff.requires_party_spec and not buff.requires_party_spec.intersection(party_spec_ids):
            continue
        available.append(name)
    return available


def apply_raid_buffs(bundle: StatBundle, names: Iterable[str]) -> StatBundle:
    """Add flat buffs first, then apply multipliers (floored) to sta/int/spi."""
    buffs = [RAID_BUFFS[name] for name in names]
    stamina = bundle.stamina + sum(buff.stamina for buff in buffs)
    intellect = bundle.intellect + sum(buff.intellect for buff in buffs)
    spirit = bundle.spirit + sum(buff.spirit for buff in buffs)
    for buff in buffs:
        if buff.multiplier != 1.0:
            stamina = math.floor(stamina * buff.multiplier)
            intellect = math.floor(intellect * buff.multiplier)
            spirit = math.floor(spirit * buff.multiplier)
    return replace(
        bundle,
        stamina=stamina,
        intellect=intellect,
        spirit=spirit,
        spell_power=bundle.spell_power + sum(buff.spell_power for buff in buffs),
        mp5=bundle.mp5 + sum(buff.mp5 for buff in buffs),
    )


def rescale_by_fraction(current: float, old_max: int, new_max: int) -> int:
    """Keep the same fill fraction when a pool's maximum changes."""
    if old_max <= 0:
        return new_max
    return math.floor(current / old_max * new_max)
