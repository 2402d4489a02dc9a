"""Spell catalog entries and their tagged effect payloads."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple, Union

from treesim.core.types import BuffType


@dataclass(frozen=True, slots=True)
class DirectHealEffect:
    min_heal: int
    max_heal: int
    coefficient: float
    effect_type: Literal["direct_heal"] = "direct_heal"


@dataclass(frozen=True, slots=True)
class HotEffect:
    """Periodic heal; the bloom fields are only set for Lifebloom."""

    duration: float
    tick_interval: float
    heal_per_tick: int
    coefficient: float
    max_stacks: int = 1
    bloom_heal: int | None = None
    bloom_coefficient: float | None = None
    effect_type: Literal["hot"] = "hot"


@dataclass(frozen=True, slots=True)
class DirectAndHotEffect:
    min_heal: int
    max_heal: int
    coefficient: float
    hot_duration: float
    hot_tick_interval: float
    hot_heal_per_tick: int
    hot_coefficient: float
    effect_type: Literal["direct_and_hot"] = "direct_and_hot"


@dataclass(frozen=True, slots=True)
class ChannelEffect:
    duration: float
    tick_interval: float
    heal_per_tick: int
    coefficient: float
    targets_party: bool = True
    effect_type: Literal["channel"] = "channel"


@dataclass(frozen=True, slots=True)
class BuffEffect:
    duration: float
    buff_type: BuffType
    regen_multiplier: float | None = None
    mana_cost_reduction: float | None = None
    affected_spells: Tuple[str, ...] = ()
    effect_type: Literal["buff"] = "buff"


@dataclass(frozen=True, slots=True)
class SwiftmendEffect:
    consumes: Tuple[str, ...]
    effect_type: Literal["swiftmend"] = "swiftmend"


@dataclass(frozen=True, slots=True)
class ManaRestoreEffect:
    min_mana: int
    max_mana: int
    self_damage_min: int | None = None
    self_damage_max: int | None = None
    effect_type: Literal["mana_restore"] = "mana_restore"


SpellEffect = Union[
    DirectHealEffect,
    HotEffect,
    DirectAndHotEffect,
    ChannelEffect,
    BuffEffect,
    SwiftmendEffect,
    ManaRestoreEffect,
]


@dataclass(frozen=True, slots=True)
class SpellDef:
    """Static catalog entry for a castable spell or consumable."""

    id: str
    name: str
    description: str
    mana_cost: int
    cast_time: float
    cooldown: float
    is_gcd: bool
    effect: SpellEffect

    @property
    def is_self_cast(self) -> bool:
        """Mana restores, self buffs and party channels need no target."""
        return self.effect.effect_type in {"mana_restore", "buff", "channel"}
