"""Player caster state: mana, global cooldown, cast bar, queue and buffs."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set

from treesim.core.types import MoveKey
from treesim.domain.defs import StatBundle
from treesim.domain.entities import CombatStats


@dataclass(slots=True)
class CastingState:
    """A cast-time spell in flight; ``remaining`` counts down to zero.

    ``mana_cost`` is fixed when the cast starts and charged on completion.
    """

    spell_id: str
    target_id: str | None
    cast_time: float
    remaining: float
    mana_cost: int = 0


@dataclass(slots=True)
class ChannelState:
    spell_id: str
    duration: float
    remaining: float
    tick_interval: float
    next_tick_in: float


@dataclass(slots=True)
class QueuedCast:
    """The single pending cast request; a newer request overwrites it."""

    spell_id: str
    target_id: str | None


@dataclass(slots=True)
class CasterState:
    """Authoritative mutable state of the player caster."""

    caster_id: str
    gear: StatBundle
    stats: CombatStats
    current_mana: float
    gcd_remaining: float = 0.0
    gcd_total: float = 0.0
    casting: CastingState | None = None
    channel: ChannelState | None = None
    queued: QueuedCast | None = None
    cooldowns: Dict[str, float] = field(default_factory=dict)
    innervate_remaining: float = 0.0
    innervate_multiplier: float = 1.0
    tree_of_life_active: bool = False
    natures_swiftness_active: bool = False
    time_since_mana_cast: float = 10.0
    x: float = 0.0
    y: float = 0.0
    movement_keys: Set[MoveKey] = field(default_factory=set)
    raid_buffs: List[str] = field(default_factory=list)

    @property
    def innervate_active(self) -> bool:
        return self.innervate_remaining > 0

    def cooldown_remaining(self, spell_id: str) -> float:
        return self.cooldowns.get(spell_id, 0.0)

    def spend_mana(self, amount: int) -> None:
        self.current_mana = max(0.0, self.current_mana - amount)

    def restore_mana(self, amount: float) -> float:
        """Add mana up to the pool maximum; returns what was actually gained."""
        before = self.current_mana
        self.current_mana = min(float(self.stats.max_mana), self.current_mana + max(0.0, amount))
        return self.current_mana - before
