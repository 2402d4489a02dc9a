"""Structured events emitted by the cast and encounter services."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from treesim.core.types import AttackOutcome, EncounterStatus
from treesim.domain.healing import HealResult


@dataclass(slots=True)
class SimEvent:
    """Base simulation event."""


@dataclass(slots=True)
class CastRejectedEvent(SimEvent):
    spell_id: str
    reason: str
    target_id: str | None = None


@dataclass(slots=True)
class CastQueuedEvent(SimEvent):
    spell_id: str
    target_id: str | None
    replaced_spell_id: str | None = None


@dataclass(slots=True)
class CastStartedEvent(SimEvent):
    spell_id: str
    target_id: str | None
    cast_time: float


@dataclass(slots=True)
class SpellCastEvent(SimEvent):
    """A spell resolved (instant, or at the end of its cast bar)."""

    spell_id: str
    target_id: str | None
    mana_spent: int


@dataclass(slots=True)
class CastCancelledEvent(SimEvent):
    spell_id: str
    reason: str


@dataclass(slots=True)
class HealAppliedEvent(SimEvent):
    heal: HealResult


@dataclass(slots=True)
class HotAppliedEvent(SimEvent):
    spell_id: str
    target_id: str
    outcome: str
    stacks: int
    heal_per_tick: int


@dataclass(slots=True)
class ManaRestoredEvent(SimEvent):
    spell_id: str
    amount: int


@dataclass(slots=True)
class SelfDamageEvent(SimEvent):
    spell_id: str
    member_id: str
    amount: int


@dataclass(slots=True)
class BuffChangedEvent(SimEvent):
    buff: str
    active: bool


@dataclass(slots=True)
class AttackResolvedEvent(SimEvent):
    boss_id: str
    target_id: str
    outcome: AttackOutcome
    damage_dealt: int
    damage_mitigated: int


@dataclass(slots=True)
class RaidDamageEvent(SimEvent):
    target_ids: Tuple[str, ...]
    damage: int


@dataclass(slots=True)
class MeteorSlashEvent(SimEvent):
    """One Meteor Slash, split evenly before each target's stack multiplier."""

    boss_id: str
    tank_id: str | None
    target_ids: Tuple[str, ...]
    split_damage: int


@dataclass(slots=True)
class TankSwapEvent(SimEvent):
    from_tank_id: str
    to_tank_id: str


@dataclass(slots=True)
class DebuffAppliedEvent(SimEvent):
    member_id: str
    debuff: str
    stacks: int


@dataclass(slots=True)
class DebuffDamageEvent(SimEvent):
    member_id: str
    debuff: str
    amount: int


@dataclass(slots=True)
class DebuffExpiredEvent(SimEvent):
    member_id: str
    debuff: str


@dataclass(slots=True)
class BossDamagedEvent(SimEvent):
    boss_id: str
    amount: int
    remaining_health: int


@dataclass(slots=True)
class MemberDiedEvent(SimEvent):
    member_id: str
    member_name: str


@dataclass(slots=True)
class ChainHealEvent(SimEvent):
    healer_id: str
    target_ids: Tuple[str, ...]


@dataclass(slots=True)
class EncounterStartedEvent(SimEvent):
    encounter_id: str


@dataclass(slots=True)
class EncounterResolvedEvent(SimEvent):
    status: EncounterStatus
    elapsed: float
