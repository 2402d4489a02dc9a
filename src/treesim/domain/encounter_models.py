"""Encounter domain models and the read-only snapshot handed to presentation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from treesim.core.types import EncounterStatus, Role
from treesim.domain.caster_state import CasterState
from treesim.domain.defs import EncounterDef
from treesim.domain.entities import BossState, RaidMember
from treesim.domain.healing import HealResult
from treesim.domain.npc_healer import NpcHealerState


@dataclass(frozen=True, slots=True)
class ChainHealVisual:
    """Transient bounce line from an NPC healer through its chain targets."""

    id: int
    source_id: str
    target_ids: Tuple[str, ...]
    created_at: float


@dataclass(slots=True)
class EncounterState:
    """Everything the encounter loop owns; only the services mutate it."""

    encounter: EncounterDef
    raid: List[RaidMember]
    bosses: List[BossState]
    caster: CasterState
    player_id: str
    tank_ids: List[str] = field(default_factory=list)
    status: EncounterStatus = "not_started"
    elapsed: float = 0.0
    clock: float = 0.0
    selected_target_id: str | None = None
    npc_healers: List[NpcHealerState] = field(default_factory=list)
    chain_visuals: List[ChainHealVisual] = field(default_factory=list)
    next_visual_id: int = 0
    boss_attack_timer: float = 0.0
    random_damage_timer: float = 0.0
    raid_dps_timer: float = 0.0
    meteor_slash_timer: float = 0.0
    meteor_slash_tank_index: int = 0
    burn_timer: float = 0.0
    healing_done: Dict[str, int] = field(default_factory=dict)
    overhealing: Dict[str, int] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == "in_progress"

    @property
    def player(self) -> RaidMember:
        member = self.find_member(self.player_id)
        assert member is not None
        return member

    def find_member(self, member_id: str | None) -> RaidMember | None:
        if member_id is None:
            return None
        for member in self.raid:
            if member.id == member_id:
                return member
        return None

    def record_heal(self, heal: HealResult) -> None:
        self.healing_done[heal.source_id] = self.healing_done.get(heal.source_id, 0) + heal.effective
        self.overhealing[heal.source_id] = self.overhealing.get(heal.source_id, 0) + heal.overheal

    def party_of(self, member_id: str) -> List[RaidMember]:
        """Members sharing a 5-man group with ``member_id``."""
        member = self.find_member(member_id)
        if member is None:
            return []
        return [other for other in self.raid if other.group == member.group]


# -----------------------
# Snapshot views
# -----------------------
@dataclass(frozen=True, slots=True)
class HotView:
    spell_id: str
    source_id: str
    remaining: float
    stacks: int


@dataclass(frozen=True, slots=True)
class DebuffView:
    name: str
    remaining: float
    stacks: int


@dataclass(frozen=True, slots=True)
class MemberView:
    id: str
    name: str
    spec_id: str
    role: Role
    group: int
    current_health: int
    max_health: int
    is_dead: bool
    hots: Tuple[HotView, ...]
    debuffs: Tuple[DebuffView, ...] = ()


@dataclass(frozen=True, slots=True)
class BossView:
    id: str
    name: str
    current_health: int
    max_health: int
    tank_id: str | None


@dataclass(frozen=True, slots=True)
class CastBarView:
    spell_id: str
    target_id: str | None
    remaining: float
    total: float


@dataclass(frozen=True, slots=True)
class NpcCastView:
    healer_id: str
    spell_id: str
    target_id: str
    remaining: float
    total: float


@dataclass(frozen=True, slots=True)
class EncounterSnapshot:
    encounter_id: str
    status: EncounterStatus
    elapsed: float
    members: Tuple[MemberView, ...]
    bosses: Tuple[BossView, ...]
    mana: int
    max_mana: int
    gcd_remaining: float
    gcd_total: float
    cast_bar: CastBarView | None
    channel_bar: CastBarView | None
    queued_spell_id: str | None
    cooldowns: Dict[str, float]
    innervate_remaining: float
    tree_of_life_active: bool
    natures_swiftness_active: bool
    inside_five_second_rule: bool
    selected_target_id: str | None
    npc_casts: Tuple[NpcCastView, ...]
    chain_visuals: Tuple[ChainHealVisual, ...]
    healing_done: Dict[str, int]
    player_position: Tuple[float, float]
