"""Factories turning a roster and an encounter definition into runtime entities."""
from __future__ import annotations

from typing import List, Sequence

from treesim.core.config import DEFAULT_CONFIG, SimulationConfig
from treesim.core.rng import RNG
from treesim.data.repositories import ClassSpecsRepository
from treesim.domain.defs import GROUP_SIZE, RAID_SIZE, EncounterDef
from treesim.domain.entities import BossState, CombatStats, RaidMember
from treesim.domain.npc_healer import RESTO_SHAMAN_SPEC_ID, NpcHealerState, create_npc_healer
from treesim.services.errors import EncounterSetupError

PLAYER_NAME = "You"


def make_member_id(index: int) -> str:
    return f"raid-{index}"


def create_raid(
    slots: Sequence[str],
    specs_repo: ClassSpecsRepository,
    player_stats: CombatStats,
    config: SimulationConfig = DEFAULT_CONFIG,
) -> List[RaidMember]:
    """Build the 25-member roster; slot 0 is the player."""
    if len(slots) != RAID_SIZE:
        raise EncounterSetupError(f"A raid needs exactly {RAID_SIZE} slots, got {len(slots)}.")

    members: List[RaidMember] = []
    for index, spec_id in enumerate(slots):
        try:
            spec = specs_repo.get(spec_id)
        except KeyError as exc:
            raise EncounterSetupError(f"Raid slot {index} references unknown spec '{spec_id}'.") from exc

        if index == 0:
            name = PLAYER_NAME
            max_health = player_stats.max_health
            crit_chance = player_stats.crit_chance
        else:
            name = f"{spec.class_name} {index + 1}"
            max_health = config.tank_health if spec.role == "tank" else config.member_health
            crit_chance = 0.0

        members.append(
            RaidMember(
                id=make_member_id(index),
                name=name,
                spec_id=spec.id,
                class_id=spec.class_id,
                role=spec.role,
                group=index // GROUP_SIZE,
                max_health=max_health,
                current_health=max_health,
                crit_chance=crit_chance,
                is_melee=spec.is_melee,
            )
        )
    return members


def select_tanks(raid: Sequence[RaidMember], tank_count: int) -> List[str]:
    """First ``tank_count`` tank-role members in roster order."""
    return [member.id for member in raid if member.role == "tank"][:tank_count]


def create_bosses(
    encounter: EncounterDef,
    tank_ids: Sequence[str],
    config: SimulationConfig = DEFAULT_CONFIG,
) -> List[BossState]:
    """One boss per ``boss_count``; tanks are handed out in order and wrap around."""
    health = encounter.boss_health if encounter.boss_health is not None else config.default_boss_health
    bosses: List[BossState] = []
    for index in range(encounter.boss_count):
        bosses.append(
            BossState(
                id=f"boss-{index}",
                name=encounter.boss_name(index),
                max_health=health,
                current_health=health,
                tank_id=tank_ids[index % len(tank_ids)] if tank_ids else None,
            )
        )
    return bosses


def create_npc_healers(raid: Sequence[RaidMember], player_id: str, rng: RNG) -> List[NpcHealerState]:
    """Every Resto Shaman in the roster other than the player gets an AI."""
    return [
        create_npc_healer(member.id, rng, member.spec_id)
        for member in raid
        if member.spec_id == RESTO_SHAMAN_SPEC_ID and member.id != player_id
    ]
