"""Boss debuff mechanics: Meteor Slash cones and escalating Burn DoTs."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from treesim.core.rng import RNG
from treesim.domain.defs import BurnDef, EncounterDef, MeteorSlashDef, RangedGroupDef, TankPositionDef
from treesim.domain.entities import ActiveDebuff, RaidMember

METEOR_SLASH = "Meteor Slash"
BURN = "Burn"

# Burning members walk out of their cone and back in over this many seconds.
BURN_WALK_TIME = 2.0
BURN_WALK_OUT_DISTANCE = 60.0

_DEFAULT_CONE_SPREAD = math.pi / 2
_DEFAULT_CONE_MAX_DISTANCE = 260.0
_EPSILON = 1e-9

Point = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class MeteorSlashHit:
    member_id: str
    damage: int
    stacks: int


@dataclass(frozen=True, slots=True)
class MeteorSlashResult:
    tank_id: str | None
    hits: Tuple[MeteorSlashHit, ...]
    swap_to_index: int | None = None


# -----------------------
# Positions
# -----------------------
def tank_point(position: TankPositionDef) -> Point:
    return (math.cos(position.angle) * position.radius, math.sin(position.angle) * position.radius)


def inside_cone(point: Point, tank: TankPositionDef, group: RangedGroupDef | None) -> bool:
    """Whether ``point`` lies in the cone pointing away from the boss behind ``tank``."""
    spread = group.cone_spread if group is not None else _DEFAULT_CONE_SPREAD
    max_distance = group.cone_max_distance if group is not None else _DEFAULT_CONE_MAX_DISTANCE
    tank_x, tank_y = tank_point(tank)
    dx, dy = point[0] - tank_x, point[1] - tank_y
    if math.hypot(dx, dy) > max_distance:
        return False
    diff = math.atan2(dy, dx) - tank.angle
    diff = (diff + math.pi) % (2 * math.pi) - math.pi
    return abs(diff) <= spread / 2


def _walk_out_progress(member: RaidMember, burn_duration: float) -> float:
    """0 while standing in formation, 1 once fully outside the cone."""
    burn = member.find_debuff(BURN)
    if burn is None:
        return 0.0
    time_with_burn = burn_duration - burn.remaining_duration
    if burn.remaining_duration <= BURN_WALK_TIME:
        return burn.remaining_duration / BURN_WALK_TIME
    if time_with_burn < BURN_WALK_TIME:
        return time_with_burn / BURN_WALK_TIME
    return 1.0


def ranged_formation(
    raid: Sequence[RaidMember],
    encounter: EncounterDef,
) -> Dict[str, Point]:
    """Positions of ranged members stacked in triangular rows behind their tank.

    Ranged members are split across the ranged groups in roster order; row ``r``
    of a group holds ``r + 2`` members.
    """
    groups = encounter.ranged_groups
    ranged = [member for member in raid if not member.is_melee]
    if not groups or not ranged:
        return {}
    burn_duration = encounter.burn.duration if encounter.burn else 0.0
    per_group = math.ceil(len(ranged) / len(groups))
    positions: Dict[str, Point] = {}
    for ranged_index, member in enumerate(ranged):
        group_index = min(ranged_index // per_group, len(groups) - 1)
        index_in_group = ranged_index - group_index * per_group
        group = groups[group_index]
        tank = encounter.tank_positions[group.tank_index]

        row, row_start = 0, 0
        while row_start + row + 2 <= index_in_group:
            row_start += row + 2
            row += 1
        index_in_row = index_in_group - row_start
        players_in_row = row + 2

        row_spacing = (group.cone_max_distance - group.cone_min_distance) / 4
        distance = group.cone_min_distance + row * row_spacing
        progress = _walk_out_progress(member, burn_duration)
        if progress > 0:
            out_distance = group.cone_max_distance + BURN_WALK_OUT_DISTANCE
            distance += (out_distance - distance) * progress

        spread_width = distance * math.tan(group.cone_spread / 2) * 2
        spacing = spread_width / (players_in_row + 1)
        offset = (index_in_row - (players_in_row - 1) / 2) * spacing
        perpendicular = tank.angle + math.pi / 2
        tank_x, tank_y = tank_point(tank)
        positions[member.id] = (
            tank_x + math.cos(tank.angle) * distance + math.cos(perpendicular) * offset,
            tank_y + math.sin(tank.angle) * distance + math.sin(perpendicular) * offset,
        )
    return positions


# -----------------------
# Meteor Slash
# -----------------------
def damage_taken_multiplier(member: RaidMember) -> float:
    meteor = member.find_debuff(METEOR_SLASH)
    if meteor is None:
        return 1.0
    return 1.0 + meteor.stacks * meteor.damage_taken_modifier


def meteor_slash_targets(
    raid: Sequence[RaidMember],
    encounter: EncounterDef,
    tank_ids: Sequence[str],
    tank_index: int,
    player_id: str,
    player_position: Point,
) -> List[RaidMember]:
    """The active tank plus every living member standing in the cone behind it.

    Melee stand beside the boss, outside every cone. The player is tested at
    their actual position.
    """
    if not tank_ids or tank_index >= len(encounter.tank_positions):
        return []
    tank_id = tank_ids[tank_index]
    tank_position = encounter.tank_positions[tank_index]
    group = next((g for g in encounter.ranged_groups if g.tank_index == tank_index), None)
    formation = ranged_formation(raid, encounter)
    tank_points = {tid: tank_point(pos) for tid, pos in zip(tank_ids, encounter.tank_positions)}

    targets: List[RaidMember] = []
    for member in raid:
        if member.is_dead:
            continue
        if member.id == tank_id:
            targets.append(member)
            continue
        if member.id == player_id:
            point: Point | None = player_position
        elif member.id in tank_points:
            point = tank_points[member.id]
        else:
            point = formation.get(member.id)
        if point is not None and inside_cone(point, tank_position, group):
            targets.append(member)
    return targets


def apply_meteor_slash(
    targets: Sequence[RaidMember],
    pattern: MeteorSlashDef,
    tank_ids: Sequence[str],
    tank_index: int,
) -> MeteorSlashResult:
    """Split the hit across ``targets``, stack the debuff, and decide a tank swap.

    Damage is scaled by the stacks each member carried before this hit.
    Health is left to the caller.
    """
    tank_id = tank_ids[tank_index] if tank_index < len(tank_ids) else None
    if not targets:
        return MeteorSlashResult(tank_id=tank_id, hits=())
    split = pattern.damage // len(targets)
    hits: List[MeteorSlashHit] = []
    swap_to: int | None = None
    for member in targets:
        damage = math.floor(split * damage_taken_multiplier(member))
        debuff = member.find_debuff(METEOR_SLASH)
        if debuff is None:
            debuff = ActiveDebuff(
                name=METEOR_SLASH,
                remaining_duration=pattern.debuff_duration,
                damage_taken_modifier=pattern.debuff_modifier,
            )
            member.debuffs.append(debuff)
        else:
            debuff.stacks += 1
            debuff.remaining_duration = pattern.debuff_duration
        hits.append(MeteorSlashHit(member_id=member.id, damage=damage, stacks=debuff.stacks))

        if member.id == tank_id and debuff.stacks >= pattern.swap_stacks:
            next_index = (tank_index + 1) % len(tank_ids)
            if tank_ids[next_index] != tank_id:
                swap_to = next_index
    return MeteorSlashResult(tank_id=tank_id, hits=tuple(hits), swap_to_index=swap_to)


# -----------------------
# Burn
# -----------------------
def pick_burn_target(raid: Sequence[RaidMember], rng: RNG) -> RaidMember | None:
    eligible = [member for member in raid if member.is_alive and member.find_debuff(BURN) is None]
    if not eligible:
        return None
    return rng.choice(eligible)


def apply_burn(member: RaidMember, pattern: BurnDef) -> ActiveDebuff:
    debuff = ActiveDebuff(
        name=BURN,
        remaining_duration=pattern.duration,
        tick_interval=pattern.tick_interval,
        next_tick_in=pattern.tick_interval,
    )
    member.debuffs.append(debuff)
    return debuff


def burn_tick_damage(member: RaidMember, burn: ActiveDebuff, pattern: BurnDef) -> int:
    """Base damage doubles every escalation interval, then Meteor Slash stacks amplify it."""
    elapsed = pattern.duration - burn.remaining_duration
    escalations = math.floor((elapsed + _EPSILON) / pattern.escalation_interval)
    return math.floor(pattern.base_damage * 2**escalations * damage_taken_multiplier(member))


def advance_burn(member: RaidMember, pattern: BurnDef, delta: float) -> int | None:
    """Count the member's Burn toward its next tick; return the tick damage when it lands."""
    if member.is_dead:
        return None
    burn = member.find_debuff(BURN)
    if burn is None:
        return None
    next_tick = (burn.next_tick_in if burn.next_tick_in is not None else pattern.tick_interval) - delta
    if next_tick > 0:
        burn.next_tick_in = next_tick
        return None
    burn.next_tick_in = pattern.tick_interval
    return burn_tick_damage(member, burn, pattern)


def expire_debuffs(member: RaidMember, delta: float) -> List[str]:
    """Count every debuff down; drop and name the ones that ran out."""
    if not member.debuffs:
        return []
    expired: List[str] = []
    kept: List[ActiveDebuff] = []
    for debuff in member.debuffs:
        debuff.remaining_duration -= delta
        if debuff.remaining_duration > 0:
            kept.append(debuff)
        else:
            expired.append(debuff.name)
    member.debuffs = kept
    return expired
