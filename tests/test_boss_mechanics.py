import math

import pytest

from treesim.domain.boss_mechanics import (
    BURN,
    METEOR_SLASH,
    advance_burn,
    apply_burn,
    apply_meteor_slash,
    burn_tick_damage,
    damage_taken_multiplier,
    expire_debuffs,
    inside_cone,
    meteor_slash_targets,
    pick_burn_target,
)
from treesim.domain.defs import BurnDef, MeteorSlashDef, RangedGroupDef, TankPositionDef
from treesim.domain.entities import ActiveDebuff
from treesim.domain.healing import apply_damage

from tests.helpers.rng_stubs import ScriptedRNG
from tests.helpers.sim_builders import make_encounter, make_member, make_service

_SLASH = MeteorSlashDef(damage=20000, interval=10, debuff_duration=40, debuff_modifier=0.75)
_BURN = BurnDef(interval=20, duration=60, base_damage=100, tick_interval=1, escalation_interval=10)
_TANKS = ["raid-1", "raid-2"]


def _burning(member_id: str = "raid-4", remaining: float = 60.0):
    member = make_member(member_id)
    member.debuffs.append(ActiveDebuff(name=BURN, remaining_duration=remaining, tick_interval=1, next_tick_in=1))
    return member


# -----------------------
# Meteor Slash
# -----------------------
def test_meteor_slash_splits_damage_and_stacks_amplify_the_next_hit() -> None:
    tank = make_member("raid-1", max_health=18000, role="tank")
    ranged = make_member("raid-4")

    first = apply_meteor_slash([tank, ranged], _SLASH, _TANKS, 0)
    second = apply_meteor_slash([tank, ranged], _SLASH, _TANKS, 0)

    assert [(hit.damage, hit.stacks) for hit in first.hits] == [(10000, 1), (10000, 1)]
    assert [(hit.damage, hit.stacks) for hit in second.hits] == [(17500, 2), (17500, 2)]
    assert damage_taken_multiplier(ranged) == pytest.approx(2.5)
    assert first.swap_to_index is None and second.swap_to_index is None


def test_meteor_slash_refreshes_debuff_duration() -> None:
    tank = make_member("raid-1", role="tank")
    apply_meteor_slash([tank], _SLASH, _TANKS, 0)
    expire_debuffs(tank, 25.0)

    apply_meteor_slash([tank], _SLASH, _TANKS, 0)

    debuff = tank.find_debuff(METEOR_SLASH)
    assert debuff is not None
    assert debuff.remaining_duration == 40
    assert debuff.stacks == 2


def test_third_stack_on_active_tank_swaps_to_next_tank() -> None:
    tank = make_member("raid-1", role="tank")

    results = [apply_meteor_slash([tank], _SLASH, _TANKS, 0) for _ in range(3)]

    assert [result.swap_to_index for result in results] == [None, None, 1]
    assert results[2].tank_id == "raid-1"


def test_single_tank_never_swaps() -> None:
    tank = make_member("raid-1", role="tank")

    results = [apply_meteor_slash([tank], _SLASH, ["raid-1"], 0) for _ in range(4)]

    assert all(result.swap_to_index is None for result in results)


def test_meteor_slash_without_targets_changes_nothing() -> None:
    result = apply_meteor_slash([], _SLASH, _TANKS, 0)

    assert result.hits == ()
    assert result.tank_id == "raid-1"


# -----------------------
# Cone geometry
# -----------------------
def test_cone_membership_respects_angle_and_distance() -> None:
    tank = TankPositionDef(angle=0.0, radius=60)
    group = RangedGroupDef(tank_index=0, cone_spread=math.pi / 2, cone_min_distance=80, cone_max_distance=260)

    assert inside_cone((200.0, 0.0), tank, group)
    assert inside_cone((200.0, 100.0), tank, group)
    assert not inside_cone((60.0, 200.0), tank, group)
    assert not inside_cone((400.0, 0.0), tank, group)
    assert not inside_cone((0.0, 0.0), tank, group)


def test_first_slash_on_brutallus_hits_tank_and_its_ranged_group() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service, "brutallus")

    targets = meteor_slash_targets(state.raid, state.encounter, state.tank_ids, 0, state.player_id, (0.0, 200.0))

    assert [member.id for member in targets] == ["raid-1"] + [f"raid-{index}" for index in range(4, 11)]


def test_player_is_tested_at_their_own_position() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service, "brutallus")

    behind_tank = meteor_slash_targets(state.raid, state.encounter, state.tank_ids, 0, state.player_id, (150.0, 0.0))
    second_cone = meteor_slash_targets(state.raid, state.encounter, state.tank_ids, 1, state.player_id, (0.0, 200.0))

    assert behind_tank[0].id == "raid-0"
    assert [member.id for member in second_cone] == (
        ["raid-0", "raid-2"] + [f"raid-{index}" for index in range(11, 17)] + ["raid-23"]
    )


def test_dead_and_burning_members_are_not_in_the_cone() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service, "brutallus")
    apply_damage(state.find_member("raid-5"), 100000)
    state.find_member("raid-4").debuffs.append(
        ActiveDebuff(name=BURN, remaining_duration=50, tick_interval=1, next_tick_in=1)
    )

    targets = meteor_slash_targets(state.raid, state.encounter, state.tank_ids, 0, state.player_id, (0.0, 200.0))

    assert [member.id for member in targets] == ["raid-1"] + [f"raid-{index}" for index in range(6, 11)]


def test_melee_stand_outside_every_cone() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service, "brutallus")

    melee = {member.id for member in state.raid if member.is_melee and member.id not in state.tank_ids}
    hit = set()
    for index in range(len(state.tank_ids)):
        targets = meteor_slash_targets(state.raid, state.encounter, state.tank_ids, index, state.player_id, (0.0, 200.0))
        hit.update(member.id for member in targets)

    assert "raid-3" in melee
    assert not melee & hit


# -----------------------
# Burn
# -----------------------
@pytest.mark.parametrize(
    ("remaining", "expected"),
    [(60.0, 100), (51.0, 100), (50.0, 200), (40.0, 400), (30.0, 800)],
)
def test_burn_doubles_every_escalation_interval(remaining: float, expected: int) -> None:
    member = _burning(remaining=remaining)

    assert burn_tick_damage(member, member.find_debuff(BURN), _BURN) == expected


def test_burn_is_amplified_by_meteor_slash_stacks() -> None:
    member = _burning(remaining=59.0)
    member.debuffs.append(ActiveDebuff(name=METEOR_SLASH, remaining_duration=40, stacks=2, damage_taken_modifier=0.75))

    assert burn_tick_damage(member, member.find_debuff(BURN), _BURN) == 250


def test_burn_ticks_once_per_interval() -> None:
    member = make_member("raid-4")
    apply_burn(member, _BURN)

    assert advance_burn(member, _BURN, 0.5) is None
    assert advance_burn(member, _BURN, 0.5) == 100
    assert member.find_debuff(BURN).next_tick_in == 1


def test_dead_member_takes_no_burn_ticks() -> None:
    member = make_member("raid-4")
    apply_burn(member, _BURN)
    apply_damage(member, 100000)

    assert advance_burn(member, _BURN, 5.0) is None


def test_burn_target_skips_burning_and_dead_members() -> None:
    burning = _burning("raid-4")
    dead = make_member("raid-5")
    apply_damage(dead, 100000)
    fresh = make_member("raid-6")

    assert pick_burn_target([burning, dead, fresh], ScriptedRNG()) is fresh
    assert pick_burn_target([burning, dead], ScriptedRNG()) is None


# -----------------------
# Expiry
# -----------------------
def test_debuffs_expire_when_their_duration_runs_out() -> None:
    member = make_member("raid-4")
    member.debuffs.append(ActiveDebuff(name=BURN, remaining_duration=1.0))
    member.debuffs.append(ActiveDebuff(name=METEOR_SLASH, remaining_duration=40.0, damage_taken_modifier=0.75))

    assert expire_debuffs(member, 0.5) == []
    assert expire_debuffs(member, 0.5) == [BURN]
    assert [debuff.name for debuff in member.debuffs] == [METEOR_SLASH]
    assert member.debuffs[0].remaining_duration == 39.0
