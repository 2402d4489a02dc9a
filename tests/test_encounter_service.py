from dataclasses import FrozenInstanceError, replace

import pytest

from treesim.core.config import DEFAULT_CONFIG
from treesim.domain.entities import ActiveDebuff
from treesim.domain.healing import apply_damage
from treesim.services import EncounterSetupError
from treesim.services.events import (
    AttackResolvedEvent,
    CastCancelledEvent,
    ChainHealEvent,
    DebuffAppliedEvent,
    DebuffDamageEvent,
    DebuffExpiredEvent,
    EncounterResolvedEvent,
    EncounterStartedEvent,
    MeteorSlashEvent,
    RaidDamageEvent,
    SpellCastEvent,
    TankSwapEvent,
)

from tests.helpers.rng_stubs import ScriptedRNG
from tests.helpers.sim_builders import make_encounter, make_service, make_stats, wound


def _run(service, state, ticks: int, delta: float = 0.1):
    events = []
    for _ in range(ticks):
        events.extend(service.tick(state, delta))
    return events


def _of_type(events, event_type):
    return [event for event in events if isinstance(event, event_type)]


# -----------------------
# Setup
# -----------------------
def test_create_encounter_builds_raid_bosses_and_npc_healers() -> None:
    service = make_service(ScriptedRNG())

    state = make_encounter(service)

    assert len(state.raid) == 25
    assert state.player.name == "You"
    assert state.player.max_health == 6754
    assert state.caster.current_mana == 8208
    assert state.tank_ids == ["raid-1"]
    assert [(boss.max_health, boss.tank_id) for boss in state.bosses] == [(1_000_000, "raid-1")]
    assert [healer.healer_id for healer in state.npc_healers] == ["raid-7"]
    assert state.status == "not_started"


def test_multi_boss_encounter_gives_each_boss_a_tank() -> None:
    service = make_service(ScriptedRNG())

    state = make_encounter(service, "two-training-dummies")

    assert state.tank_ids == ["raid-1", "raid-2"]
    assert [boss.tank_id for boss in state.bosses] == ["raid-1", "raid-2"]


@pytest.mark.parametrize(
    "encounter_id, gear_id, raid_id",
    [
        ("no-such-boss", "pre-raid", "balanced"),
        ("training-dummy", "no-such-gear", "balanced"),
        ("training-dummy", "pre-raid", "no-such-raid"),
        ("training-dummy", "pre-raid", None),
    ],
)
def test_bad_setup_ids_raise(encounter_id, gear_id, raid_id) -> None:
    service = make_service(ScriptedRNG())

    with pytest.raises(EncounterSetupError):
        service.create_encounter(encounter_id, gear_id, raid_preset_id=raid_id)


def test_explicit_slots_must_fill_the_raid() -> None:
    service = make_service(ScriptedRNG())

    with pytest.raises(EncounterSetupError):
        service.create_encounter("training-dummy", "pre-raid", slots=["druid-restoration"] * 10)


def test_start_is_idempotent() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)

    assert service.start(state) == [EncounterStartedEvent(encounter_id="training-dummy")]
    assert service.start(state) == []
    assert state.status == "in_progress"


# -----------------------
# Tick ordering and damage
# -----------------------
def test_nothing_happens_to_the_raid_before_start() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)

    _run(service, state, 50)

    assert state.elapsed == 0.0
    assert all(member.current_health == member.max_health for member in state.raid)


def test_tick_clamps_large_deltas() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)
    service.start(state)

    service.tick(state, 5.0)

    assert state.elapsed == pytest.approx(0.1)


def test_boss_swing_hits_the_tank() -> None:
    config = replace(DEFAULT_CONFIG, boss_attack_interval=0.5)
    service = make_service(ScriptedRNG(), config)
    state = make_encounter(service)
    service.start(state)

    attacks = _of_type(_run(service, state, 6), AttackResolvedEvent)

    assert len(attacks) == 1
    assert attacks[0].outcome == "hit"
    assert attacks[0].damage_dealt == 4500
    assert state.find_member("raid-1").current_health == 18000 - 4500


def test_boss_swing_can_be_dodged() -> None:
    config = replace(DEFAULT_CONFIG, boss_attack_interval=0.5)
    service = make_service(ScriptedRNG(randoms=[0.10]), config)
    state = make_encounter(service)
    service.start(state)

    attacks = _of_type(_run(service, state, 6), AttackResolvedEvent)

    assert attacks[0].outcome == "dodge"
    assert attacks[0].damage_mitigated == 4500
    assert state.find_member("raid-1").current_health == 18000


def test_random_target_damage_starts_after_four_seconds() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)
    service.start(state)

    early = _run(service, state, 39)
    later = _run(service, state, 2)

    assert not [event for event in _of_type(early, RaidDamageEvent) if event.damage == 3000]
    hits = [event for event in _of_type(later, RaidDamageEvent) if event.damage == 3000]
    assert len(hits) == 1
    assert hits[0].target_ids == ("raid-0", "raid-1", "raid-2")


def test_catalog_raid_damage_does_not_pulse_the_whole_raid() -> None:
    config = replace(DEFAULT_CONFIG, boss_attack_min=0, boss_attack_max=0)
    service = make_service(ScriptedRNG(), config)
    state = make_encounter(service)
    service.start(state)

    events = _run(service, state, 101)

    assert state.encounter.raid_damage is not None
    assert _of_type(events, RaidDamageEvent)
    assert all(len(event.target_ids) <= 3 for event in _of_type(events, RaidDamageEvent))
    assert all(member.is_alive for member in state.raid)


def _brutallus(config=None):
    config = config or replace(DEFAULT_CONFIG, boss_attack_min=0, boss_attack_max=0)
    service = make_service(ScriptedRNG(), config)
    state = make_encounter(service, "brutallus")
    service.start(state)
    return service, state


def test_meteor_slash_hits_active_tank_and_its_cone() -> None:
    service, state = _brutallus()
    state.meteor_slash_timer = 0.05

    events = service.tick(state, 0.1)

    slashes = _of_type(events, MeteorSlashEvent)
    assert len(slashes) == 1
    assert slashes[0].tank_id == "raid-1"
    assert slashes[0].target_ids == ("raid-1",) + tuple(f"raid-{index}" for index in range(4, 11))
    assert slashes[0].split_damage == 2500
    assert state.find_member("raid-4").find_debuff("Meteor Slash").stacks == 1
    assert state.player.find_debuff("Meteor Slash") is None
    assert state.meteor_slash_timer == pytest.approx(10 + 0.99 * 4)
    assert not _of_type(events, TankSwapEvent)


def test_third_meteor_slash_stack_swaps_tanks() -> None:
    service, state = _brutallus()
    state.find_member("raid-1").debuffs.append(
        ActiveDebuff(name="Meteor Slash", remaining_duration=30, stacks=2, damage_taken_modifier=0.75)
    )
    state.meteor_slash_timer = 0.05

    events = service.tick(state, 0.1)
    state.boss_attack_timer = 0.05
    follow_up = service.tick(state, 0.1)

    assert _of_type(events, TankSwapEvent) == [TankSwapEvent(from_tank_id="raid-1", to_tank_id="raid-2")]
    assert state.meteor_slash_tank_index == 1
    assert state.bosses[0].tank_id == "raid-2"
    assert [event.target_id for event in _of_type(follow_up, AttackResolvedEvent)] == ["raid-2"]


def test_burn_lands_on_a_random_member_and_ticks_every_second() -> None:
    service, state = _brutallus()
    state.burn_timer = 0.05

    applied = service.tick(state, 0.1)
    ticks = _run(service, state, 10)

    assert DebuffAppliedEvent(member_id="raid-0", debuff="Burn", stacks=1) in _of_type(applied, DebuffAppliedEvent)
    assert _of_type(ticks, DebuffDamageEvent) == [DebuffDamageEvent(member_id="raid-0", debuff="Burn", amount=100)]
    assert state.burn_timer == pytest.approx(20 - 1.0)
    view = next(member for member in service.snapshot(state).members if member.id == "raid-0")
    assert [debuff.name for debuff in view.debuffs] == ["Burn"]


def test_expired_debuff_is_reported_and_removed() -> None:
    service, state = _brutallus()
    state.find_member("raid-4").debuffs.append(
        ActiveDebuff(name="Meteor Slash", remaining_duration=0.05, damage_taken_modifier=0.75)
    )

    events = service.tick(state, 0.1)

    assert DebuffExpiredEvent(member_id="raid-4", debuff="Meteor Slash") in events
    assert state.find_member("raid-4").debuffs == []


def test_victory_fires_once_when_bosses_die() -> None:
    config = replace(DEFAULT_CONFIG, default_boss_health=1000)
    service = make_service(ScriptedRNG(), config)
    state = make_encounter(service)
    service.start(state)

    events = _run(service, state, 15)

    assert _of_type(events, EncounterResolvedEvent) == [EncounterResolvedEvent(status="victory", elapsed=state.elapsed)]
    assert state.status == "victory"
    assert state.bosses[0].current_health == 0


def test_defeat_when_whole_raid_is_dead() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)
    service.start(state)
    for member in state.raid:
        apply_damage(member, 100000)

    events = service.tick(state, 0.1)

    assert [event.status for event in _of_type(events, EncounterResolvedEvent)] == ["defeat"]
    assert not state.is_active


# -----------------------
# Player interaction
# -----------------------
def test_movement_cancels_cast_and_moves_player() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)
    service.cast(state, "regrowth", "raid-1")

    events = service.set_movement(state, "up", True)
    service.tick(state, 0.1)

    assert events == [CastCancelledEvent(spell_id="regrowth", reason="moved")]
    assert state.caster.y == pytest.approx(185.0)
    assert state.caster.x == 0.0

    service.set_movement(state, "up", False)
    service.tick(state, 0.1)
    assert state.caster.y == pytest.approx(185.0)


def test_cast_bar_completes_on_a_later_tick() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)
    service.cast(state, "regrowth", "raid-1")

    before = _of_type(_run(service, state, 19), SpellCastEvent)
    after = _of_type(_run(service, state, 3), SpellCastEvent)

    assert before == []
    assert [event.spell_id for event in after] == ["regrowth"]
    assert state.caster.current_mana < state.caster.stats.max_mana


def test_player_hot_ticks_are_recorded() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service, stats=make_stats(spell_power=1000))
    wound(state.find_member("raid-1"), 5000)
    service.cast(state, "rejuvenation", "raid-1")

    _run(service, state, 31)

    assert state.healing_done["raid-0"] == 325


def test_npc_healer_chain_heals_and_visual_expires() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)
    wound(state.find_member("raid-10"), 2500)

    events = _run(service, state, 25)

    chains = _of_type(events, ChainHealEvent)
    assert chains == [ChainHealEvent(healer_id="raid-7", target_ids=("raid-10",))]
    assert state.find_member("raid-10").current_health == 10000
    assert state.healing_done["raid-7"] == 2500
    assert len(state.chain_visuals) <= 1

    _run(service, state, 6)

    assert state.chain_visuals == []


def test_snapshot_is_read_only() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)

    snapshot = service.snapshot(state)

    assert len(snapshot.members) == 25
    assert snapshot.mana == 8208
    with pytest.raises(FrozenInstanceError):
        snapshot.mana = 0  # type: ignore[misc]


def test_raid_buffs_keep_mana_fraction_and_respect_party() -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)
    state.caster.current_mana = 4104

    applied = service.apply_raid_buffs(state, ["arcane-brilliance", "mana-spring-totem"])

    assert applied == ["arcane-brilliance"]
    assert state.caster.stats.max_mana == 8808
    assert state.caster.current_mana == 4404
