"""Tests for CLI rendering utilities."""
from treesim.domain.encounter_models import DebuffView, MemberView
from treesim.domain.healing import HealResult
from treesim.presentation.cli.render import (
    describe_event,
    format_member,
    health_bar,
    render_events,
    render_menu,
    render_snapshot,
)
from treesim.services.events import (
    AttackResolvedEvent,
    BuffChangedEvent,
    CastRejectedEvent,
    DebuffAppliedEvent,
    HealAppliedEvent,
    MeteorSlashEvent,
    SpellCastEvent,
    TankSwapEvent,
)

from tests.helpers.rng_stubs import ScriptedRNG
from tests.helpers.sim_builders import make_encounter, make_service


def _tick_heal(kind: str = "tick") -> HealAppliedEvent:
    return HealAppliedEvent(
        heal=HealResult(
            target_id="raid-1",
            source_id="raid-0",
            spell_id="rejuvenation",
            kind=kind,
            amount=325,
            effective=300,
            overheal=25,
            is_crit=False,
        )
    )


def test_health_bar_fills_proportionally() -> None:
    assert health_bar(5, 10, 10) == "[#####.....]"
    assert health_bar(20, 10, 4) == "[####]"
    assert health_bar(0, 0, 4) == "[    ]"


def test_describe_player_facing_events() -> None:
    assert describe_event(CastRejectedEvent("lifebloom", "on_gcd")) == "Can't cast lifebloom: on gcd"
    assert describe_event(SpellCastEvent("innervate", None, 0)) == "Cast innervate for 0 mana"
    assert describe_event(BuffChangedEvent("tree-of-life", False)) == "tree-of-life faded"


def test_describe_boss_mechanic_events() -> None:
    slash = MeteorSlashEvent(boss_id="boss-0", tank_id="raid-1", target_ids=("raid-1", "raid-4"), split_damage=10000)

    assert describe_event(slash) == "Meteor Slash hits 2 for 10000 each"
    assert describe_event(TankSwapEvent("raid-1", "raid-2")) == "Tank swap: raid-1 -> raid-2"
    assert describe_event(DebuffAppliedEvent("raid-4", "Burn", 1)) == "Burn on raid-4"


def test_member_line_lists_debuffs() -> None:
    member = MemberView(
        id="raid-1",
        name="Warrior 2",
        spec_id="warrior-protection",
        role="tank",
        group=0,
        current_health=9000,
        max_health=18000,
        is_dead=False,
        hots=(),
        debuffs=(DebuffView("Meteor Slash", 30.0, 2), DebuffView("Burn", 55.0, 1)),
    )

    assert format_member(member, 2, selected=False).endswith("!Meteor Slashx2 !Burn")


def test_noisy_events_hidden_unless_debugging(monkeypatch) -> None:
    attack = AttackResolvedEvent("boss-0", "raid-1", "hit", 4500, 0)
    monkeypatch.delenv("TREESIM_DEBUG", raising=False)

    assert describe_event(_tick_heal()) is None
    assert describe_event(attack) is None
    assert describe_event(_tick_heal("direct")) == "rejuvenation heals raid-1 for 300"

    monkeypatch.setenv("TREESIM_DEBUG", "1")
    assert describe_event(_tick_heal()) == "rejuvenation heals raid-1 for 300"
    assert describe_event(attack) == "boss-0 hit raid-1 for 4500"


def test_render_events_skips_hidden_lines(capsys, monkeypatch) -> None:
    monkeypatch.delenv("TREESIM_DEBUG", raising=False)

    render_events([_tick_heal(), CastRejectedEvent("swiftmend", "no_consumable_hot")])

    assert capsys.readouterr().out == "- Can't cast swiftmend: no consumable hot\n"


def test_render_menu_numbers_options(capsys) -> None:
    render_menu("Main Menu", ["Autopilot Run", "Quit"])

    out = capsys.readouterr().out
    assert "=== Main Menu ===" in out
    assert "1. Autopilot Run" in out
    assert "2. Quit" in out


def test_render_snapshot_shows_boss_raid_and_mana(capsys) -> None:
    service = make_service(ScriptedRNG())
    state = make_encounter(service)
    state.selected_target_id = "raid-1"

    render_snapshot(service.snapshot(state))

    out = capsys.readouterr().out
    assert "Training Dummy" in out
    assert "You" in out
    assert "> 2. Warrior 2" in out
    assert "Mana" in out
    assert "8208/8208" in out
