from treesim.domain.healing import direct_heal_range
from treesim.domain.hots import advance_member_hots
from treesim.domain.regrowth import apply_regrowth

from tests.helpers.rng_stubs import ScriptedRNG
from tests.helpers.sim_builders import get_spell, make_member, make_stats

_CASTER = "raid-0"


def _regrowth():
    return get_spell("regrowth").effect


def test_regrowth_direct_range_is_talented() -> None:
    effect = _regrowth()

    assert direct_heal_range(effect.min_heal, effect.max_heal, effect.coefficient, 1000) == (1651, 1805)


def test_regrowth_gets_fifty_percent_bonus_crit() -> None:
    target = make_member(current_health=5000)
    stats = make_stats(spell_power=1000, crit_chance=20.0)

    result = apply_regrowth(target, _regrowth(), stats, _CASTER, ScriptedRNG(ints=[1700], randoms=[0.6]))

    assert result.direct.is_crit
    assert result.direct.amount == 2550
    assert target.current_health == 7550


def test_regrowth_roll_above_boosted_chance_does_not_crit() -> None:
    target = make_member(current_health=5000)
    stats = make_stats(spell_power=1000, crit_chance=20.0)

    result = apply_regrowth(target, _regrowth(), stats, _CASTER, ScriptedRNG(ints=[1700], randoms=[0.75]))

    assert not result.direct.is_crit
    assert result.direct.amount == 1700


def test_regrowth_leaves_a_hot_that_never_crits() -> None:
    target = make_member(current_health=5000)
    stats = make_stats(spell_power=1000, crit_chance=100.0)
    result = apply_regrowth(target, _regrowth(), stats, _CASTER, ScriptedRNG(ints=[1700]))
    health_after_direct = target.current_health

    ticks = advance_member_hots(target, 3.0, lambda _: 100.0, ScriptedRNG(randoms=[0.0]))

    assert result.hot_heal_per_tick == 164
    assert len(ticks) == 1
    assert not ticks[0].is_crit
    assert target.current_health == health_after_direct + 164


def test_recasting_regrowth_replaces_its_hot() -> None:
    target = make_member(current_health=1000)
    stats = make_stats(spell_power=1000)
    apply_regrowth(target, _regrowth(), stats, _CASTER, ScriptedRNG())
    target.hots[0].remaining_duration = 4.0

    apply_regrowth(target, _regrowth(), stats, _CASTER, ScriptedRNG())

    assert len(target.hots) == 1
    assert target.hots[0].remaining_duration == 21
