from collections import Counter

from treesim.core.rng import RNG
from treesim.data.repositories import AvoidanceRepository
from treesim.domain.combat_table import classify_roll, format_attack_result, resolve_attack, resolve_untanked
from treesim.domain.defs import AvoidanceDef

from tests.helpers.rng_stubs import ScriptedRNG

_WARRIOR = AvoidanceDef(spec_id="warrior-protection", miss=5, dodge=20, parry=15, block=30, block_value=1800)


def test_roll_inside_dodge_band_is_a_dodge() -> None:
    result = resolve_attack(5000, _WARRIOR, ScriptedRNG(randoms=[0.10]))

    assert result.outcome == "dodge"
    assert result.damage_dealt == 0
    assert result.damage_mitigated == 5000


def test_roll_past_block_threshold_is_a_full_hit() -> None:
    result = classify_roll(72.0, 5000, _WARRIOR)

    assert result.outcome == "hit"
    assert result.damage_dealt == 5000
    assert result.damage_mitigated == 0


def test_block_subtracts_block_value() -> None:
    result = classify_roll(50.0, 5000, _WARRIOR)

    assert result.outcome == "block"
    assert result.damage_dealt == 3200
    assert result.damage_mitigated == 1800


def test_block_never_goes_negative() -> None:
    result = classify_roll(50.0, 1000, _WARRIOR)

    assert result.outcome == "block"
    assert result.damage_dealt == 0
    assert result.damage_mitigated == 1000


def test_thresholds_accumulate_in_priority_order() -> None:
    assert classify_roll(0.0, 100, _WARRIOR).outcome == "miss"
    assert classify_roll(4.99, 100, _WARRIOR).outcome == "miss"
    assert classify_roll(5.0, 100, _WARRIOR).outcome == "dodge"
    assert classify_roll(25.0, 100, _WARRIOR).outcome == "parry"
    assert classify_roll(40.0, 100, _WARRIOR).outcome == "block"
    assert classify_roll(70.0, 100, _WARRIOR).outcome == "hit"


def test_single_roll_partitions_the_whole_range() -> None:
    outcomes = Counter(classify_roll(float(roll), 4000, _WARRIOR).outcome for roll in range(100))

    assert outcomes == {"miss": 5, "dodge": 20, "parry": 15, "block": 30, "hit": 30}


def test_dealt_plus_mitigated_is_always_base_damage() -> None:
    for roll in range(100):
        result = classify_roll(roll + 0.5, 4321, _WARRIOR)
        assert result.damage_dealt + result.damage_mitigated == 4321


def test_bear_tank_has_no_parry_or_block_band() -> None:
    bear = AvoidanceRepository().get("druid-feral-tank")

    assert classify_roll(39.0, 5000, bear).outcome == "dodge"
    assert classify_roll(40.0, 5000, bear).outcome == "hit"


def test_untanked_targets_take_full_damage_without_rolling() -> None:
    result = resolve_untanked(5500)

    assert result.outcome == "hit"
    assert result.damage_dealt == 5500


def test_format_attack_result_mentions_blocked_amount() -> None:
    text = format_attack_result(classify_roll(50.0, 5000, _WARRIOR), "Boss", "Warrior 2")

    assert text == "Boss hits Warrior 2 for 3200 (1800 blocked)"


def test_seeded_rolls_converge_to_configured_percentages() -> None:
    rng = RNG(20070605)
    trials = 20000

    outcomes = Counter(resolve_attack(5000, _WARRIOR, rng).outcome for _ in range(trials))

    expected = {"miss": 0.05, "dodge": 0.20, "parry": 0.15, "block": 0.30, "hit": 0.30}
    assert set(outcomes) == set(expected)
    for outcome, share in expected.items():
        assert abs(outcomes[outcome] / trials - share) < 0.02
