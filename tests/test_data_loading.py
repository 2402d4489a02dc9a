import json
from pathlib import Path

import pytest

from treesim.data.errors import DataLoadError, DataReferenceError, DataValidationError
from treesim.data.repositories import (
    AvoidanceRepository,
    ClassSpecsRepository,
    EncountersRepository,
    GearPresetsRepository,
    RaidPresetsRepository,
    SpellsRepository,
)
from treesim.domain.defs import BuffEffect, ChannelEffect, HotEffect, ManaRestoreEffect


def test_spells_repo_loads_full_catalog() -> None:
    repo = SpellsRepository()

    assert len(repo.all()) == 11
    lifebloom = repo.get("lifebloom")
    assert isinstance(lifebloom.effect, HotEffect)
    assert lifebloom.effect.max_stacks == 3
    assert isinstance(repo.get("tranquility").effect, ChannelEffect)
    assert isinstance(repo.get("dark-rune").effect, ManaRestoreEffect)
    tree = repo.get("tree-of-life").effect
    assert isinstance(tree, BuffEffect)
    assert "healing-touch" not in tree.affected_spells


def test_spell_lookup_by_name_is_case_insensitive() -> None:
    repo = SpellsRepository()

    assert repo.get_by_name("healing touch").id == "healing-touch"
    assert repo.get_by_name("  Nature's Swiftness ").id == "natures-swiftness"
    assert repo.get_by_name("Moonfire") is None


def test_get_missing_raises_and_find_returns_none() -> None:
    repo = SpellsRepository()

    with pytest.raises(KeyError):
        repo.get("moonfire")
    assert repo.find("moonfire") is None


def test_shipped_raid_presets_have_full_rosters() -> None:
    repo = RaidPresetsRepository()

    for preset in repo.all():
        assert len(preset.slots) == 25
        assert preset.slots[0] == "druid-restoration"


def test_shipped_avoidance_profiles_cover_every_tank_spec() -> None:
    specs = ClassSpecsRepository()
    avoidance = AvoidanceRepository()

    tank_specs = {spec.id for spec in specs.all() if spec.role == "tank"}

    assert {profile.spec_id for profile in avoidance.all()} == tank_specs
    assert all(profile.total <= 100 for profile in avoidance.all())


def test_encounters_carry_damage_patterns() -> None:
    repo = EncountersRepository()

    dummy = repo.get("training-dummy")
    assert dummy.boss_count == 1
    assert dummy.raid_damage is not None
    assert dummy.raid_damage.interval == 10
    assert dummy.random_target_damage is not None
    assert dummy.random_target_damage.target_count == 3
    assert repo.get("three-training-dummies").tank_count == 3
    assert all(encounter.enabled for encounter in repo.enabled())


def test_brutallus_carries_meteor_slash_and_burn() -> None:
    brutallus = EncountersRepository().get("brutallus")

    assert brutallus.meteor_slash is not None
    assert brutallus.meteor_slash.damage == 20000
    assert brutallus.meteor_slash.debuff_modifier == 0.75
    assert brutallus.meteor_slash.swap_stacks == 3
    assert brutallus.burn is not None
    assert (brutallus.burn.interval, brutallus.burn.duration, brutallus.burn.base_damage) == (20, 60, 100)
    assert len(brutallus.tank_positions) == brutallus.tank_count == 2
    assert [group.tank_index for group in brutallus.ranged_groups] == [0, 1]


def test_meteor_slash_needs_a_position_per_tank(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "encounters.json",
        {
            "brutallus": {
                "name": "Brutallus",
                "description": "Pit lord.",
                "duration": 300,
                "tank_count": 2,
                "tank_positions": [{"angle": 0, "radius": 60}],
                "damage_pattern": {
                    "tank_dps": 3500,
                    "meteor_slash": {"damage": 20000, "interval": 10, "debuff_duration": 40, "debuff_modifier": 0.75},
                },
            }
        },
    )

    repo = EncountersRepository(base_path=definitions_dir)
    with pytest.raises(DataValidationError):
        repo.all()


def test_burn_rejects_zero_tick_interval(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "encounters.json",
        {
            "brutallus": {
                "name": "Brutallus",
                "description": "Pit lord.",
                "duration": 300,
                "damage_pattern": {
                    "tank_dps": 3500,
                    "burn": {"interval": 20, "duration": 60, "base_damage": 100, "tick_interval": 0, "escalation_interval": 10},
                },
            }
        },
    )

    repo = EncountersRepository(base_path=definitions_dir)
    with pytest.raises(DataValidationError):
        repo.all()


def test_gear_presets_load() -> None:
    repo = GearPresetsRepository()

    assert [preset.id for preset in repo.all()] == sorted(["pre-raid", "t4", "t5", "t6", "sunwell"])
    assert repo.get("sunwell").stats.spell_power == 2615


def test_validation_rejects_unknown_effect_type(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "spells.json",
        {
            "moonfire": {
                "name": "Moonfire",
                "description": "Not a heal.",
                "mana_cost": 300,
                "cast_time": 0,
                "cooldown": 0,
                "is_gcd": True,
                "effect": {"type": "damage"},
            }
        },
    )

    repo = SpellsRepository(base_path=definitions_dir)
    with pytest.raises(DataValidationError):
        repo.all()


def test_validation_rejects_wrong_type(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "spells.json",
        {
            "rejuvenation": {
                "name": "Rejuvenation",
                "description": "Heals over time.",
                "mana_cost": "lots",
                "cast_time": 0,
                "cooldown": 0,
                "is_gcd": True,
                "effect": {"type": "hot", "duration": 12, "tick_interval": 3, "heal_per_tick": 265, "coefficient": 0.2},
            }
        },
    )

    repo = SpellsRepository(base_path=definitions_dir)
    with pytest.raises(DataValidationError):
        repo.all()


def test_validation_rejects_half_specified_self_damage(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "spells.json",
        {
            "dark-rune": {
                "name": "Dark Rune",
                "description": "Mana for health.",
                "mana_cost": 0,
                "cast_time": 0,
                "cooldown": 120,
                "is_gcd": False,
                "effect": {"type": "mana_restore", "min_mana": 900, "max_mana": 1500, "self_damage_min": 600},
            }
        },
    )

    repo = SpellsRepository(base_path=definitions_dir)
    with pytest.raises(DataValidationError):
        repo.all()


def test_raid_preset_requires_twenty_five_slots(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_specs(definitions_dir)
    _write_json(
        definitions_dir / "raid_presets.json",
        {"tiny": {"name": "Tiny", "slots": ["druid-restoration"] * 24}},
    )

    repo = RaidPresetsRepository(base_path=definitions_dir)
    with pytest.raises(DataValidationError):
        repo.all()


def test_raid_preset_rejects_unknown_spec(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_specs(definitions_dir)
    _write_json(
        definitions_dir / "raid_presets.json",
        {"odd": {"name": "Odd", "slots": ["druid-restoration"] * 24 + ["deathknight-blood"]}},
    )

    repo = RaidPresetsRepository(base_path=definitions_dir)
    with pytest.raises(DataReferenceError):
        repo.all()


def test_spec_role_must_be_known(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "class_specs.json",
        {
            "classes": {"druid": {"name": "Druid"}},
            "specs": {"druid-restoration": {"name": "Restoration", "class": "druid", "role": "support"}},
        },
    )

    repo = ClassSpecsRepository(base_path=definitions_dir)
    with pytest.raises(DataValidationError):
        repo.all()


def test_avoidance_total_may_not_exceed_one_hundred(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "avoidance.json",
        {"warrior-protection": {"miss": 5, "dodge": 40, "parry": 30, "block": 30, "block_value": 1800}},
    )

    repo = AvoidanceRepository(base_path=definitions_dir)
    with pytest.raises(DataValidationError):
        repo.all()


def test_missing_file_raises_load_error(tmp_path: Path) -> None:
    repo = EncountersRepository(base_path=_make_definitions_dir(tmp_path))

    with pytest.raises(DataLoadError):
        repo.all()


def test_invalid_json_raises_load_error(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    (definitions_dir / "encounters.json").write_text("{not json", encoding="utf-8")

    repo = EncountersRepository(base_path=definitions_dir)
    with pytest.raises(DataLoadError):
        repo.all()


def _write_specs(definitions_dir: Path) -> None:
    _write_json(
        definitions_dir / "class_specs.json",
        {
            "classes": {"druid": {"name": "Druid"}},
            "specs": {"druid-restoration": {"name": "Restoration", "class": "druid", "role": "healer"}},
        },
    )


def _write_json(path: Path, data: dict) -> None:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _make_definitions_dir(tmp_path: Path) -> Path:
    definitions_dir = tmp_path / "definitions"
    definitions_dir.mkdir()
    return definitions_dir
