import json
from dataclasses import replace
from pathlib import Path

from treesim.core.config import DEFAULT_CONFIG, load_config, save_config


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "missing.json") == DEFAULT_CONFIG


def test_unreadable_config_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{broken", encoding="utf-8")

    assert load_config(path) == DEFAULT_CONFIG


def test_non_object_config_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")

    assert load_config(path) == DEFAULT_CONFIG


def test_known_fields_override_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"spell_queue_window": 0.25, "tick_interval_ms": 20, "log_level": "debug", "unknown": 3}),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.spell_queue_window == 0.25
    assert config.tick_interval_ms == 20
    assert config.tick_interval == 0.02
    assert config.log_level == "DEBUG"
    assert config.max_delta == DEFAULT_CONFIG.max_delta


def test_bad_values_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"max_delta": True, "boss_attack_min": "lots", "player_speed": -5, "log_level": "LOUD"}),
        encoding="utf-8",
    )

    assert load_config(path) == DEFAULT_CONFIG


def test_save_then_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.json"
    config = replace(DEFAULT_CONFIG, default_boss_health=250_000, log_level="INFO")

    save_config(config, path)

    assert load_config(path) == config
