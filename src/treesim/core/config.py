"""Simulation configuration and its on-disk persistence."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    """Every timing and tuning constant the encounter loop reads."""

    tick_interval_ms: int = 16
    max_delta: float = 0.1
    spell_queue_window: float = 0.4
    five_second_rule: float = 5.0
    casting_regen_fraction: float = 0.30
    initial_time_since_cast: float = 10.0
    boss_attack_interval: float = 2.0
    boss_attack_min: int = 4500
    boss_attack_max: int = 6000
    random_damage_first_delay: float = 4.0
    raid_dps_interval: float = 1.0
    raid_dps_min: int = 400
    raid_dps_max: int = 600
    chain_visual_duration: float = 0.5
    tank_health: int = 18000
    member_health: int = 10000
    default_boss_health: int = 1_000_000
    player_speed: float = 150.0
    player_start_x: float = 0.0
    player_start_y: float = 200.0
    log_level: str = "WARNING"

    @property
    def tick_interval(self) -> float:
        return self.tick_interval_ms / 1000.0


DEFAULT_CONFIG = SimulationConfig()


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "TreeSim"
        return Path.home() / "TreeSim"
    return Path.home() / ".config" / "treesim"


def get_default_config_path() -> Path:
    """Return the default per-user config path."""
    return get_user_data_dir() / "config.json"


def _normalize(raw: Dict[str, object]) -> SimulationConfig:
    overrides: Dict[str, object] = {}
    for spec_field in fields(SimulationConfig):
        if spec_field.name not in raw:
            continue
        value = raw[spec_field.name]
        default = getattr(DEFAULT_CONFIG, spec_field.name)
        if spec_field.name == "log_level":
            if isinstance(value, str) and value.upper() in _VALID_LOG_LEVELS:
                overrides["log_level"] = value.upper()
            continue
        # bool is an int subclass; never accept it for numeric settings
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.warning("Ignoring non-numeric config value for %s", spec_field.name)
            continue
        if value < 0:
            logger.warning("Ignoring negative config value for %s", spec_field.name)
            continue
        overrides[spec_field.name] = int(value) if isinstance(default, int) else float(value)
    return replace(DEFAULT_CONFIG, **overrides)


def load_config(path: Path | None = None) -> SimulationConfig:
    """Load config from disk or return defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return DEFAULT_CONFIG
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Unable to read config %s: %s", config_path, exc)
        return DEFAULT_CONFIG
    if not isinstance(raw, dict):
        return DEFAULT_CONFIG
    return _normalize(raw)


def save_config(config: SimulationConfig, path: Path | None = None) -> None:
    """Persist config to disk."""
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(asdict(config), indent=2, sort_keys=True), encoding="utf-8")
