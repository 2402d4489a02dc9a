"""Encounter repository."""
from __future__ import annotations

from typing import Dict, Tuple

from treesim.data.errors import DataValidationError
from treesim.data.repositories.base import RepositoryBase
from treesim.domain.defs import (
    BurnDef,
    EncounterDef,
    MeteorSlashDef,
    RaidDamageDef,
    RandomTargetDamageDef,
    RangedGroupDef,
    TankPositionDef,
)


class EncountersRepository(RepositoryBase[EncounterDef]):
    """Loads encounters together with their opening damage pattern."""

    def __init__(self, base_path=None) -> None:
        super().__init__("encounters.json", base_path)

    def enabled(self) -> list[EncounterDef]:
        return [encounter for encounter in self.all() if encounter.enabled]

    def _build(self, raw: dict[str, object]) -> Dict[str, EncounterDef]:
        encounters: Dict[str, EncounterDef] = {}
        for encounter_id, payload in raw.items():
            context = f"encounter '{encounter_id}'"
            data = self._require_mapping(payload, context)
            self._assert_required(data, {"name", "description", "duration", "damage_pattern"}, context)
            pattern = self._require_mapping(data["damage_pattern"], f"{context} damage_pattern")
            self._assert_required(pattern, {"tank_dps"}, f"{context} damage_pattern")

            raid_damage = None
            if pattern.get("raid_damage") is not None:
                raid = self._require_mapping(pattern["raid_damage"], f"{context} raid_damage")
                self._assert_required(raid, {"damage", "interval"}, f"{context} raid_damage")
                raid_damage = RaidDamageDef(
                    damage=self._require_int(raid["damage"], f"{context} raid_damage damage"),
                    interval=self._require_number(raid["interval"], f"{context} raid_damage interval"),
                )

            random_damage = None
            if pattern.get("random_target_damage") is not None:
                rand = self._require_mapping(pattern["random_target_damage"], f"{context} random_target_damage")
                self._assert_required(rand, {"damage", "interval", "targets"}, f"{context} random_target_damage")
                random_damage = RandomTargetDamageDef(
                    damage=self._require_int(rand["damage"], f"{context} random_target_damage damage"),
                    interval=self._require_number(rand["interval"], f"{context} random_target_damage interval"),
                    target_count=self._require_int(rand["targets"], f"{context} random_target_damage targets"),
                )

            meteor_slash = None
            if pattern.get("meteor_slash") is not None:
                meteor_slash = self._build_meteor_slash(pattern["meteor_slash"], f"{context} meteor_slash")

            burn = None
            if pattern.get("burn") is not None:
                burn = self._build_burn(pattern["burn"], f"{context} burn")

            tank_count = self._require_int(data.get("tank_count", 1), f"{context} tank_count")
            tank_positions = self._build_tank_positions(data.get("tank_positions", []), context)
            ranged_groups = self._build_ranged_groups(data.get("ranged_groups", []), len(tank_positions), context)
            if meteor_slash is not None and len(tank_positions) < tank_count:
                raise DataValidationError(f"{context} meteor_slash needs a position for each of its {tank_count} tanks.")

            boss_health = data.get("boss_health")
            encounters[encounter_id] = EncounterDef(
                id=encounter_id,
                name=self._require_str(data["name"], f"{context} name"),
                description=self._require_str(data["description"], f"{context} description"),
                duration=self._require_number(data["duration"], f"{context} duration"),
                boss_count=self._require_int(data.get("boss_count", 1), f"{context} boss_count"),
                boss_health=None if boss_health is None else self._require_int(boss_health, f"{context} boss_health"),
                tank_count=tank_count,
                enabled=self._require_bool(data.get("enabled", True), f"{context} enabled"),
                tank_dps=self._require_int(pattern["tank_dps"], f"{context} tank_dps"),
                raid_damage=raid_damage,
                random_target_damage=random_damage,
                meteor_slash=meteor_slash,
                burn=burn,
                tank_positions=tank_positions,
                ranged_groups=ranged_groups,
                boss_names=tuple(self._require_str_list(data.get("boss_names", []), f"{context} boss_names")),
            )
        return encounters

    def _build_meteor_slash(self, payload: object, context: str) -> MeteorSlashDef:
        data = self._require_mapping(payload, context)
        self._assert_required(data, {"damage", "interval", "debuff_duration", "debuff_modifier"}, context)
        return MeteorSlashDef(
            damage=self._require_int(data["damage"], f"{context} damage"),
            interval=self._require_number(data["interval"], f"{context} interval"),
            debuff_duration=self._require_number(data["debuff_duration"], f"{context} debuff_duration"),
            debuff_modifier=self._require_number(data["debuff_modifier"], f"{context} debuff_modifier"),
            random_delay=self._require_number(data.get("random_delay", 4.0), f"{context} random_delay"),
            swap_stacks=self._require_int(data.get("swap_stacks", 3), f"{context} swap_stacks"),
        )

    def _build_burn(self, payload: object, context: str) -> BurnDef:
        data = self._require_mapping(payload, context)
        self._assert_required(
            data, {"interval", "duration", "base_damage", "tick_interval", "escalation_interval"}, context
        )
        tick_interval = self._require_number(data["tick_interval"], f"{context} tick_interval")
        escalation_interval = self._require_number(data["escalation_interval"], f"{context} escalation_interval")
        if tick_interval <= 0 or escalation_interval <= 0:
            raise DataValidationError(f"{context} tick and escalation intervals must be positive.")
        return BurnDef(
            interval=self._require_number(data["interval"], f"{context} interval"),
            duration=self._require_number(data["duration"], f"{context} duration"),
            base_damage=self._require_int(data["base_damage"], f"{context} base_damage"),
            tick_interval=tick_interval,
            escalation_interval=escalation_interval,
        )

    def _build_tank_positions(self, payload: object, context: str) -> Tuple[TankPositionDef, ...]:
        if not isinstance(payload, list):
            raise DataValidationError(f"{context} tank_positions must be a list.")
        positions = []
        for index, entry in enumerate(payload):
            entry_context = f"{context} tank_positions[{index}]"
            data = self._require_mapping(entry, entry_context)
            self._assert_required(data, {"angle", "radius"}, entry_context)
            angle = data["angle"]
            if isinstance(angle, bool) or not isinstance(angle, (int, float)):
                raise DataValidationError(f"{entry_context} angle must be a number.")
            positions.append(
                TankPositionDef(angle=float(angle), radius=self._require_number(data["radius"], f"{entry_context} radius"))
            )
        return tuple(positions)

    def _build_ranged_groups(self, payload: object, position_count: int, context: str) -> Tuple[RangedGroupDef, ...]:
        if not isinstance(payload, list):
            raise DataValidationError(f"{context} ranged_groups must be a list.")
        groups = []
        for index, entry in enumerate(payload):
            entry_context = f"{context} ranged_groups[{index}]"
            data = self._require_mapping(entry, entry_context)
            self._assert_required(data, {"tank_index", "cone_spread", "cone_min_distance", "cone_max_distance"}, entry_context)
            tank_index = self._require_int(data["tank_index"], f"{entry_context} tank_index")
            if not 0 <= tank_index < position_count:
                raise DataValidationError(f"{entry_context} tank_index {tank_index} has no tank position.")
            groups.append(
                RangedGroupDef(
                    tank_index=tank_index,
                    cone_spread=self._require_number(data["cone_spread"], f"{entry_context} cone_spread"),
                    cone_min_distance=self._require_number(data["cone_min_distance"], f"{entry_context} cone_min_distance"),
                    cone_max_distance=self._require_number(data["cone_max_distance"], f"{entry_context} cone_max_distance"),
                )
            )
        return tuple(groups)
