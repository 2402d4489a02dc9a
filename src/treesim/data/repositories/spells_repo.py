"""Spell catalog repository."""
from __future__ import annotations

from typing import Dict

from treesim.data.errors import DataValidationError
from treesim.data.repositories.base import RepositoryBase
from treesim.domain.defs import (
    BuffEffect,
    ChannelEffect,
    DirectAndHotEffect,
    DirectHealEffect,
    HotEffect,
    ManaRestoreEffect,
    SpellDef,
    SpellEffect,
    SwiftmendEffect,
)

VALID_EFFECT_TYPES = {
    "direct_heal",
    "hot",
    "direct_and_hot",
    "channel",
    "buff",
    "swiftmend",
    "mana_restore",
}
VALID_BUFF_TYPES = {"next_instant", "mana_regen", "tree_of_life"}


class SpellsRepository(RepositoryBase[SpellDef]):
    """Loads the fixed spell set, addressable by id or display name."""

    def __init__(self, base_path=None) -> None:
        super().__init__("spells.json", base_path)

    def get_by_name(self, name: str) -> SpellDef | None:
        """Case-insensitive lookup by display name."""
        wanted = name.strip().lower()
        for spell in self._ensure_loaded().values():
            if spell.name.lower() == wanted:
                return spell
        return None

    def _build(self, raw: dict[str, object]) -> Dict[str, SpellDef]:
        spells: Dict[str, SpellDef] = {}
        for raw_id, payload in raw.items():
            context = f"spell '{raw_id}'"
            data = self._require_mapping(payload, context)
            self._assert_required(
                data,
                {"name", "description", "mana_cost", "cast_time", "cooldown", "is_gcd", "effect"},
                context,
            )
            spells[raw_id] = SpellDef(
                id=raw_id,
                name=self._require_str(data["name"], f"{context} name"),
                description=self._require_str(data["description"], f"{context} description"),
                mana_cost=self._require_int(data["mana_cost"], f"{context} mana_cost"),
                cast_time=self._require_number(data["cast_time"], f"{context} cast_time"),
                cooldown=self._require_number(data["cooldown"], f"{context} cooldown"),
                is_gcd=self._require_bool(data["is_gcd"], f"{context} is_gcd"),
                effect=self._build_effect(data["effect"], f"{context} effect"),
            )
        return spells

    def _build_effect(self, payload: object, context: str) -> SpellEffect:
        data = self._require_mapping(payload, context)
        self._assert_required(data, {"type"}, context)
        effect_type = self._require_literal(data["type"], VALID_EFFECT_TYPES, f"{context} type")

        if effect_type == "direct_heal":
            self._assert_required(data, {"min_heal", "max_heal", "coefficient"}, context)
            return DirectHealEffect(
                min_heal=self._require_int(data["min_heal"], f"{context} min_heal"),
                max_heal=self._require_int(data["max_heal"], f"{context} max_heal"),
                coefficient=self._require_number(data["coefficient"], f"{context} coefficient"),
            )
        if effect_type == "hot":
            self._assert_required(data, {"duration", "tick_interval", "heal_per_tick", "coefficient"}, context)
            bloom_heal = data.get("bloom_heal")
            bloom_coefficient = data.get("bloom_coefficient")
            return HotEffect(
                duration=self._require_number(data["duration"], f"{context} duration"),
                tick_interval=self._require_positive(data["tick_interval"], f"{context} tick_interval"),
                heal_per_tick=self._require_int(data["heal_per_tick"], f"{context} heal_per_tick"),
                coefficient=self._require_number(data["coefficient"], f"{context} coefficient"),
                max_stacks=self._require_int(data.get("max_stacks", 1), f"{context} max_stacks"),
                bloom_heal=None if bloom_heal is None else self._require_int(bloom_heal, f"{context} bloom_heal"),
                bloom_coefficient=(
                    None
                    if bloom_coefficient is None
                    else self._require_number(bloom_coefficient, f"{context} bloom_coefficient")
                ),
            )
        if effect_type == "direct_and_hot":
            self._assert_required(
                data,
                {
                    "min_heal",
                    "max_heal",
                    "coefficient",
                    "hot_duration",
                    "hot_tick_interval",
                    "hot_heal_per_tick",
                    "hot_coefficient",
                },
                context,
            )
            return DirectAndHotEffect(
                min_heal=self._require_int(data["min_heal"], f"{context} min_heal"),
                max_heal=self._require_int(data["max_heal"], f"{context} max_heal"),
                coefficient=self._require_number(data["coefficient"], f"{context} coefficient"),
                hot_duration=self._require_number(data["hot_duration"], f"{context} hot_duration"),
                hot_tick_interval=self._require_positive(data["hot_tick_interval"], f"{context} hot_tick_interval"),
                hot_heal_per_tick=self._require_int(data["hot_heal_per_tick"], f"{context} hot_heal_per_tick"),
                hot_coefficient=self._require_number(data["hot_coefficient"], f"{context} hot_coefficient"),
            )
        if effect_type == "channel":
            self._assert_required(data, {"duration", "tick_interval", "heal_per_tick", "coefficient"}, context)
            return ChannelEffect(
                duration=self._require_number(data["duration"], f"{context} duration"),
                tick_interval=self._require_positive(data["tick_interval"], f"{context} tick_interval"),
                heal_per_tick=self._require_int(data["heal_per_tick"], f"{context} heal_per_tick"),
                coefficient=self._require_number(data["coefficient"], f"{context} coefficient"),
                targets_party=self._require_bool(data.get("targets_party", True), f"{context} targets_party"),
            )
        if effect_type == "buff":
            self._assert_required(data, {"duration", "buff_type"}, context)
            regen = data.get("regen_multiplier")
            reduction = data.get("mana_cost_reduction")
            return BuffEffect(
                duration=self._require_number(data["duration"], f"{context} duration"),
                buff_type=self._require_literal(data["buff_type"], VALID_BUFF_TYPES, f"{context} buff_type"),
                regen_multiplier=None if regen is None else self._require_number(regen, f"{context} regen_multiplier"),
                mana_cost_reduction=(
                    None if reduction is None else self._require_number(reduction, f"{context} mana_cost_reduction")
                ),
                affected_spells=tuple(
                    self._require_str_list(data.get("affected_spells", []), f"{context} affected_spells")
                ),
            )
        if effect_type == "swiftmend":
            self._assert_required(data, {"consumes"}, context)
            consumes = self._require_str_list(data["consumes"], f"{context} consumes")
            if not consumes:
                raise DataValidationError(f"{context} consumes must not be empty.")
            return SwiftmendEffect(consumes=tuple(consumes))

        self._assert_required(data, {"min_mana", "max_mana"}, context)
        damage_min = data.get("self_damage_min")
        damage_max = data.get("self_damage_max")
        if (damage_min is None) != (damage_max is None):
            raise DataValidationError(f"{context} self damage needs both bounds.")
        return ManaRestoreEffect(
            min_mana=self._require_int(data["min_mana"], f"{context} min_mana"),
            max_mana=self._require_int(data["max_mana"], f"{context} max_mana"),
            self_damage_min=None if damage_min is None else self._require_int(damage_min, f"{context} self_damage_min"),
            self_damage_max=None if damage_max is None else self._require_int(damage_max, f"{context} self_damage_max"),
        )

    def _require_positive(self, value: object, context: str) -> float:
        number = self._require_number(value, context)
        if number <= 0:
            raise DataValidationError(f"{context} must be greater than zero.")
        return number
