"""Gear preset repository."""
from __future__ import annotations

from typing import Dict

from treesim.data.repositories.base import RepositoryBase
from treesim.domain.defs import GearPresetDef, StatBundle

_STAT_FIELDS = {"stamina", "intellect", "spirit", "spell_power", "mp5", "crit_chance", "haste_rating"}


class GearPresetsRepository(RepositoryBase[GearPresetDef]):
    """Loads flat stat bundles for each gear tier."""

    def __init__(self, base_path=None) -> None:
        super().__init__("gear_presets.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, GearPresetDef]:
        presets: Dict[str, GearPresetDef] = {}
        for preset_id, payload in raw.items():
            context = f"gear preset '{preset_id}'"
            data = self._require_mapping(payload, context)
            self._assert_required(data, {"name", "description", "tier", "stats"}, context)
            stats = self._require_mapping(data["stats"], f"{context} stats")
            self._assert_required(stats, _STAT_FIELDS, f"{context} stats")
            presets[preset_id] = GearPresetDef(
                id=preset_id,
                name=self._require_str(data["name"], f"{context} name"),
                description=self._require_str(data["description"], f"{context} description"),
                tier=self._require_str(data["tier"], f"{context} tier"),
                stats=StatBundle(
                    stamina=self._require_int(stats["stamina"], f"{context} stamina"),
                    intellect=self._require_int(stats["intellect"], f"{context} intellect"),
                    spirit=self._require_int(stats["spirit"], f"{context} spirit"),
                    spell_power=self._require_int(stats["spell_power"], f"{context} spell_power"),
                    mp5=self._require_int(stats["mp5"], f"{context} mp5"),
                    crit_chance=self._require_number(stats["crit_chance"], f"{context} crit_chance"),
                    haste_rating=self._require_int(stats["haste_rating"], f"{context} haste_rating"),
                ),
            )
        return presets
