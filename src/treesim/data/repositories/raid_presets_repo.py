"""Raid composition preset repository."""
from __future__ import annotations

from typing import Dict

from treesim.data.errors import DataReferenceError, DataValidationError
from treesim.data.repositories.base import RepositoryBase
from treesim.data.repositories.class_specs_repo import ClassSpecsRepository
from treesim.domain.defs import RAID_SIZE, RaidPresetDef


class RaidPresetsRepository(RepositoryBase[RaidPresetDef]):
    """Loads 25-slot rosters and checks every slot names a known spec."""

    def __init__(self, specs_repo: ClassSpecsRepository | None = None, base_path=None) -> None:
        super().__init__("raid_presets.json", base_path)
        self._specs_repo = specs_repo or ClassSpecsRepository(base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, RaidPresetDef]:
        presets: Dict[str, RaidPresetDef] = {}
        for preset_id, payload in raw.items():
            context = f"raid preset '{preset_id}'"
            data = self._require_mapping(payload, context)
            self._assert_required(data, {"name", "slots"}, context)
            slots = self._require_str_list(data["slots"], f"{context} slots")
            if len(slots) != RAID_SIZE:
                raise DataValidationError(f"{context} must have exactly {RAID_SIZE} slots.")
            for spec_id in slots:
                if self._specs_repo.find(spec_id) is None:
                    raise DataReferenceError(f"{context} references unknown spec '{spec_id}'.")
            presets[preset_id] = RaidPresetDef(
                id=preset_id,
                name=self._require_str(data["name"], f"{context} name"),
                slots=tuple(slots),
            )
        return presets
