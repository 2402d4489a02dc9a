"""Tank avoidance profile repository."""
from __future__ import annotations

from typing import Dict

from treesim.data.errors import DataValidationError
from treesim.data.repositories.base import RepositoryBase
from treesim.domain.defs import AvoidanceDef


class AvoidanceRepository(RepositoryBase[AvoidanceDef]):
    """Avoidance profiles keyed by tank spec id.

    Specs without an entry are not tanks; use ``find`` to test for that.
    """

    def __init__(self, base_path=None) -> None:
        super().__init__("avoidance.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, AvoidanceDef]:
        profiles: Dict[str, AvoidanceDef] = {}
        for spec_id, payload in raw.items():
            context = f"avoidance '{spec_id}'"
            data = self._require_mapping(payload, context)
            self._assert_required(data, {"miss", "dodge", "parry", "block", "block_value"}, context)
            profile = AvoidanceDef(
                spec_id=spec_id,
                miss=self._require_number(data["miss"], f"{context} miss"),
                dodge=self._require_number(data["dodge"], f"{context} dodge"),
                parry=self._require_number(data["parry"], f"{context} parry"),
                block=self._require_number(data["block"], f"{context} block"),
                block_value=self._require_int(data["block_value"], f"{context} block_value"),
            )
            if profile.total > 100:
                raise DataValidationError(f"{context} avoidance chances exceed 100%.")
            profiles[spec_id] = profile
        return profiles
