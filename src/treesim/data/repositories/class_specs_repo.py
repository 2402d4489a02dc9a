"""Class specialization repository."""
from __future__ import annotations

from typing import Dict

from treesim.data.repositories.base import RepositoryBase
from treesim.domain.defs import ClassSpecDef

VALID_ROLES = {"tank", "healer", "dps"}


class ClassSpecsRepository(RepositoryBase[ClassSpecDef]):
    """Loads class specs with their role and class display name."""

    def __init__(self, base_path=None) -> None:
        super().__init__("class_specs.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, ClassSpecDef]:
        classes = self._require_mapping(raw.get("classes"), "class_specs classes")
        specs = self._require_mapping(raw.get("specs"), "class_specs specs")

        class_names: Dict[str, str] = {}
        for class_id, payload in classes.items():
            data = self._require_mapping(payload, f"class '{class_id}'")
            self._assert_required(data, {"name"}, f"class '{class_id}'")
            class_names[class_id] = self._require_str(data["name"], f"class '{class_id}' name")

        result: Dict[str, ClassSpecDef] = {}
        for spec_id, payload in specs.items():
            context = f"spec '{spec_id}'"
            data = self._require_mapping(payload, context)
            self._assert_required(data, {"name", "class", "role"}, context)
            class_id = self._require_literal(data["class"], set(class_names), f"{context} class")
            result[spec_id] = ClassSpecDef(
                id=spec_id,
                name=self._require_str(data["name"], f"{context} name"),
                class_id=class_id,
                class_name=class_names[class_id],
                role=self._require_literal(data["role"], VALID_ROLES, f"{context} role"),
                is_melee=self._require_bool(data.get("melee", False), f"{context} melee"),
            )
        return result
