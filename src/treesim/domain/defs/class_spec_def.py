"""Class specialization definitions used by raid rosters."""
from __future__ import annotations

from dataclasses import dataclass

from treesim.core.types import Role


@dataclass(frozen=True, slots=True)
class ClassSpecDef:
    id: str
    name: str
    class_id: str
    class_name: str
    role: Role
    is_melee: bool = False
