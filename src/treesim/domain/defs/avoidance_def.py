"""Tank avoidance profile definitions."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AvoidanceDef:
    """Percent chances for each avoidance outcome plus the flat block value."""

    spec_id: str
    miss: float
    dodge: float
    parry: float
    block: float
    block_value: int

    @property
    def total(self) -> float:
        return self.miss + self.dodge + self.parry + self.block
