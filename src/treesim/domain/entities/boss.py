"""Boss runtime state."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class BossState:
    id: str
    name: str
    max_health: int
    current_health: int
    tank_id: str | None = None

    @property
    def is_alive(self) -> bool:
        return self.current_health > 0

    def take_damage(self, amount: int) -> int:
        """Reduce health, never below zero; returns damage actually taken."""
        taken = min(self.current_health, max(0, amount))
        self.current_health -= taken
        return taken
