"""Raid composition presets."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

RAID_SIZE = 25
GROUP_SIZE = 5


@dataclass(frozen=True, slots=True)
class RaidPresetDef:
    """An ordered roster of spec ids; slot 0 is always the player."""

    id: str
    name: str
    slots: Tuple[str, ...]
