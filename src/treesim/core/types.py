"""Shared type aliases for the core and domain layers."""
from typing import Literal

Role = Literal["tank", "healer", "dps"]
AttackOutcome = Literal["miss", "dodge", "parry", "block", "hit"]
EffectType = Literal[
    "direct_heal",
    "hot",
    "direct_and_hot",
    "channel",
    "buff",
    "swiftmend",
    "mana_restore",
]
BuffType = Literal["next_instant", "mana_regen", "tree_of_life"]
HealKind = Literal["direct", "tick", "bloom", "channel", "chain"]
EncounterStatus = Literal["not_started", "in_progress", "victory", "defeat"]
MoveKey = Literal["up", "down", "left", "right"]

__all__ = [
    "AttackOutcome",
    "BuffType",
    "EffectType",
    "EncounterStatus",
    "HealKind",
    "MoveKey",
    "Role",
]
