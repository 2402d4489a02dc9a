"""Factory helpers for runtime entities."""

from .raid_factory import (
    PLAYER_NAME,
    create_bosses,
    create_npc_healers,
    create_raid,
    make_member_id,
    select_tanks,
)

__all__ = [
    "PLAYER_NAME",
    "create_bosses",
    "create_npc_healers",
    "create_raid",
    "make_member_id",
    "select_tanks",
]
