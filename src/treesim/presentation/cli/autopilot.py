"""Scripted healing rotation used for headless console runs."""
from __future__ import annotations

from typing import List, Optional, Tuple

from treesim.domain.encounter_models import EncounterSnapshot, EncounterState, MemberView
from treesim.services.controllers import EncounterController
from treesim.services.events import SimEvent

CastChoice = Tuple[str, Optional[str]]

INNERVATE_MANA_FRACTION = 0.35
LIFEBLOOM_REFRESH_WINDOW = 1.5
EMERGENCY_FRACTION = 0.5
REGROWTH_FRACTION = 0.6
REJUVENATION_FRACTION = 0.85


def _has_hot(member: MemberView, spell_id: str, source_id: str) -> bool:
    return any(hot.spell_id == spell_id and hot.source_id == source_id for hot in member.hots)


def choose_cast(snapshot: EncounterSnapshot, player_id: str) -> CastChoice | None:
    """Pick the next spell and target, or None to wait.

    Priority: Innervate when low on mana, keep three Lifeblooms rolling on
    the main tank, then emergency Swiftmend / Nature's Swiftness, then
    Regrowth and Rejuvenation on whoever is hurt.
    """
    if snapshot.status != "in_progress":
        return None
    if snapshot.cast_bar is not None or snapshot.channel_bar is not None or snapshot.gcd_remaining > 0:
        return None
    cooldowns = snapshot.cooldowns
    living = [member for member in snapshot.members if not member.is_dead]
    if not living:
        return None

    if (
        snapshot.max_mana > 0
        and snapshot.mana / snapshot.max_mana < INNERVATE_MANA_FRACTION
        and snapshot.innervate_remaining <= 0
        and "innervate" not in cooldowns
    ):
        return "innervate", None

    tanks = [member for member in living if member.role == "tank"]
    if tanks:
        tank = tanks[0]
        lifebloom = next(
            (hot for hot in tank.hots if hot.spell_id == "lifebloom" and hot.source_id == player_id), None
        )
        if lifebloom is None or lifebloom.stacks < 3 or lifebloom.remaining < LIFEBLOOM_REFRESH_WINDOW:
            return "lifebloom", tank.id

    lowest = min(living, key=lambda member: member.current_health / member.max_health)
    fraction = lowest.current_health / lowest.max_health

    if snapshot.natures_swiftness_active:
        return "healing-touch", lowest.id
    if fraction < EMERGENCY_FRACTION:
        if "swiftmend" not in cooldowns and (
            _has_hot(lowest, "rejuvenation", player_id) or _has_hot(lowest, "regrowth", player_id)
        ):
            return "swiftmend", lowest.id
        if "natures-swiftness" not in cooldowns:
            return "natures-swiftness", None
    if fraction < REGROWTH_FRACTION and not _has_hot(lowest, "regrowth", player_id):
        return "regrowth", lowest.id
    if fraction < REJUVENATION_FRACTION and not _has_hot(lowest, "rejuvenation", player_id):
        return "rejuvenation", lowest.id
    return None


class Autopilot:
    """Feeds ``choose_cast`` decisions into the controller once per tick."""

    def __init__(self, controller: EncounterController) -> None:
        self._controller = controller

    def act(self, state: EncounterState) -> List[SimEvent]:
        choice = choose_cast(self._controller.snapshot(state), state.player_id)
        if choice is None:
            return []
        spell_id, target_id = choice
        return self._controller.cast_spell(state, spell_id, target_id)
