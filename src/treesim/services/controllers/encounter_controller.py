"""UI-agnostic encounter controller mapping hotbars, keys and macros onto casts."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from treesim.core.types import MoveKey
from treesim.data.repositories import SpellsRepository
from treesim.domain.defs import SpellDef
from treesim.domain.encounter_models import EncounterSnapshot, EncounterState
from treesim.domain.macros import find_raid_member_by_name, get_first_cast_command
from treesim.services.encounter_service import EncounterService
from treesim.services.events import CastRejectedEvent, SimEvent

logger = logging.getLogger(__name__)

SLOTS_PER_BAR = 12
MAIN_BAR = "main"
BAR_IDS: Tuple[str, ...] = ("main", "bottom-left", "bottom-right", "right-1", "right-2")
MACRO_PREFIX = "macro:"

DEFAULT_MAIN_BAR: Tuple[str | None, ...] = (
    "lifebloom",
    "rejuvenation",
    "regrowth",
    "healing-touch",
    "swiftmend",
    "natures-swiftness",
    "innervate",
    "tranquility",
    None,
    None,
    None,
    None,
)
DEFAULT_SLOT_KEYS: Tuple[str, ...] = ("1", "2", "3", "4", "5", "6", "7", "8", "9", "0", "-", "=")
DEFAULT_MOVEMENT_KEYS: Dict[str, MoveKey] = {"w": "up", "s": "down", "a": "left", "d": "right"}


@dataclass(slots=True)
class KeyBinding:
    bar_id: str
    slot_index: int


@dataclass(slots=True)
class Macro:
    id: str
    name: str
    body: str


@dataclass(slots=True)
class InputLayout:
    """Hotbars, key bindings and macros for one play session; never persisted."""

    bars: Dict[str, List[str | None]] = field(default_factory=dict)
    bindings: Dict[str, KeyBinding] = field(default_factory=dict)
    movement_keys: Dict[str, MoveKey] = field(default_factory=lambda: dict(DEFAULT_MOVEMENT_KEYS))
    macros: Dict[str, Macro] = field(default_factory=dict)


def default_layout() -> InputLayout:
    bars: Dict[str, List[str | None]] = {bar_id: [None] * SLOTS_PER_BAR for bar_id in BAR_IDS}
    bars[MAIN_BAR] = list(DEFAULT_MAIN_BAR)
    bindings = {key: KeyBinding(MAIN_BAR, index) for index, key in enumerate(DEFAULT_SLOT_KEYS)}
    return InputLayout(bars=bars, bindings=bindings)


class EncounterController:
    """
    UI-agnostic controller for a running encounter.

    Responsibilities:
    - Resolve hotbar slots, key presses and macros into cast requests
    - Forward movement and targeting to the encounter service
    - Expose ticks and snapshots for the presentation layer

    Rendering, prompting and layout persistence are left to the caller.
    """

    def __init__(
        self,
        encounter_service: EncounterService,
        spells_repo: SpellsRepository,
        layout: InputLayout | None = None,
    ) -> None:
        self._service = encounter_service
        self._spells_repo = spells_repo
        self._layout = layout or default_layout()

    @property
    def layout(self) -> InputLayout:
        return self._layout

    # -----------------------
    # Layout editing
    # -----------------------
    def set_slot(self, bar_id: str, slot_index: int, action: str | None) -> None:
        slots = self._require_bar(bar_id)
        if not 0 <= slot_index < SLOTS_PER_BAR:
            raise IndexError(f"Slot {slot_index} is outside bar '{bar_id}'.")
        slots[slot_index] = action

    def bind_key(self, key: str, bar_id: str, slot_index: int) -> None:
        self._require_bar(bar_id)
        self._layout.bindings[key.lower()] = KeyBinding(bar_id, slot_index)

    def add_macro(self, macro_id: str, name: str, body: str) -> str:
        """Register a macro and return the slot action that triggers it."""
        self._layout.macros[macro_id] = Macro(macro_id, name, body)
        return f"{MACRO_PREFIX}{macro_id}"

    # -----------------------
    # Player actions
    # -----------------------
    def activate_slot(self, state: EncounterState, bar_id: str, slot_index: int) -> List[SimEvent]:
        slots = self._require_bar(bar_id)
        if not 0 <= slot_index < len(slots):
            return []
        action = slots[slot_index]
        if action is None:
            return []
        if action.startswith(MACRO_PREFIX):
            return self.cast_macro(state, action[len(MACRO_PREFIX):])
        return self.cast_spell(state, action)

    def press_key(self, state: EncounterState, key: str) -> List[SimEvent]:
        """Key down: a movement key starts moving, a bound key activates its slot."""
        key = key.lower()
        move = self._layout.movement_keys.get(key)
        if move is not None:
            return self.set_movement_key(state, move, True)
        binding = self._layout.bindings.get(key)
        if binding is None:
            return []
        return self.activate_slot(state, binding.bar_id, binding.slot_index)

    def release_key(self, state: EncounterState, key: str) -> List[SimEvent]:
        move = self._layout.movement_keys.get(key.lower())
        if move is None:
            return []
        return self.set_movement_key(state, move, False)

    def cast_spell(self, state: EncounterState, spell_id: str, target_id: str | None = None) -> List[SimEvent]:
        return self._service.cast(state, spell_id, target_id)

    def cast_macro(self, state: EncounterState, macro_id: str) -> List[SimEvent]:
        """Run the first ``/cast`` line of a macro, honouring its target override."""
        macro = self._layout.macros.get(macro_id)
        if macro is None:
            logger.info("Unknown macro '%s'", macro_id)
            return []
        command = get_first_cast_command(macro.body, self._lookup_spell)
        if command is None:
            logger.info("Macro '%s' has no castable line", macro.name)
            return []
        target_id = None
        if command.target_name is not None:
            target = find_raid_member_by_name(state.raid, command.target_name)
            if target is None:
                logger.info("Macro '%s' targets unknown member '%s'", macro.name, command.target_name)
                return [CastRejectedEvent(spell_id=command.spell_id, reason="invalid_target")]
            target_id = target.id
        return self.cast_spell(state, command.spell_id, target_id)

    def select_target(self, state: EncounterState, member_id: str | None) -> bool:
        return self._service.select_target(state, member_id)

    def set_movement_key(self, state: EncounterState, key: MoveKey, pressed: bool) -> List[SimEvent]:
        return self._service.set_movement(state, key, pressed)

    # -----------------------
    # Loop plumbing
    # -----------------------
    def start(self, state: EncounterState) -> List[SimEvent]:
        return self._service.start(state)

    def tick(self, state: EncounterState, delta: float) -> List[SimEvent]:
        return self._service.tick(state, delta)

    def snapshot(self, state: EncounterState) -> EncounterSnapshot:
        return self._service.snapshot(state)

    def _lookup_spell(self, text: str) -> SpellDef | None:
        return self._spells_repo.get_by_name(text) or self._spells_repo.find(text.strip().lower())

    def _require_bar(self, bar_id: str) -> List[str | None]:
        try:
            return self._layout.bars[bar_id]
        except KeyError as exc:
            raise KeyError(f"Unknown action bar '{bar_id}'.") from exc
