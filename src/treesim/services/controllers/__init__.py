"""UI-agnostic controllers for encounter input and flow."""
from __future__ import annotations

from .encounter_controller import EncounterController, InputLayout, KeyBinding, Macro, default_layout

__all__ = [
    "EncounterController",
    "InputLayout",
    "KeyBinding",
    "Macro",
    "default_layout",
]
