"""Service layer exports."""

from .errors import CatalogDesyncError, EncounterSetupError
from .cast_service import CastService
from .encounter_service import EncounterService
from .game_loop import GameLoop

__all__ = [
    "CatalogDesyncError",
    "EncounterSetupError",
    "CastService",
    "EncounterService",
    "GameLoop",
]
