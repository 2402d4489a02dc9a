"""Service-layer exceptions."""


class CatalogDesyncError(Exception):
    """Raised when the engine meets a catalog entry it cannot dispatch.

    This signals the spell catalog and the engine disagree; it is never a
    player error and is never caught inside the simulation.
    """


class EncounterSetupError(Exception):
    """Raised when an encounter cannot be built from the requested catalogs."""
