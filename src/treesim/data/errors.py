"""Exceptions raised while loading catalog definitions."""


class DataError(Exception):
    """Base exception for the catalog layer."""


class DataLoadError(DataError):
    """Raised when a catalog file is missing or is not valid JSON."""


class DataValidationError(DataError):
    """Raised when a catalog entry has missing or mistyped fields."""


class DataReferenceError(DataError):
    """Raised when a catalog entry points at an id another catalog lacks."""
