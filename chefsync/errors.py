"""Error taxonomy for ChefSync."""

from typing import Dict, Optional


class ChefSyncError(Exception):
    """Base class for all ChefSync errors."""


class GenerationError(ChefSyncError):
    """The generation service returned no usable structured result."""


class EmptyInputError(ChefSyncError):
    """An operation was invoked with no eligible source data."""


class ImageGenerationFailure(ChefSyncError):
    """Image generation failed. Always recovered with the fallback image."""


class StorageCorruption(ChefSyncError):
    """Persisted profile data could not be parsed."""


class ProfileNotFoundError(ChefSyncError, KeyError):
    """No profile exists for the given id."""

    def __init__(self, user_id: str):
        super().__init__(user_id)
        self.user_id = user_id

    def __str__(self) -> str:
        return f"No profile with id {self.user_id!r}"


class ValidationError(ChefSyncError):
    """Client-side validation failed before any request was made."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}
