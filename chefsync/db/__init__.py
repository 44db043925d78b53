"""Database module."""

from typing import Optional

from chefsync.config import Settings, get_settings
from .storage import ProfileStorage, JsonFileStorage, MemoryStorage
from .profiles import UserProfileStore
from .plans import PlanStore


def get_storage(settings: Optional[Settings] = None) -> ProfileStorage:
    """Build the profile storage named by ``settings.storage_backend``."""
    settings = settings or get_settings()
    if settings.storage_backend == "supabase":
        from .supabase import SupabaseStorage

        return SupabaseStorage(key=settings.storage_key)
    if settings.storage_backend == "memory":
        return MemoryStorage()
    return JsonFileStorage(settings.storage_path)


__all__ = [
    "ProfileStorage",
    "JsonFileStorage",
    "MemoryStorage",
    "UserProfileStore",
    "PlanStore",
    "get_storage",
]
