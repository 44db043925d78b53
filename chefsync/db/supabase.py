"""Supabase-backed profile storage."""

from supabase import create_client, Client
from functools import lru_cache
from typing import Optional

from chefsync.config import get_settings
from chefsync.db.storage import ProfileStorage


@lru_cache()
def get_supabase_client() -> Client:
    """Get cached Supabase client."""
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_key)


class SupabaseStorage(ProfileStorage):
    """Keeps the profile blob in one row of a ``kv_store`` (key, value) table."""

    TABLE = "kv_store"

    def __init__(self, key: Optional[str] = None, client: Optional[Client] = None):
        self.client = client or get_supabase_client()
        self.key = key or get_settings().storage_key

    def read_blob(self) -> Optional[str]:
        result = (
            self.client.table(self.TABLE)
            .select("value")
            .eq("key", self.key)
            .execute()
        )
        if result.data:
            return result.data[0]["value"]
        return None

    def write_blob(self, blob: str) -> None:
        # Upsert - one row per installation key
        (
            self.client.table(self.TABLE)
            .upsert({"key": self.key, "value": blob}, on_conflict="key")
            .execute()
        )
