"""Configuration management for ChefSync."""

from pydantic_settings import BaseSettings
from typing import Literal, Optional
from datetime import date, datetime
from zoneinfo import ZoneInfo
from functools import lru_cache


FALLBACK_IMAGE_URL = "https://images.unsplash.com/photo-1495521821757-a1efb6729352?q=80&w=800"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # AI Provider
    ai_provider: Literal["gemini", "ollama"] = "gemini"

    # Gemini
    gemini_api_key: str = ""
    text_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    image_model_hq: str = "gemini-3-pro-image-preview"

    # Ollama
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"

    # Generation policy
    retry_attempts: int = 2
    retry_delay_seconds: float = 1.0
    request_timeout_seconds: float = 60.0
    fallback_image_url: str = FALLBACK_IMAGE_URL

    # Profile storage
    storage_backend: Literal["file", "supabase", "memory"] = "file"
    storage_path: str = "chefsync_profiles.json"
    storage_key: str = "chefSync_users_v4"

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Logging
    log_level: str = "INFO"

    # Timezone
    timezone: str = "Asia/Kolkata"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "CHEFSYNC_"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def local_today(settings: Optional[Settings] = None) -> date:
    """Today's date in the configured timezone."""
    settings = settings or get_settings()
    return datetime.now(ZoneInfo(settings.timezone)).date()
