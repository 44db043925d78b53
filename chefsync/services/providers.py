"""Generative AI backends behind the generation client."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from chefsync.config import Settings, get_settings

logger = logging.getLogger(__name__)


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    @abstractmethod
    async def generate_json(self, prompt: str, schema: Dict[str, Any], model: str) -> str:
        """Return the raw JSON text produced for ``prompt`` under ``schema``."""
        pass

    @abstractmethod
    async def generate_image(self, prompt: str, model: str, high_quality: bool) -> Optional[bytes]:
        """Return PNG bytes for ``prompt``, or None when no image part came back."""
        pass


class GeminiProvider(AIProvider):
    """Google Gemini provider."""

    def __init__(self, settings: Optional[Settings] = None):
        import google.generativeai as genai

        settings = settings or get_settings()
        genai.configure(api_key=settings.gemini_api_key)
        self._genai = genai
        self._models: Dict[str, Any] = {}

    def _model(self, name: str):
        if name not in self._models:
            self._models[name] = self._genai.GenerativeModel(name)
        return self._models[name]

    async def generate_json(self, prompt: str, schema: Dict[str, Any], model: str) -> str:
        """Query Gemini with a strict response schema."""
        response = await self._model(model).generate_content_async(
            prompt,
            generation_config={
                "response_mime_type": "application/json",
                "response_schema": schema,
            },
        )
        return response.text

    async def generate_image(self, prompt: str, model: str, high_quality: bool) -> Optional[bytes]:
        size = "1K square" if high_quality else "square"
        response = await self._model(model).generate_content_async(
            f"{prompt}. Cinematic food photography, warm lighting, {size} format."
        )
        if not response.candidates:
            return None
        for part in response.candidates[0].content.parts:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return inline.data
        return None


def _to_json_schema(schema: Any) -> Any:
    """Lower-case Gemini type names so the schema is plain JSON Schema."""
    if isinstance(schema, dict):
        converted = {}
        for key, value in schema.items():
            if key == "type" and isinstance(value, str):
                converted[key] = value.lower()
            else:
                converted[key] = _to_json_schema(value)
        return converted
    if isinstance(schema, list):
        return [_to_json_schema(item) for item in schema]
    return schema


class OllamaProvider(AIProvider):
    """Ollama (local LLM) provider. Text only."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.host = settings.ollama_host
        self.model = settings.ollama_model
        self.timeout = settings.request_timeout_seconds

    async def generate_json(self, prompt: str, schema: Dict[str, Any], model: str) -> str:
        """Query Ollama API. The configured Ollama model replaces ``model``."""
        import httpx

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.host}/api/generate",
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "stream": False,
                    "format": _to_json_schema(schema),
                },
            )
            response.raise_for_status()
            return response.json()["response"]

    async def generate_image(self, prompt: str, model: str, high_quality: bool) -> Optional[bytes]:
        logger.debug("Ollama has no image model; %s falls back", model)
        return None


def get_provider(settings: Optional[Settings] = None) -> AIProvider:
    """Build the provider named by ``settings.ai_provider``."""
    settings = settings or get_settings()
    if settings.ai_provider == "ollama":
        return OllamaProvider(settings)
    return GeminiProvider(settings)
