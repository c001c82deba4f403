"""
Generative backends for rating inference.

A backend takes (instructions, JSON schema, input payload, model) and returns
whatever raw response object its provider hands back. Pulling the text out of
that response is left to ``rating_engine.extract_payload_text`` so provider
shape differences stay in one place.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

import httpx
from google import genai
from google.genai import types

from taplog.core.config import Settings
from taplog.services.exceptions import BackendError

logger = logging.getLogger(__name__)


class GenerativeBackend(Protocol):
    name: str

    async def generate(
        self,
        *,
        instructions: str,
        schema: dict,
        payload: str,
        model: str,
    ) -> Any:
        ...


class GeminiBackend:
    """Google Gemini via the google-genai SDK, constrained by a JSON schema."""

    name = "gemini"

    def __init__(self, api_key: str, temperature: float = 0.2, max_output_tokens: int = 300):
        self.api_key = api_key
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def generate(
        self,
        *,
        instructions: str,
        schema: dict,
        payload: str,
        model: str,
    ) -> Any:
        if not self.api_key:
            raise BackendError("GEMINI_API_KEY not set")

        client = genai.Client(api_key=self.api_key)
        config = types.GenerateContentConfig(
            system_instruction=instructions,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json",
            response_json_schema=schema,
        )
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=model,
            contents=payload,
            config=config,
        )
        logger.debug("Gemini raw (%s): %s", model, str(getattr(response, "text", ""))[:300])
        return response


class OllamaBackend:
    """Local Ollama server; ``format`` carries the JSON schema."""

    name = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        temperature: float = 0.2,
        max_output_tokens: int = 300,
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = base_url.rstrip("/") + "/api/generate"
        self.transport = transport
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_seconds = timeout_seconds

    async def generate(
        self,
        *,
        instructions: str,
        schema: dict,
        payload: str,
        model: str,
    ) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
            response = await client.post(
                self.url,
                json={
                    "model": model,
                    "system": instructions,
                    "prompt": payload,
                    "stream": False,
                    "format": schema,
                    "options": {
                        "temperature": self.temperature,
                        "num_predict": self.max_output_tokens,
                    },
                },
            )
            response.raise_for_status()
            return response.json()


def build_backend(settings: Settings) -> GenerativeBackend:
    provider = settings.AI_PROVIDER.lower()
    if provider == "gemini":
        return GeminiBackend(
            api_key=settings.GEMINI_API_KEY,
            temperature=settings.AI_TEMPERATURE,
            max_output_tokens=settings.AI_MAX_OUTPUT_TOKENS,
        )
    if provider == "ollama":
        return OllamaBackend(
            base_url=settings.OLLAMA_URL,
            temperature=settings.AI_TEMPERATURE,
            max_output_tokens=settings.AI_MAX_OUTPUT_TOKENS,
            timeout_seconds=settings.AI_TIMEOUT_SECONDS,
        )
    raise ValueError(f"Unknown AI provider: {settings.AI_PROVIDER}")
