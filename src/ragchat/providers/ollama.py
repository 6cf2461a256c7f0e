"""
Ollama LLM Provider.
"""

import json
from typing import Any, AsyncIterator

import httpx

from ragchat.exceptions import ProviderError
from ragchat.providers.base import LLMConfig, LLMProvider
from ragchat.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"


class OllamaProvider(LLMProvider):
    """
    LLM Provider for a self-hosted Ollama server (newline-delimited JSON stream).
    """

    id = "ollama"
    name = "Ollama"
    default_model = "llama3"
    requires_api_key = False

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    def _base_url(self, config: LLMConfig) -> str:
        return (config.base_url or DEFAULT_OLLAMA_BASE_URL).rstrip("/")

    async def chat(
        self,
        messages: list[dict[str, Any]],
        config: LLMConfig
    ) -> AsyncIterator[str]:
        """Stream a completion from Ollama."""
        url = f"{self._base_url(config)}/api/chat"
        payload = {
            "model": self.resolve_model(config),
            "messages": messages,
            "stream": True,
        }

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(30.0, read=None)
            ) as client:
                async with client.stream("POST", url, json=payload) as response:
                    if response.status_code >= 400:
                        await response.aread()
                        raise ProviderError(self.id, "Ollama API request failed", status_code=response.status_code)

                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        try:
                            data = json.loads(line)
                        except json.JSONDecodeError as e:
                            logger.error(f"Error parsing Ollama stream: {e}")
                            continue

                        content = (data.get("message") or {}).get("content")
                        if content:
                            yield content
                        if data.get("done"):
                            return
        except httpx.HTTPError as e:
            raise ProviderError(self.id, f"Ollama API request failed: {e}") from e

    async def get_models(self, config: LLMConfig) -> list[str]:
        """List models pulled on the Ollama server."""
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=10.0) as client:
                response = await client.get(f"{self._base_url(config)}/api/tags")
            response.raise_for_status()
            return [model["name"] for model in response.json().get("models", [])]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error(f"Error fetching Ollama models: {e}")
            return self.get_available_models()

    def get_available_models(self) -> list[str]:
        return ["llama3", "mistral", "gemma"]
