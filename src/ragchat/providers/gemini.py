"""
Google Gemini LLM Provider.
"""

import json
from typing import Any, AsyncIterator

import httpx

from ragchat.exceptions import ProviderError
from ragchat.providers.base import LLMConfig, LLMProvider
from ragchat.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def _error_message(body: bytes, default: str) -> str:
    try:
        return json.loads(body).get("error", {}).get("message") or default
    except (ValueError, AttributeError):
        return default


class GeminiProvider(LLMProvider):
    """
    LLM Provider for the Gemini REST API, streamed as server-sent events.
    """

    id = "gemini"
    name = "Gemini"
    default_model = "gemini-1.5-flash"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    def _convert_messages(
        self,
        messages: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """
        Convert messages to a Gemini request body.
        System messages become the system instruction; assistant turns use the "model" role.
        """
        system_parts = []
        contents = []

        for msg in messages:
            role = msg.get("role", "")
            content = msg.get("content", "")
            if role == "system":
                system_parts.append({"text": content})
            else:
                contents.append({
                    "role": "model" if role == "assistant" else "user",
                    "parts": [{"text": content}]
                })

        body: dict[str, Any] = {"contents": contents}
        if system_parts:
            body["systemInstruction"] = {"parts": system_parts}
        return body

    async def chat(
        self,
        messages: list[dict[str, Any]],
        config: LLMConfig
    ) -> AsyncIterator[str]:
        """Stream a completion from Gemini."""
        api_key = self.require_api_key(config)
        base_url = (config.base_url or DEFAULT_GEMINI_BASE_URL).rstrip("/")
        url = f"{base_url}/models/{self.resolve_model(config)}:streamGenerateContent"

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(30.0, read=None)
            ) as client:
                async with client.stream(
                    "POST",
                    url,
                    params={"alt": "sse", "key": api_key},
                    json=self._convert_messages(messages)
                ) as response:
                    if response.status_code >= 400:
                        body = await response.aread()
                        raise ProviderError(
                            self.id,
                            _error_message(body, "Gemini API request failed"),
                            status_code=response.status_code
                        )

                    async for line in response.aiter_lines():
                        line = line.strip()
                        if not line.startswith("data:"):
                            continue
                        try:
                            data = json.loads(line[5:].strip())
                        except json.JSONDecodeError as e:
                            logger.error(f"Error parsing Gemini stream: {e}")
                            continue

                        candidates = data.get("candidates") or [{}]
                        parts = candidates[0].get("content", {}).get("parts", [])
                        for part in parts:
                            if part.get("text"):
                                yield part["text"]
        except httpx.HTTPError as e:
            raise ProviderError(self.id, f"Gemini API request failed: {e}") from e

    def get_available_models(self) -> list[str]:
        """Gemini models are static."""
        return [
            "gemini-1.5-flash",
            "gemini-1.5-pro",
            "gemini-1.0-pro",
        ]
