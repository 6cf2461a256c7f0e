"""
Hugging Face Inference API Provider.
"""

import json
from typing import Any, AsyncIterator

import httpx

from ragchat.exceptions import ProviderError
from ragchat.providers.base import LLMConfig, LLMProvider
from ragchat.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_HF_BASE_URL = "https://api-inference.huggingface.co/models"


class HuggingFaceProvider(LLMProvider):
    """
    LLM Provider for the Hugging Face Inference API.

    The API does not stream; the whole answer arrives as one fragment.
    """

    id = "huggingface"
    name = "Hugging Face"
    default_model = "meta-llama/Llama-2-7b-chat-hf"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, max_new_tokens: int = 1024):
        self._transport = transport
        self.max_new_tokens = max_new_tokens

    def _build_prompt(self, messages: list[dict[str, Any]]) -> str:
        lines = [
            f"{'Assistant' if msg.get('role') == 'assistant' else 'User'}: {msg.get('content', '')}"
            for msg in messages
        ]
        return "\n".join(lines) + "\nAssistant:"

    def _extract_text(self, data: Any) -> str:
        if isinstance(data, list):
            return (data[0] or {}).get("generated_text", "") if data else ""
        if isinstance(data, dict) and "generated_text" in data:
            return data["generated_text"]
        if isinstance(data, str):
            return data
        logger.error(f"Unexpected Hugging Face response format: {data}")
        return json.dumps(data)

    async def chat(
        self,
        messages: list[dict[str, Any]],
        config: LLMConfig
    ) -> AsyncIterator[str]:
        """Request a completion from Hugging Face and yield it."""
        api_key = self.require_api_key(config)
        model = self.resolve_model(config)
        base_url = (config.base_url or DEFAULT_HF_BASE_URL).rstrip("/")
        url = base_url if model in base_url else f"{base_url}/{model}"

        payload = {
            "inputs": self._build_prompt(messages),
            "parameters": {
                "max_new_tokens": self.max_new_tokens,
                "temperature": 0.7,
                "return_full_text": False,
            },
            "options": {
                "use_cache": False,
                "wait_for_model": True,
            },
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=120.0) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Authorization": f"Bearer {api_key}"}
                )
        except httpx.HTTPError as e:
            raise ProviderError(self.id, f"Hugging Face API request failed: {e}") from e

        if response.status_code >= 400:
            message = response.text or "Hugging Face API request failed"
            try:
                message = response.json().get("error") or message
            except (ValueError, AttributeError):
                pass
            raise ProviderError(self.id, message, status_code=response.status_code)

        yield self._extract_text(response.json())

    def get_available_models(self) -> list[str]:
        """Popular Hugging Face chat models."""
        return [
            "meta-llama/Llama-2-7b-chat-hf",
            "meta-llama/Llama-2-13b-chat-hf",
            "meta-llama/Llama-2-70b-chat-hf",
            "mistralai/Mistral-7B-Instruct-v0.2",
            "mistralai/Mixtral-8x7B-Instruct-v0.1",
        ]
