"""
OpenAI LLM Provider.
"""

from typing import Any, AsyncIterator

import openai

from ragchat.exceptions import ProviderError
from ragchat.providers.base import LLMConfig, LLMProvider
from ragchat.utils.logging import get_logger

logger = get_logger(__name__)


class OpenAIProvider(LLMProvider):
    """
    LLM Provider for OpenAI API.
    """

    id = "openai"
    name = "OpenAI"
    default_model = "gpt-4o"

    def __init__(self, client: Any = None):
        self._client = client

    def _get_client(self, config: LLMConfig):
        """Get the injected client or create one for this config."""
        if self._client is not None:
            return self._client
        return openai.AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url
        )

    async def chat(
        self,
        messages: list[dict[str, Any]],
        config: LLMConfig
    ) -> AsyncIterator[str]:
        """Stream a completion from OpenAI."""
        self.require_api_key(config)
        client = self._get_client(config)

        try:
            stream = await client.chat.completions.create(
                model=self.resolve_model(config),
                messages=messages,
                stream=True,
            )

            async for chunk in stream:
                delta = chunk.choices[0].delta if chunk.choices else None
                if delta is not None and delta.content:
                    yield delta.content
        except openai.APIError as e:
            raise ProviderError(self.id, e.message or "OpenAI API request failed",
                                status_code=getattr(e, "status_code", None)) from e

    async def get_models(self, config: LLMConfig) -> list[str]:
        """List GPT models for the account, or the static list."""
        if not config.api_key:
            return self.get_available_models()

        try:
            page = await self._get_client(config).models.list()
            models = sorted(model.id for model in page.data if model.id.startswith("gpt"))
            return models or self.get_available_models()
        except openai.OpenAIError as e:
            logger.error(f"Error fetching OpenAI models: {e}")
            return self.get_available_models()

    def get_available_models(self) -> list[str]:
        """Get list of available OpenAI models."""
        return [
            "gpt-4o",
            "gpt-4-turbo",
            "gpt-3.5-turbo",
        ]
