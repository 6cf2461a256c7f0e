"""
Anthropic Claude LLM Provider.
"""

from typing import Any, AsyncIterator

import anthropic

from ragchat.exceptions import ProviderError
from ragchat.providers.base import LLMConfig, LLMProvider


class AnthropicProvider(LLMProvider):
    """
    LLM Provider for Anthropic Claude API.
    """

    id = "anthropic"
    name = "Anthropic"
    default_model = "claude-3-5-sonnet-latest"

    def __init__(self, client: Any = None, max_tokens: int = 4096):
        self._client = client
        self.max_tokens = max_tokens

    def _get_client(self, config: LLMConfig):
        """Get the injected client or create one for this config."""
        if self._client is not None:
            return self._client
        return anthropic.AsyncAnthropic(
            api_key=config.api_key,
            base_url=config.base_url
        )

    def _convert_messages(
        self,
        messages: list[dict[str, Any]]
    ) -> tuple[str, list[dict[str, Any]]]:
        """
        Convert messages to Anthropic format.
        Returns (system_prompt, messages)
        """
        system_parts = []
        converted = []

        for msg in messages:
            role = msg.get("role", "")
            content = msg.get("content", "")

            if role == "system":
                system_parts.append(content)
            elif role in ("user", "assistant"):
                converted.append({"role": role, "content": content})

        return "\n\n".join(system_parts), converted

    async def chat(
        self,
        messages: list[dict[str, Any]],
        config: LLMConfig
    ) -> AsyncIterator[str]:
        """Stream a completion from Anthropic."""
        self.require_api_key(config)
        client = self._get_client(config)
        system_prompt, converted_messages = self._convert_messages(messages)

        params: dict[str, Any] = {
            "model": self.resolve_model(config),
            "messages": converted_messages,
            "max_tokens": self.max_tokens,
        }
        if system_prompt:
            params["system"] = system_prompt

        try:
            async with client.messages.stream(**params) as stream:
                async for event in stream:
                    if event.type == "content_block_delta" and event.delta.type == "text_delta":
                        yield event.delta.text
        except anthropic.APIError as e:
            raise ProviderError(self.id, e.message or "Anthropic API request failed",
                                status_code=getattr(e, "status_code", None)) from e

    def get_available_models(self) -> list[str]:
        """Get list of available Anthropic models."""
        return [
            "claude-3-5-sonnet-latest",
            "claude-3-5-haiku-latest",
            "claude-3-opus-latest",
        ]
