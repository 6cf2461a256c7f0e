"""
Base LLM Provider interface.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from pydantic import BaseModel

from ragchat.exceptions import ConfigurationError


class LLMConfig(BaseModel):
    """Connection settings for one chat call."""
    provider: str
    api_key: str | None = None
    model: str = ""
    base_url: str | None = None


class LLMProvider(ABC):
    """
    Abstract base class for chat providers.

    ``chat`` yields text fragments in the order the backend produces them;
    the sequence ends when the transport signals completion.
    """

    id: str = ""
    name: str = ""
    default_model: str = ""
    requires_api_key: bool = True

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        config: LLMConfig
    ) -> AsyncIterator[str]:
        """
        Stream a chat completion.

        Args:
            messages: List of messages in API format
            config: Provider, credentials, model and base URL

        Yields:
            Text fragments of the response
        """
        pass

    @abstractmethod
    def get_available_models(self) -> list[str]:
        """Static list of known models."""
        pass

    async def get_models(self, config: LLMConfig) -> list[str]:
        """
        List models for the configured account.

        Best-effort: providers that can query their backend override this
        and fall back to ``get_available_models()`` on failure.
        """
        return self.get_available_models()

    def resolve_model(self, config: LLMConfig) -> str:
        return config.model or self.default_model

    def require_api_key(self, config: LLMConfig) -> str:
        """Return the API key or fail before any request is made."""
        if not config.api_key:
            raise ConfigurationError(f"{self.name} API Key is required")
        return config.api_key

    def validate_config(self, config: LLMConfig) -> None:
        """Check the settings a request needs before any network activity."""
        if self.requires_api_key:
            self.require_api_key(config)
