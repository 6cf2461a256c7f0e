"""
LLM Providers module.
"""

from ragchat.exceptions import ConfigurationError
from ragchat.providers.base import LLMConfig, LLMProvider
from ragchat.providers.anthropic import AnthropicProvider
from ragchat.providers.gemini import GeminiProvider
from ragchat.providers.huggingface import HuggingFaceProvider
from ragchat.providers.ollama import OllamaProvider
from ragchat.providers.openai import OpenAIProvider

PROVIDERS: dict[str, type[LLMProvider]] = {
    OpenAIProvider.id: OpenAIProvider,
    AnthropicProvider.id: AnthropicProvider,
    GeminiProvider.id: GeminiProvider,
    OllamaProvider.id: OllamaProvider,
    HuggingFaceProvider.id: HuggingFaceProvider,
}


def get_provider(tag: str) -> LLMProvider:
    """Instantiate the provider registered under ``tag``."""
    provider_cls = PROVIDERS.get(tag)
    if provider_cls is None:
        raise ConfigurationError(f"Unknown provider: {tag}")
    return provider_cls()


__all__ = [
    "LLMConfig",
    "LLMProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "HuggingFaceProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "PROVIDERS",
    "get_provider",
]
