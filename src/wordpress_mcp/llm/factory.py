"""
LLM provider factory.
"""

from typing import Callable, Optional

from wordpress_mcp.llm.base import LLMProvider
from wordpress_mcp.llm.config import DummyProviderConfig, LLMConfig, ProviderType
from wordpress_mcp.llm.dummy_provider import DummyProvider
from wordpress_mcp.llm.exceptions import LLMProviderNotFoundError
from wordpress_mcp.llm.openai_provider import OpenAIProvider

ProviderFactory = Callable[[LLMConfig], LLMProvider]

_PROVIDER_REGISTRY: dict[ProviderType, ProviderFactory] = {
    ProviderType.OPENAI: OpenAIProvider,
    ProviderType.OLLAMA: OpenAIProvider,
    ProviderType.LMSTUDIO: OpenAIProvider,
}


def register_provider(provider_type: ProviderType, factory: ProviderFactory) -> None:
    """Register (or replace) the factory for a provider type."""
    _PROVIDER_REGISTRY[provider_type] = factory


def get_provider(
    config: LLMConfig,
    *,
    dummy_config: Optional[DummyProviderConfig] = None,
) -> LLMProvider:
    """
    Create an LLM provider for a configuration.

    Raises:
        LLMProviderNotFoundError: If the provider type is not registered
    """
    if config.provider == ProviderType.DUMMY:
        return DummyProvider(config, dummy_config)

    factory = _PROVIDER_REGISTRY.get(config.provider)
    if factory is None:
        available = ", ".join(p.value for p in _PROVIDER_REGISTRY)
        raise LLMProviderNotFoundError(
            f"Unknown provider type: {config.provider.value}. "
            f"Available providers: {available}",
            provider=config.provider.value,
        )
    return factory(config)


def list_providers() -> list[str]:
    """Names of all usable provider types."""
    return [p.value for p in _PROVIDER_REGISTRY] + [ProviderType.DUMMY.value]
