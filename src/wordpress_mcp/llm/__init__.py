"""
LLM provider layer used for AI-assisted analysis.

Example:
    ```python
    from wordpress_mcp.llm import LLMConfig, get_provider

    provider = get_provider(LLMConfig(api_key="sk-..."))
    response = await provider.complete("Hello")
    ```
"""

from wordpress_mcp.llm.base import LLMProvider, LLMResponse
from wordpress_mcp.llm.config import DummyProviderConfig, LLMConfig, ProviderType
from wordpress_mcp.llm.dummy_provider import DummyProvider
from wordpress_mcp.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMModelNotFoundError,
    LLMProviderNotFoundError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)
from wordpress_mcp.llm.factory import get_provider, list_providers, register_provider
from wordpress_mcp.llm.openai_provider import OpenAIProvider

__all__ = [
    # Config
    "LLMConfig",
    "DummyProviderConfig",
    "ProviderType",
    # Providers
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "DummyProvider",
    # Factory
    "get_provider",
    "list_providers",
    "register_provider",
    # Exceptions
    "LLMError",
    "LLMConnectionError",
    "LLMAuthenticationError",
    "LLMTimeoutError",
    "LLMRateLimitError",
    "LLMResponseError",
    "LLMModelNotFoundError",
    "LLMProviderNotFoundError",
]
