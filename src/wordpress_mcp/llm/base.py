"""
Abstract base class for LLM providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from wordpress_mcp.llm.config import LLMConfig


@dataclass
class LLMResponse:
    """
    Response from a completion request.

    Attributes:
        content: The generated text
        model: The model that produced it
        finish_reason: Why generation stopped, if reported
        usage: Token usage statistics, if reported
        raw_response: Raw response body, kept for debugging
    """

    content: str
    model: str
    finish_reason: Optional[str] = None
    usage: Optional[dict[str, int]] = None
    raw_response: Optional[dict[str, Any]] = field(default=None, repr=False)


class LLMProvider(ABC):
    """Interface every completion backend implements."""

    def __init__(self, config: LLMConfig):
        self.config = config

    @property
    def provider_name(self) -> str:
        return self.config.provider.value

    @property
    def model_name(self) -> str:
        return self.config.model

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a complete response.

        Args:
            prompt: User prompt
            system_prompt: Overrides the configured system prompt
            **kwargs: Generation parameter overrides

        Raises:
            LLMError: Or one of its subclasses on any provider failure
        """
        ...

    def _prepare_messages(
        self, prompt: str, system_prompt: Optional[str] = None
    ) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        effective_system_prompt = system_prompt or self.config.system_prompt
        if effective_system_prompt:
            messages.append({"role": "system", "content": effective_system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _merge_generation_params(self, **kwargs: Any) -> dict[str, Any]:
        params = self.config.to_generation_params()
        for key, value in kwargs.items():
            if value is not None:
                params[key] = value
        return params

    async def close(self) -> None:
        """Release held resources (HTTP clients etc.)."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider_name}, model={self.model_name})"
