"""
LLM configuration models.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator


class ProviderType(str, Enum):
    """Supported LLM provider types."""

    OPENAI = "openai"
    OLLAMA = "ollama"
    LMSTUDIO = "lmstudio"
    DUMMY = "dummy"


class LLMConfig(BaseModel):
    """
    Configuration for an OpenAI-compatible chat completions endpoint.

    Example:
        ```python
        config = LLMConfig(
            provider=ProviderType.OPENAI,
            model="gpt-4o-mini",
            base_url="https://api.openai.com/v1",
            api_key="sk-...",
        )
        ```
    """

    provider: ProviderType = Field(
        default=ProviderType.OPENAI,
        description="The LLM provider type to use",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier",
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL for the API endpoint",
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key sent as a bearer token",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: Optional[int] = Field(
        default=None,
        gt=0,
        description="Maximum tokens to generate (None = model default)",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )
    system_prompt: Optional[str] = Field(
        default=None,
        description="System prompt prepended to every request",
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def get_api_key(self) -> Optional[str]:
        """Get the API key as a plain string."""
        if self.api_key:
            return self.api_key.get_secret_value()
        return None

    def to_generation_params(self) -> dict[str, Any]:
        """Generation parameters for the request body (None values dropped)."""
        params: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            params["max_tokens"] = self.max_tokens
        return params


class DummyProviderConfig(BaseModel):
    """Canned behaviour for the dummy provider."""

    response_text: str = Field(
        default='{"message": "No issues found", "action": "monitor", "success": true}',
        description="Text returned by complete()",
    )
    should_fail: bool = Field(
        default=False,
        description="If True, complete() raises an LLMError",
    )
    error_message: str = Field(
        default="Simulated dummy provider error",
        description="Message of the raised error when should_fail is True",
    )
