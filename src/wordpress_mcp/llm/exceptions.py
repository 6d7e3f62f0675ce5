"""
LLM-specific exceptions.
"""

from typing import Any, Optional


class LLMError(Exception):
    """Base exception for all LLM-related errors."""

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.model = model
        self.details = details or {}

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.model:
            parts.append(f"model={self.model}")
        return " ".join(parts)


class LLMConnectionError(LLMError):
    """Raised when the endpoint cannot be reached."""


class LLMAuthenticationError(LLMError):
    """Raised when the API key is rejected."""


class LLMTimeoutError(LLMError):
    """Raised when a request times out."""


class LLMRateLimitError(LLMError):
    """Raised when the endpoint rate-limits the client."""

    def __init__(self, message: str, *, retry_after: Optional[float] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class LLMResponseError(LLMError):
    """Raised for error statuses and malformed response bodies."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class LLMModelNotFoundError(LLMError):
    """Raised when the configured model does not exist."""


class LLMProviderNotFoundError(LLMError):
    """Raised when no provider is registered for a provider type."""
