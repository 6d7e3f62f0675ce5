"""
OpenAI-compatible LLM provider.

Works with the OpenAI API and any server exposing the same
``/chat/completions`` endpoint (Ollama, LM Studio, vLLM, ...).
"""

import logging
from typing import Any, Optional

import httpx

from wordpress_mcp.llm.base import LLMProvider, LLMResponse
from wordpress_mcp.llm.config import LLMConfig
from wordpress_mcp.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMModelNotFoundError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """
    Chat completions over HTTP with httpx.

    Example:
        ```python
        provider = OpenAIProvider(LLMConfig(api_key="sk-..."))
        response = await provider.complete("Summarise these changes")
        print(response.content)
        await provider.close()
        ```
    """

    def __init__(
        self,
        config: LLMConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            config: LLM configuration with base_url, model, etc.
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._build_headers(),
                transport=self._transport,
            )
        return self._client

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        api_key = self.config.get_api_key()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _handle_error_response(self, response: httpx.Response) -> None:
        """Convert an HTTP error response to the matching exception."""
        status_code = response.status_code

        try:
            error = response.json().get("error", {})
            detail = error if isinstance(error, str) else error.get("message", response.text)
        except (ValueError, AttributeError):
            detail = response.text or f"HTTP {status_code}"

        common_kwargs = {
            "provider": self.provider_name,
            "model": self.model_name,
        }

        if status_code == 401:
            raise LLMAuthenticationError(detail, **common_kwargs)
        if status_code == 404:
            raise LLMModelNotFoundError(
                f"Model '{self.config.model}' not found: {detail}", **common_kwargs
            )
        if status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise LLMRateLimitError(
                detail,
                retry_after=float(retry_after) if retry_after else None,
                **common_kwargs,
            )
        if status_code >= 500:
            raise LLMResponseError(
                f"Server error: {detail}", status_code=status_code, **common_kwargs
            )
        raise LLMResponseError(detail, status_code=status_code, **common_kwargs)

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        client = await self._get_client()
        request_body = {
            "messages": self._prepare_messages(prompt, system_prompt),
            "stream": False,
            **self._merge_generation_params(**kwargs),
        }

        logger.debug(f"Sending completion request to {self.config.base_url}/chat/completions")

        try:
            response = await client.post("/chat/completions", json=request_body)
            if not response.is_success:
                self._handle_error_response(response)

            data = response.json()
            choice = data["choices"][0]
            return LLMResponse(
                content=choice["message"]["content"] or "",
                model=data.get("model", self.config.model),
                finish_reason=choice.get("finish_reason"),
                usage=data.get("usage"),
                raw_response=data,
            )
        except LLMError:
            raise
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(
                f"Request timed out after {self.config.timeout}s: {e}",
                provider=self.provider_name,
                model=self.model_name,
            ) from e
        except httpx.HTTPError as e:
            raise LLMConnectionError(
                f"Failed to connect to {self.config.base_url}: {e}",
                provider=self.provider_name,
                model=self.model_name,
            ) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise LLMResponseError(
                f"Unexpected response format: {e}",
                provider=self.provider_name,
                model=self.model_name,
            ) from e

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
