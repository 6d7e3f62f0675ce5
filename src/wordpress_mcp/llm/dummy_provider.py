"""
Dummy LLM provider returning canned responses, for tests and offline runs.
"""

from typing import Any, Optional

from wordpress_mcp.llm.base import LLMProvider, LLMResponse
from wordpress_mcp.llm.config import DummyProviderConfig, LLMConfig
from wordpress_mcp.llm.exceptions import LLMError


class DummyProvider(LLMProvider):
    """
    Provider that never leaves the process.

    Records the prompts it receives so tests can inspect them.
    """

    def __init__(
        self,
        config: LLMConfig,
        dummy_config: Optional[DummyProviderConfig] = None,
    ):
        super().__init__(config)
        self.dummy_config = dummy_config or DummyProviderConfig()
        self.prompts: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def complete(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        self.prompts.append(prompt)

        if self.dummy_config.should_fail:
            raise LLMError(
                self.dummy_config.error_message,
                provider=self.provider_name,
                model=self.model_name,
            )

        return LLMResponse(
            content=self.dummy_config.response_text,
            model=self.model_name,
            finish_reason="stop",
        )
