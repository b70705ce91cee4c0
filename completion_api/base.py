"""Abstract base class that normalises the completion provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .data_classes import (
    CompletionOptions,
    CompletionRequest,
    CompletionResponse,
    ProviderConfig,
)
from .exceptions import error_for_type


class CompletionModel(ABC):
    """Abstract base class for all text completion providers."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = api_key
        self.model_name = model_name
        self.client = None
        self.provider_config = self._get_provider_config()
        self.setup_client()

    @abstractmethod
    def setup_client(self) -> None:
        """Initialise the provider client."""

    @abstractmethod
    def _get_provider_config(self) -> ProviderConfig:
        """Return provider specific configuration metadata."""

    # ------------------------------------------------------------------
    # Core API methods that providers must implement
    # ------------------------------------------------------------------
    @abstractmethod
    async def generate(self, request: CompletionRequest) -> CompletionResponse:
        """Run one completion. Errors are reported on the response."""

    # ------------------------------------------------------------------
    # Convenience API
    # ------------------------------------------------------------------
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        options: Optional[CompletionOptions] = None,
    ) -> str:
        """Return the completion text, raising an ``LLMError`` on failure.

        Rate limits raise ``LLMRateLimitError`` and timeouts ``LLMTimeoutError``.

        Empty text is returned as-is; callers decide what an empty answer
        means for them.
        """

        request = CompletionRequest(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            options=options or CompletionOptions(),
        )
        response = await self.generate(request)
        if not response.success:
            error_class = error_for_type(response.error_type)
            raise error_class(
                message=response.error or "unknown error",
                provider=self.get_provider_name(),
                error_type=response.error_type or "completion_failed",
            )
        return response.text or ""

    # ------------------------------------------------------------------
    # Utility helpers
    # ------------------------------------------------------------------
    def get_provider_name(self) -> str:
        """Return the provider name."""

        return self.provider_config.provider_name

    def resolve_model(self, request: CompletionRequest) -> Optional[str]:
        return request.model_name or self.model_name
