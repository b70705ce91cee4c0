import asyncio
import logging
import os
from typing import Optional, Tuple

from dotenv import load_dotenv

from ..base import CompletionModel
from ..data_classes import CompletionRequest, CompletionResponse, StopReason
from ..exceptions import API_ERROR, RATE_LIMIT, TIMEOUT, LLMAuthenticationError

LOGGER = logging.getLogger(__name__)


class BaseProvider(CompletionModel):
    """Base class with common provider functionality"""

    env_var_name: str = ""
    # SDK exception types reported as rate limits / timeouts
    rate_limit_errors: Tuple[type, ...] = ()
    timeout_errors: Tuple[type, ...] = ()

    def _get_api_key(self, env_var_name: Optional[str] = None) -> str:
        """Get API key from the instance or the environment (.env included)"""
        load_dotenv()
        name = env_var_name or self.env_var_name
        api_key = self.api_key or os.getenv(name)

        if not api_key:
            raise LLMAuthenticationError(
                message=f"API key required. Set {name} or pass api_key parameter",
                provider=self.__class__.__name__,
                error_type="missing_api_key"
            )

        return api_key

    def _validate_request(self, request: CompletionRequest) -> None:
        """Common request validation"""
        if not request.has_prompt:
            raise ValueError("Request must have a system or user prompt")

        limit = self.provider_config.max_tokens_limit
        max_tokens = request.options.max_output_tokens
        if limit and max_tokens and max_tokens > limit:
            raise ValueError(f"max_output_tokens exceeds limit: {limit}")

    def _classify_error(self, error: Exception) -> str:
        if isinstance(error, self.rate_limit_errors) or getattr(error, "status_code", None) == 429:
            return RATE_LIMIT
        if isinstance(error, self.timeout_errors + (TimeoutError, asyncio.TimeoutError)):
            return TIMEOUT
        return API_ERROR

    def _error_response(self, model: Optional[str], error: Exception) -> CompletionResponse:
        """Report a failed SDK call on the response instead of raising"""
        error_type = self._classify_error(error)
        LOGGER.warning("%s request failed (%s): %s", self.get_provider_name(), error_type, error)
        return CompletionResponse(
            text="",
            model_used=model,
            error=str(error),
            error_type=error_type,
            stop_reason=StopReason.OTHER,
        )
