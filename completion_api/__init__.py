"""
Completion API Package - Unified async text completion interface for multiple LLM providers

Provider classes live in ``completion_api.providers`` so that importing the
data classes does not pull in every vendor SDK.
"""

from .base import CompletionModel
from .data_classes import (
    CompletionOptions, CompletionRequest, CompletionResponse,
    ProviderConfig, StopReason
)
from .decorators import async_retry
from .exceptions import (
    LLMError, LLMAPIError, LLMAuthenticationError,
    LLMRateLimitError, LLMTimeoutError
)

__version__ = "1.0.0"
__all__ = [
    # Base
    'CompletionModel',
    # Data Classes
    'CompletionOptions', 'CompletionRequest', 'CompletionResponse',
    'ProviderConfig', 'StopReason',
    # Helpers
    'async_retry',
    # Exceptions
    'LLMError', 'LLMAPIError', 'LLMAuthenticationError',
    'LLMRateLimitError', 'LLMTimeoutError',
]
