from typing import Optional
from datetime import datetime


class LLMError(Exception):
    """Base exception for all completion provider errors"""

    def __init__(
        self,
        message: str,
        provider: str = "",
        error_type: str = "general",
        retry_after: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.error_type = error_type
        self.retry_after = retry_after
        self.original_error = original_error
        self.timestamp = datetime.now()

    def __str__(self):
        return f"[{self.provider}] {self.error_type}: {self.message}"


class LLMAPIError(LLMError):
    """API request failed"""
    pass


class LLMAuthenticationError(LLMError):
    """Authentication failed (missing or invalid API key)"""
    pass


class LLMRateLimitError(LLMError):
    """Rate limit exceeded"""
    pass


class LLMTimeoutError(LLMError):
    """Request timed out"""
    pass


# Values of CompletionResponse.error_type
RATE_LIMIT = "rate_limit"
TIMEOUT = "timeout"
API_ERROR = "api_error"


def error_for_type(error_type: Optional[str]) -> type:
    """Exception class matching a response ``error_type``"""
    return {RATE_LIMIT: LLMRateLimitError, TIMEOUT: LLMTimeoutError}.get(error_type, LLMAPIError)
