import asyncio
import functools
import logging
from typing import Awaitable, Callable, TypeVar

from .exceptions import LLMAPIError, LLMAuthenticationError

T = TypeVar('T')

LOGGER = logging.getLogger(__name__)


def async_retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple = (Exception,)
):
    """
    Retry decorator with exponential backoff for coroutine functions

    Args:
        max_attempts: Maximum number of attempts (the first call included)
        delay: Initial delay between attempts (seconds)
        backoff: Multiplier applied to the delay after each failed attempt
        exceptions: Tuple of exceptions that trigger a retry
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            current_delay = delay

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except LLMAuthenticationError:
                    raise
                except exceptions as e:
                    if attempt < max_attempts - 1:
                        LOGGER.warning(
                            "%s failed (attempt %d/%d): %s",
                            func.__name__, attempt + 1, max_attempts, e,
                        )
                        await asyncio.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        raise LLMAPIError(
                            message=f"Failed after {max_attempts} attempts",
                            error_type="retry_exhausted",
                            original_error=e
                        ) from e

            raise LLMAPIError(message="No attempts were made", error_type="retry_exhausted")

        return wrapper
    return decorator
