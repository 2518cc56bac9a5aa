"""Retry helpers for local resource acquisition."""
import asyncio
import errno
import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    retry_if_exception_type,
    before_sleep_log,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# errno values worth a second try when opening or binding a socket
TRANSIENT_ERRNOS = frozenset({
    errno.EADDRINUSE,
    errno.EAGAIN,
    errno.EINTR,
    errno.ENOBUFS,
})


def is_transient_os_error(exc: BaseException) -> bool:
    """True for OSErrors that may clear up on their own."""
    return isinstance(exc, OSError) and exc.errno in TRANSIENT_ERRNOS


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 0.05,
    max_wait: float = 0.5,
    exceptions: tuple = (OSError,),
    retry_if: Optional[Callable[[BaseException], bool]] = None,
) -> Callable:
    """Decorator factory for retry logic with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        exceptions: Exception types to retry on
        retry_if: Predicate on the raised exception, overrides `exceptions`
    """
    condition = (
        retry_if_exception(retry_if) if retry_if
        else retry_if_exception_type(exceptions)
    )

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
            retry=condition,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            return await func(*args, **kwargs)  # type: ignore[misc]

        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
            retry=condition,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            return func(*args, **kwargs)

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    return decorator
