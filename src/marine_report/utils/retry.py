"""Retry decorator for transport calls."""
import functools
import logging
from typing import Any, Callable, Optional, Tuple, Type, TypeVar, Union, cast

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

F = TypeVar('F', bound=Callable[..., Any])


def retry_async(
    max_attempts: Union[int, Callable[[Any], int]] = 3,
    min_wait_seconds: float = 0.5,
    max_wait_seconds: float = 4.0,
    exception_types: Optional[Union[Type[BaseException], Tuple[Type[BaseException], ...]]] = None,
    logger_name: Optional[str] = None,
) -> Callable[[F], F]:
    """
    Decorator for adding retry logic to async functions.

    Args:
        max_attempts: Maximum number of attempts, or a callable that reads it
            from the bound instance (the first positional argument)
        min_wait_seconds: Minimum wait time between attempts
        max_wait_seconds: Maximum wait time between attempts
        exception_types: Exception types to retry on (default: Exception)
        logger_name: Logger name for logging retries

    Returns:
        Decorated function; after the last attempt the original exception
        is re-raised
    """
    if exception_types is None:
        exception_types = (Exception,)

    log = logging.getLogger(logger_name or "utils.retry")

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempts = max_attempts(args[0]) if callable(max_attempts) else max_attempts
            retrying = AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=wait_exponential(
                    multiplier=min_wait_seconds,
                    min=min_wait_seconds,
                    max=max_wait_seconds,
                ),
                retry=retry_if_exception_type(exception_types),
                before_sleep=before_sleep_log(log, logging.WARNING),
                reraise=False,
            )

            try:
                return await retrying(func, *args, **kwargs)
            except RetryError as e:
                original_exception = e.last_attempt.exception()
                log.error(
                    f"Failed after {attempts} attempts: "
                    f"{original_exception.__class__.__name__}: {original_exception}"
                )
                raise (original_exception or e) from None

        return cast(F, wrapper)

    return decorator
