"""
Retry logic with exponential backoff for transient storage failures.

SQLite reports a busy or locked database as an OperationalError; those
commits are worth retrying. Everything else propagates on the first failure.
"""

import time
import functools
from typing import Callable, Type, Tuple, Optional


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 5.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
    retry_if: Optional[Callable[[Exception], bool]] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)
        retry_if: Optional predicate; caught exceptions it rejects are
            re-raised immediately

    Example:
        @exponential_backoff(max_retries=3, exceptions=(OperationalError,))
        def commit(session):
            session.commit()
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if retry_if is not None and not retry_if(e):
                        raise
                    if attempt >= max_retries:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)
                    time.sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator


def is_transient_db_error(exception: Exception) -> bool:
    """
    Determine if a database error is likely transient and should be retried.

    Args:
        exception: Exception to check

    Returns:
        True if the error looks like lock contention
    """
    error_str = str(exception).lower()

    transient_keywords = [
        'database is locked',
        'database table is locked',
        'database is busy',
        'disk i/o error',
    ]

    return any(keyword in error_str for keyword in transient_keywords)
