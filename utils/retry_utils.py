"""
Retry helper for transient database failures.

Only used for idempotent reads. Writes are never retried here: a failed
insert is reported to the caller as-is.
"""

import time
from typing import Callable, Optional, TypeVar

import httpx
import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Error codes that usually indicate a temporary condition
RETRYABLE_CODES = frozenset({
    "ECONNRESET",
    "ETIMEDOUT",
    "ECONNREFUSED",
    "PGRST301",  # Supabase connection issues
    "08006",     # PostgreSQL connection failure
    "57P01",     # PostgreSQL admin shutdown
    "40001",     # PostgreSQL serialization failure
})


def is_retryable_error(error: BaseException) -> bool:
    """
    Decide whether an error is worth retrying.

    Network/transport failures and known temporary database codes are
    retryable; everything else is not.
    """
    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return True

    code = getattr(error, "code", None)
    if code is not None:
        return str(code) in RETRYABLE_CODES

    return False


def retry_query(
    fn: Callable[[], T],
    max_retries: int = 3,
    delay: float = 1.0,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    should_retry: Callable[[Exception], bool] = is_retryable_error,
) -> T:
    """
    Call fn, retrying on retryable errors.

    Waits delay * attempt seconds between attempts.

    Args:
        fn: Zero-argument callable to execute
        max_retries: Total attempts, including the first
        delay: Base delay in seconds
        on_retry: Called with (error, attempt) before each retry
        should_retry: Predicate deciding whether an error is retried

    Returns:
        Whatever fn returns

    Raises:
        The last error once attempts are exhausted or the error is not retryable
    """
    attempt = 0

    while True:
        try:
            return fn()
        except Exception as e:
            attempt += 1

            if attempt >= max_retries or not should_retry(e):
                raise

            logger.warning(
                "query_retry",
                attempt=attempt,
                max_retries=max_retries,
                error=str(e),
                error_type=type(e).__name__
            )
            if on_retry is not None:
                on_retry(e, attempt)

            time.sleep(delay * attempt)
