"""Exponential backoff with jitter, shared by every component that talks
to a flaky collaborator."""
import logging
import random
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

JITTER_RATIO = 0.3


def is_transient_db_error(exc: BaseException) -> bool:
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt`` (1-based)."""
    exponential = base_delay * (2 ** (attempt - 1))
    jitter = random.random() * JITTER_RATIO * exponential
    return min(exponential + jitter, max_delay)


def retry_with_backoff(
    fn: Callable[[], T],
    *,
    attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 2.0,
    should_retry: Callable[[BaseException], bool] = lambda exc: True,
    on_retry: Optional[Callable[[BaseException, int], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` until it succeeds, retrying errors ``should_retry`` accepts.

    Errors the predicate rejects, and the error from the final attempt,
    propagate unchanged.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return fn()
        except Exception as exc:
            if attempt >= attempts or not should_retry(exc):
                raise
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                "Retry attempt %d/%d after %s: %s (next in %.3fs)",
                attempt, attempts, type(exc).__name__, exc, delay,
            )
            if on_retry is not None:
                on_retry(exc, attempt)
            sleep(delay)
            attempt += 1
