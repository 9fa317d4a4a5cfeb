from __future__ import annotations

import logging
import ssl
from functools import wraps
from typing import Any, Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)
from urllib3.exceptions import SSLError as Urllib3SSLError
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import SSLError as RequestsSSLError
from requests.exceptions import Timeout as RequestsTimeout

from avgentry.core.logger import get_logger

log = get_logger("retry")

T = TypeVar("T")

# Network hiccups from the Alpaca REST clients. API rejections are not here.
TRANSIENT_FEED_ERRORS = (
    RequestsConnectionError,
    RequestsTimeout,
    RequestsSSLError,
    Urllib3SSLError,
    ssl.SSLError,
    ConnectionError,
    TimeoutError,
)


def _log_feed_retry(max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        name = getattr(state.fn, "__qualname__", "feed call")
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        log.log(
            logging.INFO,
            f"{name} failed on attempt {state.attempt_number}/{max_attempts} "
            f"({type(error).__name__}: {error}); next try in {delay:.1f}s",
        )

    return before_sleep


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
    exceptions: tuple = TRANSIENT_FEED_ERRORS,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Re-run a position or price read that hit a transient network error.

    Waits grow exponentially from ``min_wait`` up to ``max_wait`` with some
    jitter. Once ``max_attempts`` reads have failed, the last error is raised
    unchanged so the feed can wrap it.

    Example:
        @with_retry(max_attempts=3)
        def _positions(self):
            return self.client.get_all_positions()
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            retrying = Retrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential_jitter(initial=min_wait, max=max_wait, jitter=min_wait / 2),
                retry=retry_if_exception_type(exceptions),
                before_sleep=_log_feed_retry(max_attempts),
                reraise=True,
            )
            return retrying(func, *args, **kwargs)

        return wrapper

    return decorator
