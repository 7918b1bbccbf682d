"""
Retry decorator for calls that cross into the Hadoop/Spark JVM.

Filesystem listing (``globStatus``, ``getContentSummary``,
``getDefaultBlockSize``) and Spark writes talk to the NameNode over the
network.  A NameNode failover or a dropped Py4J socket is retried with
exponential back-off; anything else propagates on the first failure.

The sizing arithmetic itself is never retried: its inputs are a fixed
snapshot and a second attempt would produce the same answer.
"""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from py4j.protocol import Py4JNetworkError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_DEFAULT_MAX_RETRIES = 3
_DEFAULT_BACKOFF_SEC = 2.0
_DEFAULT_BACKOFF_FACTOR = 2.0

# Py4JNetworkError: the Python side lost its gateway connection to the JVM.
_TRANSIENT_EXCEPTIONS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    Py4JNetworkError,
)


def retry(
    max_retries: int = _DEFAULT_MAX_RETRIES,
    backoff_sec: float = _DEFAULT_BACKOFF_SEC,
    backoff_factor: float = _DEFAULT_BACKOFF_FACTOR,
    retryable_exceptions: tuple[type[BaseException], ...] = _TRANSIENT_EXCEPTIONS,
) -> Callable[[F], F]:
    """Retry the decorated function on transient exceptions.

    Parameters
    ----------
    max_retries : int
        Retries after the first attempt (0 = call once).
    backoff_sec : float
        Wait before the first retry.
    backoff_factor : float
        Multiplier applied to the wait after every retry.
    retryable_exceptions : tuple
        Exception types that trigger a retry.

    Examples
    --------
    >>> @retry(max_retries=2, backoff_sec=0.5)
    ... def default_block_size(path):
    ...     ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            wait = backoff_sec
            attempt = 1
            while True:
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as exc:
                    if attempt > max_retries:
                        logger.error(
                            "[retry] %s failed after %d attempt(s): %s",
                            func.__qualname__, attempt, exc,
                        )
                        raise
                    logger.warning(
                        "[retry] %s attempt %d/%d failed (%s). Retrying in %.1fs …",
                        func.__qualname__, attempt, max_retries + 1, exc, wait,
                    )
                    time.sleep(wait)
                    wait *= backoff_factor
                    attempt += 1

        return wrapper  # type: ignore[return-value]

    return decorator
