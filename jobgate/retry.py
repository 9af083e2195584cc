"""Retry transient local I/O failures with exponential backoff."""
from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, Iterator, Tuple, Type

from jobgate.log import get_logger

log = get_logger(__name__)


def backoff_delays(
    attempts: int,
    *,
    base_delay: float,
    backoff_factor: float,
    max_delay: float,
    jitter: bool,
) -> Iterator[float]:
    """Sleep durations between *attempts* tries (one fewer than attempts)."""
    for n in range(attempts - 1):
        delay = min(base_delay * backoff_factor ** n, max_delay)
        yield delay * (0.5 + random.random()) if jitter else delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 0.05,
    max_delay: float = 1.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (OSError,),
) -> Callable:
    """Decorator: re-run the wrapped call on *retryable* errors, then re-raise."""

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delays = backoff_delays(
                max_attempts,
                base_delay=base_delay,
                backoff_factor=backoff_factor,
                max_delay=max_delay,
                jitter=jitter,
            )
            attempt = 1
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    delay = next(delays, None)
                    if delay is None:
                        log.error("%s gave up after %d attempt(s): %s", fn.__qualname__, attempt, exc)
                        raise
                    log.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.2fs",
                        fn.__qualname__, attempt, max_attempts, exc, delay,
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
