"""Retry logic for outbound HTTP calls."""

import functools
import logging
import time
from typing import Callable, ParamSpec, TypeVar

import requests

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _retry_after(response: requests.Response | None) -> float | None:
    """Seconds requested by a ``Retry-After`` header, if any."""
    if response is None:
        return None
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def with_retry(
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    initial_delay: float = 1.0,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator for retry logic with exponential backoff.

    Retries connection errors, timeouts and HTTP errors whose status is in
    ``RETRYABLE_STATUS_CODES``. A 429 response waits for ``Retry-After`` when
    the server provides one.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            last_exception: Exception | None = None
            delay = initial_delay

            for attempt in range(max_attempts):
                wait = delay
                try:
                    return func(*args, **kwargs)
                except requests.exceptions.HTTPError as e:
                    status = e.response.status_code if e.response is not None else None
                    if status not in RETRYABLE_STATUS_CODES:
                        raise
                    last_exception = e
                    if status == 429:
                        wait = _retry_after(e.response) or delay
                    logger.warning(
                        "Attempt %d/%d failed with status %s, retrying in %.1fs",
                        attempt + 1,
                        max_attempts,
                        status,
                        wait,
                    )
                except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                    last_exception = e
                    logger.warning(
                        "Attempt %d/%d failed with %s, retrying in %.1fs",
                        attempt + 1,
                        max_attempts,
                        type(e).__name__,
                        wait,
                    )

                if attempt < max_attempts - 1:
                    time.sleep(wait)
                    delay *= backoff_factor

            assert last_exception is not None
            raise last_exception

        return wrapper

    return decorator


__all__ = ["with_retry", "RETRYABLE_STATUS_CODES"]
