"""Bounded retry with linearly increasing backoff for external fetches."""

import logging
import time
from typing import Callable, Tuple, Type, TypeVar

from dividend_ledger.core.exceptions import NotFoundError, SourceUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    fn: Callable[[], T],
    attempts: int = 3,
    backoff_seconds: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (SourceUnavailableError,),
    sleep: Callable[[float], None] = time.sleep,
    description: str = "fetch",
) -> T:
    """
    Call fn, retrying on transient errors.

    The n-th retry waits n * backoff_seconds. NotFoundError is terminal and
    propagates immediately. After the last attempt the transient error is
    re-raised to the caller.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except NotFoundError:
            raise
        except retry_on as e:
            if attempt >= attempts:
                logger.warning("%s failed after %d attempts: %s", description, attempts, e)
                raise
            delay = backoff_seconds * attempt
            logger.info(
                "%s attempt %d/%d failed (%s), retrying in %.1fs",
                description, attempt, attempts, e, delay,
            )
            sleep(delay)
    raise RuntimeError("unreachable")  # pragma: no cover


class RateLimiter:
    """Enforces a minimum delay between consecutive calls."""

    def __init__(
        self,
        min_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._min_interval = min_interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    def wait(self) -> None:
        """Block until the minimum interval since the previous call has elapsed."""
        now = self._clock()
        if self._last_call is not None:
            elapsed = now - self._last_call
            if elapsed < self._min_interval:
                self._sleep(self._min_interval - elapsed)
                now = self._clock()
        self._last_call = now
