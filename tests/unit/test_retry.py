"""Unit tests for bounded retry and request spacing."""

import pytest

from dividend_ledger.core.exceptions import NotFoundError, SourceUnavailableError
from dividend_ledger.core.retry import RateLimiter, call_with_retry

from tests.conftest import FakeClock


class Sequence:
    """Callable that raises or returns the queued outcomes in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class TestCallWithRetry:
    def test_returns_first_success(self):
        sleeps = []
        fn = Sequence("ok")

        assert call_with_retry(fn, sleep=sleeps.append) == "ok"
        assert fn.calls == 1
        assert sleeps == []

    def test_backoff_grows_linearly(self):
        """
        GIVEN two transient failures followed by a success
        WHEN called with a 2s backoff
        THEN it waits 2s then 4s and returns the result
        """
        sleeps = []
        fn = Sequence(
            SourceUnavailableError("src", "timeout"),
            SourceUnavailableError("src", "timeout"),
            "ok",
        )

        assert call_with_retry(fn, attempts=3, backoff_seconds=2.0, sleep=sleeps.append) == "ok"
        assert sleeps == [2.0, 4.0]

    def test_exhausted_attempts_reraise(self):
        sleeps = []
        fn = Sequence(*[SourceUnavailableError("src", "down")] * 3)

        with pytest.raises(SourceUnavailableError):
            call_with_retry(fn, attempts=3, backoff_seconds=1.0, sleep=sleeps.append)

        assert fn.calls == 3
        assert sleeps == [1.0, 2.0]

    def test_not_found_is_terminal(self):
        sleeps = []
        fn = Sequence(NotFoundError("Instrument", "ZZZZ11"), "never")

        with pytest.raises(NotFoundError):
            call_with_retry(fn, sleep=sleeps.append)

        assert fn.calls == 1
        assert sleeps == []

    def test_unlisted_errors_propagate_immediately(self):
        fn = Sequence(ValueError("bad"), "never")

        with pytest.raises(ValueError):
            call_with_retry(fn, sleep=lambda s: None)

        assert fn.calls == 1

    def test_custom_retry_on(self):
        fn = Sequence(ConnectionError("reset"), "ok")

        assert call_with_retry(fn, retry_on=(ConnectionError,), sleep=lambda s: None) == "ok"

    def test_at_least_one_attempt(self):
        fn = Sequence("ok")

        assert call_with_retry(fn, attempts=0, sleep=lambda s: None) == "ok"


class TestRateLimiter:
    def test_first_call_does_not_wait(self):
        sleeps = []
        limiter = RateLimiter(1.0, clock=FakeClock(), sleep=sleeps.append)

        limiter.wait()

        assert sleeps == []

    def test_waits_out_remaining_interval(self):
        clock = FakeClock()
        sleeps = []
        limiter = RateLimiter(1.0, clock=clock, sleep=sleeps.append)

        limiter.wait()
        clock.advance(0.25)
        limiter.wait()

        assert sleeps == [pytest.approx(0.75)]

    def test_no_wait_after_interval_elapsed(self):
        clock = FakeClock()
        sleeps = []
        limiter = RateLimiter(1.0, clock=clock, sleep=sleeps.append)

        limiter.wait()
        clock.advance(2)
        limiter.wait()

        assert sleeps == []
