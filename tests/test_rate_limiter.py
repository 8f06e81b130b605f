"""Tests for the per-sender sliding window rate limiter."""

from unittest.mock import patch

from council.channels.rate_limit import RateLimiter


def _at(seconds: float):
    """Freeze the limiter's clock at *seconds*."""
    mocked = patch("council.channels.rate_limit.time")
    mock_time = mocked.start()
    mock_time.monotonic.return_value = seconds
    return mocked


class TestRateLimiter:
    def test_allows_first_request(self):
        limiter = RateLimiter(max_per_minute=5, max_per_hour=100)
        assert limiter.check("armaan") == (True, 0)

    def test_blocks_over_minute_limit(self):
        limiter = RateLimiter(max_per_minute=3, max_per_hour=100)
        for _ in range(3):
            assert limiter.check("armaan")[0] is True

        allowed, retry_after = limiter.check("armaan")
        assert allowed is False
        assert 1 <= retry_after <= 61

    def test_blocks_over_hour_limit(self):
        """Requests spread over minutes still hit the hourly cap."""
        limiter = RateLimiter(max_per_minute=100, max_per_hour=5)
        base = 1000.0
        for i in range(5):
            mocked = _at(base + i * 61)
            limiter.check("armaan")
            mocked.stop()

        mocked = _at(base + 5 * 61)
        try:
            allowed, retry_after = limiter.check("armaan")
        finally:
            mocked.stop()
        assert allowed is False
        assert retry_after == int(base + 3600 - (base + 5 * 61)) + 1

    def test_rejected_requests_are_not_recorded(self):
        limiter = RateLimiter(max_per_minute=1, max_per_hour=100)
        mocked = _at(1000.0)
        limiter.check("armaan")
        for _ in range(5):
            assert limiter.check("armaan")[0] is False
        mocked.stop()

        mocked = _at(1061.0)
        try:
            assert limiter.check("armaan") == (True, 0)
        finally:
            mocked.stop()

    def test_different_senders_independent(self):
        limiter = RateLimiter(max_per_minute=2, max_per_hour=100)
        limiter.check("armaan")
        limiter.check("armaan")

        assert limiter.check("armaan")[0] is False
        assert limiter.check("observer")[0] is True

    def test_window_slides(self):
        limiter = RateLimiter(max_per_minute=2, max_per_hour=100)
        base = 1000.0
        mocked = _at(base)
        limiter.check("armaan")
        limiter.check("armaan")
        mocked.stop()

        mocked = _at(base + 30)
        assert limiter.check("armaan")[0] is False
        mocked.stop()

        mocked = _at(base + 61)
        try:
            assert limiter.check("armaan") == (True, 0)
        finally:
            mocked.stop()

    def test_reset(self):
        limiter = RateLimiter(max_per_minute=1, max_per_hour=100)
        limiter.check("armaan")
        limiter.check("observer")

        limiter.reset("armaan")
        assert limiter.check("armaan")[0] is True
        assert limiter.check("observer")[0] is False

        limiter.reset()
        assert limiter.check("observer")[0] is True
