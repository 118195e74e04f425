"""Tests for the fixed-window rate limiter."""

import pytest

from notekeeper.errors import RateLimitError
from notekeeper.middleware import FixedWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_blocks_after_max_requests():
    limiter = FixedWindowRateLimiter(2, 60, clock=FakeClock())
    limiter.hit("1.2.3.4")
    limiter.hit("1.2.3.4")

    with pytest.raises(RateLimitError):
        limiter.hit("1.2.3.4")


def test_keys_are_counted_separately():
    limiter = FixedWindowRateLimiter(1, 60, clock=FakeClock())
    limiter.hit("a")
    limiter.hit("b")


def test_window_resets():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(1, 60, message="slow down", clock=clock)
    limiter.hit("a")
    with pytest.raises(RateLimitError) as exc:
        limiter.hit("a")
    assert exc.value.message == "slow down"

    clock.now = 60
    limiter.hit("a")


def test_expired_keys_are_forgotten():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(5, 60, clock=clock)
    for n in range(100):
        limiter.hit(f"10.0.0.{n}")

    clock.now = 61
    limiter.hit("10.0.1.1")

    assert list(limiter._windows) == ["10.0.1.1"]


def test_live_keys_survive_sweep():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(1, 60, clock=clock)
    limiter.hit("old")
    clock.now = 30
    limiter.hit("recent")

    clock.now = 70
    limiter.hit("new")

    assert set(limiter._windows) == {"recent", "new"}
    with pytest.raises(RateLimitError):
        limiter.hit("recent")
