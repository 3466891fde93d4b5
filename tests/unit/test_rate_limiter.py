"""Unit tests for the sliding-window rate limiter."""

import pytest

from device_gateway.api.middleware import RateLimiter


@pytest.fixture
def limiter(clock):
    return RateLimiter(max_requests=3, window_seconds=60, clock=clock)


def test_allows_up_to_limit(limiter):
    decisions = [limiter.hit("10.0.0.1") for _ in range(4)]

    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert [d.remaining for d in decisions] == [2, 1, 0, 0]
    assert decisions[-1].limit == 3


def test_clients_are_counted_separately(limiter):
    for _ in range(3):
        limiter.hit("10.0.0.1")

    assert limiter.hit("10.0.0.1").allowed is False
    assert limiter.hit("10.0.0.2").allowed is True


def test_window_slides(limiter, clock):
    limiter.hit("10.0.0.1")
    clock.advance(30)
    limiter.hit("10.0.0.1")
    limiter.hit("10.0.0.1")

    blocked = limiter.hit("10.0.0.1")
    assert blocked.allowed is False
    assert blocked.reset_seconds == 30

    clock.advance(30)
    assert limiter.hit("10.0.0.1").allowed is True


def test_rejected_requests_are_not_counted(limiter, clock):
    for _ in range(10):
        limiter.hit("10.0.0.1")

    clock.advance(60)
    assert limiter.hit("10.0.0.1").remaining == 2


def test_prune_forgets_idle_clients(limiter, clock):
    limiter.hit("10.0.0.1")
    clock.advance(45)
    limiter.hit("10.0.0.2")

    clock.advance(20)
    limiter.prune()

    assert len(limiter) == 1
