from mcpforge.gateway.rate_limit import RateLimiter
from mcpforge.protocol.types import Priority


class _Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_low_priority_allows_ten_per_window():
    limiter = RateLimiter(clock=_Clock())
    results = [limiter.check_and_consume("echo", "c1", Priority.LOW) for _ in range(11)]
    assert all(r.allowed for r in results[:10])
    assert results[9].remaining == 0
    assert results[0].remaining == 9
    assert results[10].allowed is False
    assert results[10].current == 10
    assert results[10].limit == 10


def test_window_resets_after_expiry():
    clock = _Clock()
    limiter = RateLimiter(window_seconds=60, clock=clock)
    for _ in range(10):
        limiter.check_and_consume("echo", "c1", Priority.LOW)
    assert limiter.check_and_consume("echo", "c1", Priority.LOW).allowed is False
    clock.now += 61
    res = limiter.check_and_consume("echo", "c1", Priority.LOW)
    assert res.allowed is True
    assert res.current == 1


def test_keys_are_per_method_and_client():
    limiter = RateLimiter(clock=_Clock())
    for _ in range(10):
        limiter.check_and_consume("echo", "c1", Priority.LOW)
    assert limiter.check_and_consume("echo", "c2", Priority.LOW).allowed is True
    assert limiter.check_and_consume("other", "c1", Priority.LOW).allowed is True
    assert limiter.size() == 3


def test_first_request_in_window_sets_limit():
    limiter = RateLimiter(clock=_Clock())
    first = limiter.check_and_consume("echo", "c1", Priority.LOW)
    later = limiter.check_and_consume("echo", "c1", Priority.CRITICAL)
    assert first.limit == 10
    assert later.limit == 10


def test_empty_client_maps_to_unknown():
    limiter = RateLimiter(clock=_Clock())
    limiter.check_and_consume("echo", "", Priority.NORMAL)
    res = limiter.check_and_consume("echo", None, Priority.NORMAL)
    assert res.current == 2


def test_retry_after_and_prune():
    clock = _Clock(1000.0)
    limiter = RateLimiter(window_seconds=60, clock=clock)
    res = limiter.check_and_consume("echo", "c1", Priority.NORMAL)
    assert res.reset_time_ms == 1060000
    assert res.retry_after_seconds(1000.5) == 60
    assert res.retry_after_seconds(2000.0) == 1
    clock.now += 120
    assert limiter.prune() == 1
    assert limiter.size() == 0


def test_custom_priority_limits():
    limiter = RateLimiter(priority_limits={Priority.NORMAL: 2}, clock=_Clock())
    assert limiter.limit_for(Priority.NORMAL) == 2
    assert limiter.limit_for(Priority.HIGH) == 60
