"""Tests for the in-memory login throttle (core.rate_limit)."""

from core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _limiter(clock, **kwargs):
    return RateLimiter(max_attempts=5, window_seconds=900, clock=clock, **kwargs)


def test_sixth_attempt_in_window_is_rejected():
    limiter = _limiter(FakeClock())
    results = [limiter.hit("10.0.0.1") for _ in range(6)]
    assert [r.allowed for r in results] == [True] * 5 + [False]
    assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0]


def test_reset_at_marks_end_of_window():
    clock = FakeClock()
    limiter = _limiter(clock)
    assert limiter.hit("ip").reset_at == clock.now + 900


def test_window_elapses():
    clock = FakeClock()
    limiter = _limiter(clock)
    for _ in range(6):
        limiter.hit("ip")
    clock.advance(900)
    result = limiter.hit("ip")
    assert result.allowed
    assert result.remaining == 4


def test_keys_are_independent():
    limiter = _limiter(FakeClock())
    for _ in range(6):
        limiter.hit("a")
    assert limiter.hit("b").allowed


def test_expired_windows_are_swept():
    clock = FakeClock()
    limiter = _limiter(clock, sweep_interval=60)
    limiter.hit("a")
    limiter.hit("b")
    assert len(limiter) == 2
    clock.advance(901)
    limiter.hit("c")
    assert len(limiter) == 1


def test_reset():
    limiter = _limiter(FakeClock())
    for _ in range(6):
        limiter.hit("a")
    limiter.reset("a")
    assert limiter.hit("a").allowed
