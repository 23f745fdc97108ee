# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Fixed-window attempt counter, keyed by client IP.

Only the login endpoint uses it.  Counters are process-local: they do not
survive a restart and are not shared between instances.

Expired windows are evicted lazily – every call may sweep the table, at most
once per ``sweep_interval`` seconds – so no background timer is tied to the
process lifetime.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable

from core.config import settings


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float  # epoch seconds at which the current window ends


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        sweep_interval: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> RateLimitResult:
        """Count one attempt for *key* and say whether it is within quota."""
        now = self._clock()
        with self._lock:
            self._maybe_sweep(now)

            window = self._windows.get(key)
            if window is None or window.reset_at <= now:
                window = _Window(count=0, reset_at=now + self.window_seconds)
                self._windows[key] = window

            window.count += 1
            return RateLimitResult(
                allowed=window.count <= self.max_attempts,
                remaining=max(0, self.max_attempts - window.count),
                reset_at=window.reset_at,
            )

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def __len__(self) -> int:
        return len(self._windows)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self.sweep_interval:
            return
        expired = [k for k, w in self._windows.items() if w.reset_at <= now]
        for k in expired:
            del self._windows[k]
        self._last_sweep = now


login_rate_limiter = RateLimiter(
    max_attempts=settings.login_rate_limit_attempts,
    window_seconds=settings.login_rate_limit_window_minutes * 60,
)
