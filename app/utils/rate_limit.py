import time
from typing import Dict, Hashable, List, Optional

from app.config import settings


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class RateLimiter:
    """
    An in-memory sliding-window rate limiter guarding the completion provider.

    Each user owns a list of admission timestamps (milliseconds). A timestamp
    counts against the user while ``now - ts < window_ms``; at exactly
    ``window_ms`` it has expired. Purge and append happen in one step with no
    await in between, so callers on the event loop need no extra locking.
    For multi-process deployments swap this for a shared store behind the
    same ``admit`` interface.
    """
    def __init__(self, max_requests: int = 10, window_ms: int = 60000):
        if max_requests <= 0 or window_ms <= 0:
            raise ValueError("max_requests and window_ms must be positive")
        self.max_requests = max_requests
        self.window_ms = window_ms
        self._windows: Dict[Hashable, List[float]] = {}
        self._last_sweep: Optional[float] = None

    def _live(self, user_id: Hashable, now: float) -> List[float]:
        return [ts for ts in self._windows.get(user_id, []) if now - ts < self.window_ms]

    def admit(self, user_id: Hashable, now: Optional[float] = None) -> bool:
        """Returns True and records the request if the user is under the limit."""
        if now is None:
            now = monotonic_ms()

        self._maybe_sweep(now)

        window = self._live(user_id, now)
        if len(window) >= self.max_requests:
            return False

        window.append(now)
        self._windows[user_id] = window
        return True

    def remaining(self, user_id: Hashable, now: Optional[float] = None) -> int:
        """Requests the user could still make right now. Does not mutate state."""
        if now is None:
            now = monotonic_ms()
        return max(self.max_requests - len(self._live(user_id, now)), 0)

    def sweep(self, now: Optional[float] = None) -> int:
        """Forgets users whose whole window has expired. Returns how many were dropped."""
        if now is None:
            now = monotonic_ms()
        stale = [
            user_id for user_id, window in self._windows.items()
            if not window or now - window[-1] >= self.window_ms
        ]
        for user_id in stale:
            del self._windows[user_id]
        self._last_sweep = now
        return len(stale)

    def _maybe_sweep(self, now: float):
        # At most one sweep per window length
        if self._last_sweep is None:
            self._last_sweep = now
        elif now - self._last_sweep >= self.window_ms:
            self.sweep(now)

    @property
    def tracked_users(self) -> int:
        return len(self._windows)


rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    window_ms=settings.RATE_LIMIT_WINDOW_MS,
)
