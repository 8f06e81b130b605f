"""Sliding-window limits on moderator input, per sender."""

import time
from collections import defaultdict, deque
from threading import Lock

MINUTE = 60.0
HOUR = 3600.0


class RateLimiter:
    """Per-sender sliding windows over the last minute and the last hour.

    Only accepted messages are recorded, so a sender who is turned away
    does not extend their own penalty.
    """

    def __init__(self, max_per_minute: int = 20, max_per_hour: int = 300):
        self.max_per_minute = max_per_minute
        self.max_per_hour = max_per_hour
        self._history: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def check(self, sender_id: str) -> tuple[bool, int]:
        """Record a message from *sender_id* if it fits both windows.

        Returns:
            (allowed, retry_after_seconds); retry_after is 0 when allowed
            and at least 1 otherwise.
        """
        now = time.monotonic()
        with self._lock:
            history = self._history[sender_id]
            while history and history[0] <= now - HOUR:
                history.popleft()

            in_minute = [t for t in history if t > now - MINUTE]
            if len(in_minute) >= self.max_per_minute:
                return False, self._retry_after(in_minute[0], MINUTE, now)
            if len(history) >= self.max_per_hour:
                return False, self._retry_after(history[0], HOUR, now)

            history.append(now)
            return True, 0

    def reset(self, sender_id: str | None = None) -> None:
        """Forget one sender's history, or everyone's."""
        with self._lock:
            if sender_id is None:
                self._history.clear()
            else:
                self._history.pop(sender_id, None)

    @staticmethod
    def _retry_after(oldest: float, window: float, now: float) -> int:
        return max(int(oldest + window - now) + 1, 1)
