"""Per-user record of when speech last started."""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional


class AudioActivityTracker:
    """Track when audio starts playing per user (not when it finishes).

    Recording the start means a long narration counts as activity from the
    moment it begins, so the idle loop never fires while it is still playing.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last_started: Dict[str, float] = {}

    def mark_started(self, user_id: str) -> float:
        """Record the current time as the latest speech start for `user_id`."""
        if not user_id:
            raise ValueError("user_id is required.")
        now = self._clock()
        previous = self._last_started.get(user_id)
        if previous is not None and previous > now:
            now = previous
        self._last_started[user_id] = now
        return now

    def last_started(self, user_id: str) -> Optional[float]:
        return self._last_started.get(user_id)

    def clear(self, user_id: str) -> None:
        self._last_started.pop(user_id, None)

    def now(self) -> float:
        return self._clock()
