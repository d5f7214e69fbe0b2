"""Per-user state for idle-triggered narration: the guard flag and the history."""

from __future__ import annotations

from typing import Dict, List

from models.session_models import NarrationHistory


class IdleQueryGuard:
    """Boolean per user marking that a nearby-places query ran in this idle period."""

    def __init__(self) -> None:
        self._flags: Dict[str, bool] = {}

    def is_set(self, user_id: str) -> bool:
        return self._flags.get(user_id, False)

    def set(self, user_id: str) -> None:
        self._flags[user_id] = True

    def clear(self, user_id: str) -> None:
        """Allow the next idle period to trigger again."""
        if user_id in self._flags:
            self._flags[user_id] = False

    def discard(self, user_id: str) -> None:
        self._flags.pop(user_id, None)


class NarrationHistoryStore:
    """Previously mentioned places and recent narration texts, keyed by user."""

    def __init__(self, response_limit: int = 5) -> None:
        self.response_limit = response_limit
        self._history: Dict[str, NarrationHistory] = {}

    def get(self, user_id: str) -> NarrationHistory:
        history = self._history.get(user_id)
        if history is None:
            history = NarrationHistory()
            self._history[user_id] = history
        return history

    def mentioned_places(self, user_id: str) -> List[str]:
        return list(self.get(user_id).mentioned_places)

    def previous_responses(self, user_id: str) -> List[str]:
        return list(self.get(user_id).previous_responses)

    def record(self, user_id: str, response: str, places: List[str]) -> NarrationHistory:
        """Remember a narration and the place names extracted from it."""
        history = self.get(user_id)
        history.add_response(response, self.response_limit)
        history.add_places(places)
        return history

    def clear(self, user_id: str) -> None:
        self._history.pop(user_id, None)
