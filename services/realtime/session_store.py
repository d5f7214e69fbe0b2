"""Simple in-memory store for connected glasses sessions."""

from __future__ import annotations

from typing import Any, Dict, Iterable


class SessionStore:
	"""Map user ids to their live session handle so routes can reach the device."""

	def __init__(self) -> None:
		self._sessions: Dict[str, Any] = {}

	def register(self, user_id: str, handle: Any) -> None:
		"""Register an active session for audio playback and preferences."""
		if not user_id:
			raise ValueError("user_id is required.")
		self._sessions[user_id] = handle

	def unregister(self, user_id: str, handle: Any = None) -> None:
		"""Drop the session for `user_id`; when `handle` is given only that handle is removed."""
		current = self._sessions.get(user_id)
		if current is None:
			return
		if handle is not None and current is not handle:
			return
		del self._sessions[user_id]

	def get(self, user_id: str) -> Any:
		"""Return a session or raise KeyError if missing."""
		handle = self._sessions.get(user_id)
		if handle is None:
			raise KeyError(f"No active session for user {user_id}")
		return handle

	def is_active(self, user_id: str, handle: Any = None) -> bool:
		current = self._sessions.get(user_id)
		if current is None:
			return False
		return handle is None or current is handle

	def user_ids(self) -> Iterable[str]:
		return list(self._sessions.keys())
