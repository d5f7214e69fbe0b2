"""Session domain models for narration workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

Unsubscribe = Callable[[], Any]


@dataclass
class NarrationHistory:
	"""What has already been narrated to a user, used as a "don't repeat" hint."""

	mentioned_places: List[str] = field(default_factory=list)
	previous_responses: List[str] = field(default_factory=list)

	def add_response(self, text: str, limit: int) -> None:
		"""Append a full narration text, keeping only the last `limit` entries."""
		self.previous_responses.append(text)
		if limit > 0:
			self.previous_responses = self.previous_responses[-limit:]

	def add_places(self, places: List[str]) -> int:
		"""Merge new place names, preserving order and uniqueness. Returns how many were new."""
		added = 0
		for place in places:
			if place not in self.mentioned_places:
				self.mentioned_places.append(place)
				added += 1
		return added


@dataclass
class ButtonPress:
	"""Normalized button event from the glasses."""

	button_id: Optional[str]
	press_type: str = "short"

	@property
	def is_long(self) -> bool:
		return self.press_type == "long"


@dataclass
class ActiveSession:
	"""Bookkeeping the orchestrator keeps for one connected device."""

	session_id: str
	user_id: str
	handle: Any
	scheduler: Any
	subscriptions: List[Unsubscribe] = field(default_factory=list)
