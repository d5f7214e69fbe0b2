"""Fan out per-user events to Server-Sent Events subscribers."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)


def sse_frame(payload: Dict[str, Any]) -> str:
	"""Encode a payload as a single SSE `data:` frame."""
	return f"data: {json.dumps(payload)}\n\n"


class EventBroadcaster:
	"""Deliver events only to the subscribers of the user they belong to."""

	def __init__(self, name: str, max_queue: int = 100, keepalive_seconds: float = 15.0) -> None:
		self.name = name
		self.max_queue = max_queue
		self.keepalive_seconds = keepalive_seconds
		self._subscribers: List[Tuple[str, asyncio.Queue]] = []

	def subscribe(self, user_id: str) -> asyncio.Queue:
		queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue)
		self._subscribers.append((user_id, queue))
		LOGGER.info("[SSE %s] Client connected for user: %s", self.name, user_id)
		return queue

	def unsubscribe(self, queue: asyncio.Queue) -> None:
		before = len(self._subscribers)
		self._subscribers = [(uid, q) for uid, q in self._subscribers if q is not queue]
		if len(self._subscribers) != before:
			LOGGER.info("[SSE %s] Client disconnected", self.name)

	def subscriber_count(self, user_id: Optional[str] = None) -> int:
		if user_id is None:
			return len(self._subscribers)
		return sum(1 for uid, _ in self._subscribers if uid == user_id)

	def publish(self, user_id: str, payload: Dict[str, Any]) -> int:
		"""Queue `payload` for each subscriber of `user_id`; returns how many received it."""
		delivered = 0
		dead: List[asyncio.Queue] = []
		for uid, queue in list(self._subscribers):
			if uid != user_id:
				continue
			try:
				queue.put_nowait(payload)
				delivered += 1
			except asyncio.QueueFull:
				dead.append(queue)
		for queue in dead:
			LOGGER.warning("[SSE %s] Dropping slow client for user %s", self.name, user_id)
			self.unsubscribe(queue)
		return delivered

	async def stream(
		self,
		user_id: str,
		backlog: Optional[Callable[[], Iterable[Dict[str, Any]]]] = None,
	) -> AsyncIterator[str]:
		"""Yield SSE frames for one subscriber until the client goes away.

		The subscription only exists while the generator runs, and `backlog` is
		read right after subscribing, so every event is delivered exactly once.
		"""
		queue = self.subscribe(user_id)
		try:
			replay = list(backlog()) if backlog is not None else []
			yield sse_frame({"type": "connected", "userId": user_id})
			for payload in replay:
				yield sse_frame(payload)
			while True:
				try:
					payload = await asyncio.wait_for(queue.get(), timeout=self.keepalive_seconds)
				except asyncio.TimeoutError:
					yield ": keepalive\n\n"
					continue
				yield sse_frame(payload)
		finally:
			self.unsubscribe(queue)


def transcription_payload(text: str, is_final: bool, user_id: str) -> Dict[str, Any]:
	"""Build the transcription/log event the UI renders."""
	return {
		"text": text,
		"isFinal": is_final,
		"timestamp": int(time.time() * 1000),
		"userId": user_id,
	}
