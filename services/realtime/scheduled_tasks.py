"""Cancellable timers and delayed task sequences tied to one session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Set

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledStep:
	"""One step of a sequence: wait `delay` seconds, then run `action`.

	An action returning False ends the sequence early.
	"""

	name: str
	delay: float
	action: Callable[[], Awaitable[Optional[bool]]]


class SessionTaskScheduler:
	"""Own every timer a session starts so that stopping the session cancels them.

	Work launched with `spawn` is detached: it is logged but not cancelled by
	`cancel()`, since calls already in flight are allowed to finish.
	"""

	def __init__(self, owner: str) -> None:
		self.owner = owner
		self._timers: Set[asyncio.Task] = set()
		self._detached: Set[asyncio.Task] = set()
		self._closed = False

	@property
	def closed(self) -> bool:
		return self._closed

	def every(self, interval: float, callback: Callable[[], Awaitable[Any]], name: str = "periodic") -> Optional[asyncio.Task]:
		"""Run `callback` every `interval` seconds, each tick as its own task."""
		if self._closed:
			LOGGER.debug("[%s] Scheduler closed; not starting %s", self.owner, name)
			return None

		async def _loop() -> None:
			while True:
				await asyncio.sleep(interval)
				self.spawn(callback(), name=f"{name}-tick")

		return self._track(asyncio.create_task(_loop(), name=f"{self.owner}:{name}"))

	def run_sequence(self, steps: Sequence[ScheduledStep], name: str = "sequence") -> Optional[asyncio.Task]:
		"""Run `steps` in order, honouring each step's delay."""
		if self._closed:
			LOGGER.debug("[%s] Scheduler closed; not starting %s", self.owner, name)
			return None

		async def _run() -> None:
			for step in steps:
				if step.delay > 0:
					await asyncio.sleep(step.delay)
				try:
					keep_going = await step.action()
				except asyncio.CancelledError:
					raise
				except Exception:
					LOGGER.exception("[%s] Step %s of %s failed", self.owner, step.name, name)
					return
				if keep_going is False:
					LOGGER.debug("[%s] Sequence %s stopped after %s", self.owner, name, step.name)
					return

		return self._track(asyncio.create_task(_run(), name=f"{self.owner}:{name}"))

	def spawn(self, coro: Awaitable[Any], name: str = "task") -> asyncio.Task:
		"""Run `coro` in the background, logging instead of raising failures."""
		task = asyncio.ensure_future(self._guarded(coro, name))
		self._detached.add(task)
		task.add_done_callback(self._detached.discard)
		return task

	def cancel(self) -> None:
		"""Cancel the timers and pending sequences; no further ticks fire."""
		self._closed = True
		for task in list(self._timers):
			task.cancel()
		self._timers.clear()

	async def wait_detached(self) -> None:
		"""Wait for detached work to settle (used on shutdown and in tests)."""
		while self._detached:
			await asyncio.gather(*list(self._detached), return_exceptions=True)

	def _track(self, task: asyncio.Task) -> asyncio.Task:
		self._timers.add(task)
		task.add_done_callback(self._timers.discard)
		return task

	async def _guarded(self, coro: Awaitable[Any], name: str) -> Any:
		try:
			return await coro
		except asyncio.CancelledError:
			raise
		except Exception:
			LOGGER.exception("[%s] Background task %s failed", self.owner, name)
			return None
