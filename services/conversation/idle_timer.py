"""Cancel-and-replace idle timer for one conversation."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from models.session_models import IdleTimeout

LOGGER = logging.getLogger(__name__)


class IdleTimer:
	"""Schedule a single pending `IdleTimeout` event for a session.

	Every `arm()` cancels the previous task and bumps the generation, so at
	most one timer is live and an event that was already queued before a
	re-arm can be recognised as stale with `is_current()`.

	Args:
		timeout: Seconds of inactivity before the event is posted.
		on_expire: Callback receiving the event; expected to enqueue it on
			the owning session's queue.
	"""

	def __init__(self, timeout: float, on_expire: Callable[[IdleTimeout], None]) -> None:
		self.timeout = timeout
		self._on_expire = on_expire
		self._task: Optional[asyncio.Task] = None
		self.generation = 0

	@property
	def armed(self) -> bool:
		return self._task is not None and not self._task.done()

	def arm(self) -> None:
		self.disarm()
		self.generation += 1
		self._task = asyncio.create_task(self._fire_later(self.generation))

	def disarm(self) -> None:
		if self._task is not None:
			self._task.cancel()
			self._task = None

	def is_current(self, event: IdleTimeout) -> bool:
		return event.generation == self.generation

	async def _fire_later(self, generation: int) -> None:
		await asyncio.sleep(self.timeout)
		LOGGER.debug("Idle timer generation %s expired", generation)
		self._on_expire(IdleTimeout(generation=generation))
