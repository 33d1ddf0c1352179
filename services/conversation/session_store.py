"""In-memory registry mapping chat ids to their session actors."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from models.session_models import InboundMessage
from services.conversation.session_actor import PostSessionActor

LOGGER = logging.getLogger(__name__)


class SessionStore:
	"""Create actors on first contact and evict them after long inactivity.

	Args:
		factory: Builds a new actor for a chat id.
		evict_after: Seconds an idle actor may stay quiet before eviction.
	"""

	def __init__(self, factory: Callable[[int], PostSessionActor], evict_after: float = 300.0) -> None:
		self._factory = factory
		self.evict_after = evict_after
		self._actors: Dict[int, PostSessionActor] = {}

	def __len__(self) -> int:
		return len(self._actors)

	def __contains__(self, chat_id: int) -> bool:
		return chat_id in self._actors

	def get(self, chat_id: int) -> PostSessionActor:
		"""Return an actor or raise KeyError if missing."""
		actor = self._actors.get(chat_id)
		if actor is None:
			raise KeyError(f"Session {chat_id} not found")
		return actor

	def get_or_create(self, chat_id: int) -> PostSessionActor:
		actor = self._actors.get(chat_id)
		if actor is None:
			actor = self._factory(chat_id)
			self._actors[chat_id] = actor
			LOGGER.debug("Created session for chat %s", chat_id)
		return actor

	def dispatch(self, message: InboundMessage) -> PostSessionActor:
		"""Queue a message on its chat's actor."""
		actor = self.get_or_create(message.chat_id)
		actor.submit(message)
		return actor

	async def drain(self) -> None:
		"""Wait until every actor has handled its queued events."""
		await asyncio.gather(*(actor.join() for actor in list(self._actors.values())))

	def evict_idle(self, now: Optional[float] = None) -> int:
		"""Drop quiescent actors whose last activity is older than the window."""
		now = time.monotonic() if now is None else now
		stale = [
			chat_id
			for chat_id, actor in self._actors.items()
			if actor.quiescent and now - actor.state.last_activity >= self.evict_after
		]
		for chat_id in stale:
			self._actors.pop(chat_id).close()
		if stale:
			LOGGER.debug("Evicted %d idle session(s)", len(stale))
		return len(stale)

	async def run_periodic_eviction(self, interval_seconds: float = 60.0) -> None:
		"""Evict stale actors at the given interval until cancelled."""
		while True:
			try:
				await asyncio.sleep(interval_seconds)
				self.evict_idle()
			except asyncio.CancelledError:
				break
			except Exception:
				LOGGER.exception("Session eviction failed")

	def close_all(self) -> None:
		for actor in self._actors.values():
			actor.close()
		self._actors.clear()
