"""Per-chat actor that turns inbound messages into phase changes and drafts."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Union

from models.session_models import ConversationState, IdleTimeout, InboundMessage, Phase
from services import messages
from services.commit.coordinator import CommitCoordinator
from services.conversation.accumulator import DateParseError, append_image, append_text
from services.conversation.idle_timer import IdleTimer
from services.conversation.state_machine import Command, apply_transition, is_allowed, parse_command
from services.transport import ChatTransport

LOGGER = logging.getLogger(__name__)

SessionEvent = Union[InboundMessage, IdleTimeout]

PROMPTS: Dict[Command, str] = {
	Command.CREATE: messages.PROMPT_CREATE,
	Command.DELETE: messages.PROMPT_DELETE,
	Command.TEXT: messages.PROMPT_TEXT,
	Command.IMAGES: messages.PROMPT_IMAGES,
	Command.AUTHORS: messages.PROMPT_AUTHORS,
	Command.TAGS: messages.PROMPT_TAGS,
	Command.DATE: messages.PROMPT_DATE,
}


class PostSessionActor:
	"""Own one chat's `ConversationState` and process its events in order.

	Inbound messages and idle-timer expiries share a single queue, so a
	timeout can never interleave with a message being handled for the same
	chat. `handle()` may also be awaited directly when no worker is wanted.
	"""

	def __init__(
		self,
		chat_id: int,
		transport: ChatTransport,
		coordinator: CommitCoordinator,
		idle_timeout: float,
		bot_username: Optional[str] = None,
	) -> None:
		self.state = ConversationState(chat_id=chat_id)
		self.transport = transport
		self.coordinator = coordinator
		self.bot_username = bot_username
		self.timer = IdleTimer(idle_timeout, self.submit)
		self._queue: asyncio.Queue = asyncio.Queue()
		self._worker: Optional[asyncio.Task] = None
		self._busy = False

	@property
	def chat_id(self) -> int:
		return self.state.chat_id

	@property
	def quiescent(self) -> bool:
		"""True when idle with nothing queued or running."""
		return self.state.phase == Phase.IDLE and self._queue.empty() and not self._busy

	def submit(self, event: SessionEvent) -> None:
		"""Queue an event for in-order processing, starting the worker if needed."""
		if self._worker is None or self._worker.done():
			self._worker = asyncio.create_task(self._run())
		self._queue.put_nowait(event)

	async def join(self) -> None:
		"""Wait until every queued event has been handled."""
		await self._queue.join()

	def close(self) -> None:
		self.timer.disarm()
		if self._worker is not None:
			self._worker.cancel()
			self._worker = None

	async def _run(self) -> None:
		while True:
			event = await self._queue.get()
			self._busy = True
			try:
				await self.handle(event)
			except Exception:
				LOGGER.exception("Chat %s failed to handle %s", self.chat_id, type(event).__name__)
			finally:
				self._busy = False
				self._queue.task_done()

	async def handle(self, event: SessionEvent) -> None:
		if isinstance(event, IdleTimeout):
			await self._on_timeout(event)
		else:
			await self.on_message(event)

	async def on_message(self, message: InboundMessage) -> None:
		"""Process one authorized message: text first, then caption, then photo."""
		self.state.touch()
		try:
			if message.text is not None:
				await self._process_text(message, message.text)
			if message.caption is not None:
				await self._process_text(message, message.caption)
			if message.photo is not None:
				append_image(self.state, message.photo)
		finally:
			if self.state.phase == Phase.IDLE:
				self.timer.disarm()
			else:
				self.timer.arm()
		LOGGER.debug(
			"Chat %s: phase=%s draft=%s pending_deletions=%s",
			self.chat_id,
			self.state.phase.value,
			self.state.draft,
			self.state.pending_deletions,
		)

	async def _process_text(self, message: InboundMessage, text: str) -> None:
		command = parse_command(text, self.bot_username)
		if command is not None:
			await self._on_command(command, message)
			return
		try:
			append_text(self.state, text)
		except DateParseError:
			LOGGER.info("Chat %s sent an unparseable date: %r", self.chat_id, text)
			await self._reply(message, messages.DATE_INVALID)

	async def _on_command(self, command: Command, message: InboundMessage) -> None:
		if command == Command.COMMIT:
			await self.coordinator.commit(self.state, reply_to=message.message_id)
			return
		if command == Command.CANCEL:
			if not is_allowed(command, self.state.phase):
				return
			self.state.reset()
			await self._reply(message, messages.CANCELLED)
			return
		if apply_transition(self.state, command):
			await self._reply(message, PROMPTS[command])

	async def _on_timeout(self, event: IdleTimeout) -> None:
		if not self.timer.is_current(event) or self.state.phase == Phase.IDLE:
			return
		LOGGER.info("Chat %s timed out in phase %s", self.chat_id, self.state.phase.value)
		self.state.reset()
		await self.transport.send_typing(self.chat_id)
		await self.transport.send_text(self.chat_id, messages.TIMED_OUT)

	async def _reply(self, message: InboundMessage, text: str) -> None:
		await self.transport.send_typing(message.chat_id)
		await self.transport.send_text(message.chat_id, text, reply_to=message.message_id)
