"""Serialize commits across sessions and run the create or delete path."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from models.session_models import ACTIVE_PHASES, ConversationState, DraftPost, Phase
from services import messages
from services.commit.build_trigger import BuildTrigger
from services.commit.deletion import DeletionExecutor
from services.commit.gate import CommitGate
from services.commit.materializer import PostMaterializer
from services.transport import ChatTransport

LOGGER = logging.getLogger(__name__)


class CommitCoordinator:
    """Run one commit at a time for the whole process.

    A commit holds the shared `CommitGate` from the moment it starts until
    the build it triggers has finished. A second commit arriving meanwhile,
    from any session, is told to retry and changes nothing.
    """

    def __init__(
        self,
        gate: CommitGate,
        materializer: PostMaterializer,
        deletion: DeletionExecutor,
        build: BuildTrigger,
        transport: ChatTransport,
    ) -> None:
        self.gate = gate
        self.materializer = materializer
        self.deletion = deletion
        self.build = build
        self.transport = transport

    async def commit(self, state: ConversationState, reply_to: Optional[int] = None) -> bool:
        """Commit the session's draft or deletion list.

        Returns:
            True if the commit ran (whatever its outcome) and the session was
            reset, False if the phase was not committable or the gate was busy.
        """
        if state.phase not in ACTIVE_PHASES:
            return False

        ticket = self.gate.try_acquire(state.chat_id)
        if ticket is None:
            LOGGER.info("Chat %s tried to commit while another commit is running", state.chat_id)
            await self._reply(state.chat_id, messages.COMMIT_BUSY, reply_to)
            return False

        try:
            if state.phase == Phase.DELETE:
                await self._delete(state.chat_id, state.pending_deletions or [], reply_to)
            elif state.draft is not None:
                await self._create(state.chat_id, state.draft, reply_to)
        finally:
            self.build.start(ticket, state.chat_id, reply_to)
            state.reset()
        return True

    async def _create(self, chat_id: int, draft: DraftPost, reply_to: Optional[int]) -> None:
        try:
            manifest = await self.materializer.materialize(draft)
        except Exception as exc:
            LOGGER.warning("Commit for chat %s failed: %s", chat_id, exc)
            await self._reply(
                chat_id,
                f"{messages.COMMIT_FAILED}\n{messages.code_block(messages.format_error(exc))}",
                reply_to,
                markdown=True,
            )
            return
        if manifest is not None:
            await self._reply(chat_id, messages.created(manifest.dir), reply_to, markdown=True)

    async def _delete(self, chat_id: int, post_ids: Sequence[str], reply_to: Optional[int]) -> None:
        try:
            removed = await self.deletion.delete(post_ids)
        except Exception as exc:
            await self._reply(
                chat_id,
                f"{messages.DELETE_FAILED}\n{messages.code_block(messages.format_error(exc))}",
                reply_to,
                markdown=True,
            )
            return
        await self._reply(chat_id, messages.deleted(removed), reply_to, markdown=True)

    async def _reply(self, chat_id: int, text: str, reply_to: Optional[int], markdown: bool = False) -> None:
        await self.transport.send_typing(chat_id)
        await self.transport.send_text(chat_id, text, reply_to=reply_to, markdown=markdown)
