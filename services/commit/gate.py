"""Process-wide gate allowing one commit (create or delete plus build) at a time."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

LOGGER = logging.getLogger(__name__)


class CommitTicket:
    """Proof of holding the gate; releasing it twice is ignored with a warning."""

    def __init__(self, gate: "CommitGate", owner: int) -> None:
        self._gate = gate
        self.owner = owner
        self.released = False

    def release(self) -> None:
        if self.released:
            LOGGER.warning("Commit ticket for chat %s released more than once", self.owner)
            return
        self.released = True
        self._gate._release(self)


class CommitGate:
    """Capacity-1 try-lock shared by every session.

    Acquisition never waits: a busy gate returns None and the caller is
    expected to tell the user to retry. Only the holder of the returned
    `CommitTicket` can open the gate again.
    """

    def __init__(self) -> None:
        self._ticket: Optional[CommitTicket] = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def committing(self) -> bool:
        return self._ticket is not None

    def try_acquire(self, owner: int) -> Optional[CommitTicket]:
        if self._ticket is not None:
            return None
        self._ticket = CommitTicket(self, owner)
        self._idle.clear()
        LOGGER.info("Commit gate acquired by chat %s", owner)
        return self._ticket

    def _release(self, ticket: CommitTicket) -> None:
        if self._ticket is not ticket:
            LOGGER.warning("Ignoring release of a stale commit ticket for chat %s", ticket.owner)
            return
        self._ticket = None
        self._idle.set()
        LOGGER.info("Commit gate released by chat %s", ticket.owner)

    async def wait_idle(self) -> None:
        """Wait until no commit is in flight."""
        await self._idle.wait()
