"""Long-polling loop feeding Telegram updates to the bot when no webhook is used."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Protocol

from telegram import Update

LOGGER = logging.getLogger(__name__)


class UpdateSource(Protocol):
    async def get_updates(self, offset: Optional[int], timeout: int) -> List[Update]:
        ...


class UpdatePoller:
    """Repeatedly call `getUpdates` and hand every update to `on_update`.

    Args:
        source: Object exposing `get_updates(offset, timeout)`.
        on_update: Coroutine invoked once per update, in order.
        timeout: Long-poll timeout passed to Telegram, in seconds.
        retry_delay: Seconds to wait after a failed poll before retrying.
    """

    def __init__(
        self,
        source: UpdateSource,
        on_update: Callable[[Update], Awaitable[None]],
        timeout: int = 30,
        retry_delay: float = 5.0,
    ) -> None:
        self.source = source
        self.on_update = on_update
        self.timeout = timeout
        self.retry_delay = retry_delay
        self.offset: Optional[int] = None

    async def poll_once(self) -> int:
        """Fetch and process one batch; returns how many updates were seen."""
        updates = await self.source.get_updates(self.offset, self.timeout)
        for update in updates:
            self.offset = update.update_id + 1
            try:
                await self.on_update(update)
            except Exception:
                LOGGER.exception("Failed to process update %s", update.update_id)
        return len(updates)

    async def run(self) -> None:
        """Poll until cancelled."""
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception:
                # Keep polling; sleep before retrying so a dead network does not spin.
                LOGGER.exception("Polling Telegram for updates failed")
                await asyncio.sleep(self.retry_delay)
