"""Remove committed posts by identifier."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence

from dal.content_store import ContentStore

LOGGER = logging.getLogger(__name__)


class DeletionExecutor:
    """Delete the post directories named in a pending-deletion list."""

    def __init__(self, store: ContentStore) -> None:
        self.store = store

    async def delete(self, post_ids: Sequence[str]) -> List[str]:
        """Remove every requested post that exists on disk.

        Identifiers that do not name a current post directory are dropped
        silently. Duplicates are only removed once.

        Returns:
            The identifiers that were removed, in request order.

        Raises:
            Exception: The first removal error. Directories removed before
                the failure stay removed.
        """
        existing = set(await self.store.list_post_ids())
        targets: List[str] = []
        for post_id in post_ids:
            if post_id in existing and post_id not in targets:
                targets.append(post_id)

        results = await asyncio.gather(
            *(self.store.remove_post(post_id) for post_id in targets),
            return_exceptions=True,
        )
        for post_id, result in zip(targets, results):
            if isinstance(result, BaseException):
                LOGGER.warning("Failed to delete post %s: %s", post_id, result)
                raise result

        LOGGER.info("Deleted posts: %s", ", ".join(targets) or "none")
        return targets
