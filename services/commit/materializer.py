"""Turn a draft post into a post directory with images and a manifest.

Either the directory, every image file, and `index.json` all exist after
`PostMaterializer.materialize` returns, or the directory is removed again
and the error propagates to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from dal.content_store import ContentStore
from models.post_manifest import LAYOUT_ALBUM, PostManifest
from models.session_models import DraftPost, ImageVariantSet
from services.commit.naming import resolve_dir_name

LOGGER = logging.getLogger(__name__)

FetchAttachment = Callable[[str], Awaitable[bytes]]


def now_millis() -> int:
    return time.time_ns() // 1_000_000


def to_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def image_filename(position: int) -> str:
    """File name of the image at 1-based `position` in append order."""
    return f"{position}.jpg"


class PostMaterializer:
    """Persist draft posts under a `ContentStore`.

    Args:
        store: Content root the post directory is created in.
        fetch_attachment: Coroutine returning the bytes of an attachment id.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        store: ContentStore,
        fetch_attachment: FetchAttachment,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.store = store
        self.fetch_attachment = fetch_attachment
        self.clock = clock

    async def materialize(self, draft: DraftPost) -> Optional[PostManifest]:
        """Write `draft` to a new post directory.

        Returns:
            The written manifest, or None when the draft has neither text nor
            images and nothing was written.

        Raises:
            Exception: Whatever failed while creating the directory, fetching
                an image or writing a file. The partial directory has already
                been removed when this propagates.
        """
        if not draft.has_content():
            return None

        created = to_millis(draft.authored_date) if draft.authored_date is not None else self.clock()
        existing = await self.store.list_post_ids()
        post_id = resolve_dir_name(created, existing)
        # Nothing to roll back if this fails: the directory is not ours.
        await self.store.create_post_dir(post_id)

        try:
            filenames = await self._write_images(post_id, draft.images)
            manifest = PostManifest(
                dir=post_id,
                created=created,
                layout=LAYOUT_ALBUM,
                text=draft.text,
                images=filenames,
                authors=list(draft.authors),
                tags=list(draft.tags),
            )
            await self.store.write_manifest(manifest)
        except BaseException:
            # Cancellation included: a shutdown mid-commit must not leave a partial post.
            LOGGER.warning("Rolling back partially written post %s", post_id, exc_info=True)
            await self.store.discard_post(post_id)
            raise

        LOGGER.info("Created post %s with %d image(s)", post_id, len(filenames))
        return manifest

    async def _write_images(self, post_id: str, images: List[ImageVariantSet]) -> List[str]:
        """Fetch and write all images concurrently, keeping append order.

        Every write is awaited before the first failure is raised, so no
        write can land in the directory after it has been rolled back.
        """
        tasks = [
            asyncio.ensure_future(self._write_image(post_id, index, image))
            for index, image in enumerate(images, start=1)
        ]
        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            if tasks:
                await asyncio.wait(tasks)
            raise
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    async def _write_image(self, post_id: str, position: int, image: ImageVariantSet) -> str:
        variant = image.largest_variant()
        data = await self.fetch_attachment(variant.file_id)
        filename = image_filename(position)
        await self.store.write_asset(post_id, filename, data)
        return filename
