"""Async filesystem access layer for the post content directory.

The content root holds one immediate subdirectory per committed post. The
directory name doubles as the post's public identifier and contains the
downloaded images plus an `index.json` manifest.

`ContentStore` keeps all blocking filesystem calls off the event loop:
byte writes go through `aiofiles`, directory listing and recursive removal
run in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import shutil
from pathlib import Path
from typing import List, Optional

import aiofiles

from models.post_manifest import PostManifest

MANIFEST_FILENAME = "index.json"


class ContentStore:
    """Read, create, and remove post directories under a single root.

    Usage:
        store = ContentStore(Path("/srv/site/content/posts"))
        store.ensure_root()
        names = await store.list_post_ids()
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def ensure_root(self) -> None:
        """Create the content root if needed.

        Raises:
            RuntimeError: If the path exists but is not a directory, or
                cannot be created.
        """
        if self.root.exists() and not self.root.is_dir():
            raise RuntimeError(
                f"CONTENT_DIR points to a file, not a directory ({self.root}). "
                "Please set CONTENT_DIR to a directory path."
            )
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(f"Failed to create or access content directory at {self.root}") from exc

    def post_path(self, post_id: str) -> Path:
        return self.root / post_id

    async def list_post_ids(self) -> List[str]:
        """Return the names of the immediate subdirectories of the root."""

        def _list() -> List[str]:
            return sorted(entry.name for entry in self.root.iterdir() if entry.is_dir())

        return await asyncio.to_thread(_list)

    async def create_post_dir(self, post_id: str) -> Path:
        """Create a new, empty post directory. Fails if it already exists."""
        path = self.post_path(post_id)
        await asyncio.to_thread(path.mkdir)
        return path

    async def write_asset(self, post_id: str, filename: str, data: bytes) -> Path:
        """Write raw bytes into a post directory and return the file path."""
        path = self.post_path(post_id) / filename
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        return path

    async def write_manifest(self, manifest: PostManifest) -> Path:
        path = self.post_path(manifest.dir) / MANIFEST_FILENAME
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(manifest.to_dict(), ensure_ascii=False))
        return path

    async def read_manifest(self, post_id: str) -> Optional[PostManifest]:
        """Load a post's manifest, or None if the post has none."""
        path = self.post_path(post_id) / MANIFEST_FILENAME
        if not await asyncio.to_thread(path.is_file):
            return None
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            raw = await f.read()
        return PostManifest.from_dict(json.loads(raw))

    async def remove_post(self, post_id: str) -> None:
        """Recursively delete a post directory; errors propagate."""
        await asyncio.to_thread(shutil.rmtree, self.post_path(post_id))

    async def discard_post(self, post_id: str) -> None:
        """Best-effort removal used for rollback; never raises."""
        await asyncio.to_thread(shutil.rmtree, self.post_path(post_id), True)
