"""Print a summary of every committed post in the content directory.

This script lists the post directories under `CONTENT_DIR`, loads each
`index.json` manifest, and prints the identifier, creation time, image count
and the start of the text. Directories without a manifest are flagged, which
usually means a post was copied in by hand; manifests that cannot be
parsed are flagged the same way instead of stopping the listing.

Run: set the `CONTENT_DIR` environment variable (a `.env` file works too)
      and run `python print_posts.py`.
"""
import asyncio
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from dal.content_store import ContentStore
from models.post_manifest import PostManifest

PREVIEW_CHARS = 60


def _format_manifest(manifest: PostManifest) -> str:
    """Return a one-line description of a post.

    Args:
        manifest: Loaded manifest of the post.

    Returns:
        Identifier, UTC creation time, image count, tags and a text preview.
    """
    created = datetime.fromtimestamp(manifest.created / 1000, tz=timezone.utc)
    text = (manifest.text or "").replace("\n", " ").strip()
    if len(text) > PREVIEW_CHARS:
        text = text[:PREVIEW_CHARS] + "..."
    parts = [
        manifest.dir,
        created.strftime("%Y-%m-%d %H:%M"),
        f"{len(manifest.images)} image(s)",
    ]
    if manifest.tags:
        parts.append("tags=" + ",".join(manifest.tags))
    if text:
        parts.append(repr(text))
    return "  ".join(parts)


async def describe_posts(store: ContentStore) -> List[str]:
    """Describe every post under the store root, in directory-name order."""
    lines = []
    for post_id in await store.list_post_ids():
        try:
            manifest = await store.read_manifest(post_id)
        except (KeyError, TypeError, ValueError) as exc:
            lines.append(f"{post_id}  (unreadable manifest: {type(exc).__name__})")
            continue
        if manifest is None:
            lines.append(f"{post_id}  (no manifest)")
            continue
        lines.append(_format_manifest(manifest))
    return lines


async def main() -> None:
    """Print all posts found under CONTENT_DIR."""
    load_dotenv()
    content_dir = os.getenv("CONTENT_DIR")
    if not content_dir:
        raise SystemExit("CONTENT_DIR environment variable must be set.")
    store = ContentStore(Path(content_dir).expanduser())
    for line in await describe_posts(store):
        print(line)


if __name__ == "__main__":
    asyncio.run(main())
