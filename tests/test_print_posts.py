"""Post listing script."""
import asyncio
import json

from print_posts import describe_posts


def test_lists_posts_with_and_without_manifest(harness, content_root):
    post = content_root / "1700000000000"
    post.mkdir()
    (post / "index.json").write_text(json.dumps({
        "dir": "1700000000000",
        "created": 1700000000000,
        "layout": "album",
        "text": "Sunset over the bay",
        "images": ["1.jpg", "2.jpg"],
        "authors": [],
        "tags": ["sea"],
    }))
    (content_root / "stray").mkdir()

    lines = asyncio.run(describe_posts(harness.store))

    assert lines[0] == "1700000000000  2023-11-14 22:13  2 image(s)  tags=sea  'Sunset over the bay'"
    assert lines[1] == "stray  (no manifest)"


def test_unreadable_manifest_does_not_stop_listing(harness, content_root):
    (content_root / "broken").mkdir()
    (content_root / "broken" / "index.json").write_text(json.dumps({"text": "hand written"}))
    (content_root / "garbled").mkdir()
    (content_root / "garbled" / "index.json").write_text("{not json")

    lines = asyncio.run(describe_posts(harness.store))

    assert lines == [
        "broken  (unreadable manifest: KeyError)",
        "garbled  (unreadable manifest: JSONDecodeError)",
    ]
