"""Collision-free directory names derived from millisecond timestamps."""

from __future__ import annotations

from typing import Iterable


def base_name(timestamp_ms: int) -> str:
    """Stringify a timestamp; a leading minus becomes `n` to stay shell friendly."""
    name = str(int(timestamp_ms))
    if name.startswith("-"):
        name = "n" + name[1:]
    return name


def resolve_dir_name(timestamp_ms: int, existing: Iterable[str]) -> str:
    """Return the first unused name among `t`, `t-1`, `t-2`, ...

    Args:
        timestamp_ms: Timestamp the post is named after.
        existing: Snapshot of the current post directory names.
    """
    taken = set(existing)
    base = base_name(timestamp_ms)
    name = base
    suffix = 0
    while name in taken:
        suffix += 1
        name = f"{base}-{suffix}"
    return name
