from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

LAYOUT_ALBUM = "album"


@dataclass
class PostManifest:
    """Metadata persisted as `index.json` beside a committed post's images.

    Attributes:
        dir: Directory name, also the public identifier of the post.
        created: Milliseconds since the epoch (authored date or commit time).
        layout: Rendering hint for the site builder; always "album".
        text: Concatenated post text, or None when only images were sent.
        images: Relative image file names in the order they were appended.
        authors: Author entries in entry order.
        tags: Tag entries in entry order.
    """

    dir: str
    created: int
    layout: str = LAYOUT_ALBUM
    text: Optional[str] = None
    images: List[str] = field(default_factory=list)
    authors: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PostManifest":
        return cls(
            dir=data["dir"],
            created=int(data["created"]),
            layout=data.get("layout") or LAYOUT_ALBUM,
            text=data.get("text"),
            images=list(data.get("images") or []),
            authors=list(data.get("authors") or []),
            tags=list(data.get("tags") or []),
        )
