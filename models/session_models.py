"""Session domain models for multi-message post assembly."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class Phase(str, Enum):
	"""Position of a conversation in the post-assembly protocol."""

	IDLE = "idle"
	CREATE = "create"
	DELETE = "delete"
	TEXT = "text"
	IMAGES = "images"
	AUTHORS = "authors"
	TAGS = "tags"
	DATE = "date"


# Phases that belong to an active create operation.
CREATE_PHASES = frozenset({Phase.CREATE, Phase.TEXT, Phase.IMAGES, Phase.AUTHORS, Phase.TAGS, Phase.DATE})
# Phases from which commit and cancel are accepted.
ACTIVE_PHASES = CREATE_PHASES | {Phase.DELETE}


@dataclass
class ImageVariant:
	"""One rendition of an image attachment as offered by the transport."""

	file_id: str
	file_size: int = 0
	width: int = 0
	height: int = 0


@dataclass
class ImageVariantSet:
	"""All renditions of a single submitted image."""

	variants: List[ImageVariant] = field(default_factory=list)

	def largest_variant(self) -> ImageVariant:
		"""Return the variant with the biggest size; ties keep the first one."""
		if not self.variants:
			raise ValueError("Image has no variants to choose from.")
		best = self.variants[0]
		for variant in self.variants[1:]:
			if variant.file_size > best.file_size:
				best = variant
		return best


@dataclass
class DraftPost:
	"""In-memory accumulation of a post that has not been committed yet."""

	text: Optional[str] = None
	images: List[ImageVariantSet] = field(default_factory=list)
	authors: List[str] = field(default_factory=list)
	tags: List[str] = field(default_factory=list)
	authored_date: Optional[datetime] = None

	def has_content(self) -> bool:
		return self.text is not None or bool(self.images)


@dataclass
class ConversationState:
	"""Per-chat state: current phase plus whichever draft is being built."""

	chat_id: int
	phase: Phase = Phase.IDLE
	draft: Optional[DraftPost] = None
	pending_deletions: Optional[List[str]] = None
	last_activity: float = field(default_factory=time.monotonic)

	def reset(self) -> None:
		"""Drop any draft data and return to idle."""
		self.phase = Phase.IDLE
		self.draft = None
		self.pending_deletions = None

	def touch(self) -> None:
		self.last_activity = time.monotonic()


@dataclass
class InboundMessage:
	"""Transport-neutral view of one incoming chat message."""

	chat_id: int
	message_id: int
	chat_type: str = "private"
	sender_username: Optional[str] = None
	text: Optional[str] = None
	caption: Optional[str] = None
	photo: Optional[ImageVariantSet] = None


@dataclass
class IdleTimeout:
	"""Event posted to a session actor when its idle timer expires."""

	generation: int
