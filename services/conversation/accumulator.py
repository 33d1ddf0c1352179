"""Append inbound message payloads to the active draft or deletion list."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from models.session_models import ConversationState, ImageVariantSet, Phase

# Plain text in these phases goes to the post body.
TEXT_BODY_PHASES = frozenset({Phase.CREATE, Phase.TEXT, Phase.IMAGES})
# Photos never conflict with the active text section so every create phase takes them.
IMAGE_PHASES = frozenset({Phase.CREATE, Phase.TEXT, Phase.IMAGES, Phase.AUTHORS, Phase.TAGS, Phase.DATE})


class DateParseError(ValueError):
	"""Raised when a date line cannot be understood."""


def parse_authored_date(raw: str) -> datetime:
	"""Parse an ISO 8601 date or date-time; naive values are taken as UTC.

	Raises:
		DateParseError: If the text is not a recognised date.
	"""
	value = (raw or "").strip()
	if value.endswith(("Z", "z")):
		value = value[:-1] + "+00:00"
	try:
		parsed = datetime.fromisoformat(value)
	except ValueError as exc:
		raise DateParseError(f"Unrecognised date: {raw!r}") from exc
	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=timezone.utc)
	return parsed


def append_text(state: ConversationState, text: str) -> bool:
	"""Route a plain text payload according to the current phase.

	Returns:
		True when the text was stored somewhere, False when the phase ignores it.

	Raises:
		DateParseError: In the date phase, when the text is not a date. The
			previously stored date is left untouched.
	"""
	if state.phase in TEXT_BODY_PHASES and state.draft is not None:
		if state.draft.text is None:
			state.draft.text = text
		else:
			state.draft.text += text
		return True
	if state.phase == Phase.AUTHORS and state.draft is not None:
		state.draft.authors.append(text.strip())
		return True
	if state.phase == Phase.TAGS and state.draft is not None:
		state.draft.tags.append(text.strip())
		return True
	if state.phase == Phase.DATE and state.draft is not None:
		state.draft.authored_date = parse_authored_date(text)
		return True
	if state.phase == Phase.DELETE and state.pending_deletions is not None:
		state.pending_deletions.append(text.strip())
		return True
	return False


def append_image(state: ConversationState, image: Optional[ImageVariantSet]) -> bool:
	"""Append one image variant set to the draft if the phase accepts photos."""
	if image is None or not image.variants:
		return False
	if state.phase not in IMAGE_PHASES or state.draft is None:
		return False
	state.draft.images.append(image)
	return True
