"""Command parsing and legal phase transitions."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional

from models.session_models import ACTIVE_PHASES, CREATE_PHASES, ConversationState, DraftPost, Phase


class Command(str, Enum):
	CREATE = "create"
	DELETE = "delete"
	TEXT = "text"
	IMAGES = "images"
	AUTHORS = "authors"
	TAGS = "tags"
	DATE = "date"
	COMMIT = "commit"
	CANCEL = "cancel"


_IDLE_ONLY: FrozenSet[Phase] = frozenset({Phase.IDLE})

ALLOWED_FROM: Dict[Command, FrozenSet[Phase]] = {
	Command.CREATE: _IDLE_ONLY,
	Command.DELETE: _IDLE_ONLY,
	Command.TEXT: CREATE_PHASES,
	Command.IMAGES: CREATE_PHASES,
	Command.AUTHORS: CREATE_PHASES,
	Command.TAGS: CREATE_PHASES,
	Command.DATE: CREATE_PHASES,
	Command.COMMIT: ACTIVE_PHASES,
	Command.CANCEL: ACTIVE_PHASES,
}

# Section commands move to the phase of the same name.
SECTION_PHASES: Dict[Command, Phase] = {
	Command.TEXT: Phase.TEXT,
	Command.IMAGES: Phase.IMAGES,
	Command.AUTHORS: Phase.AUTHORS,
	Command.TAGS: Phase.TAGS,
	Command.DATE: Phase.DATE,
}


def parse_command(text: Optional[str], bot_username: Optional[str] = None) -> Optional[Command]:
	"""Return the command named by the first token of `text`, if any.

	`/create` and `/create@<bot_username>` are both accepted; a suffix naming
	another bot, or an unknown command, yields None.
	"""
	if not text or not text.startswith("/"):
		return None
	token = text.split(maxsplit=1)[0][1:]
	name, _, target = token.partition("@")
	if target and (not bot_username or target.lower() != bot_username.lower()):
		return None
	try:
		return Command(name.lower())
	except ValueError:
		return None


def is_allowed(command: Command, phase: Phase) -> bool:
	return phase in ALLOWED_FROM[command]


def apply_transition(state: ConversationState, command: Command) -> bool:
	"""Apply a non-terminal command to `state`.

	Handles `create`, `delete` and the section commands. `commit` and
	`cancel` leave the state alone here; the caller runs them and resets.

	Returns:
		True if the command was legal from the current phase.
	"""
	if not is_allowed(command, state.phase):
		return False
	if command == Command.CREATE:
		state.phase = Phase.CREATE
		state.draft = DraftPost()
		state.pending_deletions = None
	elif command == Command.DELETE:
		state.phase = Phase.DELETE
		state.draft = None
		state.pending_deletions = []
	elif command in SECTION_PHASES:
		state.phase = SECTION_PHASES[command]
	return True
