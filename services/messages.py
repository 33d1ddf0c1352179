"""User-facing reply texts and MarkdownV2 formatting helpers."""

from __future__ import annotations

from typing import Iterable, List

from telegram.helpers import escape_markdown

from services.transport import CommandInfo

# Telegram rejects messages longer than 4096 characters.
MAX_MESSAGE_CHARS = 4096
# Room left for the fences and a truncation marker.
MAX_BLOCK_BODY_CHARS = MAX_MESSAGE_CHARS - 64

COMMANDS: List[CommandInfo] = [
    CommandInfo("create", "Begin post creating operation."),
    CommandInfo("delete", "Begin post deleting operation."),
    CommandInfo("text", "Add a text section for post."),
    CommandInfo("images", "Add an images section for post."),
    CommandInfo("authors", "Add an authors section for post."),
    CommandInfo("tags", "Add a tags section for post."),
    CommandInfo("date", "Set the authored date of post."),
    CommandInfo("commit", "End and submit operation."),
    CommandInfo("cancel", "End and discard operation."),
]

NOT_ALLOWED = "Your user name is not in allowed users list so you are not allowed to publish images."
NO_USERNAME = "You don't have a username so you are not allowed to publish images."
NO_USERS = (
    "Allowed users list is empty so no one is allowed to publish images, please add "
    "Telegram user names to `ALLOWED_USERS`\\."
)

PROMPT_CREATE = "Please attach images or text."
PROMPT_DELETE = "Please attach deleted IDs, each message contains one ID."
PROMPT_TEXT = "Please attach text."
PROMPT_IMAGES = "Please attach images."
PROMPT_AUTHORS = "Please attach authors, each message contains one author."
PROMPT_TAGS = "Please attach tags, each message contains one tag."
PROMPT_DATE = "Please attach the authored date, for example 2024-05-01 or 2024-05-01T18:30:00+02:00."

DATE_INVALID = "Cannot parse this date, the previous date is kept. Please try again, for example 2024-05-01."
CANCELLED = "Your operations have been cancelled."
TIMED_OUT = "Your operations have been cancelled because of timeout."
COMMIT_BUSY = "There is already a committing task running, please wait for it and re-commit after it finishes."
COMMIT_FAILED = "There is something wrong while committing, your operations are cancelled\\."
DELETE_FAILED = "There is something wrong while deleting\\."
BUILD_FINISHED = "Build command finished, committing task done\\."


def inline_code(value: str) -> str:
    return f"`{escape_markdown(value, version=2, entity_type='code')}`"


def code_block(body: str) -> str:
    """Wrap text in a MarkdownV2 pre block, keeping only its tail if too long.

    The length limit applies to the escaped text. Escaping at most doubles a
    character, so cutting half the excess from the raw text never cuts too much.
    """
    escaped = escape_markdown(body, version=2, entity_type="pre")
    while len(escaped) > MAX_BLOCK_BODY_CHARS:
        body = body[(len(escaped) - MAX_BLOCK_BODY_CHARS + 1) // 2:]
        escaped = escape_markdown("...\n" + body, version=2, entity_type="pre")
    return f"```\n{escaped}\n```"


def created(post_id: str) -> str:
    return f"Created {inline_code(post_id)}\\."


def deleted(post_ids: Iterable[str]) -> str:
    names = [inline_code(post_id) for post_id in post_ids]
    if not names:
        return "Nothing matched, no posts were deleted\\."
    return f"Deleted {', '.join(names)}\\."


def build_failed(exit_code: int | None) -> str:
    if exit_code is None:
        return "Build command could not be started\\."
    return escape_markdown(f"Build command failed with exit code {exit_code}.", version=2)


def format_error(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"
