from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

DEFAULT_IDLE_TIMEOUT_SECONDS = 180.0
DEFAULT_SESSION_EVICT_SECONDS = 300.0


def _parse_bool(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in {"1", "true", "yes", "on"}


def _parse_seconds(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} is not a number of seconds.") from exc
    if value <= 0:
        raise RuntimeError(f"{name} must be greater than zero, got {value}.")
    return value


def _parse_users(raw: Optional[str]) -> List[str]:
    """Split a comma separated allow-list, dropping blanks and leading `@`."""
    users = []
    for item in (raw or "").split(","):
        name = item.strip().lstrip("@")
        if name:
            users.append(name)
    return users


@dataclass
class Settings:
    """
    Central configuration for the post collector bot.

    Values are read once from environment variables (a `.env` file is
    honoured) by `Settings.from_env()`. Only the bot token and the content
    directory are mandatory; an unset build command or working directory
    simply disables the build step.
    """

    bot_token: str
    content_dir: Path
    bot_username: Optional[str] = None
    allowed_users: List[str] = field(default_factory=list)
    build_command: Optional[str] = None
    build_workdir: Optional[Path] = None
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS
    session_evict_after: float = DEFAULT_SESSION_EVICT_SECONDS
    webhook_secret: Optional[str] = None
    use_polling: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        token = os.getenv("TELEGRAM_BOT_TOKEN")
        if token is None or not token.strip():
            raise RuntimeError(
                "TELEGRAM_BOT_TOKEN environment variable must be set to the "
                "token issued by BotFather."
            )

        env_dir = os.getenv("CONTENT_DIR")
        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "CONTENT_DIR environment variable must be set to a writable "
                "directory path where committed posts will be stored."
            )

        workdir = (os.getenv("BUILD_COMMAND_WORKDIR") or "").strip()
        return cls(
            bot_token=token.strip(),
            content_dir=Path(env_dir).expanduser(),
            bot_username=(os.getenv("TELEGRAM_BOT_USERNAME") or "").strip().lstrip("@") or None,
            allowed_users=_parse_users(os.getenv("ALLOWED_USERS")),
            build_command=(os.getenv("BUILD_COMMAND") or "").strip() or None,
            build_workdir=Path(workdir).expanduser() if workdir else None,
            idle_timeout=_parse_seconds("IDLE_TIMEOUT_SECONDS", DEFAULT_IDLE_TIMEOUT_SECONDS),
            session_evict_after=_parse_seconds("SESSION_EVICT_SECONDS", DEFAULT_SESSION_EVICT_SECONDS),
            webhook_secret=(os.getenv("TELEGRAM_WEBHOOK_SECRET") or "").strip() or None,
            use_polling=_parse_bool(os.getenv("TELEGRAM_USE_POLLING")),
        )
