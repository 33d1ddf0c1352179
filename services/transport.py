"""Interface the conversation core expects from a chat platform adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence


@dataclass(frozen=True)
class CommandInfo:
    command: str
    description: str


class ChatTransport(Protocol):
    """Outbound capabilities of the messaging platform."""

    async def send_text(
        self,
        chat_id: int,
        text: str,
        reply_to: Optional[int] = None,
        markdown: bool = False,
    ) -> None:
        """Send a message, optionally threaded and rendered as MarkdownV2."""

    async def send_typing(self, chat_id: int) -> None:
        """Show the typing indicator in a chat."""

    async def fetch_attachment(self, file_id: str) -> bytes:
        """Download the binary content of an attachment."""

    async def register_commands(self, commands: Sequence[CommandInfo]) -> None:
        """Publish the bot's command menu."""
