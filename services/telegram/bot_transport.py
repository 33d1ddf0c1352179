"""`ChatTransport` implementation backed by python-telegram-bot's `Bot`."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from telegram import Bot, BotCommand, ReplyParameters, Update
from telegram.constants import ChatAction, ParseMode

from services.transport import CommandInfo

LOGGER = logging.getLogger(__name__)


class TelegramTransport:
    """Send replies, download photos and manage the command menu over the Bot API.

    Args:
        bot: An initialized (or about to be initialized) telegram `Bot`.
    """

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    @classmethod
    def from_token(cls, token: str) -> "TelegramTransport":
        return cls(Bot(token))

    async def start(self) -> None:
        await self.bot.initialize()

    async def stop(self) -> None:
        await self.bot.shutdown()

    async def bot_username(self) -> Optional[str]:
        me = await self.bot.get_me()
        return me.username

    async def send_text(
        self,
        chat_id: int,
        text: str,
        reply_to: Optional[int] = None,
        markdown: bool = False,
    ) -> None:
        reply_parameters = None
        if reply_to is not None:
            reply_parameters = ReplyParameters(message_id=reply_to, allow_sending_without_reply=True)
        await self.bot.send_message(
            chat_id=chat_id,
            text=text,
            parse_mode=ParseMode.MARKDOWN_V2 if markdown else None,
            reply_parameters=reply_parameters,
        )

    async def send_typing(self, chat_id: int) -> None:
        await self.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)

    async def fetch_attachment(self, file_id: str) -> bytes:
        tg_file = await self.bot.get_file(file_id)
        data = await tg_file.download_as_bytearray()
        LOGGER.debug("Downloaded %s (%d bytes)", file_id, len(data))
        return bytes(data)

    async def register_commands(self, commands: Sequence[CommandInfo]) -> None:
        await self.bot.set_my_commands([BotCommand(c.command, c.description) for c in commands])
        LOGGER.info("Registered %d bot commands", len(commands))

    async def get_updates(self, offset: Optional[int], timeout: int) -> List[Update]:
        updates = await self.bot.get_updates(offset=offset, timeout=timeout, allowed_updates=["message"])
        return list(updates)

    async def drop_webhook(self) -> None:
        """Remove any webhook so `getUpdates` is allowed."""
        await self.bot.delete_webhook()
