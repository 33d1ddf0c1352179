"""Entry point for inbound Telegram updates, shared by webhook and polling."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from telegram import Bot, Update

from dal.content_store import ContentStore
from models.session_models import InboundMessage
from services import messages
from services.commit.build_trigger import BuildTrigger
from services.commit.gate import CommitGate
from services.conversation.session_store import SessionStore
from services.telegram.updates import message_from_update
from services.transport import ChatTransport
from utils.authorization import UserStatus, check_user
from utils.settings import Settings

LOGGER = logging.getLogger(__name__)

DENIED_REPLIES = {
    UserStatus.NOT_ALLOWED: (messages.NOT_ALLOWED, False),
    UserStatus.NO_USERNAME: (messages.NO_USERNAME, False),
    UserStatus.NO_USERS: (messages.NO_USERS, True),
}


@dataclass
class BotServices:
    """Shared services attached to `app.state.bot_services`."""

    settings: Settings
    transport: ChatTransport
    store: ContentStore
    gate: CommitGate
    build: BuildTrigger
    sessions: SessionStore
    bot: Optional[Bot] = None


async def handle_message(services: BotServices, message: InboundMessage) -> bool:
    """Authorize a private-chat message and queue it on its session.

    Returns:
        True if the message was handed to a session actor.
    """
    if message.chat_type != "private":
        return False
    status = check_user(message.sender_username, services.settings.allowed_users)
    if status != UserStatus.ALLOWED:
        text, markdown = DENIED_REPLIES[status]
        LOGGER.info("Rejected message from %r in chat %s: %s", message.sender_username, message.chat_id, status.value)
        await services.transport.send_typing(message.chat_id)
        await services.transport.send_text(message.chat_id, text, reply_to=message.message_id, markdown=markdown)
        return False
    services.sessions.dispatch(message)
    return True


async def handle_telegram_update(services: BotServices, update: Update) -> bool:
    message = message_from_update(update)
    if message is None:
        return False
    return await handle_message(services, message)


async def receive_webhook(request: Request, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Handle one webhook delivery from Telegram.

    Args:
        request: FastAPI Request (to access app.state.bot_services).
        payload: Decoded JSON body of the update.

    Raises:
        HTTPException(403) on a wrong secret token, 400 on a malformed update.
    """
    services: Optional[BotServices] = getattr(request.app.state, "bot_services", None)
    if services is None:
        raise HTTPException(status_code=500, detail="Bot services not initialized.")

    secret = services.settings.webhook_secret
    if secret and request.headers.get("X-Telegram-Bot-Api-Secret-Token") != secret:
        raise HTTPException(status_code=403, detail="Invalid webhook secret.")

    try:
        update = Update.de_json(payload, services.bot)
    except Exception as exc:
        raise HTTPException(status_code=400, detail=f"Malformed update: {exc}") from exc
    if update is None:
        raise HTTPException(status_code=400, detail="Empty update.")

    accepted = await handle_telegram_update(services, update)
    return {"ok": True, "accepted": accepted}
