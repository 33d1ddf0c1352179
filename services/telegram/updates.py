"""Convert Telegram updates into transport-neutral `InboundMessage`s."""

from __future__ import annotations

from typing import Optional, Sequence

from telegram import PhotoSize, Update

from models.session_models import ImageVariant, ImageVariantSet, InboundMessage


def variant_set_from_photo(photo: Sequence[PhotoSize]) -> Optional[ImageVariantSet]:
    if not photo:
        return None
    return ImageVariantSet(
        variants=[
            ImageVariant(
                file_id=size.file_id,
                file_size=size.file_size or 0,
                width=size.width,
                height=size.height,
            )
            for size in photo
        ]
    )


def message_from_update(update: Update) -> Optional[InboundMessage]:
    """Return the update's message in domain form, or None for other update kinds."""
    message = update.message
    if message is None:
        return None
    sender = message.from_user
    return InboundMessage(
        chat_id=message.chat.id,
        message_id=message.message_id,
        chat_type=message.chat.type,
        sender_username=sender.username if sender is not None else None,
        text=message.text,
        caption=message.caption,
        photo=variant_set_from_photo(message.photo),
    )
