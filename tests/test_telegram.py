"""Telegram update conversion and the long-polling loop."""
import asyncio

from telegram import Update

from services.telegram.poller import UpdatePoller
from services.telegram.updates import message_from_update


def photo_update(update_id=1):
    return Update.de_json(
        {
            "update_id": update_id,
            "message": {
                "message_id": 8,
                "date": 1700000000,
                "chat": {"id": 42, "type": "private"},
                "from": {"id": 7, "is_bot": False, "first_name": "Alice", "username": "alice"},
                "caption": "A cat",
                "photo": [
                    {"file_id": "s", "file_unique_id": "us", "width": 90, "height": 60, "file_size": 1000},
                    {"file_id": "l", "file_unique_id": "ul", "width": 1280, "height": 853, "file_size": 90000},
                ],
            },
        },
        None,
    )


def test_photo_message_conversion():
    message = message_from_update(photo_update())
    assert message.chat_id == 42
    assert message.message_id == 8
    assert message.sender_username == "alice"
    assert message.text is None
    assert message.caption == "A cat"
    assert [v.file_id for v in message.photo.variants] == ["s", "l"]
    assert message.photo.largest_variant().file_id == "l"


def test_non_message_update_is_skipped():
    assert message_from_update(Update.de_json({"update_id": 2}, None)) is None


class FakeSource:
    def __init__(self, batches):
        self.batches = list(batches)
        self.offsets = []

    async def get_updates(self, offset, timeout):
        self.offsets.append(offset)
        return self.batches.pop(0) if self.batches else []


def test_poller_advances_offset_and_survives_handler_errors():
    source = FakeSource([[photo_update(5), photo_update(6)], [photo_update(7)]])
    seen = []

    async def on_update(update):
        seen.append(update.update_id)
        if update.update_id == 5:
            raise RuntimeError("boom")

    poller = UpdatePoller(source, on_update)

    async def scenario():
        await poller.poll_once()
        await poller.poll_once()

    asyncio.run(scenario())

    assert seen == [5, 6, 7]
    assert source.offsets == [None, 7]
    assert poller.offset == 8
