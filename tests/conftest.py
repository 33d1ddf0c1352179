"""Shared fixtures for post collector tests."""
import asyncio
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from dal.content_store import ContentStore
from models.session_models import ImageVariant, ImageVariantSet, InboundMessage
from services.commit.build_trigger import BuildTrigger
from services.commit.coordinator import CommitCoordinator
from services.commit.deletion import DeletionExecutor
from services.commit.gate import CommitGate
from services.commit.materializer import PostMaterializer
from services.conversation.session_actor import PostSessionActor
from utils.settings import Settings


class FakeTransport:
    """Records outbound calls and serves attachment bytes from a dict."""

    def __init__(self, attachments: Optional[Dict[str, bytes]] = None) -> None:
        self.attachments = attachments or {}
        self.sent: List[dict] = []
        self.typing: List[int] = []
        self.commands = []
        self.fetch_delays: Dict[str, float] = {}
        self.failing: set = set()

    async def send_text(self, chat_id, text, reply_to=None, markdown=False):
        self.sent.append({"chat_id": chat_id, "text": text, "reply_to": reply_to, "markdown": markdown})

    async def send_typing(self, chat_id):
        self.typing.append(chat_id)

    async def fetch_attachment(self, file_id):
        await asyncio.sleep(self.fetch_delays.get(file_id, 0))
        if file_id in self.failing:
            raise ConnectionError(f"download of {file_id} failed")
        return self.attachments[file_id]

    async def register_commands(self, commands):
        self.commands = list(commands)

    def texts(self, chat_id=None):
        return [m["text"] for m in self.sent if chat_id is None or m["chat_id"] == chat_id]


def photo(*sizes):
    """Build a variant set from (file_id, file_size) pairs."""
    return ImageVariantSet(variants=[ImageVariant(file_id=f, file_size=s) for f, s in sizes])


def msg(chat_id=1, text=None, caption=None, image=None, message_id=10, username="alice", chat_type="private"):
    return InboundMessage(
        chat_id=chat_id,
        message_id=message_id,
        chat_type=chat_type,
        sender_username=username,
        text=text,
        caption=caption,
        photo=image,
    )


class Harness:
    """Commit pipeline and actor factory wired against a temporary content root."""

    def __init__(self, root: Path, transport: FakeTransport, build_command=None, build_workdir=None, clock=None):
        self.transport = transport
        self.store = ContentStore(root)
        self.store.ensure_root()
        self.gate = CommitGate()
        self.build = BuildTrigger(build_command, build_workdir, transport)
        kwargs = {"clock": clock} if clock is not None else {}
        self.materializer = PostMaterializer(self.store, transport.fetch_attachment, **kwargs)
        self.coordinator = CommitCoordinator(
            gate=self.gate,
            materializer=self.materializer,
            deletion=DeletionExecutor(self.store),
            build=self.build,
            transport=transport,
        )

    def actor(self, chat_id=1, idle_timeout=180.0, bot_username="collector_bot"):
        return PostSessionActor(chat_id, self.transport, self.coordinator, idle_timeout, bot_username=bot_username)


@pytest.fixture
def transport():
    return FakeTransport(attachments={"small": b"s", "big": b"BIG", "other": b"OTHER"})


@pytest.fixture
def content_root(tmp_path):
    root = tmp_path / "posts"
    root.mkdir()
    return root


@pytest.fixture
def harness(content_root, transport):
    return Harness(content_root, transport, clock=lambda: 1000)


@pytest.fixture
def settings(content_root):
    return Settings(
        bot_token="123:abc",
        content_dir=content_root,
        bot_username="collector_bot",
        allowed_users=["alice"],
        idle_timeout=180.0,
    )
