"""Commit serialization across sessions."""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from conftest import photo

from models.session_models import ConversationState, DraftPost, Phase
from services import messages


def creating(chat_id, **fields):
    return ConversationState(chat_id=chat_id, phase=Phase.TEXT, draft=DraftPost(**fields))


class TestCommitCoordinator:
    def test_idle_session_is_not_committed(self, harness):
        state = ConversationState(chat_id=1)
        assert asyncio.run(harness.coordinator.commit(state)) is False
        assert not harness.gate.committing
        assert harness.transport.sent == []

    def test_busy_gate_rejects_second_session(self, harness, content_root):
        first = creating(1, text="first")
        second = creating(2, text="second")

        async def scenario():
            held = harness.gate.try_acquire(first.chat_id)
            committed = await harness.coordinator.commit(second, reply_to=3)
            return held, committed

        held, committed = asyncio.run(scenario())

        assert committed is False
        assert harness.transport.texts(2) == [messages.COMMIT_BUSY]
        assert second.phase == Phase.TEXT and second.draft.text == "second"
        assert first.draft.text == "first"
        assert harness.gate.committing and not held.released
        assert list(content_root.iterdir()) == []

    def test_success_resets_session_and_clears_gate(self, harness, content_root):
        state = creating(1, text="Hi")
        assert asyncio.run(harness.coordinator.commit(state, reply_to=4))
        assert state.phase == Phase.IDLE and state.draft is None
        assert not harness.gate.committing
        assert harness.transport.texts() == [messages.created("1000")]

    def test_failed_commit_cleans_up_and_clears_gate(self, harness, transport, content_root):
        transport.failing = {"big"}
        state = creating(1, text="x", images=[photo(("big", 1))])

        assert asyncio.run(harness.coordinator.commit(state))

        assert not (content_root / "1000").exists()
        assert not harness.gate.committing
        assert state.phase == Phase.IDLE and state.draft is None
        reply = transport.texts()[0]
        assert reply.startswith(messages.COMMIT_FAILED)
        assert "ConnectionError" in reply

    def test_empty_draft_commits_silently(self, harness, content_root):
        state = creating(1, tags=["t"])
        assert asyncio.run(harness.coordinator.commit(state))
        assert harness.transport.sent == []
        assert list(content_root.iterdir()) == []
        assert state.phase == Phase.IDLE

    def test_delete_reports_removed_ids(self, harness, content_root):
        for name in ("a", "b", "c"):
            (content_root / name).mkdir()
        state = ConversationState(chat_id=1, phase=Phase.DELETE, pending_deletions=["a", "missing", "b"])

        assert asyncio.run(harness.coordinator.commit(state))

        assert harness.transport.texts() == [messages.deleted(["a", "b"])]
        assert sorted(p.name for p in content_root.iterdir()) == ["c"]
        assert state.pending_deletions is None and state.phase == Phase.IDLE

    def test_failed_removal_keeps_completed_ones_and_clears_gate(self, harness, content_root, monkeypatch):
        for name in ("a", "b"):
            (content_root / name).mkdir()
        remove_post = harness.store.remove_post

        async def flaky_remove(post_id):
            if post_id == "b":
                raise PermissionError(f"cannot remove {post_id}")
            await remove_post(post_id)

        monkeypatch.setattr(harness.store, "remove_post", flaky_remove)
        state = ConversationState(chat_id=1, phase=Phase.DELETE, pending_deletions=["a", "b"])

        assert asyncio.run(harness.coordinator.commit(state))

        assert not (content_root / "a").exists()
        assert (content_root / "b").is_dir()
        reply = harness.transport.texts()[0]
        assert reply.startswith(messages.DELETE_FAILED)
        assert "PermissionError" in reply and "```" in reply
        assert not harness.gate.committing
        assert state.phase == Phase.IDLE and state.pending_deletions is None
