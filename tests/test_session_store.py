"""Actor registry: creation on first contact and idle eviction."""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from conftest import msg

import pytest

from models.session_models import Phase
from services.conversation.session_store import SessionStore


def test_dispatch_creates_one_actor_per_chat(harness):
    store = SessionStore(lambda chat_id: harness.actor(chat_id=chat_id))

    async def scenario():
        store.dispatch(msg(chat_id=1, text="/create"))
        store.dispatch(msg(chat_id=2, text="/delete"))
        store.dispatch(msg(chat_id=1, text="hello"))
        await store.drain()
        phases = {chat_id: store.get(chat_id).state.phase for chat_id in (1, 2)}
        text = store.get(1).state.draft.text
        store.close_all()
        return phases, text

    phases, text = asyncio.run(scenario())
    assert phases == {1: Phase.CREATE, 2: Phase.DELETE}
    assert text == "hello"


def test_get_unknown_chat_raises(harness):
    store = SessionStore(lambda chat_id: harness.actor(chat_id=chat_id))
    with pytest.raises(KeyError):
        store.get(99)


def test_eviction_skips_active_and_recent_sessions(harness):
    store = SessionStore(lambda chat_id: harness.actor(chat_id=chat_id), evict_after=60)

    async def scenario():
        store.dispatch(msg(chat_id=1, text="hi"))
        store.dispatch(msg(chat_id=2, text="/create"))
        store.dispatch(msg(chat_id=3, text="hi"))
        await store.drain()
        store.get(1).state.last_activity -= 120
        store.get(2).state.last_activity -= 120
        evicted = store.evict_idle()
        remaining = sorted(chat_id for chat_id in (1, 2, 3) if chat_id in store)
        store.close_all()
        return evicted, remaining

    evicted, remaining = asyncio.run(scenario())
    assert evicted == 1
    assert remaining == [2, 3]
