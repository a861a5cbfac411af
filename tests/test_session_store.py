# tests/test_session_store.py
import json

import pytest

from hello_chatbot.sessions import (
    DEFAULT_SESSION_TITLE,
    AbstractLocalStorage,
    ChatMessage,
    LocalStorageError,
    SESSIONS_STORAGE_KEY,
    SessionStore,
)

DAY = 24 * 3600


def make_store(local_storage, session_clock, **kwargs):
    return SessionStore(local_storage, clock=session_clock, **kwargs)


class BrokenStorage(AbstractLocalStorage):
    async def get_item(self, key):
        raise LocalStorageError("disk unavailable")

    async def set_item(self, key, value):
        raise LocalStorageError("disk unavailable")


@pytest.mark.asyncio
async def test_get_or_create_active_session_creates_once(local_storage, session_clock):
    store = make_store(local_storage, session_clock)

    first = await store.get_or_create_active_session()
    second = await store.get_or_create_active_session()

    assert first.id == second.id
    assert first.title == DEFAULT_SESSION_TITLE
    assert first.messages == []
    state = await store.load_state()
    assert state.active_session_id == first.id
    assert state.session_order == [first.id]


@pytest.mark.asyncio
async def test_create_session_makes_new_session_active(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    first = await store.create_session()
    session_clock.advance(1)

    second = await store.create_session()

    state = await store.load_state()
    assert state.active_session_id == second.id
    assert state.session_order == [second.id, first.id]


@pytest.mark.asyncio
async def test_capacity_evicts_session_created_longest_ago(local_storage, session_clock):
    store = make_store(local_storage, session_clock, max_sessions=50)
    created = []
    for _ in range(51):
        created.append((await store.create_session()).id)
        session_clock.advance(1)

    state = await store.load_state()
    assert len(state.sessions) == len(state.session_order) == 50
    assert created[0] not in state.sessions
    assert set(state.session_order) == set(created[1:])


@pytest.mark.asyncio
async def test_eviction_follows_creation_order_not_recency(local_storage, session_clock):
    store = make_store(local_storage, session_clock, max_sessions=2)
    oldest = await store.create_session()
    session_clock.advance(1)
    middle = await store.create_session()
    session_clock.advance(1)
    await store.rename_session(oldest.id, "Recently used")
    session_clock.advance(1)

    await store.create_session()

    assert await store.get_session(oldest.id) is None
    assert await store.get_session(middle.id) is not None


@pytest.mark.asyncio
async def test_get_all_sessions_sorted_by_updated_desc(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    a = await store.create_session()
    session_clock.advance(1)
    b = await store.create_session()
    session_clock.advance(1)
    await store.update_session(a.id, {"title": "touched"})

    listed = await store.get_all_sessions()

    assert [s.id for s in listed] == [a.id, b.id]
    assert [s.id for s in await store.get_all_sessions()] == [a.id, b.id]


@pytest.mark.asyncio
async def test_update_session_merges_and_protects_identity(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    session = await store.create_session()
    session_clock.advance(5)

    updated = await store.update_session(session.id, {
        "id": "hijacked",
        "created": "2000-01-01T00:00:00Z",
        "messages": [ChatMessage(role="user", content="hi")],
    })

    assert updated.id == session.id
    assert updated.created == session.created
    assert updated.updated > session.updated
    assert [m.content for m in updated.messages] == ["hi"]
    assert await store.get_session("hijacked") is None


@pytest.mark.asyncio
async def test_update_unknown_session_returns_none(local_storage, session_clock):
    store = make_store(local_storage, session_clock)

    assert await store.update_session("session-missing", {"title": "x"}) is None
    assert await store.rename_session("session-missing", "x") is None
    assert await store.set_active_session("session-missing") is None
    assert await store.delete_session("session-missing") is False


@pytest.mark.asyncio
async def test_updated_never_moves_backwards(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    session = await store.create_session()
    session_clock.advance(-60)

    updated = await store.rename_session(session.id, "Clock skew")

    assert updated.updated == session.updated


@pytest.mark.asyncio
async def test_delete_only_session_creates_fresh_active_session(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    only = await store.get_or_create_active_session()
    await store.rename_session(only.id, "Old")

    assert await store.delete_session(only.id) is True

    state = await store.load_state()
    assert only.id not in state.sessions
    assert len(state.sessions) == 1
    fresh = state.sessions[state.active_session_id]
    assert fresh.messages == []
    assert fresh.title == DEFAULT_SESSION_TITLE
    assert state.session_order == [fresh.id]


@pytest.mark.asyncio
async def test_delete_active_session_activates_newest_remaining(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    first = await store.create_session()
    session_clock.advance(1)
    second = await store.create_session()
    session_clock.advance(1)
    third = await store.create_session()
    await store.set_active_session(third.id)

    await store.delete_session(third.id)

    state = await store.load_state()
    assert state.active_session_id == second.id
    assert state.session_order == [second.id, first.id]


@pytest.mark.asyncio
async def test_cleanup_removes_only_expired_sessions(local_storage, session_clock):
    store = make_store(local_storage, session_clock, retention_days=30)
    old = await store.create_session()
    session_clock.advance(20 * DAY)
    recent = await store.create_session()
    session_clock.advance(11 * DAY)

    assert await store.cleanup_old_sessions() == 1

    state = await store.load_state()
    assert old.id not in state.sessions
    assert recent.id in state.sessions
    assert state.session_order == [recent.id]


@pytest.mark.asyncio
async def test_cleanup_without_expired_sessions_does_not_write(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    await store.create_session()
    before = await local_storage.get_item(SESSIONS_STORAGE_KEY)

    assert await store.cleanup_old_sessions() == 0
    assert await local_storage.get_item(SESSIONS_STORAGE_KEY) == before


@pytest.mark.asyncio
async def test_initialize_replaces_expired_active_session(local_storage, session_clock):
    store = make_store(local_storage, session_clock, retention_days=30)
    old = await store.get_or_create_active_session()
    session_clock.advance(31 * DAY)

    active = await store.initialize()

    assert active.id != old.id
    assert [s.id for s in await store.get_all_sessions()] == [active.id]


@pytest.mark.asyncio
async def test_state_survives_reload(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    session = await store.create_session()
    await store.update_session(session.id, {
        "messages": [ChatMessage(role="assistant", content="Welcome", actions=["Pricing", "Support"])],
    })
    before = await store.load_state()

    reloaded = await make_store(local_storage, session_clock).load_state()

    assert reloaded == before


@pytest.mark.asyncio
async def test_blob_uses_camel_case_keys(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    session = await store.create_session()

    blob = json.loads(await local_storage.get_item(SESSIONS_STORAGE_KEY))

    assert set(blob) == {"sessions", "activeSessionId", "sessionOrder"}
    assert blob["activeSessionId"] == session.id


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", json.dumps({"sessions": "oops"}), "[]"])
async def test_corrupt_blob_reads_as_empty_state(local_storage, session_clock, raw):
    await local_storage.set_item(SESSIONS_STORAGE_KEY, raw)
    store = make_store(local_storage, session_clock)

    state = await store.load_state()
    assert state.sessions == {}
    assert state.active_session_id is None

    session = await store.get_or_create_active_session()
    assert (await store.load_state()).session_order == [session.id]


def naive_timestamp_blob(updated: str) -> str:
    return json.dumps({
        "sessions": {
            "s1": {
                "id": "s1",
                "title": "Legacy",
                "messages": [
                    {"id": "m1", "role": "user", "content": "hi", "timestamp": updated},
                ],
                "created": "2024-01-01T00:00:00",
                "updated": updated,
            },
        },
        "activeSessionId": "s1",
        "sessionOrder": ["s1"],
    })


@pytest.mark.asyncio
async def test_naive_timestamps_are_read_as_utc(local_storage, session_clock):
    await local_storage.set_item(SESSIONS_STORAGE_KEY, naive_timestamp_blob("2024-02-28T12:00:00"))
    store = make_store(local_storage, session_clock)

    active = await store.initialize()

    assert active.id == "s1"
    assert active.created.tzinfo is not None
    assert active.messages[0].timestamp.tzinfo is not None
    renamed = await store.rename_session("s1", "Renamed")
    assert renamed.updated == session_clock.now
    assert [s.id for s in await store.get_all_sessions()] == ["s1"]


@pytest.mark.asyncio
async def test_expired_session_with_naive_timestamps_is_cleaned_up(local_storage, session_clock):
    await local_storage.set_item(SESSIONS_STORAGE_KEY, naive_timestamp_blob("2024-01-01T00:00:00"))
    store = make_store(local_storage, session_clock)

    active = await store.initialize()

    assert active.id != "s1"
    assert await store.get_session("s1") is None


@pytest.mark.asyncio
async def test_inconsistent_blob_is_repaired_on_load(local_storage, session_clock):
    store = make_store(local_storage, session_clock)
    a = await store.create_session()
    session_clock.advance(1)
    b = await store.create_session()
    blob = json.loads(await local_storage.get_item(SESSIONS_STORAGE_KEY))
    blob["sessionOrder"] = ["session-ghost", a.id, a.id]
    blob["activeSessionId"] = "session-ghost"
    await local_storage.set_item(SESSIONS_STORAGE_KEY, json.dumps(blob))

    state = await store.load_state()

    assert state.session_order == [a.id, b.id]
    assert state.active_session_id is None


@pytest.mark.asyncio
async def test_storage_failures_are_not_raised(session_clock):
    store = make_store(BrokenStorage(), session_clock)

    session = await store.get_or_create_active_session()

    assert session.title == DEFAULT_SESSION_TITLE
    assert await store.get_all_sessions() == []
