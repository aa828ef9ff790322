"""
Tests for MessageStore and reaction aggregation against the test database.

Covers:
  - create/get/list with newest-first ordering and skip/limit
  - partial updates and channel scoping
  - reaction buckets: one per emoji (also under concurrent first reactors),
    idempotent add, prune on last removal, message deleted mid-add
  - the per-call timeout
"""

import asyncio
import time

import pytest
from sqlalchemy import delete

from teamspace.core.ids import new_object_id
from teamspace.models.business import Business
from teamspace.models.channel import Channel
from teamspace.models.message import Message
from teamspace.models.reaction import MessageReaction, MessageReactionUser
from teamspace.models.user import User
from teamspace.services import reactions
from teamspace.services.message_store import MessageStore
from teamspace.tests.conftest import TestingSessionLocal


@pytest.fixture()
def seeded(db):
    """Two users, one business, two message channels. Returns their ids."""
    alice = User(username="alice", email="alice@example.com", hashed_password="x")
    bob = User(username="bob", email="bob@example.com", hashed_password="x")
    db.add_all([alice, bob])
    db.flush()
    business = Business(name="Acme Corp", owner_id=alice.id)
    db.add(business)
    db.flush()
    general = Channel(business_id=business.id, name="general")
    random = Channel(business_id=business.id, name="random")
    db.add_all([general, random])
    db.commit()
    return {"alice": alice.id, "bob": bob.id, "general": general.id, "random": random.id}


async def _post(store, seeded, content, channel="general", user="alice"):
    return await store.create_message(seeded[channel], seeded[user], content, "text")


class TestCreateAndRead:
    @pytest.mark.asyncio
    async def test_create_defaults(self, store, seeded):
        message = await _post(store, seeded, "hello")

        assert message.content == "hello"
        assert message.channel_id == seeded["general"]
        assert message.user_id == seeded["alice"]
        assert message.reactions == []
        assert message.is_pinned is False
        assert message.updated_at is None

        wire = message.to_wire()
        assert wire["channelId"] == seeded["general"]
        assert wire["isPinned"] is False
        assert wire["messageType"] == "text"

    @pytest.mark.asyncio
    async def test_get_is_scoped_to_channel(self, store, seeded):
        message = await _post(store, seeded, "hello")

        assert (await store.get_message(message.id, seeded["general"])).id == message.id
        assert await store.get_message(message.id, seeded["random"]) is None
        assert await store.get_message(new_object_id()) is None

    @pytest.mark.asyncio
    async def test_history_is_newest_first(self, store, seeded):
        for i in range(5):
            await _post(store, seeded, f"m{i}")
        await _post(store, seeded, "elsewhere", channel="random")

        page = await store.list_channel_messages(seeded["general"], limit=3)
        assert [m.content for m in page] == ["m4", "m3", "m2"]

        page = await store.list_channel_messages(seeded["general"], limit=3, skip=3)
        assert [m.content for m in page] == ["m1", "m0"]


class TestUpdateAndDelete:
    @pytest.mark.asyncio
    async def test_partial_update(self, store, seeded):
        message = await _post(store, seeded, "draft")

        updated = await store.update_message(seeded["general"], message.id, {"is_pinned": True})

        assert updated.is_pinned is True
        assert updated.content == "draft"
        assert updated.updated_at is not None

    @pytest.mark.asyncio
    async def test_update_in_wrong_channel_is_not_found(self, store, seeded):
        message = await _post(store, seeded, "draft")
        assert await store.update_message(seeded["random"], message.id, {"content": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete(self, store, seeded):
        message = await _post(store, seeded, "bye")
        await store.add_reaction(seeded["general"], message.id, seeded["bob"], "👋")

        assert await store.delete_message(seeded["general"], message.id) is True
        assert await store.delete_message(seeded["general"], message.id) is False
        assert await store.get_message(message.id) is None


class TestReactions:
    @pytest.mark.asyncio
    async def test_two_users_share_one_bucket(self, store, seeded):
        message = await _post(store, seeded, "nice")

        await store.add_reaction(seeded["general"], message.id, seeded["alice"], "👍")
        updated = await store.add_reaction(seeded["general"], message.id, seeded["bob"], "👍")

        assert len(updated.reactions) == 1
        assert updated.reactions[0].emoji == "👍"
        assert updated.reactions[0].user_ids == [seeded["alice"], seeded["bob"]]
        assert updated.to_wire()["reactions"] == [{"emoji": "👍", "userIds": [seeded["alice"], seeded["bob"]]}]

    @pytest.mark.asyncio
    async def test_add_is_idempotent(self, store, seeded):
        message = await _post(store, seeded, "nice")

        await store.add_reaction(seeded["general"], message.id, seeded["bob"], "🎉")
        updated = await store.add_reaction(seeded["general"], message.id, seeded["bob"], "🎉")

        assert updated.reactions[0].user_ids == [seeded["bob"]]

    @pytest.mark.asyncio
    async def test_emoji_match_is_exact(self, store, seeded):
        message = await _post(store, seeded, "nice")

        await store.add_reaction(seeded["general"], message.id, seeded["bob"], ":thumbsup:")
        updated = await store.add_reaction(seeded["general"], message.id, seeded["bob"], ":Thumbsup:")

        assert [r.emoji for r in updated.reactions] == [":thumbsup:", ":Thumbsup:"]

    @pytest.mark.asyncio
    async def test_removing_last_user_prunes_bucket(self, store, seeded, db):
        message = await _post(store, seeded, "nice")
        await store.add_reaction(seeded["general"], message.id, seeded["bob"], "👍")

        updated = await store.remove_reaction(seeded["general"], message.id, seeded["bob"], "👍")

        assert updated.reactions == []
        db.expire_all()
        assert db.query(MessageReaction).count() == 0

    @pytest.mark.asyncio
    async def test_remove_keeps_other_users(self, store, seeded):
        message = await _post(store, seeded, "nice")
        await store.add_reaction(seeded["general"], message.id, seeded["alice"], "👍")
        await store.add_reaction(seeded["general"], message.id, seeded["bob"], "👍")

        updated = await store.remove_reaction(seeded["general"], message.id, seeded["alice"], "👍")

        assert updated.reactions[0].user_ids == [seeded["bob"]]

    @pytest.mark.asyncio
    async def test_remove_absent_user_is_noop(self, store, seeded):
        message = await _post(store, seeded, "nice")
        await store.add_reaction(seeded["general"], message.id, seeded["alice"], "👍")

        updated = await store.remove_reaction(seeded["general"], message.id, seeded["bob"], "👍")

        assert updated.reactions[0].user_ids == [seeded["alice"]]

    @pytest.mark.asyncio
    async def test_missing_message_or_bucket(self, store, seeded):
        message = await _post(store, seeded, "nice")

        assert await store.add_reaction(seeded["general"], new_object_id(), seeded["bob"], "👍") is None
        assert await store.remove_reaction(seeded["general"], message.id, seeded["bob"], "👍") is None
        assert await store.add_reaction(seeded["random"], message.id, seeded["bob"], "👍") is None

    @pytest.mark.asyncio
    async def test_concurrent_first_reactors_share_one_bucket(self, store, seeded, db):
        message = await _post(store, seeded, "race")
        reactors = [new_object_id() for _ in range(8)]

        results = await asyncio.gather(
            *(store.add_reaction(seeded["general"], message.id, user_id, "🔥") for user_id in reactors)
        )

        assert all(result is not None for result in results)
        db.expire_all()
        assert db.query(MessageReaction).filter(MessageReaction.message_id == message.id).count() == 1
        assert {row.user_id for row in db.query(MessageReactionUser)} == set(reactors)


class TestReactionService:
    def test_bucket_created_once_when_another_exists(self, db, seeded):
        message = Message(channel_id=seeded["general"], user_id=seeded["alice"], content="hi")
        db.add(message)
        db.commit()

        assert reactions.add_reaction(db, message.id, seeded["alice"], "🔥") is True
        assert reactions.add_reaction(db, message.id, seeded["bob"], "🔥") is True

        assert db.query(MessageReaction).filter(MessageReaction.message_id == message.id).count() == 1
        assert db.query(MessageReactionUser).count() == 2

    def test_add_to_missing_message(self, db, seeded):
        assert reactions.add_reaction(db, new_object_id(), seeded["alice"], "🔥") is False

    def test_message_deleted_before_bucket_insert(self, db, seeded, monkeypatch):
        message = Message(channel_id=seeded["general"], user_id=seeded["alice"], content="hi")
        db.add(message)
        db.commit()
        message_id = message.id
        insert = reactions._insert_ignoring_conflict
        deleted = []

        def delete_then_insert(session, model, values, conflict_columns):
            if not deleted:
                session.execute(delete(Message).where(Message.id == message_id))
                session.commit()
                deleted.append(message_id)
            insert(session, model, values, conflict_columns)

        monkeypatch.setattr(reactions, "_insert_ignoring_conflict", delete_then_insert)

        assert reactions.add_reaction(db, message_id, seeded["bob"], "🔥") is False
        assert db.query(MessageReaction).count() == 0

    def test_group_skips_empty_buckets(self, db, seeded):
        message = Message(channel_id=seeded["general"], user_id=seeded["alice"], content="hi")
        db.add(message)
        db.flush()
        db.add(MessageReaction(message_id=message.id, emoji="👀"))
        db.commit()
        db.refresh(message)

        assert reactions.group_reactions(message.reactions) == []


class TestTimeout:
    @pytest.mark.asyncio
    async def test_slow_call_times_out(self, seeded, monkeypatch):
        store = MessageStore(TestingSessionLocal, timeout=0.05)

        def slow(db, *args):
            time.sleep(0.3)

        monkeypatch.setattr(MessageStore, "_get_message", staticmethod(slow))
        with pytest.raises(asyncio.TimeoutError):
            await store.get_message(new_object_id())
