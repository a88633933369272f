from datetime import datetime, timedelta

import pytest

from vibecircle.domain import flows
from vibecircle.domain.chat.models import ConversationKind, ConversationSource, FriendshipLevel, friendship_level
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.notifications.models import NotificationCategory


@pytest.fixture
def open_direct(stores, ctx):
    async def _open(source_id: str, name: str = "Theo"):
        async with UnitOfWork(ctx, "test_open") as tx:
            conversation = stores.conversations.open(
                tx,
                ConversationSource(ConversationKind.DIRECT, source_id),
                participant_ids=(ctx.user_id, f"user-{source_id}"),
                name=name,
            )
        return conversation

    return _open


@pytest.mark.asyncio
async def test_open_is_idempotent_per_source(stores, open_direct):
    first = await open_direct("m1")
    second = await open_direct("m1")

    assert first.id == second.id
    assert len(stores.conversations.list_conversations()) == 1


@pytest.mark.asyncio
async def test_send_appends_in_order(stores, open_direct, clock):
    conversation = await open_direct("m1")

    sent = []
    for text in ("hey!", "  how was the hike?  ", "see you friday"):
        clock.advance(seconds=5)
        result = await stores.conversations.send(conversation.id, text)
        assert result.ok
        sent.append(result.value)

    history = stores.conversations.history(conversation.id)
    assert [message.content for message in history] == ["hey!", "how was the hike?", "see you friday"]
    assert [message.seq for message in history] == sorted({message.seq for message in history})
    current = stores.conversations.get(conversation.id)
    assert current.message_count == 3
    assert current.last_message == sent[-1]
    assert current.unread_count == 0


@pytest.mark.asyncio
async def test_send_rejects_blank_and_unknown(stores, open_direct):
    conversation = await open_direct("m1")

    assert (await stores.conversations.send(conversation.id, "   ")).reason == "invalid_input"
    assert (await stores.conversations.send("missing", "hi")).reason == "not_found"
    assert stores.conversations.history(conversation.id) == []


@pytest.mark.asyncio
async def test_friendship_level_grows_with_messages(stores, open_direct):
    conversation = await open_direct("m1")
    for idx in range(10):
        await stores.conversations.send(conversation.id, f"message {idx}")

    assert stores.conversations.get(conversation.id).friendship_level is FriendshipLevel.GROWING


def test_friendship_level_thresholds():
    assert friendship_level(0) is FriendshipLevel.NEW
    assert friendship_level(9) is FriendshipLevel.NEW
    assert friendship_level(50) is FriendshipLevel.ESTABLISHED
    assert friendship_level(149) is FriendshipLevel.ESTABLISHED
    assert friendship_level(150) is FriendshipLevel.CLOSE


@pytest.mark.asyncio
async def test_receive_counts_unread_and_notifies(stores, locks, open_direct, sink):
    conversation = await open_direct("m1")

    result = await flows.receive_message(stores, conversation.id, "user-m1", "coffee later?", locks=locks)

    assert result.ok
    assert stores.conversations.get(conversation.id).unread_count == 1
    notification = stores.notifications.feed()[0]
    assert notification.category is NotificationCategory.MESSAGES
    assert notification.related_entity_id == conversation.id
    assert sink.events[-1].body == "coffee later?"

    read = await stores.conversations.mark_conversation_read(conversation.id)
    assert read.ok
    assert read.value.unread_count == 0


@pytest.mark.asyncio
async def test_receive_on_unknown_conversation_notifies_nobody(stores, locks):
    result = await flows.receive_message(stores, "missing", "user-x", "hello", locks=locks)

    assert result.reason == "not_found"
    assert stores.notifications.audit_feed() == []


@pytest.mark.asyncio
async def test_conversations_listed_by_recent_activity(stores, open_direct, clock):
    older = await open_direct("m1", name="Theo")
    clock.advance(minutes=1)
    newer = await open_direct("m2", name="Ana")
    assert [conv.id for conv in stores.conversations.list_conversations()] == [newer.id, older.id]

    clock.advance(minutes=1)
    await stores.conversations.send(older.id, "bump")

    assert [conv.id for conv in stores.conversations.list_conversations()] == [older.id, newer.id]


@pytest.mark.asyncio
async def test_set_active_validates_conversation(stores, open_direct):
    conversation = await open_direct("m1")

    assert stores.conversations.set_active(conversation.id).value.id == conversation.id
    assert stores.conversations.active.id == conversation.id
    assert stores.conversations.set_active("missing").reason == "not_found"
    assert stores.conversations.set_active(None).ok
    assert stores.conversations.active is None


def _hangout(when: datetime, **overrides):
    data = {"title": "Trail walk", "scheduled_for": when, "location": "North gate"}
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_hangout_in_the_past_is_rejected(stores, open_direct, clock):
    conversation = await open_direct("m1")

    past = await stores.conversations.schedule_hangout(
        _hangout(clock.now() - timedelta(hours=1)), conversation_id=conversation.id
    )
    now = await stores.conversations.schedule_hangout(_hangout(clock.now()), conversation_id=conversation.id)

    assert past.reason == "invalid_schedule"
    assert now.reason == "invalid_schedule"
    assert stores.conversations.list_hangouts() == []


@pytest.mark.asyncio
async def test_hangouts_listed_soonest_first(stores, open_direct, clock):
    conversation = await open_direct("m1")
    later = await stores.conversations.schedule_hangout(
        _hangout(clock.now() + timedelta(days=3)), conversation_id=conversation.id
    )
    sooner = await stores.conversations.schedule_hangout(
        _hangout(clock.now() + timedelta(hours=2), is_virtual=True, location=""), conversation_id=conversation.id
    )

    assert [hangout.id for hangout in stores.conversations.list_hangouts()] == [sooner.value.id, later.value.id]


@pytest.mark.asyncio
async def test_hangout_on_circle_uses_group_thread(stores, locks, clock):
    await flows.join_circle(stores, "circle-1", locks=locks)
    thread = stores.conversations.find(ConversationSource(ConversationKind.CIRCLE, "circle-1"))

    result = await stores.conversations.schedule_hangout(
        _hangout(clock.now() + timedelta(days=1)), circle_id="circle-1"
    )
    missing = await stores.conversations.schedule_hangout(
        _hangout(clock.now() + timedelta(days=1)), circle_id="circle-2"
    )

    assert result.value.conversation_id == thread.id
    assert missing.reason == "not_found"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"location": ""},
        {"scheduled_for": datetime(2030, 1, 1, 12, 0)},
        {"dress_code": "casual"},
    ],
)
async def test_malformed_hangout_details(stores, open_direct, clock, overrides):
    conversation = await open_direct("m1")

    result = await stores.conversations.schedule_hangout(
        _hangout(clock.now() + timedelta(days=1), **overrides), conversation_id=conversation.id
    )

    assert result.reason == "invalid_input"


@pytest.mark.asyncio
async def test_hangout_needs_exactly_one_target(stores, clock):
    details = _hangout(clock.now() + timedelta(days=1))

    assert (await stores.conversations.schedule_hangout(details)).reason == "invalid_input"
    assert (
        await stores.conversations.schedule_hangout(details, conversation_id="a", circle_id="b")
    ).reason == "invalid_input"
