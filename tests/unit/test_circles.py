from dataclasses import replace

import pytest

from vibecircle.domain import flows
from vibecircle.domain.chat.models import ConversationKind, ConversationSource
from vibecircle.domain.circles.models import MAX_JOINED_CIRCLES
from vibecircle.domain.notifications.models import NotificationCategory
from vibecircle.domain.session.models import Account
from vibecircle.domain.session.stores import UserStores


async def _join_five(stores, locks):
    for idx in range(1, MAX_JOINED_CIRCLES + 1):
        result = await flows.join_circle(stores, f"circle-{idx}", locks=locks)
        assert result.ok, result.error


@pytest.mark.asyncio
async def test_join_moves_circle_and_opens_group_thread(stores, locks):
    result = await flows.join_circle(stores, "circle-1", locks=locks)

    assert result.ok
    assert result.value.member_count == 11
    assert [circle.id for circle in stores.circles.list_joined()] == ["circle-1"]
    assert "circle-1" not in {circle.id for circle in stores.circles.list_recommended()}
    assert stores.profile.profile.stats.circles_joined == 1

    thread = stores.conversations.find(ConversationSource(ConversationKind.CIRCLE, "circle-1"))
    assert thread is not None
    assert thread.name == "Circle 1"
    categories = [notification.category for notification in stores.notifications.feed()]
    assert NotificationCategory.CIRCLES in categories


@pytest.mark.asyncio
async def test_sixth_join_exceeds_capacity(stores, locks):
    await _join_five(stores, locks)

    result = await flows.join_circle(stores, "circle-6", locks=locks)

    assert result.reason == "capacity_exceeded"
    assert len(stores.circles.list_joined()) == MAX_JOINED_CIRCLES
    assert stores.circles.get("circle-6").joined is False
    assert stores.profile.profile.stats.circles_joined == 5
    assert "community-builder" in stores.profile.profile.milestone_ids


@pytest.mark.asyncio
async def test_join_rejects_unknown_and_duplicate(stores, locks):
    assert (await flows.join_circle(stores, "nope", locks=locks)).reason == "not_found"

    await flows.join_circle(stores, "circle-2", locks=locks)
    again = await flows.join_circle(stores, "circle-2", locks=locks)

    assert again.reason == "already_joined"
    assert stores.circles.get("circle-2").member_count == 11


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "request_data",
    [
        {"name": "   "},
        {"name": "Runners", "tags": ["a", "b", "c", "d", "e", "f"]},
        {"name": "Runners", "owner": "someone-else"},
    ],
)
async def test_create_rejects_invalid_requests(stores, locks, request_data):
    result = await flows.create_circle(stores, request_data, locks=locks)

    assert result.reason == "invalid_input"
    assert stores.circles.list_joined() == []
    assert stores.profile.profile.stats.circles_joined == 0


@pytest.mark.asyncio
async def test_create_joins_immediately(stores, locks):
    result = await flows.create_circle(
        stores,
        {"name": "Sunrise Runners", "description": "Early miles", "tags": ["Running", "running", "outdoors"]},
        locks=locks,
    )

    assert result.ok
    circle = result.value
    assert circle.joined
    assert circle.member_count == 1
    assert circle.tags == frozenset({"running", "outdoors"})
    assert circle.created_by == stores.ctx.user_id
    assert stores.conversations.find(ConversationSource(ConversationKind.CIRCLE, circle.id)) is not None
    assert stores.profile.profile.stats.circles_joined == 1


@pytest.mark.asyncio
async def test_create_at_capacity_is_rejected(stores, locks):
    await _join_five(stores, locks)

    result = await flows.create_circle(stores, {"name": "One Too Many"}, locks=locks)

    assert result.reason == "capacity_exceeded"
    assert len(stores.circles.list_joined()) == MAX_JOINED_CIRCLES


@pytest.mark.asyncio
async def test_leave_returns_circle_to_recommendations(stores, locks):
    await flows.join_circle(stores, "circle-3", locks=locks)

    result = await flows.leave_circle(stores, "circle-3", locks=locks)

    assert result.ok
    assert stores.circles.list_joined() == []
    assert stores.circles.get("circle-3").member_count == 10
    assert "circle-3" in {circle.id for circle in stores.circles.list_recommended()}
    assert stores.profile.profile.stats.circles_joined == 0
    # milestones survive leaving
    assert "circle-starter" in stores.profile.profile.milestone_ids


@pytest.mark.asyncio
async def test_leave_requires_membership(stores, locks):
    result = await flows.leave_circle(stores, "circle-4", locks=locks)

    assert result.reason == "not_found"
    assert stores.profile.profile.stats.circles_joined == 0


@pytest.mark.asyncio
async def test_rejoin_reuses_group_thread(stores, locks):
    await flows.join_circle(stores, "circle-1", locks=locks)
    source = ConversationSource(ConversationKind.CIRCLE, "circle-1")
    first_thread = stores.conversations.find(source).id

    await flows.leave_circle(stores, "circle-1", locks=locks)
    await flows.join_circle(stores, "circle-1", locks=locks)

    assert stores.conversations.find(source).id == first_thread
    assert len(stores.conversations.list_conversations()) == 1


@pytest.mark.asyncio
async def test_joined_never_exceeds_cap_through_mixed_sequences(stores, locks):
    await _join_five(stores, locks)
    await flows.leave_circle(stores, "circle-2", locks=locks)
    await flows.create_circle(stores, {"name": "Board Games"}, locks=locks)
    await flows.join_circle(stores, "circle-7", locks=locks)
    await flows.leave_circle(stores, "circle-5", locks=locks)
    await flows.join_circle(stores, "circle-7", locks=locks)
    await flows.join_circle(stores, "circle-6", locks=locks)

    assert len(stores.circles.list_joined()) <= MAX_JOINED_CIRCLES
    assert stores.profile.profile.stats.circles_joined == len(stores.circles.list_joined())


def _seed_all_joined(ctx, profile_seed, recommended_circles) -> UserStores:
    seeded = tuple(replace(circle, joined=True) for circle in recommended_circles)
    return UserStores.build(ctx, Account(profile=profile_seed, has_completed_onboarding=True, circles=seeded))


def test_seeded_joined_circles_are_capped(ctx, profile_seed, recommended_circles):
    stores = _seed_all_joined(ctx, profile_seed, recommended_circles)

    joined = [circle.id for circle in stores.circles.list_joined()]
    assert joined == [f"circle-{idx}" for idx in range(1, MAX_JOINED_CIRCLES + 1)]
    assert {circle.id for circle in stores.circles.list_recommended()} == {"circle-6", "circle-7"}
    assert stores.profile.profile.stats.circles_joined == MAX_JOINED_CIRCLES


@pytest.mark.asyncio
async def test_join_after_capped_seed_is_rejected(ctx, profile_seed, recommended_circles, locks):
    stores = _seed_all_joined(ctx, profile_seed, recommended_circles)

    result = await flows.join_circle(stores, "circle-7", locks=locks)

    assert result.reason == "capacity_exceeded"
    assert stores.circles.get("circle-7").joined is False
