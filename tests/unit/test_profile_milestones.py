import pytest

from vibecircle.domain import flows
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.notifications.models import NotificationCategory
from vibecircle.domain.profile import milestones
from vibecircle.domain.profile.models import ProfileStats


def test_evaluate_unlocks_crossed_thresholds_in_catalog_order(clock):
    unlocked = milestones.evaluate(ProfileStats(friendships_formed=5), frozenset(), clock.now())

    assert [milestone.id for milestone in unlocked] == ["first-friend", "warm-welcome"]
    assert all(milestone.unlocked_at == clock.now() for milestone in unlocked)


def test_evaluate_is_idempotent(clock):
    assert milestones.evaluate(ProfileStats(friendships_formed=1), {"first-friend"}, clock.now()) == []
    assert milestones.evaluate(ProfileStats(), frozenset(), clock.now()) == []


def test_stat_counters_floor_at_zero():
    stats = ProfileStats(circles_joined=1).bump(circles_joined=-3)
    assert stats.circles_joined == 0


@pytest.mark.asyncio
async def test_apply_stats_unlocks_once(stores, ctx):
    async with UnitOfWork(ctx, "test_stats") as tx:
        first = stores.profile.apply_stats(tx, friendships_formed=1)
    async with UnitOfWork(ctx, "test_stats") as tx:
        second = stores.profile.apply_stats(tx, friendships_formed=-1)
    async with UnitOfWork(ctx, "test_stats") as tx:
        third = stores.profile.apply_stats(tx, friendships_formed=1)

    assert [milestone.id for milestone in first] == ["first-friend"]
    assert second == [] and third == []
    assert [milestone.id for milestone in stores.profile.profile.milestones] == ["first-friend"]


@pytest.mark.asyncio
async def test_update_profile_merges_editable_fields(stores, writer):
    result = await stores.profile.update_profile({"bio": "Trail runner", "interests": ["running", "jazz"]})

    assert result.ok
    profile = stores.profile.profile
    assert profile.bio == "Trail runner"
    assert profile.interests == frozenset({"running", "jazz"})
    assert profile.display_name == "Mira"
    assert writer.entities("profile")[-1].fields["bio"] == "Trail runner"


@pytest.mark.asyncio
async def test_update_profile_clears_avatar_with_explicit_null(stores, writer):
    await stores.profile.update_profile({"avatar_uri": "file:///mira.png"})

    result = await stores.profile.update_profile({"avatar_uri": None})

    assert result.ok
    assert stores.profile.profile.avatar_uri is None
    assert writer.entities("profile")[-1].fields == {"avatar_uri": None}
    assert stores.profile.profile.display_name == "Mira"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "patch",
    [
        {"authenticity_score": 1.0},
        {"stats": {"friendships_formed": 99}},
        {"milestones": []},
        {"display_name": ""},
        {"display_name": None},
        {"interests": None},
    ],
)
async def test_update_profile_rejects_derived_and_invalid_fields(stores, patch):
    before = stores.profile.profile

    result = await stores.profile.update_profile(patch)

    assert result.reason == "invalid_input"
    assert stores.profile.profile == before


@pytest.mark.asyncio
async def test_milestone_unlock_publishes_notification(stores, locks, make_candidate):
    await flows.generate_matches(stores, [make_candidate("m1")], locks=locks)
    await flows.connect_match(stores, "m1", locks=locks)

    milestone_notes = [
        n for n in stores.notifications.audit_feed() if n.category is NotificationCategory.MILESTONES
    ]
    assert [n.related_entity_id for n in milestone_notes] == ["first-friend"]
