from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from vibecircle.domain.circles.models import Circle
from vibecircle.domain.common.config import EngineConfig
from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.matching.models import MatchCandidate
from vibecircle.domain.notifications.models import NotificationEvent
from vibecircle.domain.profile.models import Profile, ProfileSummary
from vibecircle.domain.session.models import Account
from vibecircle.domain.session.stores import UserStores
from vibecircle.infra.clock import Clock
from vibecircle.infra.locks import UserLocks
from vibecircle.infra.persistence import MemoryWriteThrough

USER_ID = "user-mira"
START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FrozenClock(Clock):
	"""Clock that only moves when told to."""

	def __init__(self, start: datetime, tz_name: str = "UTC") -> None:
		self.current = start
		super().__init__(tz_name, now_fn=lambda: self.current)

	def set(self, when: datetime) -> None:
		self.current = when

	def advance(self, **delta) -> None:
		self.current = self.current + timedelta(**delta)


class RecordingSink:
	def __init__(self) -> None:
		self.events: list[NotificationEvent] = []
		self.error: Optional[Exception] = None

	async def deliver(self, event: NotificationEvent) -> None:
		if self.error is not None:
			raise self.error
		self.events.append(event)


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from vibecircle.infra.redis import redis_client, set_redis_client

	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture
def clock() -> FrozenClock:
	return FrozenClock(START)


@pytest.fixture
def writer() -> MemoryWriteThrough:
	return MemoryWriteThrough()


@pytest.fixture
def config() -> EngineConfig:
	return EngineConfig(daily_match_quota=10)


@pytest.fixture
def ctx(config, writer, clock) -> SessionContext:
	return SessionContext(user_id=USER_ID, config=config, writer=writer, clock=clock)


@pytest.fixture
def profile_seed() -> Profile:
	return Profile(
		id=USER_ID,
		username="mira",
		display_name="Mira",
		interests=frozenset({"hiking", "jazz", "cooking"}),
		values=frozenset({"honesty", "curiosity"}),
		authenticity_score=0.8,
	)


@pytest.fixture
def recommended_circles() -> tuple[Circle, ...]:
	return tuple(
		Circle(id=f"circle-{idx}", name=f"Circle {idx}", category="outdoors", member_count=10)
		for idx in range(1, 8)
	)


@pytest.fixture
def account(profile_seed, recommended_circles) -> Account:
	return Account(profile=profile_seed, has_completed_onboarding=True, circles=recommended_circles)


@pytest.fixture
def sink() -> RecordingSink:
	return RecordingSink()


@pytest.fixture
def stores(ctx, account, sink) -> UserStores:
	return UserStores.build(ctx, account, sink=sink)


@pytest.fixture
def locks() -> UserLocks:
	return UserLocks()


@pytest.fixture
def make_candidate():
	def _make(
		candidate_id: str,
		*,
		sentiment: float = 0.5,
		values: float = 0.5,
		interests: Optional[float] = 0.5,
		authenticity: Optional[float] = 0.5,
		circle_ids: frozenset = frozenset(),
		their_interests: frozenset = frozenset(),
	) -> MatchCandidate:
		return MatchCandidate(
			id=candidate_id,
			user=ProfileSummary(
				id=f"user-{candidate_id}",
				username=f"friend-{candidate_id}",
				display_name=f"Friend {candidate_id}",
				interests=their_interests,
				authenticity_score=0.6,
			),
			sentiment_match=sentiment,
			values_alignment=values,
			interest_overlap=interests,
			authenticity_match=authenticity,
			circle_ids=circle_ids,
		)

	return _make
