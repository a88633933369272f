"""Single entry point binding the session controller to the flows."""

from __future__ import annotations

from typing import Iterable, List, Optional

from vibecircle import obs
from vibecircle.domain import flows
from vibecircle.domain.chat.models import ConversationRef, Message
from vibecircle.domain.circles.models import Circle
from vibecircle.domain.common.config import EngineConfig
from vibecircle.domain.common.errors import InvalidTransition
from vibecircle.domain.common.result import Result
from vibecircle.domain.matching.models import Match, MatchCandidate
from vibecircle.domain.notifications.delivery import NotificationSink
from vibecircle.domain.session.models import SessionState
from vibecircle.domain.session.service import Authenticator, SessionController
from vibecircle.domain.session.stores import UserStores
from vibecircle.domain.vibes.models import Vibe
from vibecircle.infra.clock import Clock
from vibecircle.infra.persistence import WriteThrough, build_write_through
from vibecircle.settings import Settings, settings


class SocialEngine:
	"""Facade an embedding UI or request handler talks to.

	Store reads go straight to ``engine.stores``; anything that spans more than
	one store goes through the methods here.
	"""

	def __init__(
		self,
		authenticator: Authenticator,
		*,
		config: Optional[EngineConfig] = None,
		writer: Optional[WriteThrough] = None,
		clock: Optional[Clock] = None,
		sink: Optional[NotificationSink] = None,
	) -> None:
		self.session = SessionController(
			authenticator,
			config=config,
			writer=writer,
			clock=clock,
			sink=sink,
		)

	@classmethod
	def from_settings(
		cls,
		authenticator: Authenticator,
		config: Settings = settings,
		*,
		sink: Optional[NotificationSink] = None,
	) -> "SocialEngine":
		obs.init()
		engine_config = EngineConfig.from_settings(config)
		return cls(
			authenticator,
			config=engine_config,
			writer=build_write_through(config),
			clock=Clock(engine_config.timezone),
			sink=sink,
		)

	@property
	def state(self) -> SessionState:
		return self.session.state

	@property
	def stores(self) -> UserStores:
		stores = self.session.stores
		if stores is None:
			raise InvalidTransition(detail="no_active_session")
		return stores

	async def login(self, email: str, password: str) -> Result[SessionState]:
		return await self.session.login(email, password)

	def complete_onboarding(self) -> Result[SessionState]:
		return self.session.complete_onboarding()

	async def logout(self) -> Result[SessionState]:
		return await self.session.logout()

	async def generate_matches(self, candidates: Iterable[MatchCandidate]) -> Result[List[Match]]:
		stores = self.session.stores
		if stores is None:
			return _no_session()
		return await flows.generate_matches(stores, candidates, locks=self.session.locks)

	async def connect(self, match_id: str) -> Result[ConversationRef]:
		stores = self.session.stores
		if stores is None:
			return _no_session()
		return await flows.connect_match(stores, match_id, locks=self.session.locks)

	async def pass_match(self, match_id: str) -> Result[Match]:
		stores = self.session.stores
		if stores is None:
			return _no_session()
		return await flows.pass_match(stores, match_id, locks=self.session.locks)

	async def join_circle(self, circle_id: str) -> Result[Circle]:
		stores = self.session.stores
		if stores is None:
			return _no_session()
		return await flows.join_circle(stores, circle_id, locks=self.session.locks)

	async def create_circle(self, request) -> Result[Circle]:
		stores = self.session.stores
		if stores is None:
			return _no_session()
		return await flows.create_circle(stores, request, locks=self.session.locks)

	async def leave_circle(self, circle_id: str) -> Result[Circle]:
		stores = self.session.stores
		if stores is None:
			return _no_session()
		return await flows.leave_circle(stores, circle_id, locks=self.session.locks)

	async def share_vibe(self, vibe_id: str) -> Result[Vibe]:
		stores = self.session.stores
		if stores is None:
			return _no_session()
		return await flows.share_vibe(stores, vibe_id, locks=self.session.locks)

	async def receive_message(self, conversation_id: str, sender_id: str, content: str) -> Result[Message]:
		stores = self.session.stores
		if stores is None:
			return _no_session()
		return await flows.receive_message(stores, conversation_id, sender_id, content, locks=self.session.locks)


def _no_session() -> Result:
	return Result.failure(InvalidTransition(detail="no_active_session"))
