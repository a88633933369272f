"""Session controller: login, onboarding and logout."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from vibecircle.domain.common.config import EngineConfig
from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.common.errors import AuthenticationFailed, InvalidTransition
from vibecircle.domain.common.result import Result
from vibecircle.domain.notifications.delivery import NotificationSink
from vibecircle.domain.session.models import Account, SessionState
from vibecircle.domain.session.stores import UserStores
from vibecircle.infra.clock import Clock
from vibecircle.infra.locks import UserLocks, user_locks
from vibecircle.infra.persistence import NullWriteThrough, WriteThrough
from vibecircle.obs import logging as obs_logging
from vibecircle.obs import metrics as obs_metrics
from vibecircle.obs.audit import log_flow_event

logger = logging.getLogger(__name__)


class AuthenticationRejected(Exception):
	"""Raised by an authenticator when the credentials are not accepted."""


class Authenticator(Protocol):
	async def authenticate(self, email: str, password: str) -> Account:
		...


class SessionController:
	"""Drives the session state machine and owns the current store bundle.

	anonymous -> authenticating -> authenticated_onboarding | authenticated_active
	"""

	def __init__(
		self,
		authenticator: Authenticator,
		*,
		config: Optional[EngineConfig] = None,
		writer: Optional[WriteThrough] = None,
		clock: Optional[Clock] = None,
		sink: Optional[NotificationSink] = None,
		locks: Optional[UserLocks] = None,
	) -> None:
		self._authenticator = authenticator
		self._config = config or EngineConfig()
		self._writer = writer or NullWriteThrough()
		self._clock = clock or Clock(self._config.timezone)
		self._sink = sink
		self.locks = locks or user_locks
		self._state = SessionState.ANONYMOUS
		self._stores: Optional[UserStores] = None

	@property
	def state(self) -> SessionState:
		return self._state

	@property
	def stores(self) -> Optional[UserStores]:
		return self._stores

	@property
	def user_id(self) -> Optional[str]:
		return self._stores.ctx.user_id if self._stores else None

	def _transition(self, state: SessionState) -> None:
		previous, self._state = self._state, state
		obs_metrics.inc_session_transition(state.value)
		logger.debug("session transition", extra={"from_state": previous.value, "to_state": state.value})

	async def login(self, email: str, password: str) -> Result[SessionState]:
		if self._state is not SessionState.ANONYMOUS:
			return Result.failure(InvalidTransition(detail=f"login_from:{self._state.value}"))
		self._transition(SessionState.AUTHENTICATING)
		try:
			account = await self._authenticator.authenticate(email, password)
		except AuthenticationRejected as exc:
			self._transition(SessionState.ANONYMOUS)
			logger.info("login rejected")
			return Result.failure(AuthenticationFailed(detail=str(exc) or None))

		ctx = SessionContext(
			user_id=account.user_id,
			config=self._config,
			writer=self._writer,
			clock=self._clock,
		)
		self._stores = UserStores.build(ctx, account, sink=self._sink)
		obs_logging.bind_context(user_id=ctx.user_id, session_id=ctx.session_id)
		obs_metrics.session_opened()
		self._transition(
			SessionState.AUTHENTICATED_ACTIVE if account.has_completed_onboarding else SessionState.AUTHENTICATED_ONBOARDING
		)
		log_flow_event("session.login", ctx.user_id, extra={"session_id": ctx.session_id, "state": self._state.value})
		return Result.success(self._state)

	def complete_onboarding(self) -> Result[SessionState]:
		if self._state is not SessionState.AUTHENTICATED_ONBOARDING:
			return Result.failure(InvalidTransition(detail=f"onboarding_from:{self._state.value}"))
		self._transition(SessionState.AUTHENTICATED_ACTIVE)
		log_flow_event("session.onboarding_completed", self.user_id)
		return Result.success(self._state)

	async def logout(self) -> Result[SessionState]:
		if not self._state.is_authenticated or self._stores is None:
			return Result.failure(InvalidTransition(detail=f"logout_from:{self._state.value}"))
		stores = self._stores
		user_id = stores.ctx.user_id
		# in-flight flows for this user finish before their stores are wiped
		async with self.locks.hold(user_id):
			stores.clear()
			self._stores = None
		self.locks.release(user_id)
		obs_metrics.session_closed()
		self._transition(SessionState.ANONYMOUS)
		log_flow_event("session.logout", user_id, extra={"session_id": stores.ctx.session_id})
		obs_logging.clear_context()
		return Result.success(self._state)
