"""Cross-store flows.

Each flow runs under the user's lock and a single unit of work, touching the
stores in a fixed order. Any failure rolls every store back to where it was
and comes back as a failed Result.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, TypeVar

from vibecircle.domain.chat.models import ConversationKind, ConversationRef, ConversationSource, Message
from vibecircle.domain.circles.models import Circle
from vibecircle.domain.circles.schemas import CircleCreateRequest
from vibecircle.domain.common.errors import EngineError, InvalidTransition
from vibecircle.domain.common.result import Result
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.common.validation import parse
from vibecircle.domain.matching.models import Match, MatchCandidate, MatchStatus
from vibecircle.domain.notifications.models import NotificationCategory, NotificationEvent
from vibecircle.domain.profile.models import Milestone
from vibecircle.domain.session.stores import UserStores
from vibecircle.domain.vibes.models import Vibe
from vibecircle.infra.locks import UserLocks, user_locks
from vibecircle.obs import logging as obs_logging
from vibecircle.obs import metrics as obs_metrics
from vibecircle.obs.audit import log_flow_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

MESSAGE_PREVIEW_CHARS = 80


async def _run(
	stores: UserStores,
	name: str,
	body: Callable[[UnitOfWork], T],
	locks: Optional[UserLocks],
) -> Result[T]:
	ctx = stores.ctx
	tokens = obs_logging.bind_context(flow=name)
	try:
		async with (locks or user_locks).hold(ctx.user_id):
			if stores.closed:
				logger.info("flow on closed session", extra={"flow_name": name})
				return Result.failure(InvalidTransition(detail="session_closed"))
			try:
				async with UnitOfWork(ctx, name) as tx:
					value = body(tx)
			except EngineError as exc:
				logger.info("flow rejected", extra={"flow_name": name, "reason": exc.reason})
				return Result.failure(exc)
	finally:
		obs_logging.reset_context(tokens)
	return Result.success(value)


def _announce_milestones(stores: UserStores, tx: UnitOfWork, unlocked: List[Milestone]) -> None:
	for milestone in unlocked:
		stores.notifications.add(
			tx,
			NotificationEvent(
				category=NotificationCategory.MILESTONES,
				title=f"Milestone unlocked: {milestone.title}",
				body=milestone.description,
				related_entity_id=milestone.id,
			),
		)


def _count_milestones(unlocked: List[Milestone]) -> None:
	for milestone in unlocked:
		obs_metrics.inc_milestone(milestone.id)


def _preview(content: str) -> str:
	text = content.strip()
	if len(text) <= MESSAGE_PREVIEW_CHARS:
		return text
	return text[: MESSAGE_PREVIEW_CHARS - 1] + "…"


async def generate_matches(
	stores: UserStores,
	candidates: Iterable[MatchCandidate],
	*,
	locks: Optional[UserLocks] = None,
) -> Result[List[Match]]:
	"""Admit recommendations into today's queue until the quota runs out."""
	if stores.matches.remaining_today <= 0:
		obs_metrics.inc_match_quota_exhausted()
		return Result.success([])
	pending = list(candidates)

	def body(tx: UnitOfWork) -> List[Match]:
		return stores.matches.admit(
			tx,
			pending,
			profile=stores.profile.snapshot(),
			joined_circle_ids=stores.circles.joined_ids(),
		)

	result = await _run(stores, "generate_matches", body, locks)
	if result.ok:
		obs_metrics.inc_match_admitted(len(result.value))
		log_flow_event(
			"match.generated",
			stores.ctx.user_id,
			extra={"admitted": len(result.value), "remaining": stores.matches.remaining_today},
		)
	return result


async def connect_match(stores: UserStores, match_id: str, *, locks: Optional[UserLocks] = None) -> Result[ConversationRef]:
	unlocked: List[Milestone] = []

	def body(tx: UnitOfWork) -> ConversationRef:
		match = stores.matches.resolve(tx, match_id, MatchStatus.CONNECTED)
		unlocked.extend(stores.profile.apply_stats(tx, friendships_formed=1))
		conversation = stores.conversations.open(
			tx,
			ConversationSource(ConversationKind.DIRECT, match.id),
			participant_ids=(stores.ctx.user_id, match.user.id),
			name=match.user.display_name or match.user.username,
		)
		stores.notifications.add(
			tx,
			NotificationEvent(
				category=NotificationCategory.MATCHES,
				title="New connection",
				body=f"You and {match.user.display_name or match.user.username} are now connected",
				related_entity_id=match.id,
			),
		)
		_announce_milestones(stores, tx, unlocked)
		return conversation.ref()

	result = await _run(stores, "connect_match", body, locks)
	obs_metrics.inc_match_action("connect", "ok" if result.ok else result.reason)
	if result.ok:
		_count_milestones(unlocked)
		log_flow_event(
			"match.connected",
			stores.ctx.user_id,
			extra={"match_id": match_id, "conversation_id": result.value.conversation_id},
		)
	return result


async def pass_match(stores: UserStores, match_id: str, *, locks: Optional[UserLocks] = None) -> Result[Match]:
	def body(tx: UnitOfWork) -> Match:
		return stores.matches.resolve(tx, match_id, MatchStatus.PASSED)

	result = await _run(stores, "pass_match", body, locks)
	obs_metrics.inc_match_action("pass", "ok" if result.ok else result.reason)
	if result.ok:
		log_flow_event("match.passed", stores.ctx.user_id, extra={"match_id": match_id})
	return result


def _enter_circle(stores: UserStores, tx: UnitOfWork, circle: Circle, unlocked: List[Milestone]) -> None:
	"""Side effects shared by join and create, after the circle is joined."""
	unlocked.extend(stores.profile.apply_stats(tx, circles_joined=1))
	stores.conversations.open(
		tx,
		ConversationSource(ConversationKind.CIRCLE, circle.id),
		participant_ids=(stores.ctx.user_id,),
		name=circle.name,
	)
	stores.notifications.add(
		tx,
		NotificationEvent(
			category=NotificationCategory.CIRCLES,
			title=f"Welcome to {circle.name}",
			body=f"You joined {circle.name}",
			related_entity_id=circle.id,
		),
	)
	stores.matches.refresh_shared_circles(tx, stores.circles.joined_ids())
	_announce_milestones(stores, tx, unlocked)


async def join_circle(stores: UserStores, circle_id: str, *, locks: Optional[UserLocks] = None) -> Result[Circle]:
	unlocked: List[Milestone] = []

	def body(tx: UnitOfWork) -> Circle:
		circle = stores.circles.join(tx, circle_id)
		_enter_circle(stores, tx, circle, unlocked)
		return circle

	result = await _run(stores, "join_circle", body, locks)
	obs_metrics.inc_circle_action("join", "ok" if result.ok else result.reason)
	if result.ok:
		_count_milestones(unlocked)
		log_flow_event("circle.joined", stores.ctx.user_id, extra={"circle_id": circle_id})
	return result


async def create_circle(stores: UserStores, request, *, locks: Optional[UserLocks] = None) -> Result[Circle]:
	unlocked: List[Milestone] = []

	def body(tx: UnitOfWork) -> Circle:
		circle = stores.circles.create(tx, parse(CircleCreateRequest, request))
		_enter_circle(stores, tx, circle, unlocked)
		return circle

	result = await _run(stores, "create_circle", body, locks)
	obs_metrics.inc_circle_action("create", "ok" if result.ok else result.reason)
	if result.ok:
		_count_milestones(unlocked)
		log_flow_event("circle.created", stores.ctx.user_id, extra={"circle_id": result.value.id})
	return result


async def leave_circle(stores: UserStores, circle_id: str, *, locks: Optional[UserLocks] = None) -> Result[Circle]:
	def body(tx: UnitOfWork) -> Circle:
		circle = stores.circles.leave(tx, circle_id)
		stores.profile.apply_stats(tx, circles_joined=-1)
		stores.matches.refresh_shared_circles(tx, stores.circles.joined_ids())
		return circle

	result = await _run(stores, "leave_circle", body, locks)
	obs_metrics.inc_circle_action("leave", "ok" if result.ok else result.reason)
	if result.ok:
		log_flow_event("circle.left", stores.ctx.user_id, extra={"circle_id": circle_id})
	return result


async def share_vibe(stores: UserStores, vibe_id: str, *, locks: Optional[UserLocks] = None) -> Result[Vibe]:
	unlocked: List[Milestone] = []

	def body(tx: UnitOfWork) -> Vibe:
		vibe = stores.vibes.publish(tx, vibe_id)
		unlocked.extend(stores.profile.apply_vibe_share(tx, vibe.authenticity, stores.ctx.clock.today()))
		_announce_milestones(stores, tx, unlocked)
		return vibe

	result = await _run(stores, "share_vibe", body, locks)
	if result.ok:
		obs_metrics.inc_vibe_shared()
		_count_milestones(unlocked)
		log_flow_event("vibe.shared", stores.ctx.user_id, extra={"vibe_id": vibe_id})
	return result


async def receive_message(
	stores: UserStores,
	conversation_id: str,
	sender_id: str,
	content: str,
	*,
	locks: Optional[UserLocks] = None,
) -> Result[Message]:
	"""Apply a message pushed by the backend and notify about it."""

	def body(tx: UnitOfWork) -> Message:
		message = stores.conversations.append(tx, conversation_id, sender_id, content, inbound=True)
		conversation = stores.conversations.get(conversation_id)
		stores.notifications.add(
			tx,
			NotificationEvent(
				category=NotificationCategory.MESSAGES,
				title=f"New message in {conversation.name}" if conversation.name else "New message",
				body=_preview(message.content),
				related_entity_id=conversation_id,
			),
		)
		return message

	result = await _run(stores, "receive_message", body, locks)
	if result.ok:
		obs_metrics.inc_message("inbound")
	return result
