"""Conversation store: threads, append-only history and hangouts."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from vibecircle.domain.chat.models import (
	Conversation,
	ConversationKind,
	ConversationSource,
	Hangout,
	Message,
	friendship_level,
)
from vibecircle.domain.chat.schemas import HangoutCreateRequest
from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.common.errors import EngineError, InvalidInput, InvalidSchedule, NotFound
from vibecircle.domain.common.result import Result
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.common.validation import parse
from vibecircle.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class ConversationStore:
	def __init__(self, ctx: SessionContext) -> None:
		self.ctx = ctx
		self._conversations: Dict[str, Conversation] = {}
		self._by_source: Dict[Tuple[str, str], str] = {}
		self._history: Dict[str, List[Message]] = {}
		self._hangouts: Dict[str, Hangout] = {}
		self._active_id: Optional[str] = None
		self._seq = 0

	@property
	def active(self) -> Optional[Conversation]:
		if self._active_id is None:
			return None
		return self._conversations.get(self._active_id)

	def get(self, conversation_id: str) -> Optional[Conversation]:
		return self._conversations.get(conversation_id)

	def find(self, source: ConversationSource) -> Optional[Conversation]:
		conversation_id = self._by_source.get(source.key)
		return self._conversations.get(conversation_id) if conversation_id else None

	def list_conversations(self) -> List[Conversation]:
		"""Most recent activity first."""
		return sorted(self._conversations.values(), key=lambda conv: conv.last_activity_at, reverse=True)

	def history(self, conversation_id: str) -> List[Message]:
		return list(self._history.get(conversation_id, ()))

	def list_hangouts(self) -> List[Hangout]:
		"""Soonest first."""
		return sorted(self._hangouts.values(), key=lambda hangout: hangout.scheduled_for)

	def open(
		self,
		tx: UnitOfWork,
		source: ConversationSource,
		*,
		participant_ids: Sequence[str] = (),
		name: str = "",
	) -> Conversation:
		"""Return the thread for ``source``, creating it on first use."""
		existing = self.find(source)
		if existing is not None:
			return existing
		conversation = Conversation(
			id=str(uuid4()),
			kind=source.kind,
			source_id=source.source_id,
			created_at=self.ctx.clock.now(),
			name=name,
			participant_ids=tuple(participant_ids),
		)
		self._conversations[conversation.id] = conversation
		self._by_source[source.key] = conversation.id
		self._history[conversation.id] = []

		def undo() -> None:
			self._conversations.pop(conversation.id, None)
			self._by_source.pop(source.key, None)
			self._history.pop(conversation.id, None)

		tx.compensate(undo)
		tx.record(
			"conversation",
			conversation.id,
			kind=conversation.kind,
			source_id=conversation.source_id,
			name=conversation.name,
			participant_ids=list(conversation.participant_ids),
			created_at=conversation.created_at,
		)
		return conversation

	def append(self, tx: UnitOfWork, conversation_id: str, sender_id: str, content: str, *, inbound: bool) -> Message:
		current = self._conversations.get(conversation_id)
		if current is None:
			raise NotFound(detail=f"conversation:{conversation_id}")
		text = (content or "").strip()
		if not text:
			raise InvalidInput(detail="content:blank")

		self._seq += 1
		message = Message(
			id=str(uuid4()),
			conversation_id=conversation_id,
			sender_id=sender_id,
			content=text,
			seq=self._seq,
			sent_at=self.ctx.clock.now(),
		)
		count = current.message_count + 1
		updated = replace(
			current,
			last_message=message,
			message_count=count,
			unread_count=current.unread_count + 1 if inbound else current.unread_count,
			friendship_level=friendship_level(count),
		)
		self._history[conversation_id].append(message)
		self._conversations[conversation_id] = updated

		def undo() -> None:
			history = self._history.get(conversation_id)
			if history and history[-1].id == message.id:
				history.pop()
			self._conversations[conversation_id] = current

		tx.compensate(undo)
		tx.record("message", message.id, **message.to_dict())
		tx.record(
			"conversation",
			conversation_id,
			message_count=updated.message_count,
			unread_count=updated.unread_count,
			friendship_level=updated.friendship_level,
		)
		return message

	async def send(self, conversation_id: str, content: str) -> Result[Message]:
		try:
			async with UnitOfWork(self.ctx, "send_message") as tx:
				message = self.append(tx, conversation_id, self.ctx.user_id, content, inbound=False)
		except EngineError as exc:
			return Result.failure(exc)
		obs_metrics.inc_message("outbound")
		return Result.success(message)

	async def mark_conversation_read(self, conversation_id: str) -> Result[Conversation]:
		try:
			async with UnitOfWork(self.ctx, "mark_conversation_read") as tx:
				current = self._conversations.get(conversation_id)
				if current is None:
					raise NotFound(detail=f"conversation:{conversation_id}")
				if current.unread_count:
					self._conversations[conversation_id] = replace(current, unread_count=0)
					tx.compensate(lambda: self._conversations.__setitem__(conversation_id, current))
					tx.record("conversation", conversation_id, unread_count=0)
		except EngineError as exc:
			return Result.failure(exc)
		return Result.success(self._conversations[conversation_id])

	def set_active(self, conversation_id: Optional[str]) -> Result[Optional[Conversation]]:
		if conversation_id is not None and conversation_id not in self._conversations:
			return Result.failure(NotFound(detail=f"conversation:{conversation_id}"))
		self._active_id = conversation_id
		return Result.success(self.active)

	def _resolve_target(self, conversation_id: Optional[str], circle_id: Optional[str]) -> Conversation:
		if (conversation_id is None) == (circle_id is None):
			raise InvalidInput(detail="target:exactly_one")
		if circle_id is not None:
			conversation = self.find(ConversationSource(ConversationKind.CIRCLE, circle_id))
			if conversation is None:
				raise NotFound(detail=f"circle_thread:{circle_id}")
			return conversation
		conversation = self._conversations.get(conversation_id)
		if conversation is None:
			raise NotFound(detail=f"conversation:{conversation_id}")
		return conversation

	async def schedule_hangout(
		self,
		details,
		*,
		conversation_id: Optional[str] = None,
		circle_id: Optional[str] = None,
	) -> Result[Hangout]:
		"""Schedule a hangout on a conversation, or on a circle's group thread."""
		try:
			conversation = self._resolve_target(conversation_id, circle_id)
			request = parse(HangoutCreateRequest, details)
			now = self.ctx.clock.now()
			if request.scheduled_for <= now:
				raise InvalidSchedule(detail="not_in_future")
			hangout = Hangout(
				id=str(uuid4()),
				conversation_id=conversation.id,
				title=request.title,
				scheduled_for=request.scheduled_for,
				created_at=now,
				is_virtual=request.is_virtual,
				location=request.location,
				notes=request.notes,
			)
			async with UnitOfWork(self.ctx, "schedule_hangout") as tx:
				self._hangouts[hangout.id] = hangout
				tx.compensate(lambda: self._hangouts.pop(hangout.id, None))
				tx.record("hangout", hangout.id, **hangout.to_dict())
		except EngineError as exc:
			obs_metrics.inc_hangout(exc.reason)
			return Result.failure(exc)
		obs_metrics.inc_hangout("ok")
		return Result.success(hangout)

	def clear(self) -> None:
		self._conversations.clear()
		self._by_source.clear()
		self._history.clear()
		self._hangouts.clear()
		self._active_id = None
		self._seq = 0
