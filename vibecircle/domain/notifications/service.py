"""Notification store: preferences, surfaced feed and audit feed."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional
from uuid import uuid4

from vibecircle.domain.common.context import SessionContext
from vibecircle.domain.common.errors import EngineError, NotFound, UnknownCategory
from vibecircle.domain.common.result import Result
from vibecircle.domain.common.unit_of_work import UnitOfWork
from vibecircle.domain.common.validation import parse
from vibecircle.domain.notifications.delivery import NotificationSink, NullSink
from vibecircle.domain.notifications.models import Notification, NotificationEvent
from vibecircle.domain.notifications.schemas import NotificationPreferences, NotificationPreferencesPatch
from vibecircle.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

DEFAULT_PREFS = NotificationPreferences().model_dump()


class NotificationStore:
	def __init__(self, ctx: SessionContext, sink: Optional[NotificationSink] = None) -> None:
		self.ctx = ctx
		self.sink: NotificationSink = sink or NullSink()
		self._preferences = NotificationPreferences(**DEFAULT_PREFS)
		# both oldest first; the audit feed is never trimmed
		self._feed: Dict[str, Notification] = {}
		self._audit: List[Notification] = []

	@property
	def preferences(self) -> NotificationPreferences:
		return self._preferences

	@property
	def unread_count(self) -> int:
		return sum(1 for notification in self._feed.values() if not notification.read)

	def feed(self) -> List[Notification]:
		"""Surfaced notifications, newest first."""
		return list(reversed(self._feed.values()))

	def audit_feed(self) -> List[Notification]:
		return list(self._audit)

	async def update_preferences(self, patch) -> Result[NotificationPreferences]:
		try:
			updates = parse(NotificationPreferencesPatch, patch, unknown_error=UnknownCategory).model_dump(exclude_none=True)
			async with UnitOfWork(self.ctx, "update_notification_preferences") as tx:
				current = self._preferences
				merged = current.model_dump()
				merged.update(updates)
				self._preferences = NotificationPreferences(**merged)
				tx.compensate(lambda: setattr(self, "_preferences", current))
				if updates:
					tx.record("notification_preferences", self.ctx.user_id, **merged)
		except EngineError as exc:
			return Result.failure(exc)
		if updates:
			logger.info("notification preferences changed", extra={"fields": ",".join(sorted(updates))})
		return Result.success(self._preferences)

	def add(self, tx: UnitOfWork, event: NotificationEvent) -> Notification:
		"""Record ``event`` in the audit feed and surface it if its category is on.

		Delivery to the sink happens only once the surrounding unit of work
		commits.
		"""
		surfaced = self._preferences.allows(event.category.value)
		notification = Notification(
			id=str(uuid4()),
			category=event.category,
			title=event.title,
			body=event.body,
			created_at=self.ctx.clock.now(),
			related_entity_id=event.related_entity_id,
			surfaced=surfaced,
		)
		self._audit.append(notification)
		if surfaced:
			self._feed[notification.id] = notification

		def undo() -> None:
			if self._audit and self._audit[-1].id == notification.id:
				self._audit.pop()
			self._feed.pop(notification.id, None)

		tx.compensate(undo)
		tx.record(
			"notification",
			notification.id,
			**event.to_dict(),
			created_at=notification.created_at,
			read=False,
			surfaced=surfaced,
		)

		async def announce() -> None:
			obs_metrics.inc_notification(event.category.value, surfaced)
			if surfaced:
				await self._deliver(notification)

		tx.after_commit(announce)
		return notification

	async def _deliver(self, notification: Notification) -> None:
		try:
			await self.sink.deliver(notification.event())
		except Exception:  # delivery problems never reach the caller
			obs_metrics.inc_delivery_failure(notification.category.value)
			logger.exception(
				"notification delivery failed",
				extra={"notification_id": notification.id, "category": notification.category.value},
			)

	async def publish(self, event: NotificationEvent) -> Result[Notification]:
		try:
			async with UnitOfWork(self.ctx, "publish_notification") as tx:
				notification = self.add(tx, event)
		except EngineError as exc:
			return Result.failure(exc)
		return Result.success(notification)

	def _set_read(self, tx: UnitOfWork, notification: Notification) -> None:
		self._feed[notification.id] = replace(notification, read=True)
		tx.compensate(lambda: self._feed.__setitem__(notification.id, notification))
		tx.record("notification", notification.id, read=True)

	async def mark_read(self, notification_id: str) -> Result[None]:
		try:
			async with UnitOfWork(self.ctx, "mark_notification_read") as tx:
				notification = self._feed.get(notification_id)
				if notification is None:
					raise NotFound(detail=f"notification:{notification_id}")
				if not notification.read:
					self._set_read(tx, notification)
		except EngineError as exc:
			return Result.failure(exc)
		return Result.success(None)

	async def mark_all_read(self) -> Result[int]:
		try:
			async with UnitOfWork(self.ctx, "mark_all_notifications_read") as tx:
				unread = [notification for notification in self._feed.values() if not notification.read]
				for notification in unread:
					self._set_read(tx, notification)
		except EngineError as exc:
			return Result.failure(exc)
		return Result.success(len(unread))

	async def dismiss(self, notification_id: str) -> Result[None]:
		"""Remove from the feed. The audit feed keeps its copy."""
		try:
			async with UnitOfWork(self.ctx, "dismiss_notification") as tx:
				snapshot = dict(self._feed)
				if self._feed.pop(notification_id, None) is None:
					raise NotFound(detail=f"notification:{notification_id}")
				tx.compensate(lambda: self._restore_feed(snapshot))
				tx.record("notification", notification_id, dismissed=True)
		except EngineError as exc:
			return Result.failure(exc)
		return Result.success(None)

	def _restore_feed(self, snapshot: Dict[str, Notification]) -> None:
		self._feed.clear()
		self._feed.update(snapshot)

	def clear(self) -> None:
		self._preferences = NotificationPreferences(**DEFAULT_PREFS)
		self._feed.clear()
		self._audit.clear()
