"""Domain models for notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class NotificationCategory(str, Enum):
	MATCHES = "matches"
	MESSAGES = "messages"
	CIRCLES = "circles"
	MILESTONES = "milestones"


@dataclass(frozen=True, slots=True)
class NotificationEvent:
	"""What happened, before the feed decides whether to surface it."""

	category: NotificationCategory
	title: str
	body: str
	related_entity_id: Optional[str] = None

	def to_dict(self) -> dict:
		return {
			"category": self.category.value,
			"title": self.title,
			"body": self.body,
			"related_entity_id": self.related_entity_id,
		}


@dataclass(frozen=True, slots=True)
class Notification:
	id: str
	category: NotificationCategory
	title: str
	body: str
	created_at: datetime
	related_entity_id: Optional[str] = None
	read: bool = False
	surfaced: bool = True

	def event(self) -> NotificationEvent:
		return NotificationEvent(
			category=self.category,
			title=self.title,
			body=self.body,
			related_entity_id=self.related_entity_id,
		)
